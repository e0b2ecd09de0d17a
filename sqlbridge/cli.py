from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from click import Group

    from sqlbridge.config import BridgeConfig

__all__ = ("explain_statement", "get_sqlbridge_group", "main")


def explain_statement(
    sql: str, params: "Optional[list[Any]]" = None, config: "Optional[BridgeConfig]" = None
) -> "dict[str, str]":
    """Describe how a legacy statement would be translated, without contacting a store.

    Returns:
        Ordered field name to display value pairs.
    """
    from sqlbridge.core.compiler import StatementCompiler
    from sqlbridge.core.dispatcher import render_builder_chain
    from sqlbridge.core.result import Unsupported

    compiler = StatementCompiler(config)
    normalized = compiler.normalize(sql)
    compiled = compiler.compile(sql, params or [])
    if isinstance(compiled, Unsupported):
        return {
            "normalized": normalized,
            "shape": "unsupported",
            "reason": compiled.reason.value,
            "detail": compiled.detail,
        }
    predicate = compiled.predicate
    return {
        "normalized": normalized,
        "shape": compiled.shape.kind,
        "table": compiled.table,
        "predicate": f"{predicate.column} = {compiled.predicate_value()!r}" if predicate else "-",
        "values": repr(compiled.values) if compiled.values else "-",
        "builder": render_builder_chain(compiled),
    }


def get_sqlbridge_group() -> "Group":
    """Get the sqlbridge CLI group.

    Raises:
        MissingDependencyError: If the `click` package is not installed.

    Returns:
        The sqlbridge CLI group.
    """
    from sqlbridge.exceptions import MissingDependencyError

    try:
        import click
    except ImportError as e:
        raise MissingDependencyError(package="click", install_package="cli") from e

    @click.group(name="sqlbridge")
    @click.option(
        "--log-level",
        type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
        default=None,
        help="Log sqlbridge records to stderr at this level.",
    )
    def sqlbridge_group(log_level: "Optional[str]") -> None:
        """sqlbridge CLI commands."""
        if log_level:
            from sqlbridge.utils.logging import configure_logging

            configure_logging(log_level, structured=False)

    @sqlbridge_group.command(name="explain", help="Show how a legacy statement is translated into builder calls.")
    @click.argument("sql", type=str)
    @click.option("--params", "params_json", default="[]", help="JSON list of positional parameters.")
    @click.option("--dialect", default="sqlite", show_default=True, help="sqlglot dialect used to read the statement.")
    @click.option(
        "--no-boolean-rewrite", is_flag=True, default=False, help="Keep bare 1/0 comparison values as integers."
    )
    def explain(sql: str, params_json: str, dialect: str, no_boolean_rewrite: bool) -> None:
        """Explain a statement."""
        import msgspec
        from rich import get_console
        from rich.table import Table

        from sqlbridge.config import BridgeConfig
        from sqlbridge.exceptions import SQLBridgeError
        from sqlbridge.utils.serializers import from_json

        console = get_console()
        try:
            params = from_json(params_json)
        except msgspec.DecodeError as e:
            console.print(f"[red]Invalid --params JSON: {e}[/]")
            raise SystemExit(2) from e
        if not isinstance(params, list):
            params = [params]
        try:
            config = BridgeConfig(dialect=dialect, rewrite_boolean_literals=not no_boolean_rewrite)
        except SQLBridgeError as e:
            console.print(f"[red]{e}[/]")
            raise SystemExit(2) from e

        table = Table(title="Statement translation", show_header=True, header_style="bold")
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value")
        for field_name, value in explain_statement(sql, params, config).items():
            table.add_row(field_name, value)
        console.print(table)

    return sqlbridge_group


def main() -> None:
    get_sqlbridge_group()()
