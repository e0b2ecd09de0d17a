"""Statement shape classification.

The classifier parses a normalized statement with sqlglot and matches the AST against a
closed set of shapes. It never tries to understand anything beyond those shapes: a
statement either fits one of them exactly or it is ``Unrecognized``.

The leading keyword decides which recognizers run. A statement that starts with ``SELECT``
is never offered to the INSERT/UPDATE/DELETE recognizers and vice versa, so keyword-like
text inside string literals cannot cause a cross-shape match.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Final, Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from sqlbridge.core.statement import (
    DEFAULT_COUNT_ALIAS,
    Delete,
    Insert,
    MissReason,
    SelectAll,
    SelectCount,
    StatementShape,
    Unrecognized,
    Update,
)

__all__ = (
    "PLACEHOLDER_TYPES",
    "ClassifiedStatement",
    "NotALiteralError",
    "classify",
    "is_identifier",
    "literal_value",
    "parse_statement",
)

IDENTIFIER_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
LEADING_KEYWORD_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\s*([A-Za-z]+)")

COMPARISON_TYPES: Final = (exp.EQ, exp.NEQ, exp.GT, exp.GTE, exp.LT, exp.LTE)
CONNECTIVE_TYPES: Final = (exp.And, exp.Or)
LITERAL_TYPES: Final = (exp.Literal, exp.Boolean, exp.Null, exp.Neg)
# ``$1`` parses as a Parameter; it is recognized here and rejected when parameters are bound.
PLACEHOLDER_TYPES: Final = (exp.Placeholder, exp.Parameter)

# Select clauses that put a statement outside the supported subset.
_UNSUPPORTED_SELECT_ARGS: Final = ("joins", "group", "having", "distinct", "qualify", "windows", "laterals", "pivots")
_UNSUPPORTED_INSERT_ARGS: Final = ("alternative", "conflict", "returning", "overwrite", "where", "ignore")
_UNSUPPORTED_MUTATION_ARGS: Final = ("returning", "order", "limit", "using")


class NotALiteralError(ValueError):
    """Raised by :func:`literal_value` for nodes that are not plain literals."""


@dataclass(frozen=True)
class ClassifiedStatement:
    """A normalized statement, its shape and the AST the shape was read from."""

    text: str
    shape: StatementShape
    expression: Optional[exp.Expression] = None

    @property
    def is_recognized(self) -> bool:
        return not isinstance(self.shape, Unrecognized)


def is_identifier(name: "Optional[str]") -> bool:
    return bool(name) and IDENTIFIER_PATTERN.match(name) is not None  # type: ignore[arg-type]


def literal_value(node: exp.Expression) -> Any:
    """Convert a literal AST node into its Python value.

    Raises:
        NotALiteralError: If the node is anything other than a string, number, boolean or NULL.
    """
    if isinstance(node, exp.Null):
        return None
    if isinstance(node, exp.Boolean):
        return bool(node.this)
    if isinstance(node, exp.Literal):
        if node.is_string:
            return node.this
        try:
            return int(node.this)
        except ValueError:
            return float(node.this)
    if isinstance(node, exp.Neg) and isinstance(node.this, exp.Literal) and not node.this.is_string:
        return -literal_value(node.this)
    msg = f"Not a literal: {node.sql()}"
    raise NotALiteralError(msg)


def parse_statement(text: str, dialect: "Optional[str]" = None) -> "Optional[exp.Expression]":
    """Parse exactly one statement, or return None.

    Scripts with more than one statement and text sqlglot cannot parse both give None.
    """
    try:
        expressions = [expression for expression in sqlglot.parse(text, read=dialect) if expression is not None]
    except SqlglotError:
        return None
    if len(expressions) != 1:
        return None
    return expressions[0]


def _miss(text: str, detail: str, reason: MissReason = MissReason.CLASSIFICATION_MISS) -> Unrecognized:
    return Unrecognized(original_text=text, reason=reason, detail=detail)


def _single_table(expression: exp.Expression) -> "Optional[exp.Table]":
    tables = list(expression.find_all(exp.Table))
    if len(tables) != 1:
        return None
    table = tables[0]
    if table.args.get("db") or table.args.get("catalog"):
        return None
    if not isinstance(table.this, exp.Identifier) or not is_identifier(table.name):
        return None
    return table


def _has_nested_select(expression: exp.Expression) -> bool:
    return any(node is not expression for node in expression.find_all(exp.Select)) or bool(
        expression.find(exp.Subquery)
    )


def _column_belongs_to(column: exp.Expression, table: exp.Table) -> bool:
    if not isinstance(column, exp.Column) or not is_identifier(column.name):
        return False
    qualifier = column.table
    return not qualifier or qualifier in {table.name, table.alias_or_name}


def _is_value(node: exp.Expression) -> bool:
    return isinstance(node, PLACEHOLDER_TYPES) or isinstance(node, LITERAL_TYPES)


def _check_where(text: str, expression: exp.Expression, table: exp.Table) -> "Optional[Unrecognized]":
    """Validate an existing WHERE clause; returns a miss or None when it holds one predicate."""
    where = expression.args.get("where")
    if where is None:
        return None
    condition = where.this.unnest()
    if isinstance(condition, CONNECTIVE_TYPES):
        return _miss(text, "WHERE clause holds more than one condition", MissReason.AMBIGUOUS_PREDICATE)
    if not isinstance(condition, COMPARISON_TYPES):
        return _miss(text, f"Unsupported WHERE condition: {condition.sql()}")
    if not _column_belongs_to(condition.this, table):
        return _miss(text, f"WHERE clause must compare a column of {table.name!r}")
    if not _is_value(condition.expression):
        return _miss(text, "WHERE clause must compare against a placeholder or a literal")
    return None


def _recognize_insert(text: str, expression: exp.Expression) -> "Optional[StatementShape]":
    if not isinstance(expression, exp.Insert):
        return None
    schema = expression.this
    if not isinstance(schema, exp.Schema) or not isinstance(schema.this, exp.Table):
        return _miss(text, "INSERT must name its columns")
    if any(expression.args.get(key) for key in _UNSUPPORTED_INSERT_ARGS):
        return _miss(text, "INSERT modifiers are not supported")
    table = _single_table(expression)
    if table is None:
        return _miss(text, "INSERT must target exactly one plain table")
    columns = tuple(column.name for column in schema.expressions)
    if not columns or not all(is_identifier(column) for column in columns):
        return _miss(text, "INSERT column list is invalid")
    values = expression.expression
    if not isinstance(values, exp.Values) or len(values.expressions) != 1:
        return _miss(text, "INSERT must provide exactly one VALUES row")
    row = values.expressions[0]
    if not isinstance(row, exp.Tuple) or not all(_is_value(node) for node in row.expressions):
        return _miss(text, "VALUES may only hold placeholders and literals")
    return Insert(table=table.name, columns=columns)


def _recognize_update(text: str, expression: exp.Expression) -> "Optional[StatementShape]":
    if not isinstance(expression, exp.Update):
        return None
    table = _single_table(expression)
    if table is None or not isinstance(expression.this, exp.Table):
        return _miss(text, "UPDATE must target exactly one plain table")
    if any(expression.args.get(key) for key in _UNSUPPORTED_MUTATION_ARGS) or _has_nested_select(expression):
        return _miss(text, "UPDATE modifiers are not supported")
    assignments = expression.expressions
    if not assignments:
        return _miss(text, "UPDATE has no SET clause")
    set_columns = []
    for assignment in assignments:
        if not isinstance(assignment, exp.EQ) or not _column_belongs_to(assignment.this, table):
            return _miss(text, "SET clause must assign plain columns")
        if not _is_value(assignment.expression):
            return _miss(text, f"SET value for {assignment.this.name!r} must be a placeholder or a literal")
        set_columns.append(assignment.this.name)
    if expression.args.get("where") is None:
        return _miss(text, "UPDATE without WHERE is not translated")
    miss = _check_where(text, expression, table)
    if miss is not None:
        return miss
    return Update(table=table.name, set_columns=tuple(set_columns))


def _recognize_delete(text: str, expression: exp.Expression) -> "Optional[StatementShape]":
    if not isinstance(expression, exp.Delete):
        return None
    table = _single_table(expression)
    if table is None or not isinstance(expression.this, exp.Table):
        return _miss(text, "DELETE must target exactly one plain table")
    if any(expression.args.get(key) for key in _UNSUPPORTED_MUTATION_ARGS) or _has_nested_select(expression):
        return _miss(text, "DELETE modifiers are not supported")
    if expression.args.get("where") is None:
        return _miss(text, "DELETE without WHERE is not translated")
    miss = _check_where(text, expression, table)
    if miss is not None:
        return miss
    return Delete(table=table.name)


def _check_select(text: str, expression: exp.Expression) -> "tuple[Optional[exp.Table], Optional[Unrecognized]]":
    if any(expression.args.get(key) for key in _UNSUPPORTED_SELECT_ARGS) or _has_nested_select(expression):
        return None, _miss(text, "SELECT uses joins, grouping, DISTINCT or subqueries")
    table = _single_table(expression)
    if table is None:
        return None, _miss(text, "SELECT must read exactly one plain table")
    return table, _check_where(text, expression, table)


def _recognize_select_count(text: str, expression: exp.Expression) -> "Optional[StatementShape]":
    if not isinstance(expression, exp.Select) or len(expression.expressions) != 1:
        return None
    projection = expression.expressions[0]
    counted = projection.this if isinstance(projection, exp.Alias) else projection
    if not isinstance(counted, exp.Count) or not isinstance(counted.this, exp.Star):
        return None
    table, miss = _check_select(text, expression)
    if miss is not None:
        return miss
    alias = projection.alias if isinstance(projection, exp.Alias) else ""
    return SelectCount(table=table.name, alias=alias or DEFAULT_COUNT_ALIAS)  # type: ignore[union-attr]


def _check_select_modifiers(text: str, expression: exp.Expression, table: exp.Table) -> "Optional[Unrecognized]":
    order = expression.args.get("order")
    if order is not None:
        if len(order.expressions) != 1:
            return _miss(text, "ORDER BY supports a single column")
        ordered = order.expressions[0]
        if not isinstance(ordered, exp.Ordered) or not _column_belongs_to(ordered.this, table):
            return _miss(text, "ORDER BY must name a plain column")
    for key in ("limit", "offset"):
        clause = expression.args.get(key)
        if clause is None:
            continue
        value = clause.expression
        if not isinstance(value, exp.Literal) or not value.is_int:
            return _miss(text, f"{key.upper()} must be an integer literal")
    return None


def _recognize_select_all(text: str, expression: exp.Expression) -> "Optional[StatementShape]":
    if not isinstance(expression, exp.Select):
        return None
    projections = expression.expressions
    if len(projections) != 1 or not isinstance(projections[0], exp.Star):
        return _miss(text, "Only SELECT * and SELECT COUNT(*) are translated")
    table, miss = _check_select(text, expression)
    if miss is not None:
        return miss
    miss = _check_select_modifiers(text, expression, table)  # type: ignore[arg-type]
    if miss is not None:
        return miss
    return SelectAll(table=table.name)  # type: ignore[union-attr]


Recognizer = Callable[[str, exp.Expression], "Optional[StatementShape]"]

RECOGNIZERS_BY_KEYWORD: "Final[dict[str, tuple[Recognizer, ...]]]" = {
    "SELECT": (_recognize_select_count, _recognize_select_all),
    "INSERT": (_recognize_insert,),
    "UPDATE": (_recognize_update,),
    "DELETE": (_recognize_delete,),
}


def classify(text: str, *, dialect: "Optional[str]" = "sqlite") -> ClassifiedStatement:
    """Classify a normalized statement into exactly one shape.

    Args:
        text: Normalized statement text.
        dialect: sqlglot dialect used to read the text.

    Returns:
        The classified statement. Its shape is ``Unrecognized`` when no recognizer matched.
    """
    keyword_match = LEADING_KEYWORD_PATTERN.match(text or "")
    if keyword_match is None:
        return ClassifiedStatement(text, _miss(text, "Empty or unreadable statement"))
    recognizers = RECOGNIZERS_BY_KEYWORD.get(keyword_match.group(1).upper())
    if recognizers is None:
        return ClassifiedStatement(text, _miss(text, f"Unsupported statement type {keyword_match.group(1).upper()}"))

    expression = parse_statement(text, dialect)
    if expression is None:
        return ClassifiedStatement(text, _miss(text, "Statement could not be parsed as a single statement"))

    for recognizer in recognizers:
        shape = recognizer(text, expression)
        if shape is not None:
            return ClassifiedStatement(text, shape, expression)
    return ClassifiedStatement(text, _miss(text, "Statement does not match a supported shape"), expression)
