"""Statement compilation pipeline.

``StatementCompiler`` runs the three pure translation stages for one raw statement:

- normalize dialect literals
- classify the normalized text into a shape with sqlglot
- extract and bind the parameters for that shape

The output is a ``BoundStatement`` ready for the dispatcher or an ``Unsupported`` outcome.
Nothing is cached between calls; each compilation parses its own text.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Optional, Union

from mypy_extensions import mypyc_attr

from sqlbridge.core.classifier import ClassifiedStatement, classify
from sqlbridge.core.extractors import extract
from sqlbridge.core.normalizer import normalize
from sqlbridge.core.result import Unsupported
from sqlbridge.core.statement import BoundStatement, RawStatement
from sqlbridge.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from sqlbridge.config import BridgeConfig

__all__ = ("CompilationResult", "StatementCompiler")

logger = get_logger("core.compiler")

CompilationResult = Union[BoundStatement, Unsupported]


@mypyc_attr(allow_interpreted_subclasses=True)
class StatementCompiler:
    """Compile legacy statements into bound builder requests.

    Args:
        config: Translation settings. Defaults to ``BridgeConfig()``.
    """

    __slots__ = ("_config",)

    def __init__(self, config: "Optional[BridgeConfig]" = None) -> None:
        if config is None:
            from sqlbridge.config import BridgeConfig

            config = BridgeConfig()
        self._config = config

    @property
    def config(self) -> "BridgeConfig":
        return self._config

    def normalize(self, text: str) -> str:
        return normalize(
            text, now_literal=self._config.now_literal, rewrite_booleans=self._config.rewrite_boolean_literals
        )

    def classify(self, text: str) -> ClassifiedStatement:
        """Normalize and classify ``text`` without binding parameters."""
        return classify(self.normalize(text), dialect=self._config.dialect)

    def compile(self, statement: "Union[RawStatement, str]", params: "Optional[Any]" = None) -> CompilationResult:
        """Compile a raw statement.

        Args:
            statement: A ``RawStatement`` or the statement text.
            params: Positional parameters when ``statement`` is text.

        Returns:
            The bound statement, or ``Unsupported`` describing why it cannot be translated.
        """
        raw = statement if isinstance(statement, RawStatement) else RawStatement.create(statement, params)
        classified = self.classify(raw.text)
        result = extract(classified, raw.params)
        if isinstance(result, Unsupported):
            result = replace(result, text=raw.text)
            log_with_context(
                logger,
                logging.DEBUG,
                "Statement not translated",
                reason=result.reason.value,
                detail=result.detail,
                sql=classified.text,
            )
        else:
            log_with_context(
                logger,
                logging.DEBUG,
                "Statement classified",
                shape=result.shape.kind,
                table=result.table,
                parameter_count=len(raw.params),
            )
        return result
