"""Shape-specific clause extraction.

Extractors bind the positional parameters of a classified statement to the columns and the
predicate they belong to. Placeholders are consumed strictly left to right. Any misalignment
between placeholders and parameters becomes an ``Unsupported`` outcome; nothing is ever
half-bound.
"""

from typing import Any, Optional, Union

from sqlglot import exp

from sqlbridge.core.classifier import PLACEHOLDER_TYPES, ClassifiedStatement, NotALiteralError, literal_value
from sqlbridge.core.result import Unsupported
from sqlbridge.core.statement import (
    BoundStatement,
    Delete,
    Insert,
    MissReason,
    OrderBy,
    Predicate,
    SelectAll,
    SelectCount,
    Unrecognized,
    Update,
)

__all__ = ("ExtractionResult", "extract")

ExtractionResult = Union[BoundStatement, Unsupported]


class _Mismatch(Exception):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class _ParameterCursor:
    """Hands out positional parameters in order and remembers how many were used."""

    __slots__ = ("params", "position")

    def __init__(self, params: "tuple[Any, ...]") -> None:
        self.params = params
        self.position = 0

    def take(self, node: exp.Expression) -> "tuple[Any, int]":
        if isinstance(node, exp.Parameter):
            msg = f"Numbered parameter {node.name!r} is not supported; use ?"
            raise _Mismatch(msg)
        if node.this:
            msg = f"Named placeholder {node.sql()} is not supported"
            raise _Mismatch(msg)
        if self.position >= len(self.params):
            msg = f"Placeholder #{self.position + 1} has no bound parameter ({len(self.params)} given)"
            raise _Mismatch(msg)
        index = self.position
        self.position += 1
        return self.params[index], index

    def value_of(self, node: exp.Expression) -> Any:
        if isinstance(node, PLACEHOLDER_TYPES):
            return self.take(node)[0]
        try:
            return literal_value(node)
        except NotALiteralError as exc:
            raise _Mismatch(str(exc)) from exc

    def ensure_exhausted(self) -> None:
        if self.position != len(self.params):
            msg = f"Statement uses {self.position} placeholder(s) but {len(self.params)} parameter(s) were bound"
            raise _Mismatch(msg)


def _where_condition(expression: exp.Expression) -> "Optional[exp.Expression]":
    where = expression.args.get("where")
    if where is None:
        return None
    return where.this.unnest()


def _predicate(
    expression: exp.Expression, cursor: _ParameterCursor, *, allow_literal: bool
) -> "Optional[Predicate]":
    condition = _where_condition(expression)
    if condition is None:
        return None
    if not isinstance(condition, exp.EQ):
        msg = f"Only equality predicates are translated, got {condition.key.upper()}"
        raise _Mismatch(msg)
    column = condition.this.name
    value_node = condition.expression
    if isinstance(value_node, PLACEHOLDER_TYPES):
        _, index = cursor.take(value_node)
        return Predicate(column=column, param_index=index)
    if not allow_literal:
        msg = f"Literal WHERE value for {column!r} is not supported here; bind it as a parameter"
        raise _Mismatch(msg)
    try:
        return Predicate(column=column, literal=literal_value(value_node))
    except NotALiteralError as exc:
        raise _Mismatch(str(exc)) from exc


def _extract_insert(classified: ClassifiedStatement, shape: Insert, params: "tuple[Any, ...]") -> BoundStatement:
    expression = classified.expression
    row = expression.expression.expressions[0].expressions  # type: ignore[union-attr]
    if len(row) != len(shape.columns):
        msg = f"INSERT names {len(shape.columns)} column(s) but provides {len(row)} value(s)"
        raise _Mismatch(msg)
    if len(set(shape.columns)) != len(shape.columns):
        msg = "INSERT names a column more than once"
        raise _Mismatch(msg)
    cursor = _ParameterCursor(params)
    values = {column: cursor.value_of(node) for column, node in zip(shape.columns, row)}
    cursor.ensure_exhausted()
    return BoundStatement(shape=shape, params=params, values=values)


def _extract_update(classified: ClassifiedStatement, shape: Update, params: "tuple[Any, ...]") -> BoundStatement:
    expression = classified.expression
    if len(set(shape.set_columns)) != len(shape.set_columns):
        msg = "SET assigns a column more than once"
        raise _Mismatch(msg)
    cursor = _ParameterCursor(params)
    values = {
        assignment.this.name: cursor.value_of(assignment.expression)
        for assignment in expression.expressions  # type: ignore[union-attr]
    }
    predicate = _predicate(expression, cursor, allow_literal=False)  # type: ignore[arg-type]
    cursor.ensure_exhausted()
    return BoundStatement(shape=shape, params=params, predicate=predicate, values=values)


def _extract_delete(classified: ClassifiedStatement, shape: Delete, params: "tuple[Any, ...]") -> BoundStatement:
    cursor = _ParameterCursor(params)
    predicate = _predicate(classified.expression, cursor, allow_literal=False)  # type: ignore[arg-type]
    cursor.ensure_exhausted()
    return BoundStatement(shape=shape, params=params, predicate=predicate)


def _select_modifiers(expression: exp.Expression) -> "tuple[Optional[OrderBy], Optional[int], Optional[int]]":
    order_by = None
    order = expression.args.get("order")
    if order is not None:
        ordered = order.expressions[0]
        order_by = OrderBy(column=ordered.this.name, descending=bool(ordered.args.get("desc")))
    limit = expression.args.get("limit")
    offset = expression.args.get("offset")
    if offset is not None and limit is None:
        msg = "OFFSET without LIMIT is not translated"
        raise _Mismatch(msg)
    return (
        order_by,
        int(limit.expression.this) if limit is not None else None,
        int(offset.expression.this) if offset is not None else None,
    )


def _extract_select(
    classified: ClassifiedStatement, shape: "Union[SelectAll, SelectCount]", params: "tuple[Any, ...]"
) -> BoundStatement:
    expression = classified.expression
    condition = _where_condition(expression)  # type: ignore[arg-type]
    placeholders = list(expression.find_all(*PLACEHOLDER_TYPES))  # type: ignore[union-attr]
    stray = [node for node in placeholders if condition is None or node is not condition.expression]
    if stray:
        msg = "Placeholders are only translated inside the WHERE predicate"
        raise _Mismatch(msg)
    cursor = _ParameterCursor(params)
    predicate = _predicate(expression, cursor, allow_literal=True)  # type: ignore[arg-type]
    if isinstance(shape, SelectCount):
        return BoundStatement(shape=shape, params=params, predicate=predicate)
    order, limit, offset = _select_modifiers(expression)  # type: ignore[arg-type]
    return BoundStatement(shape=shape, params=params, predicate=predicate, order=order, limit=limit, offset=offset)


def extract(classified: ClassifiedStatement, params: "tuple[Any, ...]") -> ExtractionResult:
    """Bind parameters to a classified statement.

    Args:
        classified: Output of :func:`sqlbridge.core.classifier.classify`.
        params: Positional parameters, in placeholder order.

    Returns:
        A ``BoundStatement`` ready for dispatch, or ``Unsupported`` when the statement is
        unrecognized or its placeholders and parameters do not line up.
    """
    shape = classified.shape
    if isinstance(shape, Unrecognized):
        return Unsupported(reason=shape.reason, text=classified.text, detail=shape.detail)
    try:
        if isinstance(shape, Insert):
            return _extract_insert(classified, shape, params)
        if isinstance(shape, Update):
            return _extract_update(classified, shape, params)
        if isinstance(shape, Delete):
            return _extract_delete(classified, shape, params)
        return _extract_select(classified, shape, params)
    except _Mismatch as mismatch:
        return Unsupported(reason=MissReason.EXTRACTION_MISMATCH, text=classified.text, detail=mismatch.detail)
