"""Statement data model for the translation layer.

A ``RawStatement`` is created for every raw facade call. It is normalized, classified into
one ``StatementShape`` and resolved into a ``BoundStatement`` before it reaches the
dispatcher. None of these objects own resources or outlive the call that made them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from typing_extensions import TypeAlias

__all__ = (
    "BoundStatement",
    "Delete",
    "Insert",
    "MissReason",
    "OrderBy",
    "Predicate",
    "RawStatement",
    "SelectAll",
    "SelectCount",
    "StatementShape",
    "Unrecognized",
    "Update",
)

DEFAULT_COUNT_ALIAS = "total"


class MissReason(str, Enum):
    """Why a statement could not be translated."""

    CLASSIFICATION_MISS = "classification_miss"
    EXTRACTION_MISMATCH = "extraction_mismatch"
    AMBIGUOUS_PREDICATE = "ambiguous_predicate"


@dataclass(frozen=True)
class RawStatement:
    """Statement text plus its positional parameters, as handed in by a legacy caller."""

    text: str
    params: "tuple[Any, ...]" = ()

    @classmethod
    def create(cls, text: str, params: "Optional[Any]" = None) -> "RawStatement":
        if params is None:
            return cls(text, ())
        if isinstance(params, (list, tuple)):
            return cls(text, tuple(params))
        return cls(text, (params,))


@dataclass(frozen=True)
class SelectAll:
    table: str

    kind = "select"


@dataclass(frozen=True)
class SelectCount:
    table: str
    alias: str = DEFAULT_COUNT_ALIAS

    kind = "count"


@dataclass(frozen=True)
class Insert:
    table: str
    columns: "tuple[str, ...]"

    kind = "insert"


@dataclass(frozen=True)
class Update:
    table: str
    set_columns: "tuple[str, ...]"

    kind = "update"


@dataclass(frozen=True)
class Delete:
    table: str

    kind = "delete"


@dataclass(frozen=True)
class Unrecognized:
    original_text: str
    reason: MissReason = MissReason.CLASSIFICATION_MISS
    detail: str = ""

    kind = "unrecognized"


StatementShape: TypeAlias = Union[SelectAll, SelectCount, Insert, Update, Delete, Unrecognized]


class _NoLiteral:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<no literal>"


NO_LITERAL: Any = _NoLiteral()


@dataclass(frozen=True)
class Predicate:
    """A single ``column = value`` condition.

    The value comes either from ``params[param_index]`` or from a literal written in the text.
    """

    column: str
    param_index: Optional[int] = None
    literal: Any = NO_LITERAL

    @property
    def is_literal(self) -> bool:
        return self.param_index is None

    def resolve(self, params: "tuple[Any, ...]") -> Any:
        if self.param_index is None:
            return self.literal
        return params[self.param_index]


@dataclass(frozen=True)
class OrderBy:
    column: str
    descending: bool = False


@dataclass(frozen=True)
class BoundStatement:
    """Fully resolved statement, ready for a single builder call."""

    shape: StatementShape
    params: "tuple[Any, ...]" = ()
    predicate: Optional[Predicate] = None
    values: "dict[str, Any]" = field(default_factory=dict)
    order: Optional[OrderBy] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    @property
    def table(self) -> str:
        return self.shape.table  # type: ignore[union-attr]

    def predicate_value(self) -> Any:
        if self.predicate is None:
            return None
        return self.predicate.resolve(self.params)
