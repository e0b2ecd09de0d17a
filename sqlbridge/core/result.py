"""Translation outcomes.

Every raw statement ends in exactly one of three outcomes. ``Unsupported`` is a value, not
an exception: the facade decides whether it becomes an empty result or a raised
``TranslationError``.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from typing_extensions import TypeAlias

from sqlbridge.core.statement import MissReason
from sqlbridge.exceptions import (
    AmbiguousPredicateError,
    ClassificationMissError,
    ExtractionMismatchError,
    TranslationError,
)

__all__ = ("Mutation", "Rows", "RunResult", "TranslationOutcome", "Unsupported")


_ERRORS_BY_REASON: "dict[MissReason, type[TranslationError]]" = {
    MissReason.CLASSIFICATION_MISS: ClassificationMissError,
    MissReason.EXTRACTION_MISMATCH: ExtractionMismatchError,
    MissReason.AMBIGUOUS_PREDICATE: AmbiguousPredicateError,
}


@dataclass(frozen=True)
class Rows:
    records: "list[dict[str, Any]]" = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class Mutation:
    affected_id: Optional[Any] = None
    affected_count: int = 0


@dataclass(frozen=True)
class Unsupported:
    reason: MissReason
    text: str
    detail: str = ""

    def to_exception(self) -> TranslationError:
        error_cls = _ERRORS_BY_REASON[self.reason]
        message = self.detail or f"Statement could not be translated ({self.reason.value})"
        return error_cls(message, sql=self.text)


TranslationOutcome: TypeAlias = Union[Rows, Mutation, Unsupported]


@dataclass(frozen=True)
class RunResult:
    """Legacy ``run()`` result: the affected row id (when known) and the change count."""

    id: Optional[Any] = None
    changes: int = 0

    @classmethod
    def from_mutation(cls, mutation: Mutation) -> "RunResult":
        return cls(id=mutation.affected_id, changes=mutation.affected_count)

    def to_dict(self) -> "dict[str, Any]":
        return {"id": self.id, "changes": self.changes}
