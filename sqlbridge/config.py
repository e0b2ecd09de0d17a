"""Translation layer configuration."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final, Optional, TypedDict, Union

from typing_extensions import NotRequired

from sqlbridge.core.classifier import is_identifier
from sqlbridge.core.normalizer import DEFAULT_NOW_LITERAL
from sqlbridge.exceptions import ImproperConfigurationError

__all__ = ("DEFAULT_DIALECT", "BridgeConfig", "BridgeConfigParams", "UnsupportedPolicy")

DEFAULT_DIALECT: Final[str] = "sqlite"


class UnsupportedPolicy(str, Enum):
    """What the raw-statement path does with a statement it cannot translate."""

    EMPTY = "empty"
    """Return an empty result and log a warning; the legacy contract."""
    RAISE = "raise"
    """Raise the matching ``TranslationError``."""


class BridgeConfigParams(TypedDict, total=False):
    """TypedDict for ``BridgeConfig`` keyword parameters."""

    dialect: NotRequired[Optional[str]]
    now_literal: NotRequired[str]
    rewrite_boolean_literals: NotRequired[bool]
    unsupported_policy: NotRequired[Union[UnsupportedPolicy, str]]
    wrap_exceptions: NotRequired[bool]
    primary_key: NotRequired[str]


@dataclass(frozen=True)
class BridgeConfig:
    """Configuration shared by the compiler, the dispatcher and the facade.

    Args:
        dialect: sqlglot dialect used to read legacy statements.
        now_literal: SQL literal that replaces ``CURRENT_TIMESTAMP`` and ``datetime('now')``.
        rewrite_boolean_literals: Rewrite bare ``1``/``0`` comparison values to ``true``/``false``.
        unsupported_policy: Whether untranslatable statements give empty results or raise.
        wrap_exceptions: Wrap store failures in :class:`~sqlbridge.exceptions.StoreError`.
        primary_key: Column the structured path uses as the record identity.
    """

    dialect: Optional[str] = DEFAULT_DIALECT
    now_literal: str = DEFAULT_NOW_LITERAL
    rewrite_boolean_literals: bool = True
    unsupported_policy: UnsupportedPolicy = UnsupportedPolicy.EMPTY
    wrap_exceptions: bool = True
    primary_key: str = "id"
    extra: "dict[str, Any]" = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.unsupported_policy, UnsupportedPolicy):
            try:
                policy = UnsupportedPolicy(str(self.unsupported_policy).lower())
            except ValueError as exc:
                msg = f"Unknown unsupported_policy {self.unsupported_policy!r}; expected one of {[p.value for p in UnsupportedPolicy]}"
                raise ImproperConfigurationError(msg) from exc
            object.__setattr__(self, "unsupported_policy", policy)
        if not is_identifier(self.primary_key):
            msg = f"primary_key must be a plain column name, got {self.primary_key!r}"
            raise ImproperConfigurationError(msg)
        if not self.now_literal or not self.now_literal.strip():
            msg = "now_literal must not be empty"
            raise ImproperConfigurationError(msg)

    @classmethod
    def from_params(cls, params: "Optional[Union[BridgeConfigParams, dict[str, Any]]]" = None, **kwargs: Any) -> "BridgeConfig":
        """Build a config from a parameter mapping, with keyword overrides."""
        config_dict = dict(params) if params else {}
        config_dict.update(kwargs)
        known = {name for name in cls.__dataclass_fields__ if name != "extra"}
        extra = {key: value for key, value in config_dict.items() if key not in known}
        return cls(**{key: value for key, value in config_dict.items() if key in known}, extra=extra)
