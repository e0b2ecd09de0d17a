from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, Optional

__all__ = (
    "AmbiguousPredicateError",
    "ClassificationMissError",
    "ExtractionMismatchError",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "NotFoundError",
    "SQLBridgeError",
    "StoreError",
    "TranslationError",
    "wrap_exceptions",
)


class SQLBridgeError(Exception):
    """Base exception class from which all sqlbridge exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLBridgeError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(SQLBridgeError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install sqlbridge[{install_package or package}]' to install sqlbridge with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(SQLBridgeError):
    """Improper Configuration error.

    Raised when a config value is missing or outside its allowed range.
    """


# -- Translation Errors --
class TranslationError(SQLBridgeError):
    """Base class for statements the translation layer could not express as builder calls."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class ClassificationMissError(TranslationError):
    """Raised when a statement does not match any recognized shape."""


class ExtractionMismatchError(TranslationError):
    """Raised when placeholders and bound parameters do not line up."""


class AmbiguousPredicateError(TranslationError):
    """Raised when a WHERE clause holds more than one condition."""


# -- Store Errors --
class StoreError(SQLBridgeError):
    """Base store exception type.

    Wraps failures raised by the underlying store capability (network, constraint, permission).
    """


class NotFoundError(StoreError):
    """An identity does not exist."""


@contextmanager
def wrap_exceptions(wrap_exceptions: bool = True) -> Generator[None, None, None]:
    try:
        yield

    except SQLBridgeError:
        raise

    except Exception as exc:
        if wrap_exceptions is False:
            raise
        msg = f"An error occurred during the store operation: {exc}"
        raise StoreError(detail=msg) from exc
