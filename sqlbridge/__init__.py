"""sqlbridge: legacy SQL over fluent filter-builder stores."""

from sqlbridge import adapters, core, exceptions, utils
from sqlbridge.__metadata__ import __version__
from sqlbridge.config import BridgeConfig, UnsupportedPolicy
from sqlbridge.core.compiler import StatementCompiler
from sqlbridge.core.dispatcher import BuilderDispatcher
from sqlbridge.core.result import Mutation, Rows, RunResult, TranslationOutcome, Unsupported
from sqlbridge.core.statement import MissReason, RawStatement
from sqlbridge.exceptions import (
    AmbiguousPredicateError,
    ClassificationMissError,
    ExtractionMismatchError,
    ImproperConfigurationError,
    MissingDependencyError,
    NotFoundError,
    SQLBridgeError,
    StoreError,
    TranslationError,
)
from sqlbridge.facade import CompatDatabase
from sqlbridge.protocols import QueryBuilder, StoreCapability, StoreResponse

__all__ = (
    "AmbiguousPredicateError",
    "BridgeConfig",
    "BuilderDispatcher",
    "ClassificationMissError",
    "CompatDatabase",
    "ExtractionMismatchError",
    "ImproperConfigurationError",
    "MissReason",
    "MissingDependencyError",
    "Mutation",
    "NotFoundError",
    "QueryBuilder",
    "RawStatement",
    "Rows",
    "RunResult",
    "SQLBridgeError",
    "StatementCompiler",
    "StoreCapability",
    "StoreError",
    "StoreResponse",
    "TranslationError",
    "TranslationOutcome",
    "Unsupported",
    "UnsupportedPolicy",
    "__version__",
    "adapters",
    "core",
    "exceptions",
    "utils",
)
