"""sqlbridge core: the statement translation pipeline.

Architecture overview:
- normalizer.py: dialect literal rewriting (``CURRENT_TIMESTAMP``, boolean ``1``/``0``)
- classifier.py: sqlglot-based shape recognition
- extractors.py: placeholder binding per shape
- compiler.py: ``StatementCompiler`` tying the three stages together
- dispatcher.py: ``BuilderDispatcher`` issuing one builder chain per statement
- filters.py: builder filters shared by the raw and the structured paths
- statement.py / result.py: the data model
"""

from sqlbridge.core import filters
from sqlbridge.core.classifier import ClassifiedStatement, classify
from sqlbridge.core.compiler import StatementCompiler
from sqlbridge.core.dispatcher import BuilderDispatcher, render_builder_chain
from sqlbridge.core.extractors import extract
from sqlbridge.core.filters import EqualityFilter, LimitOffsetFilter, OrderByFilter, StatementFilter
from sqlbridge.core.normalizer import normalize
from sqlbridge.core.result import Mutation, Rows, RunResult, TranslationOutcome, Unsupported
from sqlbridge.core.statement import (
    BoundStatement,
    Delete,
    Insert,
    MissReason,
    Predicate,
    RawStatement,
    SelectAll,
    SelectCount,
    StatementShape,
    Unrecognized,
    Update,
)

__all__ = (
    "BoundStatement",
    "BuilderDispatcher",
    "ClassifiedStatement",
    "Delete",
    "EqualityFilter",
    "Insert",
    "LimitOffsetFilter",
    "MissReason",
    "Mutation",
    "OrderByFilter",
    "Predicate",
    "RawStatement",
    "Rows",
    "RunResult",
    "SelectAll",
    "SelectCount",
    "StatementCompiler",
    "StatementFilter",
    "StatementShape",
    "TranslationOutcome",
    "Unrecognized",
    "Unsupported",
    "Update",
    "classify",
    "extract",
    "filters",
    "normalize",
    "render_builder_chain",
)
