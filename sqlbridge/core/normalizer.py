"""Dialect literal normalization.

Legacy statements were written for SQLite. Before a statement is parsed, a few dialect
tokens are rewritten into what the target store understands. Quoted strings and quoted
identifiers are skipped by every rule, and ``?`` placeholders are never touched; they are
resolved later by position.
"""

import re
from typing import Final

__all__ = ("DEFAULT_NOW_LITERAL", "normalize", "rewrite_boolean_literals", "rewrite_now_literals")

DEFAULT_NOW_LITERAL: Final[str] = "'now'"

_QUOTED = r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\""

_NOW_PATTERN: Final[re.Pattern[str]] = re.compile(
    rf"(?P<quoted>{_QUOTED})|(?P<now>\bdatetime\s*\(\s*'now'\s*\)|\bCURRENT_TIMESTAMP\b)",
    re.IGNORECASE,
)

_BOOLEAN_KEYWORDS = "AND|OR|WHERE|ORDER|GROUP|LIMIT|OFFSET|HAVING"

_BOOLEAN_PATTERN: Final[re.Pattern[str]] = re.compile(
    rf"(?P<quoted>{_QUOTED})"
    rf"|(?P<prefix>(?:<>|!=|(?<![<>!])=|\(|,)\s*)(?P<digit>[01])"
    rf"(?=\s*(?:[,);]|$)|\s+(?:{_BOOLEAN_KEYWORDS})\b)",
    re.IGNORECASE,
)


def rewrite_now_literals(text: str, now_literal: str = DEFAULT_NOW_LITERAL) -> str:
    def _replace(match: "re.Match[str]") -> str:
        if match.group("quoted") is not None:
            return match.group("quoted")
        return now_literal

    return _NOW_PATTERN.sub(_replace, text)


def rewrite_boolean_literals(text: str) -> str:
    def _replace(match: "re.Match[str]") -> str:
        if match.group("quoted") is not None:
            return match.group("quoted")
        return match.group("prefix") + ("true" if match.group("digit") == "1" else "false")

    return _BOOLEAN_PATTERN.sub(_replace, text)


def normalize(text: str, *, now_literal: str = DEFAULT_NOW_LITERAL, rewrite_booleans: bool = True) -> str:
    """Rewrite dialect literals inside a statement.

    Rules run in order:

    1. ``CURRENT_TIMESTAMP`` and SQLite's ``datetime('now')`` become ``now_literal``.
    2. A bare ``1``/``0`` in a comparison, assignment or list position that is followed by a
       clause terminator (``,``, ``)``, end of text or a clause keyword) becomes
       ``true``/``false``.

    Args:
        text: Statement text. Empty or whitespace-only text is returned as is.
        now_literal: SQL literal standing for the current timestamp in the target store.
        rewrite_booleans: Apply rule 2.

    Returns:
        The normalized text. Applying ``normalize`` twice gives the same result as once.
    """
    if not text or text.isspace():
        return text
    normalized = rewrite_now_literals(text, now_literal)
    if rewrite_booleans:
        normalized = rewrite_boolean_literals(normalized)
    return normalized
