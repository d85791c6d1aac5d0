"""
Scope descriptor for glossary queries.

A single builder turns a SearchScope into SQL so the exact-match candidate
query and the vector query always see the same set of entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from term_cluster_ai.database import GlossaryEntry

ANY_LOCALE = "*"


@dataclass(frozen=True)
class SearchScope:
    """Which glossary entries a request may see."""

    project_id: str | None = None
    source_locale: str | None = None
    target_locale: str | None = None


def _locale_active(locale: str | None) -> bool:
    return bool(locale) and locale != ANY_LOCALE


def _locale_clause(column: str) -> str:
    # exact, or prefix in either direction ("en" ~ "en-GB")
    return (
        f"(lower({column}) = lower(?) "
        f"OR lower({column}) LIKE (lower(?) || '-%') "
        f"OR lower(?) LIKE (lower({column}) || '-%'))"
    )


def build_scope_filter(scope: SearchScope | None) -> tuple[str, list[Any]]:
    """
    Build a WHERE fragment for a glossary scope.

    Args:
        scope: Scope to translate, or None for no restriction.

    Returns:
        Tuple of (SQL fragment, positional parameters). The fragment is
        "TRUE" when nothing restricts the query, so it can always be
        joined with AND.
    """
    if scope is None:
        return "TRUE", []

    conditions: list[str] = []
    params: list[Any] = []

    if scope.project_id:
        conditions.append("(project_id = ? OR project_id IS NULL)")
        params.append(scope.project_id)

    if _locale_active(scope.source_locale):
        conditions.append(_locale_clause("source_locale"))
        params.extend([scope.source_locale] * 3)

    if _locale_active(scope.target_locale):
        conditions.append(_locale_clause("target_locale"))
        params.extend([scope.target_locale] * 3)

    if not conditions:
        return "TRUE", []
    return " AND ".join(conditions), params


def _locale_matches(value: str, wanted: str) -> bool:
    value, wanted = value.lower(), wanted.lower()
    return value == wanted or value.startswith(wanted + "-") or wanted.startswith(value + "-")


def entry_in_scope(entry: GlossaryEntry, scope: SearchScope | None) -> bool:
    """Evaluate the scope rule for an already-loaded entry."""
    if scope is None:
        return True
    if scope.project_id and entry.project_id not in (None, scope.project_id):
        return False
    if _locale_active(scope.source_locale) and not _locale_matches(
        entry.source_locale, scope.source_locale or ""
    ):
        return False
    if _locale_active(scope.target_locale) and not _locale_matches(
        entry.target_locale, scope.target_locale or ""
    ):
        return False
    return True
