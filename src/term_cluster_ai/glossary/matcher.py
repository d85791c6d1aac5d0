"""
Deterministic exact matching of glossary terms in source text.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from term_cluster_ai.database import GlossaryEntry
from term_cluster_ai.glossary.models import GlossaryMatch, MatchMethod


def _word_pattern(term: str) -> re.Pattern[str]:
    # Any character that is not a letter or digit is a boundary
    return re.compile(r"(?<![^\W_])" + re.escape(term) + r"(?![^\W_])", re.IGNORECASE)


class TermMatcher:
    """
    Find glossary entries whose source term occurs in a text.

    Single-word terms must appear as a whole word; phrases (terms containing
    whitespace) are accepted wherever they occur as a substring. Every match
    is reported with similarity 1.0.
    """

    def find_matches(
        self, source_text: str, candidates: Iterable[GlossaryEntry]
    ) -> list[GlossaryMatch]:
        """
        Match candidate entries against source text.

        Args:
            source_text: Text to scan.
            candidates: Entries already restricted to the request scope.

        Returns:
            One exact match per accepted entry, in candidate order.
        """
        normalized = source_text.strip().lower()
        if not normalized:
            return []

        matches: list[GlossaryMatch] = []
        seen: set[str] = set()
        for entry in candidates:
            term = entry.source_term.strip()
            if not term or entry.id in seen:
                continue
            if term.lower() not in normalized:
                continue
            if not any(ch.isspace() for ch in term) and not _word_pattern(term).search(
                source_text
            ):
                continue
            seen.add(entry.id)
            matches.append(GlossaryMatch.from_entry(entry, 1.0, MatchMethod.EXACT))
        return matches
