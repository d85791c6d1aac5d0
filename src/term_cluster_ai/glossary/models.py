"""
Result types for glossary matching.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from term_cluster_ai.database import GlossaryEntry


class MatchMethod(str, Enum):
    """How a glossary match was found."""

    EXACT = "exact"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


@dataclass
class GlossaryMatch:
    """A glossary entry found in source text. Never persisted."""

    entry_id: str
    source_term: str
    target_term: str
    source_locale: str
    target_locale: str
    is_forbidden: bool
    similarity: float
    match_method: MatchMethod

    @classmethod
    def from_entry(
        cls, entry: GlossaryEntry, similarity: float, method: MatchMethod
    ) -> GlossaryMatch:
        return cls(
            entry_id=entry.id,
            source_term=entry.source_term,
            target_term=entry.target_term,
            source_locale=entry.source_locale,
            target_locale=entry.target_locale,
            is_forbidden=entry.is_forbidden,
            similarity=similarity,
            match_method=method,
        )

    @property
    def is_semantic_only(self) -> bool:
        return self.match_method == MatchMethod.SEMANTIC

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary."""
        return {
            "entry_id": self.entry_id,
            "source_term": self.source_term,
            "target_term": self.target_term,
            "source_locale": self.source_locale,
            "target_locale": self.target_locale,
            "is_forbidden": self.is_forbidden,
            "similarity": round(self.similarity, 4),
            "match_method": self.match_method.value,
        }
