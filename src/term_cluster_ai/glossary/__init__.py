"""
Glossary matching: exact term matching, hybrid search, entry embeddings.
"""

from term_cluster_ai.glossary.embeddings import GlossaryEmbeddingIndexer
from term_cluster_ai.glossary.matcher import TermMatcher
from term_cluster_ai.glossary.models import GlossaryMatch, MatchMethod
from term_cluster_ai.glossary.search import RELEVANCE_THRESHOLD, HybridGlossaryMatcher

__all__ = [
    "GlossaryEmbeddingIndexer",
    "GlossaryMatch",
    "HybridGlossaryMatcher",
    "MatchMethod",
    "RELEVANCE_THRESHOLD",
    "TermMatcher",
]
