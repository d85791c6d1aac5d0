"""
term-cluster-ai: glossary matching and document clustering for translation.

This package provides tools for:
- Finding glossary terms in source text with exact and semantic matching
- Embedding glossary entries and documents (sentence-transformers or OpenAI)
- Incrementally clustering documents by content similarity
- Maintaining LLM-generated cluster summaries
"""

__version__ = "0.1.0"

from term_cluster_ai.clustering import (
    ClusterInfo,
    ClusteringService,
    ClusterSummarizer,
    DocumentClusteringEngine,
    DocumentEmbeddingService,
    SimilarDocument,
)
from term_cluster_ai.config import Settings, load_config
from term_cluster_ai.database import Database, Document, GlossaryEntry, Segment
from term_cluster_ai.glossary import GlossaryMatch, HybridGlossaryMatcher, MatchMethod, TermMatcher
from term_cluster_ai.scope import SearchScope
from term_cluster_ai.vector_index import DuckDBVectorIndex, VectorIndex

__all__ = [
    # Config
    "Settings",
    "load_config",
    # Database
    "Database",
    "Document",
    "GlossaryEntry",
    "Segment",
    # Glossary
    "GlossaryMatch",
    "HybridGlossaryMatcher",
    "MatchMethod",
    "SearchScope",
    "TermMatcher",
    # Vector index
    "DuckDBVectorIndex",
    "VectorIndex",
    # Clustering
    "ClusterInfo",
    "ClusterSummarizer",
    "ClusteringService",
    "DocumentClusteringEngine",
    "DocumentEmbeddingService",
    "SimilarDocument",
]
