"""
Document clustering: embeddings, assignment, summaries.
"""

from term_cluster_ai.clustering.embeddings import DocumentEmbeddingService
from term_cluster_ai.clustering.engine import ClusterInfo, DocumentClusteringEngine, SimilarDocument
from term_cluster_ai.clustering.service import ClusteringResult, ClusteringService
from term_cluster_ai.clustering.summarizer import ClusterSummarizer, LLMSummarizer, Summarizer

__all__ = [
    "ClusterInfo",
    "ClusterSummarizer",
    "ClusteringResult",
    "ClusteringService",
    "DocumentClusteringEngine",
    "DocumentEmbeddingService",
    "LLMSummarizer",
    "SimilarDocument",
    "Summarizer",
]
