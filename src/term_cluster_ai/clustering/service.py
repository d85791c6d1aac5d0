"""
On-demand and batch clustering.

Ties together document embeddings, cluster assignment and the
post-assignment summary refresh.
"""

from __future__ import annotations

from dataclasses import dataclass

from term_cluster_ai.clustering.embeddings import DocumentEmbeddingService
from term_cluster_ai.clustering.engine import DocumentClusteringEngine
from term_cluster_ai.clustering.summarizer import ClusterSummarizer
from term_cluster_ai.database import Database
from term_cluster_ai.errors import (
    InputError,
    NoContentError,
    NotFoundError,
    ProcessingError,
    ProviderError,
)


@dataclass
class ClusteringResult:
    """Outcome of clustering one document."""

    document_id: str
    cluster_id: str | None
    embedding_generated: bool = False
    summary_updated: bool = False
    summary_error: str | None = None


class ClusteringService:
    """
    Cluster documents on demand.

    Failing to embed the target document aborts clustering for it with no
    assignment written. A failed summary refresh after a successful
    assignment is logged and reported on the result, never raised.
    """

    def __init__(
        self,
        db: Database,
        embeddings: DocumentEmbeddingService,
        engine: DocumentClusteringEngine,
        summarizer: ClusterSummarizer,
        *,
        auto_summarize: bool = True,
    ):
        self.db = db
        self.embeddings = embeddings
        self.engine = engine
        self.summarizer = summarizer
        self.auto_summarize = auto_summarize

    async def _ensure_embedding(self, document_id: str) -> bool:
        """Generate the embedding if missing; True when one was generated."""
        doc = self.db.get_document(document_id)
        if doc is None:
            raise NotFoundError("Document", document_id)
        if doc.embedding:
            return False
        try:
            await self.embeddings.generate(document_id)
        except NoContentError as e:
            self.db.log("WARNING", "document_embed", str(e), document_id=document_id)
            raise InputError(str(e)) from e
        except Exception as e:
            self.db.log(
                "ERROR",
                "document_embed",
                f"Embedding generation failed: {e}",
                document_id=document_id,
                context={"error_type": type(e).__name__},
            )
            raise ProcessingError(f"Failed to generate embedding for {document_id}: {e}") from e
        return True

    async def _refresh_summary(self, cluster_id: str, project_id: str) -> str | None:
        """Refresh a cluster summary; returns the error message on failure."""
        try:
            await self.summarizer.update_cluster_summary(cluster_id, project_id)
        except Exception as e:
            self.db.log(
                "WARNING",
                "cluster_summary",
                f"Cluster summary update failed: {e}",
                context={"cluster_id": cluster_id, "error_type": type(e).__name__},
            )
            return str(e)
        return None

    async def cluster_document(
        self, document_id: str, *, reassign: bool = False
    ) -> ClusteringResult:
        """
        Embed (if needed) and cluster one document.

        Raises:
            NotFoundError: If the document does not exist.
            InputError: If the document has no content to embed.
            ProcessingError: If embedding generation fails for any other reason.
        """
        doc = self.db.get_document(document_id)
        if doc is None:
            raise NotFoundError("Document", document_id)

        generated = await self._ensure_embedding(document_id)
        cluster_id = await self.engine.assign_to_cluster(
            document_id, doc.project_id, reassign=reassign
        )
        result = ClusteringResult(
            document_id=document_id,
            cluster_id=cluster_id,
            embedding_generated=generated,
        )

        if cluster_id and self.auto_summarize:
            result.summary_error = await self._refresh_summary(cluster_id, doc.project_id)
            result.summary_updated = result.summary_error is None
        return result

    async def cluster_project(self, project_id: str) -> dict[str, str | None]:
        """
        Cluster every unclustered document of a project in creation order.

        Documents without content, or whose embedding fails, are logged and
        mapped to None. Each touched cluster gets one summary refresh at the end.

        Returns:
            Mapping of document id to cluster id.
        """
        results: dict[str, str | None] = {}
        touched: list[str] = []

        for doc in self.db.get_project_documents(project_id, unclustered_only=True):
            try:
                await self.embeddings.ensure(doc.id)
            except NoContentError as e:
                self.db.log("INFO", "clustering", f"Skipped: {e}", document_id=doc.id)
                results[doc.id] = None
                continue
            except ProviderError as e:
                self.db.log(
                    "WARNING",
                    "clustering",
                    f"Skipped, embedding failed: {e}",
                    document_id=doc.id,
                )
                results[doc.id] = None
                continue

            cluster_id = await self.engine.assign_to_cluster(doc.id, project_id)
            results[doc.id] = cluster_id
            if cluster_id and cluster_id not in touched:
                touched.append(cluster_id)

        if self.auto_summarize:
            for cluster_id in touched:
                await self._refresh_summary(cluster_id, project_id)

        self.db.log(
            "INFO",
            "clustering",
            f"Clustered {sum(1 for c in results.values() if c)} of {len(results)} documents",
            context={"project_id": project_id, "clusters_touched": len(touched)},
        )
        return results

    async def regenerate_summary(self, cluster_id: str) -> str:
        """
        Regenerate a cluster summary on request.

        Raises:
            NotFoundError: If the cluster has no members.
            ProcessingError: If summarization fails.
        """
        members = self.db.get_cluster_documents(cluster_id)
        if not members:
            raise NotFoundError("Cluster", cluster_id)
        try:
            return await self.summarizer.update_cluster_summary(cluster_id, members[0].project_id)
        except ProviderError as e:
            raise ProcessingError(f"Failed to summarize {cluster_id}: {e}") from e
