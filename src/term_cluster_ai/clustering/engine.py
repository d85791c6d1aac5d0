"""
Incremental document clustering.

A cluster is never stored as its own row: it is the set of documents that
share a cluster_id. Each document joins the cluster of its nearest
neighbour when that neighbour is similar enough, otherwise it starts a
new cluster.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from term_cluster_ai.database import Database, Document
from term_cluster_ai.errors import NotFoundError, VectorIndexError
from term_cluster_ai.vector_index import Neighbor, VectorIndex
from term_cluster_ai.vectors import centroid, cosine_similarity

DEFAULT_JOIN_THRESHOLD = 0.75
DEFAULT_SIMILAR_MIN_SIMILARITY = 0.7


def new_cluster_id() -> str:
    """Mint a cluster identity."""
    return f"cluster_{uuid.uuid4().hex[:12]}"


@dataclass
class SimilarDocument:
    """A document close to a query embedding."""

    document_id: str
    name: str
    similarity: float
    cluster_id: str | None = None


@dataclass
class ClusterInfo:
    """Membership view of one cluster."""

    cluster_id: str
    project_id: str
    documents: list[Document] = field(default_factory=list)
    cluster_summary: str | None = None
    # Mean member similarity to the centroid, when members are embedded
    cohesion: float | None = None

    @property
    def document_count(self) -> int:
        return len(self.documents)


class DocumentClusteringEngine:
    """
    Assign documents to clusters by nearest-neighbour similarity.

    The representative of an existing cluster is whichever member is
    nearest to the document being assigned. When that nearest neighbour is
    itself unclustered, both documents start a new cluster together.
    """

    def __init__(
        self,
        db: Database,
        index: VectorIndex,
        *,
        join_threshold: float = DEFAULT_JOIN_THRESHOLD,
        neighbor_limit: int = 5,
    ):
        """
        Initialize the engine.

        Args:
            db: Database instance.
            index: Vector index used for nearest-neighbour queries.
            join_threshold: Similarity the nearest neighbour must reach to be joined.
            neighbor_limit: Neighbours requested per assignment.
        """
        self.db = db
        self.index = index
        self.join_threshold = join_threshold
        self.neighbor_limit = neighbor_limit

    # ==================== Assignment ====================

    async def assign_to_cluster(
        self, document_id: str, project_id: str, *, reassign: bool = False
    ) -> str | None:
        """
        Assign a document to a cluster.

        The document must already have an embedding. The cluster_id is
        written only once the join-or-create decision is complete.

        Args:
            document_id: Document to assign.
            project_id: Project whose documents are candidate neighbours.
            reassign: Re-run the decision for an already clustered document.

        Returns:
            The resulting cluster id, or None when no clustering action was
            possible (missing embedding, vector index unavailable).

        Raises:
            NotFoundError: If the document does not exist in the project.
        """
        doc = self.db.get_document(document_id)
        if doc is None or doc.project_id != project_id:
            raise NotFoundError("Document", document_id)

        if doc.cluster_id and not reassign:
            return doc.cluster_id

        if not doc.embedding:
            self.db.log(
                "DEBUG",
                "clustering",
                "Document has no embedding, skipping assignment",
                document_id=document_id,
            )
            return None

        try:
            neighbors = await self.index.nearest_documents(
                doc.embedding,
                project_id,
                self.neighbor_limit,
                self.join_threshold,
                exclude_document_id=document_id,
            )
        except VectorIndexError as e:
            self.db.log(
                "WARNING",
                "clustering",
                f"Nearest-neighbour query failed: {e}",
                document_id=document_id,
            )
            return None

        members = [document_id]
        cluster_id: str | None = None
        decision = "create"
        similarity: float | None = None

        if neighbors and neighbors[0].similarity >= self.join_threshold:
            nearest = self._nearest_neighbor(neighbors)
            if nearest is not None:
                similarity = neighbors[0].similarity
                if nearest.cluster_id:
                    cluster_id = nearest.cluster_id
                    decision = "join"
                else:
                    members.append(nearest.id)
                    decision = "pair"

        if cluster_id is None:
            cluster_id = new_cluster_id()

        self.db.set_document_cluster(members, cluster_id)
        self.db.log(
            "INFO",
            "clustering",
            f"Document assigned to {cluster_id} ({decision})",
            document_id=document_id,
            context={
                "cluster_id": cluster_id,
                "decision": decision,
                "similarity": similarity,
                "members_updated": members,
            },
        )
        return cluster_id

    def _nearest_neighbor(self, neighbors: list[Neighbor]) -> Document | None:
        """
        Pick the neighbour that decides the assignment.

        Among neighbours tied at the top similarity, a clustered one wins
        over an unclustered one.
        """
        top = neighbors[0].similarity
        tied = []
        for neighbor in neighbors:
            if neighbor.similarity < top:
                break
            doc = self.db.get_document(neighbor.id)
            if doc is not None:
                tied.append(doc)
        return next((doc for doc in tied if doc.cluster_id), tied[0] if tied else None)

    # ==================== Similarity ====================

    async def find_similar_documents(
        self,
        embedding: Sequence[float],
        project_id: str,
        *,
        limit: int = 10,
        min_similarity: float = DEFAULT_SIMILAR_MIN_SIMILARITY,
        exclude_document_id: str | None = None,
    ) -> list[SimilarDocument]:
        """
        Documents of a project most similar to an embedding.

        Raises:
            VectorIndexError: If the vector index fails.
        """
        neighbors = await self.index.nearest_documents(
            embedding, project_id, limit, min_similarity, exclude_document_id
        )
        results = []
        for neighbor in neighbors:
            doc = self.db.get_document(neighbor.id)
            if doc is None:
                continue
            results.append(
                SimilarDocument(
                    document_id=doc.id,
                    name=doc.name,
                    similarity=neighbor.similarity,
                    cluster_id=doc.cluster_id,
                )
            )
        return results

    async def similar_to_document(
        self,
        document_id: str,
        *,
        limit: int = 10,
        min_similarity: float = DEFAULT_SIMILAR_MIN_SIMILARITY,
    ) -> list[SimilarDocument]:
        """Documents similar to a stored document; empty if it has no embedding."""
        doc = self.db.get_document(document_id)
        if doc is None:
            raise NotFoundError("Document", document_id)
        if not doc.embedding:
            return []
        return await self.find_similar_documents(
            doc.embedding,
            doc.project_id,
            limit=limit,
            min_similarity=min_similarity,
            exclude_document_id=document_id,
        )

    # ==================== Inspection ====================

    def list_clusters(self, project_id: str) -> tuple[list[ClusterInfo], list[Document]]:
        """
        Group a project's documents by cluster.

        Returns:
            Tuple of (clusters in order of first member, unclustered documents).
        """
        clusters: dict[str, ClusterInfo] = {}
        unclustered: list[Document] = []
        for doc in self.db.get_project_documents(project_id):
            if not doc.cluster_id:
                unclustered.append(doc)
                continue
            info = clusters.setdefault(
                doc.cluster_id, ClusterInfo(cluster_id=doc.cluster_id, project_id=project_id)
            )
            info.documents.append(doc)
            if doc.cluster_summary and not info.cluster_summary:
                info.cluster_summary = doc.cluster_summary
        return list(clusters.values()), unclustered

    def get_cluster(self, cluster_id: str, project_id: str | None = None) -> ClusterInfo:
        """
        Load a cluster with its members and cohesion.

        Raises:
            NotFoundError: If no document carries the cluster id.
        """
        members = self.db.get_cluster_documents(cluster_id, project_id)
        if not members:
            raise NotFoundError("Cluster", cluster_id)

        summarised = [d for d in members if d.cluster_summary]
        latest = max(
            summarised,
            key=lambda d: d.cluster_summary_updated_at or datetime.min,
            default=None,
        )
        return ClusterInfo(
            cluster_id=cluster_id,
            project_id=members[0].project_id,
            documents=members,
            cluster_summary=latest.cluster_summary if latest else None,
            cohesion=_cohesion(members),
        )

    def stats(self, project_id: str) -> dict[str, Any]:
        """Clustering statistics for a project."""
        return self.db.get_clustering_stats(project_id)


def _cohesion(members: list[Document]) -> float | None:
    vectors = [d.embedding for d in members if d.embedding]
    if not vectors or len({len(v) for v in vectors}) != 1:
        return None
    center = centroid(vectors)
    return sum(cosine_similarity(v, center) for v in vectors) / len(vectors)
