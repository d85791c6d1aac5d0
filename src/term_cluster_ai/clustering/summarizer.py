"""
Cluster and document summaries.

Summaries describe what a group of similar documents has in common so a
translator can pick up their terminology and style. Every member of a
cluster carries the same cluster summary.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from term_cluster_ai.database import Database, Document, GlossaryEntry
from term_cluster_ai.errors import (
    InputError,
    NoContentError,
    NotFoundError,
    ProviderDisabledError,
    ProviderError,
)
from term_cluster_ai.llm.base import LLMProvider

MAX_SUMMARY_LENGTH = 5000

CLUSTER_INSTRUCTIONS = """Analyze these similar documents and write a structured summary covering:
- The common document type or category
- Shared terminology patterns
- Typical translation style characteristics
- Key domain concepts
- Common structure and format patterns"""

DOCUMENT_INSTRUCTIONS = """Analyze this document sample and write a concise summary (2-3 sentences) covering:
- The document type or category (e.g. contract, report, specification)
- The main subject
- Its purpose or key characteristics"""


class Summarizer(ABC):
    """Text summarization capability."""

    @abstractmethod
    async def summarize(self, texts: list[str], instructions: str | None = None) -> str:
        """
        Summarize a set of texts into one string.

        Raises:
            ProviderError: If the capability fails or is disabled.
        """
        ...


class LLMSummarizer(Summarizer):
    """Summarizer backed by a chat-completion provider."""

    SYSTEM_PROMPT = (
        "You are a document analysis assistant for a translation team. "
        "Write summaries that help translators understand document patterns, "
        "paying close attention to domain terminology and abbreviations."
    )

    def __init__(
        self,
        provider: LLMProvider | None,
        *,
        temperature: float = 0.3,
        max_tokens: int = 500,
        max_input_chars: int = 4000,
    ):
        self.provider = provider
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_input_chars = max_input_chars

    async def summarize(self, texts: list[str], instructions: str | None = None) -> str:
        if self.provider is None:
            raise ProviderDisabledError("No summarization provider is configured")

        body = "\n\n---\n\n".join(t.strip() for t in texts if t.strip())
        body = body[: self.max_input_chars]
        if not body:
            raise InputError("Nothing to summarize")

        prompt = f"{instructions or CLUSTER_INSTRUCTIONS}\n\nContent:\n{body}\n\nSummary:"
        response = await self.provider.chat(
            self.SYSTEM_PROMPT,
            prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return response.content


def _glossary_context(entries: list[GlossaryEntry]) -> str:
    lines = []
    for entry in entries:
        notes = f" ({entry.notes})" if entry.notes else ""
        lines.append(f"- {entry.source_term} -> {entry.target_term}{notes}")
    return (
        "Important terminology (from the project glossary):\n"
        + "\n".join(lines)
        + "\n\nPay special attention to these terms and their translations."
    )


def _sample_indices(total: int, window: int = 5) -> list[int]:
    """First, middle and last `window` positions of a sequence."""
    indices = set(range(min(window, total)))
    if total > 2 * window:
        middle = total // 2 - window // 2
        indices.update(range(middle, min(middle + window, total)))
    indices.update(range(max(0, total - window), total))
    return sorted(indices)


class ClusterSummarizer:
    """Maintain the summaries stored on cluster members and documents."""

    def __init__(
        self,
        db: Database,
        summarizer: Summarizer | None,
        *,
        max_documents: int = 5,
        segments_per_document: int = 3,
        glossary_context_limit: int = 50,
        max_input_chars: int = 4000,
    ):
        """
        Initialize the summarizer.

        Args:
            db: Database instance.
            summarizer: Summarization capability, or None if disabled.
            max_documents: Members sampled for a cluster summary.
            segments_per_document: Segments sampled per member without a summary.
            glossary_context_limit: Preferred project entries passed as context.
            max_input_chars: Characters of document sample for a document summary.
        """
        self.db = db
        self.summarizer = summarizer
        self.max_documents = max_documents
        self.segments_per_document = segments_per_document
        self.glossary_context_limit = glossary_context_limit
        self.max_input_chars = max_input_chars

    def _require_summarizer(self) -> Summarizer:
        if self.summarizer is None:
            raise ProviderDisabledError("No summarization provider is configured")
        return self.summarizer

    def _member_content(self, doc: Document) -> str:
        if doc.summary:
            body = doc.summary
        else:
            segments = self.db.get_document_segments(doc.id, limit=self.segments_per_document)
            body = "\n".join(s.source_text for s in segments)
        return f"Document: {doc.name}\n{body}".strip()

    async def update_cluster_summary(self, cluster_id: str, project_id: str) -> str:
        """
        Regenerate the summary of a cluster and store it on every member.

        Args:
            cluster_id: Cluster to summarize.
            project_id: Project the cluster belongs to.

        Returns:
            The new summary.

        Raises:
            NotFoundError: If the cluster has no members in the project.
            ProviderError: If summarization fails.
        """
        members = self.db.get_cluster_documents(cluster_id, project_id)
        if not members:
            raise NotFoundError("Cluster", cluster_id)
        summarizer = self._require_summarizer()

        texts = [self._member_content(doc) for doc in members[: self.max_documents]]
        if self.glossary_context_limit:
            glossary = self.db.get_project_glossary(
                project_id, status="preferred", limit=self.glossary_context_limit
            )
            if glossary:
                texts.append(_glossary_context(glossary))

        summary = (await summarizer.summarize(texts, CLUSTER_INSTRUCTIONS)).strip()
        if not summary:
            raise ProviderError("Summarizer returned an empty summary")
        summary = summary[:MAX_SUMMARY_LENGTH]

        updated = self.db.set_cluster_summary(cluster_id, project_id, summary)
        self.db.log(
            "INFO",
            "cluster_summary",
            f"Updated summary of {cluster_id} on {updated} documents",
            context={"cluster_id": cluster_id, "length": len(summary)},
        )
        return summary

    def set_cluster_summary(self, cluster_id: str, text: str) -> int:
        """
        Overwrite a cluster summary verbatim, without summarization.

        Returns:
            Number of member documents updated.

        Raises:
            InputError: If the text is empty or longer than MAX_SUMMARY_LENGTH.
            NotFoundError: If the cluster has no members.
        """
        if not text or not text.strip():
            raise InputError("Cluster summary cannot be empty")
        if len(text) > MAX_SUMMARY_LENGTH:
            raise InputError(f"Cluster summary exceeds {MAX_SUMMARY_LENGTH} characters")

        members = self.db.get_cluster_documents(cluster_id)
        if not members:
            raise NotFoundError("Cluster", cluster_id)

        updated = self.db.set_cluster_summary(cluster_id, members[0].project_id, text)
        self.db.log(
            "INFO",
            "cluster_summary",
            f"Summary of {cluster_id} set manually on {updated} documents",
            context={"cluster_id": cluster_id, "length": len(text), "manual": True},
        )
        return updated

    async def update_document_summary(self, document_id: str) -> str:
        """
        Summarize one document from a sample of its segments.

        Raises:
            NotFoundError: If the document does not exist.
            NoContentError: If the document has no segments.
            ProviderError: If summarization fails.
        """
        doc = self.db.get_document(document_id)
        if doc is None:
            raise NotFoundError("Document", document_id)
        segments = self.db.get_document_segments(document_id)
        if not segments:
            raise NoContentError(document_id)
        summarizer = self._require_summarizer()

        sample = "\n\n".join(
            segments[i].source_text for i in _sample_indices(len(segments))
        )[: self.max_input_chars]
        summary = (await summarizer.summarize([sample], DOCUMENT_INSTRUCTIONS)).strip()
        if not summary:
            raise ProviderError("Summarizer returned an empty summary")

        self.db.update_document_summary(document_id, summary)
        self.db.log(
            "INFO",
            "cluster_summary",
            "Updated document summary",
            document_id=document_id,
            context={"length": len(summary)},
        )
        return summary
