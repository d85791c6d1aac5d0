"""
Exception hierarchy for term-cluster-ai.

Provider failures are contained where the provider is called; input and
not-found failures are surfaced to the caller.
"""

from __future__ import annotations


class TermClusterError(Exception):
    """Base class for all term-cluster-ai errors."""


class InputError(TermClusterError):
    """The caller supplied input that cannot be processed."""


class NoContentError(InputError):
    """A document has no segments (or no text) to embed."""

    def __init__(self, document_id: str):
        super().__init__(f"Document {document_id} has no content to embed")
        self.document_id = document_id


class ProviderError(TermClusterError):
    """An embedding or summarization capability failed."""


class ProviderDisabledError(ProviderError):
    """The capability is not configured (missing API key or disabled)."""


class VectorIndexError(TermClusterError):
    """A nearest-neighbour query failed."""


class NotFoundError(TermClusterError):
    """A referenced document, cluster or glossary entry does not exist."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class ProcessingError(TermClusterError):
    """A non-input failure aborted an on-demand operation."""
