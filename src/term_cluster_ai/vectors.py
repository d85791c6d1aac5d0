"""
Vector helpers shared by the glossary matcher and document clustering.

The textual form of a vector is a bracketed, comma-separated decimal list
("[0.1,0.2,0.3]"), the same shape pgvector and DuckDB print.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def format_vector(values: Sequence[float]) -> str:
    """Render a vector as "[v1,v2,...]" without losing precision."""
    return "[" + ",".join(repr(float(v)) for v in values) + "]"


def parse_vector(text: str, dimensions: int | None = None) -> list[float]:
    """
    Parse the bracketed textual form of a vector.

    Args:
        text: Text such as "[0.1, 0.2]".
        dimensions: Expected number of components (optional).

    Returns:
        List of floats.

    Raises:
        ValueError: If the text is malformed or the dimension count differs.
    """
    body = text.strip()
    if not (body.startswith("[") and body.endswith("]")):
        raise ValueError("Vector text must be enclosed in brackets")
    body = body[1:-1].strip()
    if not body:
        raise ValueError("Vector text is empty")

    try:
        values = [float(part) for part in body.split(",")]
    except ValueError as e:
        raise ValueError(f"Invalid vector component: {e}") from None

    if any(np.isnan(v) for v in values):
        raise ValueError("Vector contains NaN")

    if dimensions is not None:
        validate_dimensions(values, dimensions)
    return values


def validate_dimensions(vector: Sequence[float], expected: int) -> None:
    """Raise ValueError unless the vector has exactly `expected` components."""
    if len(vector) != expected:
        raise ValueError(
            f"Invalid embedding: expected {expected} dimensions, got {len(vector)}"
        )


def centroid(vectors: Sequence[Sequence[float]]) -> list[float]:
    """Component-wise mean of equally sized vectors."""
    if not vectors:
        raise ValueError("Cannot compute the centroid of no vectors")
    return np.mean(np.asarray(vectors, dtype=np.float64), axis=0).tolist()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors (0.0 when either is all zeros)."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Dimension mismatch: {va.shape[0]} vs {vb.shape[0]}")
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0:
        return 0.0
    return float(np.dot(va, vb) / denom)
