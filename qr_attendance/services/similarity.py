"""Similarity scoring between face embeddings."""
import math
from typing import Sequence, Tuple

from qr_attendance.services.exceptions import DimensionMismatch, ValidationFailed


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two equal-length vectors.

    Returns the raw signed value in [-1, 1]; negative scores are not
    clamped before being compared with thresholds. A zero-norm vector
    scores exactly 0.0. NaN or infinite components raise ValidationFailed.
    """
    if len(a) != len(b):
        raise DimensionMismatch(
            f"Embeddings must have the same length ({len(a)} != {len(b)})"
        )

    if not all(math.isfinite(value) for value in a) or not all(math.isfinite(value) for value in b):
        raise ValidationFailed("Embedding values must be finite numbers")

    dot_product = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot_product += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = dot_product / (math.sqrt(norm_a) * math.sqrt(norm_b))
    if not math.isfinite(similarity):
        raise ValidationFailed("Embedding values are out of range")
    return similarity


def compare_embeddings(a: Sequence[float], b: Sequence[float], threshold: float) -> Tuple[float, bool]:
    """Score two embeddings and report whether they meet the threshold."""
    similarity = cosine_similarity(a, b)
    return similarity, similarity >= threshold
