"""
Similarity utilities: cosine similarity for player and game vectors.
"""

from typing import Sequence

import numpy as np


def cosine_similarity(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors."""
    if len(v1) == 0 or len(v2) == 0:
        return 0.0
    v1 = np.asarray(v1, dtype=float)
    v2 = np.asarray(v2, dtype=float)
    dot_product = np.dot(v1, v2)
    norm_product = np.linalg.norm(v1) * np.linalg.norm(v2)
    return float(dot_product / norm_product) if norm_product > 0 else 0.0


def cosine_similarity_matrix(target: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of one row vector against every row of a matrix."""
    if matrix.size == 0:
        return np.zeros(0)
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(target)
    dots = matrix @ target
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(norms > 0, dots / norms, 0.0)
    return sims


def clamp_unit(value: float) -> float:
    """Clamp to [0, 1]; guards float drift on non-negative cosine."""
    return max(0.0, min(1.0, float(value)))
