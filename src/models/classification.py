"""
Classification outcome models.

The classifier returns exactly one of two values per analyzed frame:
- ClassificationResult: ranked categories plus inference time
- ClassificationError: a fixed human-readable message (and optional detail)

Consumers branch on the type instead of registering result/error listeners.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import numpy as np


@dataclass(frozen=True)
class Category:
    """
    One ranked classification candidate.

    Attributes:
        index: Output index of the category in the model's score vector.
        label: Human-readable label (the index as a string if no labels file).
        score: Confidence in [0, 1].
    """
    index: int
    label: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "label": self.label, "score": self.score}


@dataclass
class ClassificationResult:
    """
    Ranked categories for one frame.

    Categories are ordered by score (highest first), already filtered by the
    score threshold and truncated to the configured maximum.
    """
    categories: List[Category] = field(default_factory=list)
    inference_time_ms: float = 0.0
    image: Optional[np.ndarray] = None

    @property
    def top(self) -> Optional[Category]:
        """Highest-ranked category, or None when nothing passed the threshold."""
        return self.categories[0] if self.categories else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": [c.to_dict() for c in self.categories],
            "inference_time_ms": self.inference_time_ms,
        }


@dataclass(frozen=True)
class ClassificationError:
    """Classifier failure reported in place of a result."""
    message: str
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"message": self.message}
        if self.detail:
            d["detail"] = self.detail
        return d


ClassifierOutcome = Union[ClassificationResult, ClassificationError]


def rank_categories(
    scores: np.ndarray,
    labels: Optional[List[str]] = None,
    score_threshold: float = 0.0,
    max_results: int = -1,
) -> List[Category]:
    """
    Turn a flat score vector into ranked, filtered categories.

    Args:
        scores: 1-D array of per-class scores.
        labels: Optional labels indexed by class index.
        score_threshold: Categories scoring below this are dropped.
        max_results: Keep at most this many (a value <= 0 keeps all).

    Ties keep the lower index first.
    """
    flat = np.asarray(scores, dtype=np.float32).reshape(-1)
    # NaN and inf scores are never reported
    finite = np.flatnonzero(np.isfinite(flat))
    order = finite[np.argsort(-flat[finite], kind="stable")]

    out: List[Category] = []
    for idx in order:
        score = float(flat[idx])
        if score < score_threshold:
            break
        label = labels[idx] if labels is not None and idx < len(labels) else str(int(idx))
        out.append(Category(index=int(idx), label=label, score=score))
        if 0 < max_results <= len(out):
            break
    return out
