"""
UI-thread consumer of classification outcomes.

Only the top-ranked category is inspected. A match (target index with a
score at or above the minimum) is logged; nothing else follows from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from models.classification import (
    Category,
    ClassificationError,
    ClassificationResult,
    ClassifierOutcome,
)


@dataclass
class TopResultMatcher:
    """
    Checks the top category against a fixed target.

    Attributes:
        target_index: Category index that counts as a match.
        min_score: Minimum score for a match (inclusive).
        matches: Number of outcomes that matched so far.
    """
    target_index: int = 0
    min_score: float = 0.99
    matches: int = 0
    errors: int = 0
    last_top: Optional[Category] = None
    last_error: Optional[ClassificationError] = None

    def handle(self, outcome: Optional[ClassifierOutcome]) -> bool:
        """
        Inspect one outcome. Returns True if it matched.

        Must be called on the UI thread.
        """
        if outcome is None:
            return False

        if isinstance(outcome, ClassificationError):
            self.errors += 1
            self.last_error = outcome
            logging.error(f"Classifier error: {outcome.message}")
            return False

        if not isinstance(outcome, ClassificationResult) or not outcome.categories:
            return False

        top = outcome.categories[0]
        self.last_top = top
        if top.index == self.target_index and top.score >= self.min_score:
            self.matches += 1
            logging.info(f"Top category matched: index={top.index} score={top.score:.4f} label={top.label}")
            return True
        return False

