"""Concrete metric implementations."""

from typing import Optional, Set

from reelmatch.similarity.base import Metric
from reelmatch.similarity.text import text_similarity
from reelmatch.similarity.titles import title_similarity


class JaccardMetric(Metric[Set[str]]):
    """Jaccard similarity for sets.

    Computes |A ∩ B| / |A ∪ B|

    Returns:
        1.0 if sets are identical
        0.0 if sets have no overlap or either set is empty
    """

    def similarity(self, value1: Set[str], value2: Set[str]) -> float:
        """Compute Jaccard similarity between two sets.

        Args:
            value1: First set
            value2: Second set

        Returns:
            Jaccard similarity in [0, 1]
        """
        if not value1 or not value2:
            return 0.0

        intersection = len(value1 & value2)
        union = len(value1 | value2)

        if union == 0:
            return 0.0

        return intersection / union


class AnyMatchMetric(Metric[Set[str]]):
    """Binary overlap: 1.0 if the two sets share at least one member."""

    def similarity(self, value1: Set[str], value2: Set[str]) -> float:
        if not value1 or not value2:
            return 0.0
        return 1.0 if value1 & value2 else 0.0


class SharedCountMetric(Metric[Set[str]]):
    """Credit per shared member, capped.

    Each shared member earns ``step`` credit up to ``cap``; the result is
    scaled by ``cap`` into [0, 1]. With the defaults, one shared actor
    gives 0.5 and two or more give 1.0.

    Attributes:
        step: Credit per shared member (default 0.25)
        cap: Maximum total credit (default 0.5)
    """

    def __init__(self, step: float = 0.25, cap: float = 0.5):
        if step <= 0 or cap <= 0:
            raise ValueError("step and cap must be positive")
        self.step = step
        self.cap = cap

    def similarity(self, value1: Set[str], value2: Set[str]) -> float:
        if not value1 or not value2:
            return 0.0
        shared = len(value1 & value2)
        return min(shared * self.step, self.cap) / self.cap


class YearWindowMetric(Metric[Optional[int]]):
    """Binary proximity: 1.0 when two years are at most ``window`` apart.

    Attributes:
        window: Maximum year difference still counted as similar (default 5)
    """

    def __init__(self, window: int = 5):
        self.window = window

    def similarity(self, value1: Optional[int], value2: Optional[int]) -> float:
        if value1 is None or value2 is None:
            return 0.0
        return 1.0 if abs(value1 - value2) <= self.window else 0.0


class NumericProximityMetric(Metric[Optional[int]]):
    """Similarity based on numeric proximity with normalization.

    Computes: 1 - min(|v1 - v2| / max_diff, 1)

    Used for release years across a 10-year window when picking the best
    catalog match for a recommendation.

    Attributes:
        max_diff: Difference at which similarity reaches 0
    """

    def __init__(self, max_diff: float):
        """Initialize numeric proximity metric.

        Args:
            max_diff: Maximum expected difference (e.g., 10 years)
        """
        self.max_diff = max_diff

    def similarity(self, value1: Optional[int], value2: Optional[int]) -> float:
        """Compute numeric proximity similarity.

        Args:
            value1: First value
            value2: Second value

        Returns:
            Similarity in [0, 1] based on proximity
        """
        if value1 is None or value2 is None:
            return 0.0

        if value1 == value2:
            return 1.0

        diff = abs(value1 - value2)
        normalized = min(diff / self.max_diff, 1.0)
        return 1.0 - normalized


class TfidfMetric(Metric[str]):
    """TF-IDF cosine similarity for text.

    Stems both texts with the Porter stemmer and weighs terms over the
    two-document corpus made of the pair itself.
    """

    def similarity(self, value1: str, value2: str) -> float:
        """Compute TF-IDF cosine similarity.

        Args:
            value1: First text
            value2: Second text

        Returns:
            Cosine similarity in [0, 1]
        """
        return text_similarity(value1, value2)


class TitleMetric(Metric[str]):
    """Normalized title similarity (exact, containment, then edit distance)."""

    def similarity(self, value1: str, value2: str) -> float:
        return title_similarity(value1, value2)
