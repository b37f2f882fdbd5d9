"""Core ContentSimilarity class with fluent API."""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from reelmatch.records import ContentRecord
from reelmatch.similarity.base import Feature, Metric
from reelmatch.similarity.extractors import (
    CastExtractor,
    DirectorsExtractor,
    GenresExtractor,
    PlotExtractor,
    ReleaseYearExtractor,
    TitleExtractor,
)
from reelmatch.similarity.metrics import (
    AnyMatchMetric,
    JaccardMetric,
    SharedCountMetric,
    TfidfMetric,
    TitleMetric,
    YearWindowMetric,
)

logger = logging.getLogger(__name__)


class ContentSimilarity:
    """Compute similarity between content records using multiple features.

    This class uses a fluent API for configuration:

    Example:
        >>> sim = (ContentSimilarity()
        ...     .genres(weight=3.0)
        ...     .directors(weight=1.0)
        ...     .plot(weight=1.0))
        >>> score = sim.similarity(record1, record2)

    Each method adds a feature (extractor + metric + weight) worth up to
    ``weight`` points. The final similarity is the points earned divided by
    the total point budget (the sum of all weights), capped at 1.0.

    The budget is fixed: a feature whose field is missing on either record
    earns nothing but keeps its weight in the denominator, so sparse
    records score lower rather than being renormalized upward.

    Three-tier API:
    - Tier 1: Presets (.attributes())
    - Tier 2: Semantic methods (.genres(), .directors()) with defaults
    - Tier 3: Escape hatch (.custom()) for power users
    """

    def __init__(self):
        """Initialize empty similarity configuration."""
        self.features: List[Feature] = []

    # ===== Tier 1: Presets =====

    def attributes(self) -> "ContentSimilarity":
        """Attribute preset used for persisted similarity edges.

        Points (budget 6):
        - Genres (Jaccard): 3.0
        - Directors (any shared): 1.0
        - Cast (0.25 per shared actor, capped): 0.5
        - Year (within 5 years): 0.5
        - Plot (TF-IDF cosine): 1.0

        Returns:
            Self for chaining
        """
        return (
            self.genres(weight=3.0)
            .directors(weight=1.0)
            .cast(weight=0.5)
            .year(weight=0.5)
            .plot(weight=1.0)
        )

    # ===== Tier 2: Semantic Methods =====

    def genres(
        self, weight: float = 1.0, metric: Optional[Metric] = None
    ) -> "ContentSimilarity":
        """Add genre overlap similarity.

        Default metric: JaccardMetric (set overlap)

        Args:
            weight: Points for this feature (default 1.0)
            metric: Optional custom metric (default JaccardMetric)

        Returns:
            Self for chaining
        """
        metric = metric or JaccardMetric()
        self.features.append(Feature(GenresExtractor(), metric, weight, "genres"))
        return self

    def directors(
        self, weight: float = 1.0, metric: Optional[Metric] = None
    ) -> "ContentSimilarity":
        """Add shared-director similarity.

        Default metric: AnyMatchMetric (1 if any director is shared)
        """
        metric = metric or AnyMatchMetric()
        self.features.append(Feature(DirectorsExtractor(), metric, weight, "directors"))
        return self

    def cast(
        self,
        weight: float = 1.0,
        metric: Optional[Metric] = None,
        per_actor: float = 0.25,
        cap: float = 0.5,
    ) -> "ContentSimilarity":
        """Add shared-cast similarity.

        Default metric: SharedCountMetric, where each shared actor is worth
        ``per_actor`` up to ``cap``.

        Args:
            weight: Points for this feature (default 1.0)
            metric: Optional custom metric
            per_actor: Credit per shared actor (default 0.25)
            cap: Maximum credit (default 0.5)

        Returns:
            Self for chaining
        """
        metric = metric or SharedCountMetric(step=per_actor, cap=cap)
        self.features.append(Feature(CastExtractor(), metric, weight, "cast"))
        return self

    def year(
        self, weight: float = 1.0, metric: Optional[Metric] = None, window: int = 5
    ) -> "ContentSimilarity":
        """Add release-year proximity similarity.

        Default metric: YearWindowMetric (1 if within ``window`` years)

        Args:
            weight: Points for this feature (default 1.0)
            metric: Optional custom metric
            window: Year difference still counted as similar (default 5)

        Returns:
            Self for chaining
        """
        metric = metric or YearWindowMetric(window=window)
        self.features.append(Feature(ReleaseYearExtractor(), metric, weight, "year"))
        return self

    def plot(
        self, weight: float = 1.0, metric: Optional[Metric] = None
    ) -> "ContentSimilarity":
        """Add plot similarity.

        Default metric: TfidfMetric (cosine similarity of stemmed TF-IDF vectors)
        """
        metric = metric or TfidfMetric()
        self.features.append(Feature(PlotExtractor(), metric, weight, "plot"))
        return self

    def title(
        self, weight: float = 1.0, metric: Optional[Metric] = None
    ) -> "ContentSimilarity":
        """Add title similarity.

        Default metric: TitleMetric (normalized exact/containment/edit distance)
        """
        metric = metric or TitleMetric()
        self.features.append(Feature(TitleExtractor(), metric, weight, "title"))
        return self

    # ===== Tier 3: Escape Hatch =====

    def custom(
        self, feature: Feature, name: Optional[str] = None
    ) -> "ContentSimilarity":
        """Add a custom feature for power users.

        Args:
            feature: Custom Feature (extractor + metric + weight)
            name: Optional name for this feature

        Returns:
            Self for chaining
        """
        if name:
            feature.name = name
        self.features.append(feature)
        return self

    # ===== Core Functionality =====

    @property
    def budget(self) -> float:
        """Total points available across all features."""
        return sum(feature.weight for feature in self.features)

    def explain(self, record1: ContentRecord, record2: ContentRecord) -> Dict[str, Optional[float]]:
        """Points earned by each feature.

        Returns:
            Mapping of feature name to points, with None for features
            skipped because a field is missing
        """
        breakdown = {}
        for feature in self.features:
            try:
                breakdown[feature.name] = feature.points(record1, record2)
            except (TypeError, ValueError) as e:
                logger.debug(f"Feature {feature.name} failed for {record1.id}/{record2.id}: {e}")
                breakdown[feature.name] = None
        return breakdown

    def similarity(self, record1: ContentRecord, record2: ContentRecord) -> float:
        """Compute similarity between two records.

        Args:
            record1: First record
            record2: Second record

        Returns:
            Similarity score in [0, 1]
        """
        if not self.features:
            raise ValueError("No features configured. Use .attributes(), .genres(), etc.")

        budget = self.budget
        if budget <= 0:
            return 0.0

        earned = sum(points for points in self.explain(record1, record2).values() if points)
        return min(earned / budget, 1.0)

    def score(self, record1: ContentRecord, record2: ContentRecord) -> float:
        """Alias for :meth:`similarity`."""
        return self.similarity(record1, record2)

    def similarity_matrix(self, records: List[ContentRecord]) -> np.ndarray:
        """Compute pairwise similarity matrix for all records.

        Returns NxN matrix where matrix[i][j] = similarity(records[i], records[j])

        Args:
            records: List of records

        Returns:
            NxN numpy array of similarities
        """
        n = len(records)
        matrix = np.zeros((n, n))

        # Compute upper triangle (matrix is symmetric)
        for i in range(n):
            matrix[i][i] = self.similarity(records[i], records[i])
            for j in range(i + 1, n):
                sim = self.similarity(records[i], records[j])
                matrix[i][j] = sim
                matrix[j][i] = sim

        return matrix

    def find_similar(
        self, record: ContentRecord, candidates: List[ContentRecord], top_k: int = 10
    ) -> List[Tuple[ContentRecord, float]]:
        """Find top-k most similar records from candidates.

        Args:
            record: Query record
            candidates: Candidate records to compare against
            top_k: Number of results to return (default 10)

        Returns:
            List of (record, similarity) tuples, sorted by similarity descending
        """
        similarities = []
        for candidate in candidates:
            if candidate.id == record.id:
                continue  # Skip self

            sim = self.similarity(record, candidate)
            similarities.append((candidate, sim))

        similarities.sort(key=lambda x: x[1], reverse=True)

        return similarities[:top_k]


def default_scorer() -> ContentSimilarity:
    """Scorer used for persisted similarity edges."""
    return ContentSimilarity().attributes()
