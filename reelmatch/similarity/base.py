"""Base classes for the similarity system.

This module defines the core abstractions:
- Extractor: Extracts values from content records
- Metric: Computes similarity between values
- Feature: Combines an extractor and a metric with a point weight
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from reelmatch.records import ContentRecord

T = TypeVar("T")


class Extractor(ABC, Generic[T]):
    """Extracts a value from a content record for similarity comparison.

    Extractors return ``None`` when the record does not carry the field,
    which makes the owning feature contribute nothing.

    Examples:
        - GenresExtractor: Extracts set of genre names
        - DirectorsExtractor: Extracts set of director names
        - ReleaseYearExtractor: Extracts release year
        - PlotExtractor: Extracts plot summary
    """

    @abstractmethod
    def extract(self, record: ContentRecord) -> Optional[T]:
        """Extract a value from the record.

        Args:
            record: Record to extract value from

        Returns:
            Extracted value, or None when the field is missing
        """
        pass


class Metric(ABC, Generic[T]):
    """Computes similarity between two values.

    All similarity scores must be normalized to [0, 1] where:
    - 0 = completely dissimilar
    - 1 = identical

    Examples:
        - TfidfMetric: Cosine similarity of stemmed TF-IDF vectors
        - JaccardMetric: Set overlap
        - AnyMatchMetric: 1 if the sets share any member
        - YearWindowMetric: 1 if two years fall within a window
    """

    @abstractmethod
    def similarity(self, value1: T, value2: T) -> float:
        """Compute similarity between two values.

        Args:
            value1: First value
            value2: Second value

        Returns:
            Similarity score in [0, 1]
        """
        pass


class Feature:
    """Combines an extractor and a metric with a weight.

    A Feature represents one aspect of content similarity, such as:
    - Genre overlap (genres + Jaccard), worth 3 points
    - Shared director (directors + any-match), worth 1 point
    - Plot similarity (plot + TF-IDF), worth 1 point

    Attributes:
        extractor: Extractor for getting values from records
        metric: Metric for computing similarity between values
        weight: Points this feature contributes at full similarity
        name: Optional name for this feature
    """

    def __init__(
        self,
        extractor: Extractor,
        metric: Metric,
        weight: float = 1.0,
        name: str = None,
    ):
        self.extractor = extractor
        self.metric = metric
        self.weight = weight
        self.name = name or f"{extractor.__class__.__name__}+{metric.__class__.__name__}"

    def points(self, record1: ContentRecord, record2: ContentRecord) -> Optional[float]:
        """Compute the weighted contribution of this feature.

        Args:
            record1: First record
            record2: Second record

        Returns:
            ``similarity * weight``, or None if either record lacks the field
        """
        value1 = self.extractor.extract(record1)
        value2 = self.extractor.extract(record2)
        if value1 is None or value2 is None:
            return None
        return self.metric.similarity(value1, value2) * self.weight

    def similarity(self, record1: ContentRecord, record2: ContentRecord) -> float:
        """Compute weighted similarity between two records (0 when skipped)."""
        return self.points(record1, record2) or 0.0
