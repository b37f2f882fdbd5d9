"""Content similarity system.

This module provides a flexible system for computing similarity between
movies and series from their structured attributes and plot text.

Basic usage:
    >>> from reelmatch.similarity import ContentSimilarity
    >>>
    >>> # Attribute preset: genres 3, director 1, cast 0.5, year 0.5, plot 1
    >>> sim = ContentSimilarity().attributes()
    >>> score = sim.similarity(record_a, record_b)
    >>>
    >>> # Find similar records
    >>> similar = sim.find_similar(record_a, catalog, top_k=10)

Edges for persistence:
    >>> from reelmatch.similarity import compute_for_one, compute_for_all
    >>> edges = compute_for_all(catalog, threshold=0.3)

Best catalog match for a recommendation:
    >>> from reelmatch.similarity import select_best
    >>> record = select_best(recommendation, search_results)
"""

from reelmatch.similarity.base import Extractor, Feature, Metric
from reelmatch.similarity.core import ContentSimilarity, default_scorer
from reelmatch.similarity.extractors import (
    CastExtractor,
    DirectorsExtractor,
    GenresExtractor,
    PlotExtractor,
    ReleaseYearExtractor,
    TitleExtractor,
)
from reelmatch.similarity.feedback import adjust_score
from reelmatch.similarity.graph import compute_for_all, compute_for_one
from reelmatch.similarity.matching import BestMatchSelector, select_best
from reelmatch.similarity.metrics import (
    AnyMatchMetric,
    JaccardMetric,
    NumericProximityMetric,
    SharedCountMetric,
    TfidfMetric,
    TitleMetric,
    YearWindowMetric,
)
from reelmatch.similarity.text import text_similarity
from reelmatch.similarity.titles import normalize_title, title_similarity

__all__ = [
    # Core
    "ContentSimilarity",
    "default_scorer",
    "BestMatchSelector",
    "select_best",
    "adjust_score",
    "compute_for_one",
    "compute_for_all",
    "text_similarity",
    "title_similarity",
    "normalize_title",
    # Base classes
    "Extractor",
    "Metric",
    "Feature",
    # Extractors
    "GenresExtractor",
    "DirectorsExtractor",
    "CastExtractor",
    "ReleaseYearExtractor",
    "PlotExtractor",
    "TitleExtractor",
    # Metrics
    "TfidfMetric",
    "TitleMetric",
    "JaccardMetric",
    "AnyMatchMetric",
    "SharedCountMetric",
    "YearWindowMetric",
    "NumericProximityMetric",
]
