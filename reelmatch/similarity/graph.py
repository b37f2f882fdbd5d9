"""
Similarity edge computation over a content collection.

Two modes:
- one source against every other record, emitting source -> target edges
- every unordered pair, emitting both directions for each kept pair

Only scores strictly above the threshold become edges. Full
recalculation is O(n^2) in comparisons.
"""

import logging
from datetime import datetime
from typing import Iterator, List, Optional, Sequence

from reelmatch.records import ContentRecord, SimilarityEdge
from reelmatch.similarity.core import ContentSimilarity, default_scorer

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.3


def compute_for_one(
    source: ContentRecord,
    others: Sequence[ContentRecord],
    threshold: float = DEFAULT_THRESHOLD,
    scorer: Optional[ContentSimilarity] = None,
) -> List[SimilarityEdge]:
    """
    Score one record against every other record.

    Args:
        source: Record to compute edges for
        others: Records to compare against (the source itself is skipped)
        threshold: Edges are kept only when the score is above this value
        scorer: Similarity configuration (default: attribute preset)

    Returns:
        Directed edges source -> target
    """
    scorer = scorer or default_scorer()
    now = datetime.utcnow()
    edges = []

    for target in others:
        if target.id == source.id:
            continue
        score = scorer.similarity(source, target)
        if score > threshold:
            edges.append(SimilarityEdge(source.id, target.id, score, now))

    logger.debug(f"{len(edges)} of {len(others)} items above {threshold} for {source.id}")
    return edges


def iter_pair_edges(
    records: Sequence[ContentRecord],
    threshold: float = DEFAULT_THRESHOLD,
    scorer: Optional[ContentSimilarity] = None,
) -> Iterator[SimilarityEdge]:
    """Yield symmetric edges for every unordered pair scoring above the threshold."""
    scorer = scorer or default_scorer()
    now = datetime.utcnow()

    for i in range(len(records)):
        for j in range(i + 1, len(records)):
            source, target = records[i], records[j]
            score = scorer.similarity(source, target)
            if score > threshold:
                yield SimilarityEdge(source.id, target.id, score, now)
                yield SimilarityEdge(target.id, source.id, score, now)


def compute_for_all(
    records: Sequence[ContentRecord],
    threshold: float = DEFAULT_THRESHOLD,
    scorer: Optional[ContentSimilarity] = None,
) -> List[SimilarityEdge]:
    """
    Score every unordered pair in the collection.

    Args:
        records: Whole collection
        threshold: Edges are kept only when the score is above this value
        scorer: Similarity configuration (default: attribute preset)

    Returns:
        Edges in both directions for every kept pair
    """
    edges = list(iter_pair_edges(records, threshold, scorer))
    logger.debug(f"{len(edges)} edges from {len(records)} items")
    return edges
