"""
Similarity service for computing and persisting similarity edges.

Scores content against the store's collection with the attribute scorer
and writes edges above the threshold in fixed-size batches. A failed
batch is logged and counted; the remaining batches still run.
"""

from dataclasses import dataclass, field
from itertools import islice
from typing import Callable, Iterable, Iterator, List, Optional
import logging

from sqlalchemy.orm import Session

from ..errors import ContentNotFoundError, StoreError
from ..records import SimilarityEdge
from ..similarity.core import ContentSimilarity, default_scorer
from ..similarity.graph import DEFAULT_THRESHOLD, compute_for_one, iter_pair_edges
from .content_store import ContentStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


@dataclass
class SimilarityRunResult:
    """Outcome of one similarity computation run.

    ``emitted`` counts edges scored above the threshold and handed to the
    store, not pairs compared; ``persisted`` counts those written.
    """
    emitted: int = 0
    persisted: int = 0
    failed_batches: int = 0
    cancelled: bool = False
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed_batches == 0 and not self.cancelled


def _batched(edges: Iterable[SimilarityEdge], size: int) -> Iterator[List[SimilarityEdge]]:
    iterator = iter(edges)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


class SimilarityService:
    """Service for computing similarity edges against the content store."""

    def __init__(
        self,
        session: Session,
        scorer: Optional[ContentSimilarity] = None,
        threshold: float = DEFAULT_THRESHOLD,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        """
        Initialize the similarity service.

        Args:
            session: SQLAlchemy database session
            scorer: Similarity configuration (default: attribute preset)
            threshold: Minimum score (exclusive) for an edge to be stored
            batch_size: Number of edges written per transaction
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = ContentStore(session)
        self.scorer = scorer or default_scorer()
        self.threshold = threshold
        self.batch_size = batch_size

    def _persist(
        self,
        edges: Iterable[SimilarityEdge],
        result: SimilarityRunResult,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> SimilarityRunResult:
        for batch in _batched(edges, self.batch_size):
            result.emitted += len(batch)
            try:
                result.persisted += self.store.upsert_edges(batch)
            except StoreError as e:
                result.failed_batches += 1
                result.errors.append(str(e))
                logger.error(f"Error inserting batch of {len(batch)} edges: {e}")

            if should_continue is not None and not should_continue():
                result.cancelled = True
                logger.info(f"Similarity run stopped after {result.persisted} edges")
                break
        return result

    def compute_for_content(self, content_id: str) -> SimilarityRunResult:
        """
        Compute and store edges from one content item to every other item.

        Args:
            content_id: Source content id

        Returns:
            Run summary

        Raises:
            ContentNotFoundError: If ``content_id`` is not in the store
        """
        source = self.store.get_by_id(content_id)
        if source is None:
            raise ContentNotFoundError(content_id)

        others = self.store.get_all_except(content_id)
        edges = compute_for_one(source, others, self.threshold, self.scorer)

        result = self._persist(edges, SimilarityRunResult())
        logger.info(
            f"Similarity calculation for {content_id}: "
            f"{result.persisted}/{len(edges)} edges stored from {len(others)} items"
        )
        return result

    def recalculate_all(
        self, should_continue: Optional[Callable[[], bool]] = None
    ) -> SimilarityRunResult:
        """
        Recompute edges for every pair in the collection.

        Edges are produced lazily and written batch by batch; each written
        batch is durable even if the run is stopped afterwards.

        Args:
            should_continue: Optional callable checked after each batch;
                returning False stops the run

        Returns:
            Run summary
        """
        records = self.store.get_all()
        logger.info(f"Recalculating similarities for {len(records)} items")

        edges = iter_pair_edges(records, self.threshold, self.scorer)
        result = self._persist(edges, SimilarityRunResult(), should_continue)

        logger.info(
            f"Full similarity calculation completed: {result.persisted} edges stored, "
            f"{result.failed_batches} failed batches"
        )
        return result

    def get_similar(self, content_id: str, limit: int = 10) -> List[SimilarityEdge]:
        """Stored edges from ``content_id``, highest score first."""
        return self.store.get_edges_from(content_id, limit=limit)
