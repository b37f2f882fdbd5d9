"""
Recommendation service combining stored similarity edges with vector search.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..errors import ContentNotFoundError, ExternalServiceError
from ..records import ContentRecord
from ..vector.base import VectorIndex, content_to_vector_text
from .content_store import ContentStore

logger = logging.getLogger(__name__)


@dataclass
class SimilarItem:
    """One entry of a similar-content listing."""
    record: ContentRecord
    score: float
    source: str  # "edge", "vector" or "both"


class RecommendationService:
    """Service for similar-content lookups."""

    def __init__(self, session: Session, index: Optional[VectorIndex] = None, min_score: float = 0.0):
        """
        Initialize the recommendation service.

        Args:
            session: SQLAlchemy database session
            index: Optional vector index; without one only stored edges are used
            min_score: Vector matches scoring at or below this are ignored
        """
        self.session = session
        self.store = ContentStore(session)
        self.index = index
        self.min_score = min_score

    async def similar_content(self, content_id: str, limit: int = 10) -> List[SimilarItem]:
        """
        Items similar to ``content_id``, best first.

        Stored edges and vector matches are merged by id keeping the higher
        score. Ids without a stored record are dropped. If the vector index
        fails, the stored edges alone are returned.

        Raises:
            ContentNotFoundError: If content_id is not in the store
        """
        source = self.store.get_by_id(content_id)
        if source is None:
            raise ContentNotFoundError(content_id)

        scores: Dict[str, float] = {}
        origins: Dict[str, str] = {}

        for edge in self.store.get_edges_from(content_id):
            if edge.target_id == content_id:
                continue
            scores[edge.target_id] = edge.score
            origins[edge.target_id] = "edge"

        if self.index is not None:
            try:
                # One extra hit so the source itself can be dropped
                matches = await self.index.query(content_to_vector_text(source), top_k=limit + 1)
            except ExternalServiceError as e:
                logger.warning(f"Vector lookup failed for {content_id}, using stored edges only: {e}")
                matches = []

            for match in matches:
                if match.id == content_id:
                    continue
                score = min(max(match.score, 0.0), 1.0)
                if score <= self.min_score:
                    continue
                if match.id in scores:
                    origins[match.id] = "both"
                    scores[match.id] = max(scores[match.id], score)
                else:
                    scores[match.id] = score
                    origins[match.id] = "vector"

        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))

        results = []
        for target_id, score in ranked:
            record = self.store.get_by_id(target_id)
            if record is None:
                logger.debug(f"Skipping {target_id}: not in content store")
                continue
            results.append(SimilarItem(record=record, score=score, source=origins[target_id]))
            if len(results) >= limit:
                break

        return results

    async def index_content(self, records: Iterable[ContentRecord]) -> int:
        """
        Push records into the vector index.

        Returns:
            Number of records indexed; failures are logged and skipped
        """
        if self.index is None:
            raise ValueError("No vector index configured")

        indexed = 0
        for record in records:
            try:
                await self.index.upsert_record(record)
                indexed += 1
            except ExternalServiceError as e:
                logger.error(f"Failed to index {record.id}: {e}")
        logger.info(f"Indexed {indexed} items into {self.index.name}")
        return indexed
