"""
Content store service.

Row-store operations over content items and similarity edges: lookups
by id, bulk reads, and idempotent upserts keyed on the (source, target)
pair.
"""

from datetime import datetime
from typing import Iterable, List, Optional
import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.models import Content, ContentSimilarity
from ..errors import StoreError
from ..records import ContentRecord, SimilarityEdge
from ..similarity.titles import normalize_title

logger = logging.getLogger(__name__)


class ContentStore:
    """Service for reading and writing content and similarity edges."""

    def __init__(self, session: Session):
        """
        Initialize the content store.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session

    # ===== Content =====

    def get_by_id(self, content_id: str) -> Optional[ContentRecord]:
        """
        Get a content item by id.

        Args:
            content_id: Catalog id

        Returns:
            The record, or None if not found
        """
        row = self.session.get(Content, content_id)
        return row.to_record() if row else None

    def get_all(self) -> List[ContentRecord]:
        """Get every content item, ordered by id."""
        return [row.to_record() for row in self.session.query(Content).order_by(Content.id).all()]

    def get_all_except(self, content_id: str) -> List[ContentRecord]:
        """Get every content item other than ``content_id``."""
        rows = self.session.query(Content).filter(
            Content.id != content_id
        ).order_by(Content.id).all()
        return [row.to_record() for row in rows]

    def count(self) -> int:
        return self.session.query(func.count(Content.id)).scalar() or 0

    def find_by_title(self, title: str, limit: int = 20) -> List[ContentRecord]:
        """
        Find content whose title contains any word of ``title``.

        Used to gather candidates for best-match selection; ranking is
        left to the caller.
        """
        words = [w for w in normalize_title(title).split() if len(w) > 1]
        if not words:
            return []

        query = self.session.query(Content)
        conditions = [Content.title.ilike(f"%{word}%") for word in words]
        rows = query.filter(or_(*conditions)).limit(limit).all()
        return [row.to_record() for row in rows]

    def upsert_content(self, record: ContentRecord) -> bool:
        """
        Insert or update a content item.

        Args:
            record: Record to store

        Returns:
            True if the item was created, False if it was updated
        """
        if not record.id:
            raise ValueError("Content record has no id")

        row = self.session.get(Content, record.id)
        created = row is None
        if created:
            row = Content(id=record.id)
            self.session.add(row)
        row.update_from(record)

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to store content {record.id}: {e}") from e

        logger.debug(f"{'Added' if created else 'Updated'} content {record.id}")
        return created

    # ===== Similarity edges =====

    def get_edge(self, source_id: str, target_id: str) -> Optional[SimilarityEdge]:
        """Get the edge source -> target, if any."""
        row = self.session.query(ContentSimilarity).filter_by(
            source_id=source_id, target_id=target_id
        ).first()
        if not row:
            return None
        return SimilarityEdge(row.source_id, row.target_id, row.similarity_score, row.updated_at)

    def get_edges_from(self, source_id: str, limit: Optional[int] = None) -> List[SimilarityEdge]:
        """Get outgoing edges of ``source_id``, highest score first."""
        query = self.session.query(ContentSimilarity).filter_by(
            source_id=source_id
        ).order_by(ContentSimilarity.similarity_score.desc(), ContentSimilarity.target_id)
        if limit:
            query = query.limit(limit)
        return [
            SimilarityEdge(row.source_id, row.target_id, row.similarity_score, row.updated_at)
            for row in query.all()
        ]

    def count_edges(self) -> int:
        return self.session.query(func.count(ContentSimilarity.id)).scalar() or 0

    def _stage_edge(self, source_id: str, target_id: str, score: float, when: datetime) -> None:
        row = self.session.query(ContentSimilarity).filter_by(
            source_id=source_id, target_id=target_id
        ).first()
        if row:
            row.similarity_score = score
            row.updated_at = when
        else:
            self.session.add(ContentSimilarity(
                source_id=source_id,
                target_id=target_id,
                similarity_score=score,
                created_at=when,
                updated_at=when,
            ))
            # Make the pending row visible to lookups later in the same batch
            self.session.flush()

    def upsert_edge(self, source_id: str, target_id: str, score: float) -> None:
        """
        Insert or update the edge source -> target.

        Raises:
            StoreError: If the write fails (e.g. unknown content id)
        """
        self.upsert_edges([SimilarityEdge(source_id, target_id, score)])

    def upsert_edges(self, edges: Iterable[SimilarityEdge]) -> int:
        """
        Insert or update a batch of edges in one transaction.

        Args:
            edges: Edges to write

        Returns:
            Number of edges written

        Raises:
            StoreError: If the batch fails; nothing from the batch is kept
        """
        count = 0
        try:
            for edge in edges:
                self._stage_edge(edge.source_id, edge.target_id, edge.score, edge.updated_at)
                count += 1
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to write similarity batch: {e}") from e
        return count
