"""
Feedback service for recording user reactions to recommendations.

Each reaction is stored as-is; when it names the item the recommendation
came from, the directed edge source -> content is nudged up or down.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.models import UserFeedback
from ..errors import StoreError
from ..similarity.feedback import adjust_score
from .content_store import ContentStore

logger = logging.getLogger(__name__)

ANONYMOUS_USER = "anonymous"


@dataclass
class FeedbackResult:
    """What a feedback call changed."""
    feedback_id: int
    previous_score: Optional[float] = None
    new_score: Optional[float] = None
    edge_updated: bool = False


class FeedbackService:
    """Service for user feedback on recommendations."""

    def __init__(self, session: Session):
        """
        Initialize the feedback service.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session
        self.store = ContentStore(session)

    def record_feedback(
        self,
        content_id: str,
        is_positive: bool,
        user_id: Optional[str] = None,
        source_content_id: Optional[str] = None,
    ) -> FeedbackResult:
        """
        Record a thumbs up/down and adjust the related similarity edge.

        Args:
            content_id: Item the user reacted to
            is_positive: True for positive feedback
            user_id: Reacting user (anonymous if omitted)
            source_content_id: Item whose recommendations included ``content_id``

        Returns:
            FeedbackResult describing the stored feedback and edge change

        Raises:
            ValueError: If content_id is empty or is_positive is not a bool
            StoreError: If the feedback row itself cannot be stored
        """
        if not content_id:
            raise ValueError("content_id is required")
        if not isinstance(is_positive, bool):
            raise ValueError("is_positive must be a boolean")

        feedback = UserFeedback(
            user_id=user_id or ANONYMOUS_USER,
            content_id=content_id,
            source_content_id=source_content_id,
            is_positive=is_positive,
        )
        self.session.add(feedback)
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to record feedback: {e}") from e

        result = FeedbackResult(feedback_id=feedback.id)
        logger.info(
            f"Recorded {'positive' if is_positive else 'negative'} feedback "
            f"from {feedback.user_id} on {content_id}"
        )

        if source_content_id:
            self._adjust_edge(source_content_id, content_id, is_positive, result)

        return result

    def _adjust_edge(
        self, source_id: str, target_id: str, is_positive: bool, result: FeedbackResult
    ) -> None:
        existing = self.store.get_edge(source_id, target_id)
        result.previous_score = existing.score if existing else None
        new_score = adjust_score(result.previous_score, is_positive)

        try:
            self.store.upsert_edge(source_id, target_id, new_score)
        except StoreError as e:
            # The feedback row is already stored; a failed edge write is not fatal
            logger.error(f"Error updating similarity score {source_id} -> {target_id}: {e}")
            return

        result.new_score = new_score
        result.edge_updated = True
        logger.debug(
            f"Similarity {source_id} -> {target_id}: {result.previous_score} -> {new_score}"
        )
