"""
SQLAlchemy models for the reelmatch database.

Content items keyed by their external catalog id, directed similarity
edges between them, and raw user feedback.
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Float,
    DateTime, ForeignKey, UniqueConstraint, Index, JSON, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship

from ..records import ContentRecord, MediaType

Base = declarative_base()


class Content(Base):
    """A movie or series in the catalog."""
    __tablename__ = 'content'

    id = Column(String(64), primary_key=True)  # imdb id, or tmdb-<id>

    # Core metadata used for similarity
    title = Column(String(500), nullable=False, index=True)
    media_type = Column(String(10), nullable=False, default='movie', index=True)  # movie, series
    year = Column(String(20))  # "2018" or "2014–2019"
    genres = Column(JSON, default=list)
    director = Column(Text)  # comma-joined
    actors = Column(Text)  # comma-joined
    plot = Column(Text)

    # Display fields
    poster = Column(String(500))
    imdb_rating = Column(String(10))
    content_rating = Column(String(20))
    runtime = Column(String(20))
    language = Column(String(100))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    outgoing = relationship(
        'ContentSimilarity',
        foreign_keys='ContentSimilarity.source_id',
        back_populates='source',
        cascade='all, delete-orphan',
    )

    __table_args__ = (
        Index('idx_content_title_type', 'title', 'media_type'),
    )

    def to_record(self) -> ContentRecord:
        """Convert to the canonical in-memory record."""
        return ContentRecord(
            id=self.id,
            title=self.title,
            media_type=MediaType(self.media_type or 'movie'),
            year=self.year,
            genres=list(self.genres or []),
            director=self.director,
            actors=self.actors,
            plot=self.plot,
            poster=self.poster,
            imdb_rating=self.imdb_rating,
            content_rating=self.content_rating,
            runtime=self.runtime,
            language=self.language,
        )

    def update_from(self, record: ContentRecord) -> None:
        """Copy every field of a record onto this row (id excluded)."""
        data = record.to_dict()
        data.pop('id')
        for key, value in data.items():
            setattr(self, key, value)

    def __repr__(self):
        return f"<Content(id={self.id}, title='{self.title[:50]}')>"


class ContentSimilarity(Base):
    """Directed similarity edge between two content items."""
    __tablename__ = 'content_similarities'

    id = Column(Integer, primary_key=True)
    source_id = Column(String(64), ForeignKey('content.id', ondelete='CASCADE'), nullable=False)
    target_id = Column(String(64), ForeignKey('content.id', ondelete='CASCADE'), nullable=False)
    similarity_score = Column(Float, nullable=False)  # 0-1

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    source = relationship('Content', foreign_keys=[source_id], back_populates='outgoing')
    target = relationship('Content', foreign_keys=[target_id])

    __table_args__ = (
        UniqueConstraint('source_id', 'target_id', name='uix_similarity_pair'),
        CheckConstraint('similarity_score >= 0 AND similarity_score <= 1', name='ck_similarity_range'),
        Index('idx_similarity_source_score', 'source_id', 'similarity_score'),
        Index('idx_similarity_target', 'target_id'),
    )

    def __repr__(self):
        return f"<ContentSimilarity({self.source_id} -> {self.target_id}: {self.similarity_score:.3f})>"


class UserFeedback(Base):
    """Thumbs up/down on a recommended item."""
    __tablename__ = 'user_feedback'

    id = Column(Integer, primary_key=True)
    user_id = Column(String(100), nullable=False, default='anonymous', index=True)
    content_id = Column(String(64), nullable=False, index=True)
    source_content_id = Column(String(64))  # item the recommendation came from
    is_positive = Column(Boolean, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        sign = '+' if self.is_positive else '-'
        return f"<UserFeedback({self.user_id} {sign} {self.content_id})>"
