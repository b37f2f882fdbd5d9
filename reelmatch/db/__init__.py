"""
Database module for reelmatch.

Provides SQLAlchemy session management and initialization.
"""

from .models import Base, Content, ContentSimilarity, UserFeedback
from .session import database_url, get_session, init_db, close_db, session_scope

__all__ = [
    'Base',
    'Content',
    'ContentSimilarity',
    'UserFeedback',
    'database_url',
    'get_session',
    'init_db',
    'close_db',
    'session_scope',
]
