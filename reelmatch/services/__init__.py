"""
Services for reelmatch business logic.

Provides a unified service layer over the content store, the similarity
graph and the AI matching pipeline.
"""

from .content_store import ContentStore
from .similarity_service import SimilarityService, SimilarityRunResult
from .feedback_service import FeedbackService, FeedbackResult
from .matching_service import MatchingService, RecommendationProcessor, ProcessingProgress
from .recommendation_service import RecommendationService, SimilarItem

__all__ = [
    # Storage
    'ContentStore',

    # Similarity graph
    'SimilarityService',
    'SimilarityRunResult',
    'FeedbackService',
    'FeedbackResult',

    # Recommendations
    'MatchingService',
    'RecommendationProcessor',
    'ProcessingProgress',
    'RecommendationService',
    'SimilarItem',
]
