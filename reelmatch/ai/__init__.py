"""
Generative-AI features for reelmatch: matching recommendations to catalog
entries and asking a model for similar titles.
"""

from .matcher import AIContentMatcher, MatchResult
from .parsing import extract_json, parse_numbered_titles
from .recommendations import RecommendationGenerator

__all__ = [
    'AIContentMatcher',
    'MatchResult',
    'RecommendationGenerator',
    'extract_json',
    'parse_numbered_titles',
]
