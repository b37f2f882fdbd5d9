"""
reelmatch - similarity graph and AI recommendation matching for movie/TV catalogs.

Main API:
    from reelmatch import ContentRecord, default_scorer
    from reelmatch.db import init_db, get_session
    from reelmatch.services import ContentStore, SimilarityService

    # Score two records directly
    score = default_scorer().similarity(matrix, matrix_reloaded)

    # Or build the persisted similarity graph
    init_db("~/.reelmatch")
    session = get_session()
    ContentStore(session).upsert_content(matrix)
    SimilarityService(session).recalculate_all()
"""

from .records import ContentRecord, MediaType, Recommendation, SimilarityEdge
from .similarity import (
    BestMatchSelector,
    ContentSimilarity,
    adjust_score,
    default_scorer,
    select_best,
    text_similarity,
    title_similarity,
)

__version__ = "0.1.0"
__all__ = [
    "ContentRecord",
    "MediaType",
    "Recommendation",
    "SimilarityEdge",
    "BestMatchSelector",
    "ContentSimilarity",
    "adjust_score",
    "default_scorer",
    "select_best",
    "text_similarity",
    "title_similarity",
]
