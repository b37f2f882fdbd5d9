"""
In-process vector index backed by TF-IDF vectors and cosine similarity.

Useful for tests and small catalogs; vectors are recomputed over the whole
corpus on every query, so cost grows with catalog size.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from ..similarity.text import is_blank, tokenize
from .base import VectorIndex, VectorMatch

logger = logging.getLogger(__name__)


class LocalVectorIndex(VectorIndex):
    """TF-IDF vector index held in memory."""

    def __init__(self, max_features: int = 5000):
        self.max_features = max_features
        self.documents: Dict[str, Tuple[str, Dict[str, Any]]] = {}

    @property
    def name(self) -> str:
        return "local"

    def __len__(self) -> int:
        return len(self.documents)

    def __contains__(self, id: str) -> bool:
        return id in self.documents

    async def upsert(self, id: str, text: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.documents[id] = (text or "", dict(metadata or {}))

    async def delete(self, id: str) -> None:
        self.documents.pop(id, None)

    async def query(self, text: str, top_k: int = 10) -> List[VectorMatch]:
        if is_blank(text) or not self.documents:
            return []

        ids = list(self.documents)
        corpus = [self.documents[doc_id][0] for doc_id in ids]
        vectorizer = TfidfVectorizer(
            analyzer=tokenize,
            max_features=self.max_features,
        )
        try:
            doc_matrix = vectorizer.fit_transform(corpus + [text])
        except ValueError:
            # Empty vocabulary
            logger.debug("Local vector query produced an empty vocabulary")
            return []

        query_vector = doc_matrix[len(ids)]
        if query_vector.nnz == 0:
            return []

        scores = cosine_similarity(query_vector, doc_matrix[:len(ids)])[0]

        matches = [
            VectorMatch(id=doc_id, score=float(min(max(score, 0.0), 1.0)),
                        metadata=self.documents[doc_id][1])
            for doc_id, score in zip(ids, scores)
            if score > 0
        ]
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]
