"""
Lexical text similarity for plot summaries.

Texts are tokenized into lowercase alphanumeric words, reduced to their
Porter stems, weighted with TF-IDF over the two-document corpus formed by
the pair being compared, and compared with cosine similarity.
"""

import re
from functools import lru_cache
from typing import List, Optional

from nltk.stem import PorterStemmer
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

_WORD_RE = re.compile(r"[a-z0-9]+")
_stemmer = PorterStemmer()


@lru_cache(maxsize=50000)
def stem(word: str) -> str:
    """Porter stem of a single lowercase word."""
    return _stemmer.stem(word)


def tokenize(text: str) -> List[str]:
    """Split text into lowercase words and stem each one."""
    if not text:
        return []
    return [stem(word) for word in _WORD_RE.findall(text.lower())]


def is_blank(text: Optional[str]) -> bool:
    return text is None or not text.strip()


def text_similarity(text1: Optional[str], text2: Optional[str]) -> float:
    """
    TF-IDF cosine similarity between two passages.

    Args:
        text1: First passage (may be empty or None)
        text2: Second passage (may be empty or None)

    Returns:
        Similarity in [0, 1]. Blank input, an empty vocabulary or a
        zero-norm vector all give 0.0.
    """
    if is_blank(text1) or is_blank(text2):
        return 0.0

    vectorizer = TfidfVectorizer(analyzer=tokenize)
    try:
        vectors = vectorizer.fit_transform([text1, text2])
    except ValueError:
        # Empty vocabulary: neither text produced a token
        return 0.0

    v1, v2 = vectors[0], vectors[1]
    if v1.nnz == 0 or v2.nnz == 0:
        return 0.0

    sim = float(cosine_similarity(v1, v2)[0, 0])
    return max(0.0, min(1.0, sim))
