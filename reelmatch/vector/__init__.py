"""
Vector indexes for semantic lookups over the catalog.
"""

from .base import VectorIndex, VectorMatch, content_metadata, content_to_vector_text
from .local import LocalVectorIndex
from .pinecone import PineconeIndex

__all__ = [
    'VectorIndex',
    'VectorMatch',
    'LocalVectorIndex',
    'PineconeIndex',
    'content_metadata',
    'content_to_vector_text',
]
