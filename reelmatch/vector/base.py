"""
Vector index interface.

A vector index maps content ids to an embedding of their descriptive text
and answers nearest-neighbour queries over free text.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..records import ContentRecord


@dataclass
class VectorMatch:
    """A single query hit."""
    id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


def content_to_vector_text(record: ContentRecord) -> str:
    """
    Build the text indexed for a content item.

    Example:
        >>> content_to_vector_text(ContentRecord(id="tt1", title="Heat", year="1995"))
        'Title: Heat\\nYear: 1995'
    """
    parts = [f"Title: {record.title}"]
    if record.year:
        parts.append(f"Year: {record.year}")
    if record.genres:
        parts.append(f"Genres: {', '.join(record.genres)}")
    if record.director:
        parts.append(f"Director: {record.director}")
    if record.actors:
        parts.append(f"Actors: {record.actors}")
    if record.plot:
        parts.append(f"Plot: {record.plot}")
    return "\n".join(parts)


def content_metadata(record: ContentRecord) -> Dict[str, Any]:
    """Flat metadata stored alongside each indexed item (no null values)."""
    metadata = {
        "title": record.title,
        "year": record.year,
        "type": record.media_type.value,
        "genres": list(record.genres),
        "director": record.director,
    }
    return {key: value for key, value in metadata.items() if value not in (None, [])}


class VectorIndex(ABC):
    """Abstract async vector index."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def upsert(self, id: str, text: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Insert or replace the entry for ``id``."""
        pass

    @abstractmethod
    async def query(self, text: str, top_k: int = 10) -> List[VectorMatch]:
        """Return up to ``top_k`` entries closest to ``text``, best first."""
        pass

    @abstractmethod
    async def delete(self, id: str) -> None:
        """Remove ``id`` from the index (no error if absent)."""
        pass

    async def upsert_record(self, record: ContentRecord) -> None:
        """Index a content record using its descriptive text."""
        await self.upsert(record.id, content_to_vector_text(record), content_metadata(record))

    async def close(self) -> None:
        """Release any held resources."""
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
