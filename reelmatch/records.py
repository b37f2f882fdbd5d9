"""
Canonical in-memory records for content, similarity edges and recommendations.

Every ingestion path (OMDB payloads, TMDB payloads, database rows) is
normalized into a single ContentRecord shape here, so the similarity code
never deals with differently-cased keys.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

MISSING = "N/A"

_YEAR_RE = re.compile(r"\d{4}")


class MediaType(Enum):
    """Kind of content item."""
    MOVIE = "movie"
    SERIES = "series"

    @classmethod
    def parse(cls, value: Optional[str]) -> "MediaType":
        """Map loose type labels ('movie', 'tv', 'series', 'episode') to a MediaType."""
        if value and str(value).strip().lower() == "movie":
            return cls.MOVIE
        return cls.SERIES if value else cls.MOVIE


def _clean(value: Any) -> Optional[str]:
    """Strip a scalar field, mapping OMDB's 'N/A' and blanks to None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == MISSING:
        return None
    return text


def _split_names(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [name for name in value.split(", ") if name]


def _join_names(value: Any) -> Optional[str]:
    """Accept a comma-joined string or a list of names; return the joined string."""
    if isinstance(value, (list, tuple)):
        names = [str(v).strip() for v in value if v and str(v).strip()]
        return ", ".join(names) or None
    return _clean(value)


def _genre_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        cleaned = _clean(value)
        return [g.strip() for g in cleaned.split(",") if g.strip()] if cleaned else []
    genres = []
    for item in value:
        # TMDB ships genres as {"id": .., "name": ..}
        name = item.get("name") if isinstance(item, dict) else item
        if name and str(name).strip():
            genres.append(str(name).strip())
    return genres


def parse_year(value: Any) -> Optional[int]:
    """
    Extract the first four-digit year from a year-like value.

    Handles plain years ("2018"), ranges ("2014–2019", "2014-"),
    and ISO dates ("2018-05-04"). Returns None when no year is present.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value
    match = _YEAR_RE.search(str(value))
    return int(match.group()) if match else None


@dataclass
class ContentRecord:
    """One movie or series in the catalog."""
    id: str
    title: str
    media_type: MediaType = MediaType.MOVIE
    year: Optional[str] = None
    genres: List[str] = field(default_factory=list)
    director: Optional[str] = None
    actors: Optional[str] = None
    plot: Optional[str] = None

    # Display-only fields, carried through persistence untouched
    poster: Optional[str] = None
    imdb_rating: Optional[str] = None
    content_rating: Optional[str] = None
    runtime: Optional[str] = None
    language: Optional[str] = None

    @property
    def directors(self) -> List[str]:
        return _split_names(self.director)

    @property
    def cast(self) -> List[str]:
        return _split_names(self.actors)

    @property
    def release_year(self) -> Optional[int]:
        return parse_year(self.year)

    @classmethod
    def from_omdb(cls, payload: Dict[str, Any]) -> "ContentRecord":
        """Build a record from an OMDB title payload (capitalized keys)."""
        return cls(
            id=_clean(payload.get("imdbID")) or "",
            title=_clean(payload.get("Title")) or "",
            media_type=MediaType.parse(payload.get("Type")),
            year=_clean(payload.get("Year")),
            genres=_genre_list(payload.get("Genre")),
            director=_join_names(payload.get("Director")),
            actors=_join_names(payload.get("Actors")),
            plot=_clean(payload.get("Plot")),
            poster=_clean(payload.get("Poster")),
            imdb_rating=_clean(payload.get("imdbRating")),
            content_rating=_clean(payload.get("Rated")),
            runtime=_clean(payload.get("Runtime")),
            language=_clean(payload.get("Language")),
        )

    @classmethod
    def from_tmdb(cls, payload: Dict[str, Any], media_type: Optional[str] = None) -> "ContentRecord":
        """
        Build a record from a TMDB movie or TV payload.

        Prefers the IMDB id (``imdb_id`` or ``external_ids.imdb_id``) as the
        stable identifier and falls back to ``tmdb-<id>``.
        """
        external = payload.get("external_ids") or {}
        imdb_id = _clean(payload.get("imdb_id")) or _clean(external.get("imdb_id"))
        kind = media_type or payload.get("media_type") or ("movie" if "release_date" in payload else "tv")
        date = payload.get("release_date") or payload.get("first_air_date")
        year = parse_year(date)

        credits = payload.get("credits") or {}
        directors = [
            member.get("name") for member in credits.get("crew") or []
            if member.get("job") == "Director"
        ]
        if not directors:
            directors = [creator.get("name") for creator in payload.get("created_by") or []]
        cast = [member.get("name") for member in (credits.get("cast") or [])[:10]]
        poster_path = _clean(payload.get("poster_path"))

        return cls(
            id=imdb_id or f"tmdb-{payload.get('id')}",
            title=_clean(payload.get("title") or payload.get("name")) or "",
            media_type=MediaType.parse(kind),
            year=str(year) if year else None,
            genres=_genre_list(payload.get("genres")),
            director=_join_names(directors),
            actors=_join_names(cast),
            plot=_clean(payload.get("overview")),
            poster=f"https://image.tmdb.org/t/p/w500{poster_path}" if poster_path else None,
            imdb_rating=_clean(payload.get("vote_average")),
            language=_clean(payload.get("original_language")),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentRecord":
        """
        Build a record from a dictionary in either internal or OMDB casing.

        OMDB-cased payloads (detected by a ``Title`` key) are routed through
        :meth:`from_omdb`.
        """
        if "Title" in data:
            return cls.from_omdb(data)
        return cls(
            id=_clean(data.get("id") or data.get("imdb_id")) or "",
            title=_clean(data.get("title")) or "",
            media_type=MediaType.parse(data.get("media_type")),
            year=_clean(data.get("year")),
            genres=_genre_list(data.get("genres", data.get("genre_strings"))),
            director=_join_names(data.get("director")),
            actors=_join_names(data.get("actors")),
            plot=_clean(data.get("plot") or data.get("overview")),
            poster=_clean(data.get("poster")),
            imdb_rating=_clean(data.get("imdb_rating")),
            content_rating=_clean(data.get("content_rating")),
            runtime=_clean(data.get("runtime")),
            language=_clean(data.get("language")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the lowercase dictionary shape used by the store."""
        return {
            "id": self.id,
            "title": self.title,
            "media_type": self.media_type.value,
            "year": self.year,
            "genres": list(self.genres),
            "director": self.director,
            "actors": self.actors,
            "plot": self.plot,
            "poster": self.poster,
            "imdb_rating": self.imdb_rating,
            "content_rating": self.content_rating,
            "runtime": self.runtime,
            "language": self.language,
        }


@dataclass
class SimilarityEdge:
    """Directed, scored relation between two content items."""
    source_id: str
    target_id: str
    score: float
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"Similarity score out of range [0, 1]: {self.score}")

    @property
    def key(self):
        return (self.source_id, self.target_id)


@dataclass
class Recommendation:
    """A title suggested by the generative model; every field except title may be absent."""
    title: str
    year: Optional[str] = None
    imdb_id: Optional[str] = None
    reason: Optional[str] = None
    synopsis: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recommendation":
        return cls(
            title=str(data.get("title") or "").strip(),
            year=_clean(data.get("year")),
            imdb_id=_clean(data.get("imdb_id") or data.get("imdbID")),
            reason=_clean(data.get("reason")),
            synopsis=_clean(data.get("synopsis")),
        )


@dataclass
class RecommendationCandidate:
    """A candidate record with its composite match score; lives for one selection call."""
    record: ContentRecord
    score: float
    title_score: float = 0.0
    year_score: float = 0.0
    plot_score: float = 0.0


def _looks_like_tmdb(item: Dict[str, Any]) -> bool:
    return "overview" in item and any(
        key in item for key in ("release_date", "first_air_date", "credits", "external_ids")
    )


def records_from_payload(data: Any, media_type: Optional[str] = None) -> List[ContentRecord]:
    """
    Normalize an imported JSON document into content records.

    Accepts a single item, a list of items, an OMDB search response
    (``{"Search": [...]}``) or a TMDB list response (``{"results": [...]}``).
    Items without an id or title are dropped.
    """
    if isinstance(data, dict):
        if isinstance(data.get("Search"), list):
            items = data["Search"]
        elif isinstance(data.get("results"), list):
            items = data["results"]
        else:
            items = [data]
    elif isinstance(data, list):
        items = data
    else:
        raise ValueError(f"Unsupported payload type: {type(data).__name__}")

    records = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if "Title" not in item and _looks_like_tmdb(item):
            record = ContentRecord.from_tmdb(item, media_type)
        else:
            record = ContentRecord.from_dict(item)
            if media_type and "media_type" not in item and "Type" not in item:
                record.media_type = MediaType.parse(media_type)
        if record.id and record.title:
            records.append(record)
    return records
