"""Concrete extractor implementations."""

from typing import Optional, Set

from reelmatch.records import ContentRecord
from reelmatch.similarity.base import Extractor


class GenresExtractor(Extractor[Set[str]]):
    """Extracts set of genre names from a record."""

    def extract(self, record: ContentRecord) -> Optional[Set[str]]:
        """Extract genres from record.

        Args:
            record: Record to extract from

        Returns:
            Set of genre names (whitespace trimmed, case kept), or None if
            the record carries no genres
        """
        if not record.genres:
            return None

        return {genre.strip() for genre in record.genres if genre.strip()}


class DirectorsExtractor(Extractor[Set[str]]):
    """Extracts set of director names from a record."""

    def extract(self, record: ContentRecord) -> Optional[Set[str]]:
        if not record.director:
            return None
        return set(record.directors)


class CastExtractor(Extractor[Set[str]]):
    """Extracts set of cast member names from a record."""

    def extract(self, record: ContentRecord) -> Optional[Set[str]]:
        if not record.actors:
            return None
        return set(record.cast)


class ReleaseYearExtractor(Extractor[Optional[int]]):
    """Extracts release year from a record.

    Year ranges such as "2014–2019" yield their first year; values with no
    four-digit year yield None.
    """

    def extract(self, record: ContentRecord) -> Optional[int]:
        return record.release_year


class PlotExtractor(Extractor[str]):
    """Extracts plot summary from a record."""

    def extract(self, record: ContentRecord) -> Optional[str]:
        """Extract plot from record.

        Args:
            record: Record to extract from

        Returns:
            Plot text, or None if missing or blank
        """
        if not record.plot or not record.plot.strip():
            return None
        return record.plot


class TitleExtractor(Extractor[str]):
    """Extracts title from a record."""

    def extract(self, record: ContentRecord) -> Optional[str]:
        return record.title or None
