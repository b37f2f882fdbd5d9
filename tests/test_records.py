"""Tests for content record normalization."""

import pytest

from reelmatch.records import (
    ContentRecord,
    MediaType,
    Recommendation,
    parse_year,
    records_from_payload,
)


OMDB_MATRIX = {
    "Title": "The Matrix",
    "Year": "1999",
    "Rated": "R",
    "Runtime": "136 min",
    "Genre": "Action, Sci-Fi",
    "Director": "Lana Wachowski, Lilly Wachowski",
    "Actors": "Keanu Reeves, Laurence Fishburne, Carrie-Anne Moss",
    "Plot": "When a beautiful stranger leads computer hacker Neo to a forbidding underworld...",
    "Language": "English",
    "Poster": "N/A",
    "imdbRating": "8.7",
    "imdbID": "tt0133093",
    "Type": "movie",
}

TMDB_BREAKING_BAD = {
    "id": 1396,
    "name": "Breaking Bad",
    "first_air_date": "2008-01-20",
    "overview": "A high school chemistry teacher diagnosed with cancer turns to crime.",
    "genres": [{"id": 18, "name": "Drama"}, {"id": 80, "name": "Crime"}],
    "created_by": [{"name": "Vince Gilligan"}],
    "credits": {"cast": [{"name": "Bryan Cranston"}, {"name": "Aaron Paul"}], "crew": []},
    "external_ids": {"imdb_id": "tt0903747"},
    "poster_path": "/ggFHVNu6YYI5L9pCfOacjizRGt.jpg",
    "original_language": "en",
}


class TestContentRecord:
    """Tests for building ContentRecord from external payloads."""

    def test_from_omdb(self):
        record = ContentRecord.from_omdb(OMDB_MATRIX)

        assert record.id == "tt0133093"
        assert record.title == "The Matrix"
        assert record.media_type == MediaType.MOVIE
        assert record.genres == ["Action", "Sci-Fi"]
        assert record.directors == ["Lana Wachowski", "Lilly Wachowski"]
        assert record.cast == ["Keanu Reeves", "Laurence Fishburne", "Carrie-Anne Moss"]
        assert record.release_year == 1999
        # "N/A" means missing
        assert record.poster is None

    def test_from_tmdb_series(self):
        record = ContentRecord.from_tmdb(TMDB_BREAKING_BAD, "tv")

        assert record.id == "tt0903747"
        assert record.title == "Breaking Bad"
        assert record.media_type == MediaType.SERIES
        assert record.year == "2008"
        assert record.genres == ["Drama", "Crime"]
        assert record.director == "Vince Gilligan"
        assert record.cast == ["Bryan Cranston", "Aaron Paul"]
        assert record.plot.startswith("A high school chemistry teacher")
        assert record.poster.endswith("/ggFHVNu6YYI5L9pCfOacjizRGt.jpg")

    def test_from_tmdb_without_imdb_id(self):
        payload = {"id": 42, "title": "Obscure Film", "release_date": "2020-05-01", "overview": "x"}
        record = ContentRecord.from_tmdb(payload)
        assert record.id == "tmdb-42"
        assert record.media_type == MediaType.MOVIE

    def test_from_tmdb_with_null_credits(self):
        payload = {
            "id": 7, "name": "Pilot Season", "first_air_date": "2019-09-01",
            "credits": {"cast": None, "crew": None},
            "created_by": None,
        }
        record = ContentRecord.from_tmdb(payload)

        assert record.media_type == MediaType.SERIES
        assert record.director is None
        assert record.actors is None

    def test_from_dict_routes_omdb(self):
        assert ContentRecord.from_dict(OMDB_MATRIX).id == "tt0133093"

    def test_round_trip_through_dict(self):
        record = ContentRecord.from_omdb(OMDB_MATRIX)
        assert ContentRecord.from_dict(record.to_dict()) == record

    def test_media_type_parse(self):
        assert MediaType.parse("movie") == MediaType.MOVIE
        assert MediaType.parse("series") == MediaType.SERIES
        assert MediaType.parse("tv") == MediaType.SERIES
        assert MediaType.parse(None) == MediaType.MOVIE

    @pytest.mark.parametrize("value,expected", [
        ("1999", 1999),
        ("2008–2013", 2008),
        ("2019–", 2019),
        (2001, 2001),
        ("N/A", None),
        (None, None),
        ("", None),
    ])
    def test_parse_year(self, value, expected):
        assert parse_year(value) == expected


class TestRecordsFromPayload:
    """Tests for import payload normalization."""

    def test_single_omdb_item(self):
        records = records_from_payload(OMDB_MATRIX)
        assert [r.id for r in records] == ["tt0133093"]

    def test_tmdb_results_page(self):
        records = records_from_payload({"results": [TMDB_BREAKING_BAD]}, "tv")
        assert records[0].id == "tt0903747"
        assert records[0].media_type == MediaType.SERIES

    def test_internal_list_with_default_type(self):
        records = records_from_payload([{"id": "tt1", "title": "Show"}], "series")
        assert records[0].media_type == MediaType.SERIES

    def test_drops_items_without_id_or_title(self):
        records = records_from_payload([{"title": "No id"}, {"id": "tt2"}, "junk"])
        assert records == []

    def test_rejects_scalar(self):
        with pytest.raises(ValueError):
            records_from_payload("not json items")


def test_recommendation_from_dict():
    rec = Recommendation.from_dict({"title": " Heat ", "year": "1995", "imdbID": "tt0113277"})
    assert rec.title == "Heat"
    assert rec.imdb_id == "tt0113277"
    assert rec.reason is None
