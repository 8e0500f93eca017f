# ABOUTME: Unit tests for SearchCriteria, year coercion and CanonicalResult serialization.
# ABOUTME: Verifies blank-title detection, loose item parsing and the camelCase record shape.

import dataclasses

import pytest

from shelvery.catalog.types import CanonicalResult, MediaKind, SearchCriteria, Source, coerce_year


class TestCoerceYear:
    """Tests for coerce_year."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1982, 1982),
            ("1982-06-25", 1982),
            ("June 1982", 1982),
            ("", None),
            (None, None),
            (True, None),
            (12, None),
        ],
    )
    def test_values(self, value: object, expected: int | None) -> None:
        assert coerce_year(value) == expected


class TestSearchCriteria:
    """Tests for SearchCriteria."""

    def test_blank_titles(self) -> None:
        assert SearchCriteria(title="").is_blank
        assert SearchCriteria(title="   ").is_blank
        assert not SearchCriteria(title=" Dune ").is_blank
        assert SearchCriteria(title=" Dune ").clean_title == "Dune"

    def test_is_immutable(self) -> None:
        criteria = SearchCriteria(title="Dune")
        with pytest.raises(dataclasses.FrozenInstanceError):
            criteria.title = "Other"  # type: ignore[misc]

    def test_identifier_returns_first_present(self) -> None:
        criteria = SearchCriteria(title="Dune", identifiers={"isbn13": " ", "isbn": "0441172717"})
        assert criteria.identifier("isbn13", "isbn10", "isbn") == "0441172717"
        assert criteria.identifier("asin") is None

    def test_from_item_reads_loose_fields(self) -> None:
        criteria = SearchCriteria.from_item(
            {
                "name": "Hades",
                "year": "2020-09-17",
                "format": "Switch",
                "author": "Supergiant Games",
                "identifiers": {"igdb": 113112, "tags": ["x"], "none": None},
            }
        )
        assert criteria.title == "Hades"
        assert criteria.year == 2020
        assert criteria.format == "Switch"
        assert criteria.creator == "Supergiant Games"
        assert dict(criteria.identifiers) == {"igdb": "113112"}

    def test_from_item_without_title(self) -> None:
        assert SearchCriteria.from_item({}).is_blank


class TestCanonicalResultToDict:
    """Tests for CanonicalResult.to_dict."""

    def test_camel_case_shape(self) -> None:
        result = CanonicalResult(
            title="Dune",
            kind=MediaKind.BOOK,
            fingerprint="abc",
            primary_creator="Frank Herbert",
            cover_url="https://img/dune.jpg",
            identifiers={"isbn13": ["9780441172719"]},
            sources=[Source(provider="openlibrary", ids={"work": "/works/OL893415W"})],
        )
        data = result.to_dict()
        assert data["primaryCreator"] == "Frank Herbert"
        assert data["kind"] == "book"
        assert data["coverUrl"] == "https://img/dune.jpg"
        assert data["sources"][0]["fetchedAt"] is None
        assert "_source" not in data

    def test_provenance_keys_when_set(self) -> None:
        result = CanonicalResult(
            title="Dune",
            kind=MediaKind.BOOK,
            fingerprint="abc",
            source="hardcover",
            source_index=0,
            source_priority=1,
            sources_used=["hardcover", "openLibrary"],
        )
        data = result.to_dict()
        assert data["_source"] == "hardcover"
        assert data["_sourceIndex"] == 0
        assert data["_sourcePriority"] == 1
        assert data["_sources"] == ["hardcover", "openLibrary"]
