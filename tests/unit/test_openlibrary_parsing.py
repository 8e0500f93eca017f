# ABOUTME: Unit tests for Open Library response parsing functions.
# ABOUTME: Validates description quirks, edition selection, search candidates and record mapping.

from shelvery.catalog.parsers.openlibrary import (
    build_cover_url,
    edition_to_result,
    parse_author_name,
    parse_search_results,
    parse_works_response,
    search_doc_to_result,
    select_best_edition,
)
from shelvery.catalog.types import MediaKind, SearchCriteria
from tests.fixtures.openlibrary_responses import (
    AUTHOR_RESPONSE,
    EDITIONS_RESPONSE,
    EDITIONS_RESPONSE_NO_ISBN,
    ISBN_RESPONSE,
    SEARCH_RESPONSE,
    WORKS_RESPONSE,
    WORKS_RESPONSE_NO_DESCRIPTION,
    WORKS_RESPONSE_STR_DESCRIPTION,
)


class TestParseWorksResponse:
    """Tests for parse_works_response."""

    def test_string_description(self) -> None:
        assert parse_works_response(WORKS_RESPONSE_STR_DESCRIPTION) == "A desert planet and a precious spice."

    def test_dict_description(self) -> None:
        assert parse_works_response(WORKS_RESPONSE).startswith("Set on the desert planet Arrakis")

    def test_missing_description(self) -> None:
        assert parse_works_response(WORKS_RESPONSE_NO_DESCRIPTION) is None


def test_parse_author_name() -> None:
    assert parse_author_name(AUTHOR_RESPONSE) == "Frank Herbert"
    assert parse_author_name({}) == "Unknown"


def test_build_cover_url() -> None:
    assert build_cover_url("9780441172719", "M") == "https://covers.openlibrary.org/b/isbn/9780441172719-M.jpg"
    assert build_cover_url(11481354, "L", "id") == "https://covers.openlibrary.org/b/id/11481354-L.jpg"


class TestSelectBestEdition:
    """Tests for select_best_edition."""

    def test_prefers_hardcover_with_isbn13(self) -> None:
        edition = select_best_edition(EDITIONS_RESPONSE["entries"])
        assert edition == {
            "isbn13": "9780399128967",
            "isbn10": "0399128964",
            "publisher": "Putnam",
            "format": "Hardcover",
        }

    def test_skips_editions_without_isbn(self) -> None:
        assert select_best_edition(EDITIONS_RESPONSE_NO_ISBN["entries"]) is None

    def test_empty(self) -> None:
        assert select_best_edition([]) is None


class TestParseSearchResults:
    """Tests for parse_search_results."""

    def test_candidates(self) -> None:
        candidates = parse_search_results(SEARCH_RESPONSE)
        assert [c.id for c in candidates] == ["/works/OL893415W", "/works/OL893502W"]
        assert candidates[0].year == 1965
        assert candidates[0].vote_count == 120
        assert candidates[0].has_image is True
        assert candidates[1].has_image is False

    def test_no_docs(self) -> None:
        assert parse_search_results({}) == []


class TestSearchDocToResult:
    """Tests for search_doc_to_result."""

    def test_enriched_doc(self) -> None:
        doc = SEARCH_RESPONSE["docs"][0]
        edition = select_best_edition(EDITIONS_RESPONSE["entries"])
        result = search_doc_to_result(
            doc,
            description="A desert planet.",
            edition=edition,
            criteria=SearchCriteria(title="Dune"),
            score=90.0,
        )

        assert result is not None
        assert result.kind is MediaKind.BOOK
        assert result.primary_creator == "Frank Herbert"
        assert result.year == 1965
        assert result.description == "A desert planet."
        assert result.publishers == ["Putnam", "Chilton Books", "Ace Books"]
        assert result.identifiers["isbn13"] == ["9780399128967", "9780441172719"]
        assert result.identifiers["openlibrary_work"] == ["/works/OL893415W"]
        assert result.tags == ["Science fiction", "Arrakis"]
        assert result.formats == ["Hardcover"]
        assert result.cover_image_url == "https://covers.openlibrary.org/b/id/11481354-L.jpg"
        assert result.external_id == "openlibrary:OL893415W"
        assert result.provider == "openLibrary"

    def test_cover_falls_back_to_isbn(self) -> None:
        doc = {"key": "/works/OL1W", "title": "No Cover", "isbn": ["9780000000002"]}
        result = search_doc_to_result(doc)
        assert result is not None
        assert result.cover_image_url == "https://covers.openlibrary.org/b/isbn/9780000000002-L.jpg"

    def test_untitled_doc(self) -> None:
        assert search_doc_to_result({"key": "/works/OL1W"}) is None


class TestEditionToResult:
    """Tests for edition_to_result."""

    def test_maps_edition(self) -> None:
        result = edition_to_result(ISBN_RESPONSE, authors=["Frank Herbert"], description="Spice.")
        assert result is not None
        assert result.title == "Dune"
        assert result.primary_creator == "Frank Herbert"
        assert result.year == 1990
        assert result.publishers == ["Ace Books"]
        assert result.identifiers == {
            "openlibrary_work": ["/works/OL893415W"],
            "isbn13": ["9780441172719"],
            "isbn10": ["0441172717"],
        }
        assert result.formats == ["Mass Market Paperback"]
        assert result.cover_url == "https://covers.openlibrary.org/b/id/11481354-L.jpg"
