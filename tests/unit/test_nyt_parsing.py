# ABOUTME: Unit tests for NYT bestseller parsing.
# ABOUTME: Checks overview flattening, entry classification and bestseller record mapping.

from shelvery.catalog.parsers.nyt import (
    classify_entry,
    entry_candidate,
    entry_to_result,
    parse_list,
    parse_overview,
)
from shelvery.catalog.types import MediaKind
from tests.fixtures.nyt_responses import LIST_RESPONSE, OVERVIEW_RESPONSE


class TestParseOverview:
    """Tests for parse_overview and parse_list."""

    def test_flattens_lists_and_skips_untitled(self) -> None:
        entries = parse_overview(OVERVIEW_RESPONSE)
        assert [e.title for e in entries] == ["FOURTH WING", "THE WOMEN", "THE ANXIOUS GENERATION"]
        assert entries[0].list_name == "Combined Print and E-Book Fiction"
        assert entries[2].list_name_encoded == "hardcover-nonfiction"

    def test_missing_lists(self) -> None:
        assert parse_overview({"results": {}}) == []

    def test_single_list(self) -> None:
        entries = parse_list(LIST_RESPONSE, "hardcover-fiction")
        assert len(entries) == 1
        assert entries[0].list_name == "Hardcover Fiction"
        assert entries[0].list_name_encoded == "hardcover-fiction"


class TestClassifyEntry:
    """Tests for classify_entry."""

    def test_first_week_is_new_release(self) -> None:
        assert classify_entry({"weeks_on_list": 1, "rank": 1}) == "new_release"

    def test_top_three_trending(self) -> None:
        assert classify_entry({"weeks_on_list": 5, "rank": 3}) == "trending"

    def test_otherwise_bestseller(self) -> None:
        assert classify_entry({"weeks_on_list": 5, "rank": 9}) == "bestseller"


class TestEntryToResult:
    """Tests for entry_to_result."""

    def test_maps_entry(self) -> None:
        entry = parse_overview(OVERVIEW_RESPONSE)[0]
        result = entry_to_result(entry)

        assert result.kind is MediaKind.BOOK
        assert result.title == "Fourth Wing"
        assert result.primary_creator == "Rebecca Yarros"
        assert result.genre == ["Combined Print and E-Book Fiction"]
        assert result.publishers == ["Red Tower"]
        assert result.identifiers == {
            "nyt": ["9781649374042"],
            "isbn13": ["9781649374042"],
            "isbn10": ["1649374046"],
        }
        assert result.extras["itemType"] == "trending"
        assert result.extras["rank"] == 1
        assert result.attribution is not None
        assert result.attribution.link_url.endswith("/combined-print-and-e-book-fiction/")

    def test_new_release_without_image(self) -> None:
        entry = parse_overview(OVERVIEW_RESPONSE)[1]
        result = entry_to_result(entry)
        assert result.extras["itemType"] == "new_release"
        assert result.cover_url is None
        assert result.images == []

    def test_candidate_ids_are_unique_per_position(self) -> None:
        entry = parse_overview(OVERVIEW_RESPONSE)[0]
        assert entry_candidate(entry, 0).id != entry_candidate(entry, 1).id
