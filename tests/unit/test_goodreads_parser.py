# ABOUTME: Unit tests for Goodreads page parsing against saved HTML fixtures.
# ABOUTME: Covers current markup, legacy fallback selectors, empty pages, and text helpers.

import pytest
from bs4 import BeautifulSoup

from bookscout.scraping.goodreads_parser import (
    html_to_text,
    parse_goodreads_page,
    parse_series_text,
    select_text,
    select_texts,
)


class TestParseCurrentLayout:
    """Parsing the current Goodreads book page layout."""

    def test_title(self, goodreads_html: str) -> None:
        assert parse_goodreads_page(goodreads_html).title == "The Way of Kings"

    def test_authors_are_squashed_and_deduplicated(self, goodreads_html: str) -> None:
        record = parse_goodreads_page(goodreads_html)
        assert record.authors == ["Brandon Sanderson", "Isaac Stewart"]

    def test_cover_prefers_page_image_over_og(self, goodreads_html: str) -> None:
        record = parse_goodreads_page(goodreads_html)
        assert record.image_url == "https://images.example.com/way-of-kings.jpg"

    def test_summary_keeps_line_breaks(self, goodreads_html: str) -> None:
        """<br> markup becomes newlines instead of being collapsed away."""
        record = parse_goodreads_page(goodreads_html)
        assert record.summary == (
            "Roshar is a world of stone and storms.\n\n"
            "Uncanny tempests of incredible power sweep across the rocky terrain "
            "so frequently that they have shaped ecology and civilization alike.\n"
            "It has been centuries since the fall of the ten orders."
        )

    def test_publication_and_publisher(self, goodreads_html: str) -> None:
        record = parse_goodreads_page(goodreads_html)
        assert record.publication_date == "August 31, 2010"
        assert record.publisher == "Tor Books"

    def test_genres_skip_ui_labels(self, goodreads_html: str) -> None:
        record = parse_goodreads_page(goodreads_html)
        assert record.genres == ["Fantasy", "Fiction", "Epic Fantasy", "High Fantasy"]

    def test_ratings(self, goodreads_html: str) -> None:
        record = parse_goodreads_page(goodreads_html)
        assert record.ratings_count == "512345"
        assert record.average_rating == "4.65"

    def test_pages_and_language(self, goodreads_html: str) -> None:
        record = parse_goodreads_page(goodreads_html)
        assert record.page_count == "1007"
        assert record.language == "English"

    def test_series(self, goodreads_html: str) -> None:
        record = parse_goodreads_page(goodreads_html)
        assert record.series_name == "The Stormlight Archive"
        assert record.series_position == "1"

    def test_characters(self, goodreads_html: str) -> None:
        record = parse_goodreads_page(goodreads_html)
        assert record.characters == ["Kaladin", "Shallan Davar"]


class TestParseLegacyLayout:
    """The fallback selectors still read the older page layout."""

    def test_core_fields(self, goodreads_legacy_html: str) -> None:
        record = parse_goodreads_page(goodreads_legacy_html)
        assert record.title == "Mistborn: The Final Empire"
        assert record.authors == ["Brandon Sanderson"]
        assert record.image_url == "https://images.example.com/mistborn-og.jpg"

    def test_summary_from_hidden_full_text(self, goodreads_legacy_html: str) -> None:
        record = parse_goodreads_page(goodreads_legacy_html)
        assert record.summary == (
            "For a thousand years the ash fell and no flowers bloomed.\n\n"
            "For a thousand years the Skaa slaved in misery."
        )

    def test_published_line(self, goodreads_legacy_html: str) -> None:
        record = parse_goodreads_page(goodreads_legacy_html)
        assert record.publication_date == "July 25th 2006"
        assert record.publisher == "Tor Fantasy"

    def test_details(self, goodreads_legacy_html: str) -> None:
        record = parse_goodreads_page(goodreads_legacy_html)
        assert record.genres == ["Fantasy", "Young Adult"]
        assert record.ratings_count == "1452003"
        assert record.average_rating == "4.47"
        assert record.page_count == "541"
        assert record.language == "English"

    def test_series(self, goodreads_legacy_html: str) -> None:
        record = parse_goodreads_page(goodreads_legacy_html)
        assert record.series_name == "Mistborn"
        assert record.series_position == "1"


class TestParseEmptyPage:
    """A valid page with no matching fields degrades instead of failing."""

    def test_everything_absent(self, goodreads_empty_html: str) -> None:
        record = parse_goodreads_page(goodreads_empty_html)
        assert record.title is None
        assert record.authors == []
        assert record.summary is None
        assert record.publication_date is None
        assert record.genres == []
        assert record.series_name is None

    def test_garbage_input(self) -> None:
        """Non-HTML text parses to an empty record."""
        record = parse_goodreads_page("definitely not html")
        assert record.title is None


class TestHtmlToText:
    """Tests for html_to_text."""

    def _element(self, html: str):
        return BeautifulSoup(html, "lxml").select_one("div")

    def test_br_becomes_newline(self) -> None:
        element = self._element("<div>one<br>two<br/>three</div>")
        assert html_to_text(element) == "one\ntwo\nthree"

    def test_paragraphs_separated_by_blank_line(self) -> None:
        element = self._element("<div><p>First.</p><p>Second.</p></div>")
        assert html_to_text(element) == "First.\n\nSecond."

    def test_runs_of_breaks_collapse_to_one_blank_line(self) -> None:
        element = self._element("<div>a<br><br><br><br>b</div>")
        assert html_to_text(element) == "a\n\nb"

    def test_inline_whitespace_squashed(self) -> None:
        element = self._element("<div>  lots   of\tspace <b>bold</b> </div>")
        assert html_to_text(element) == "lots of space bold"


class TestSelectors:
    """Tests for the ordered fallback selector helpers."""

    def test_select_text_uses_first_nonempty_match(self) -> None:
        soup = BeautifulSoup(
            '<h1 class="a"> </h1><h2 class="b">Found</h2><meta name="c" content="meta">',
            "lxml",
        )
        selectors = ((".a", None), (".b", None), ('meta[name="c"]', "content"))
        assert select_text(soup, selectors) == "Found"

    def test_select_text_reads_attributes(self) -> None:
        soup = BeautifulSoup('<meta name="c" content=" meta value ">', "lxml")
        assert select_text(soup, (('meta[name="c"]', "content"),)) == "meta value"

    def test_select_text_none_when_nothing_matches(self) -> None:
        soup = BeautifulSoup("<p>x</p>", "lxml")
        assert select_text(soup, ((".missing", None),)) is None

    def test_select_texts_stops_at_first_matching_selector(self) -> None:
        soup = BeautifulSoup(
            '<i class="a">One</i><i class="a">One</i><i class="a">Two</i><b class="b">Other</b>',
            "lxml",
        )
        assert select_texts(soup, (".a", ".b")) == ["One", "Two"]
        assert select_texts(soup, (".missing", ".b")) == ["Other"]


class TestParseSeriesText:
    """Tests for parse_series_text."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("The Stormlight Archive #1", ("The Stormlight Archive", "1")),
            ("(Mistborn, #1)", ("Mistborn", "1")),
            ("The Expanse (#2)", ("The Expanse", "2")),
            ("Discworld #2.5", ("Discworld", "2.5")),
            ("The Wheel of Time #1-3", ("The Wheel of Time", "1-3")),
            ("Standalone Saga", ("Standalone Saga", None)),
            ("  Mistborn   #3 ", ("Mistborn", "3")),
        ],
    )
    def test_forms(self, text: str, expected: tuple[str | None, str | None]) -> None:
        assert parse_series_text(text) == expected

    def test_blank(self) -> None:
        assert parse_series_text("   ") == (None, None)
