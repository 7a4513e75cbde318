# ABOUTME: Unit tests for parsing external scraper JSON payloads.
# ABOUTME: Checks key mapping, alternate key names, and tolerance of odd value types.

from bookscout.scraping.payload import parse_fandom_payload, parse_goodreads_payload


class TestParseFandomPayload:
    """Tests for parse_fandom_payload."""

    def test_maps_fandom_keys(self) -> None:
        record = parse_fandom_payload(
            {
                "title": "Harry Potter and the Chamber of Secrets",
                "author": "J. K. Rowling",
                "cover_image_url": "https://static.example.com/cos.jpg",
                "plot_summary": "Harry's second year.\n\nA diary.",
                "publication_date": "2 July 1998",
                "publisher": "Bloomsbury",
                "genres": ["Fantasy"],
                "characters": ["Harry Potter", "Tom Riddle"],
                "series": "Harry Potter",
                "seriesPosition": 2,
            }
        )
        assert record.title == "Harry Potter and the Chamber of Secrets"
        assert record.authors == ["J. K. Rowling"]
        assert record.image_url == "https://static.example.com/cos.jpg"
        assert record.summary == "Harry's second year.\n\nA diary."
        assert record.publication_date == "2 July 1998"
        assert record.publisher == "Bloomsbury"
        assert record.genres == ["Fantasy"]
        assert record.characters == ["Harry Potter", "Tom Riddle"]
        assert record.series_name == "Harry Potter"
        assert record.series_position == 2

    def test_alternate_keys(self) -> None:
        record = parse_fandom_payload(
            {
                "title": "T",
                "authors": ["A", "B"],
                "imageUrl": "https://img/x.jpg",
                "summary": "S",
                "publicationDate": "2001",
                "seriesName": "Saga",
                "positionInSeries": "1/1",
            }
        )
        assert record.authors == ["A", "B"]
        assert record.image_url == "https://img/x.jpg"
        assert record.summary == "S"
        assert record.publication_date == "2001"
        assert record.series_name == "Saga"
        assert record.series_position == "1/1"

    def test_blank_primary_key_falls_through(self) -> None:
        """A blank value under the preferred key does not hide the alternate."""
        record = parse_fandom_payload({"title": "T", "cover_image_url": "", "imageUrl": "u"})
        assert record.image_url == "u"

    def test_single_author_wins_over_list(self) -> None:
        record = parse_fandom_payload({"title": "T", "author": "Solo", "authors": ["X", "Y"]})
        assert record.authors == ["Solo"]

    def test_missing_and_malformed_values(self) -> None:
        record = parse_fandom_payload(
            {"genres": "Fantasy", "characters": {"a": 1}, "seriesPosition": True, "title": 7}
        )
        assert record.title == "7"
        assert record.genres == ["Fantasy"]
        assert record.characters == []
        assert record.series_position is None
        assert record.authors == []

    def test_empty_payload(self) -> None:
        record = parse_fandom_payload({})
        assert record.title is None
        assert record.genres == []


class TestParseGoodreadsPayload:
    """Tests for parse_goodreads_payload."""

    def test_maps_goodreads_keys(self) -> None:
        record = parse_goodreads_payload(
            {
                "bookName": "Elantris",
                "author": ["Brandon Sanderson"],
                "bookSummary": "Elantris was beautiful.",
                "publicationDate": "April 21, 2005",
                "ratings": "120,000",
                "averageRating": 4.17,
                "numberOfPages": 638,
                "language": "English",
                "seriesName": "Elantris",
                "positionInSeries": 1,
            }
        )
        assert record.title == "Elantris"
        assert record.authors == ["Brandon Sanderson"]
        assert record.summary == "Elantris was beautiful."
        assert record.ratings_count == "120,000"
        assert record.average_rating == 4.17
        assert record.page_count == 638
        assert record.language == "English"
        assert record.series_position == 1
