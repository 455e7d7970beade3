import pandas as pd
import pytest

from transform.normalize import (
    REVIEW_COLUMNS,
    canonical_film_key,
    earliest_publication_year,
    normalize_reviews,
    parse_keyword_value,
)
from conftest import make_document


class TestCanonicalFilmKey:

    @pytest.mark.parametrize("title", ["The Notebook", "Notebook, The", "notebook", "  NOTEBOOK "])
    def test_equivalent_titles_share_key(self, title):
        assert canonical_film_key(title) == "notebook"

    def test_leading_and_trailing_articles(self):
        assert canonical_film_key("A Quiet Place") == "quiet place"
        assert canonical_film_key("Quiet Place, A") == "quiet place"

    def test_article_inside_title_is_kept(self):
        assert canonical_film_key("Beauty and the Beast") == "beauty and the beast"
        assert canonical_film_key("Theater Camp") == "theater camp"

    def test_ascii_folding(self):
        assert canonical_film_key("Amélie") == canonical_film_key("Amelie") == "amelie"

    def test_non_string(self):
        assert canonical_film_key(None) == ""
        assert canonical_film_key(float("nan")) == ""


class TestParseKeywordValue:

    def test_movie_keyword(self):
        assert parse_keyword_value("Inception (Movie)") == ("inception", "movie")

    def test_director_keyword(self):
        assert parse_keyword_value("Spielberg, Steven (Director)") == ("spielberg, steven", "director")

    def test_only_final_parenthetical_is_media(self):
        assert parse_keyword_value("Batman (Character) (Movie)") == ("batman (character)", "movie")

    def test_without_parenthetical(self):
        assert parse_keyword_value("Motion Pictures") == ("motion pictures", None)

    def test_missing_value(self):
        assert parse_keyword_value(None) == ("", None)


class TestNormalizeReviews:

    def test_keeps_only_movie_keywords(self, raw_documents):
        reviews = normalize_reviews(raw_documents)
        assert list(reviews.columns) == REVIEW_COLUMNS
        assert reviews["name"].tolist() == ["inception", "notebook"]

    def test_sorted_newest_first(self, raw_documents):
        reviews = normalize_reviews(raw_documents)
        assert reviews["pub_date"].is_monotonic_decreasing
        assert reviews["pub_date"].iloc[0] == pd.Timestamp("2010-07-16 05:00:00")

    def test_headline_fields(self, raw_documents):
        reviews = normalize_reviews(raw_documents)
        row = reviews.iloc[0]
        assert row["headline_main"] == "Inception"
        assert row["headline_print"] == "INCEPTION"
        assert row["web_url"].endswith("inception.html")

    def test_idempotent(self, raw_documents):
        first = normalize_reviews(raw_documents)
        second = normalize_reviews(raw_documents)
        pd.testing.assert_frame_equal(first, second)

    def test_multiple_movie_keywords_expand(self):
        doc = make_document(
            "https://www.example.test/double.html",
            "2015-03-01T05:00:00+0000",
            "Mad Max (Movie)",
            "Mad Max: Fury Road (Movie)",
        )
        reviews = normalize_reviews([doc])
        assert sorted(reviews["name"]) == ["mad max", "mad max: fury road"]
        assert reviews["web_url"].nunique() == 1

    def test_documents_without_keywords(self):
        doc = make_document("https://www.example.test/none.html", "2015-03-01T05:00:00+0000")
        no_key = dict(doc)
        del no_key["keywords"]
        reviews = normalize_reviews([doc, no_key])
        assert reviews.empty
        assert list(reviews.columns) == REVIEW_COLUMNS

    def test_empty_input(self):
        reviews = normalize_reviews([])
        assert reviews.empty
        assert list(reviews.columns) == REVIEW_COLUMNS

    def test_custom_media_type(self, raw_documents):
        reviews = normalize_reviews(raw_documents, media_type="director")
        assert set(reviews["name"]) == {"cassavetes, nick", "nolan, christopher", "spielberg, steven"}


def test_earliest_publication_year(raw_documents):
    assert earliest_publication_year(normalize_reviews(raw_documents)) == 2004
    assert earliest_publication_year(normalize_reviews([])) is None
