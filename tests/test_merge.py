import pandas as pd
import pytest

from transform.merge import (
    add_date_proximity,
    drop_exact_duplicates,
    join_on_name,
    keep_closest_matches,
    resolve_matches,
    split_name_duplicates,
)
from conftest import catalog_frame, review_frame

URL = "https://www.example.test/review.html"


class TestResolveMatches:

    def test_closest_release_year_wins(self):
        reviews = review_frame([("inception", "2010-12-20", URL)])
        catalog = catalog_frame([(1, "inception", 2010, "a"), (2, "inception", 2011, "b")])

        result = resolve_matches(reviews, catalog)

        assert len(result.merged) == 1
        row = result.merged.iloc[0]
        assert row["release_year"] == 2010
        assert row["dates_diff"] == pytest.approx(5.0)
        assert row["assumed_release_date"] == pd.Timestamp("2010-12-25")

    def test_one_row_per_name(self):
        reviews = review_frame([
            ("inception", "2010-07-16", URL),
            ("notebook", "2004-06-25", URL + "?n"),
            ("unmatched", "2004-06-25", URL + "?u"),
        ])
        catalog = catalog_frame([
            (1, "inception", 2010, "a"),
            (2, "inception", 2010, "b"),
            (3, "notebook", 2004, "c"),
            (4, "notebook", 1990, "d"),
            (5, "other", 2004, "e"),
        ])

        merged = resolve_matches(reviews, catalog).merged

        assert merged["name"].nunique() == len(merged)
        assert sorted(merged["name"]) == ["inception", "notebook"]

    def test_exact_duplicates_removed_without_discard(self):
        reviews = review_frame([("inception", "2010-07-16", URL)])
        catalog = catalog_frame([(1, "inception", 2010, "same"), (2, "inception", 2010, "same")])

        result = resolve_matches(reviews, catalog)

        assert len(result.merged) == 1
        assert result.counts["closest"] == 2
        assert result.counts["exact_deduplicated"] == 1
        assert result.counts["discarded_duplicates"] == 0

    def test_tie_keeps_lowest_catalog_id(self, aux_dirs):
        reviews = review_frame([("inception", "2010-07-16", URL)])
        catalog = catalog_frame([(7, "inception", 2010, "later id"), (3, "inception", 2010, "lower id")])

        result = resolve_matches(reviews, catalog)

        assert result.merged["ID_CATALOG"].tolist() == [3]
        assert result.merged["tagline"].tolist() == ["lower id"]
        assert result.counts["discarded_duplicates"] == 1
        assert result.discarded["ID_CATALOG"].tolist() == [7]
        audit = pd.read_csv(aux_dirs / "duplicates" / "Resolver_duplicates.csv")
        assert audit["tagline"].tolist() == ["later id"]

    def test_duplicate_reviews_collapse_to_first(self):
        reviews = review_frame([
            ("inception", "2010-12-20", URL + "?first"),
            ("inception", "2010-12-30", URL + "?second"),
        ])
        catalog = catalog_frame([(1, "inception", 2010, "a")])

        merged = resolve_matches(reviews, catalog).merged

        # beide 5 Tage entfernt → Ankunftsreihenfolge entscheidet
        assert merged["web_url"].tolist() == [URL + "?first"]

    def test_id_columns_first(self):
        reviews = review_frame([("inception", "2010-07-16", URL)])
        catalog = catalog_frame([(1, "inception", 2010, "a")])
        merged = resolve_matches(reviews, catalog).merged
        assert merged.columns[0] == "ID_CATALOG"
        assert {"dates_diff", "assumed_release_date", "rating", "web_url"} <= set(merged.columns)

    def test_no_common_names(self):
        reviews = review_frame([("inception", "2010-07-16", URL)])
        catalog = catalog_frame([(1, "notebook", 2004, "a")])

        result = resolve_matches(reviews, catalog)

        assert result.merged.empty
        assert result.counts["joined"] == 0
        assert result.counts["merged"] == 0


class TestResolverSteps:

    def test_join_is_many_to_many(self):
        reviews = review_frame([("x", "2010-01-01", URL), ("x", "2011-01-01", URL)])
        catalog = catalog_frame([(1, "x", 2010, "a"), (2, "x", 2011, "b")])
        assert len(join_on_name(reviews, catalog)) == 4

    def test_ties_survive_closest_step(self):
        reviews = review_frame([("x", "2010-12-25", URL)])
        catalog = catalog_frame([(1, "x", 2010, "a"), (2, "x", 2010, "b"), (3, "x", 2012, "c")])
        closest = keep_closest_matches(add_date_proximity(join_on_name(reviews, catalog)))
        assert sorted(closest["ID_CATALOG"]) == [1, 2]

    def test_drop_exact_duplicates(self):
        row = {"name": "x", "pub_date": pd.Timestamp("2010-01-01"), "dates_diff": 3.0}
        df = pd.DataFrame([row, row])
        assert len(drop_exact_duplicates(df)) == 1

    def test_split_name_duplicates_preserves_order(self):
        df = pd.DataFrame({
            "name": ["b", "a", "b"],
            "dates_diff": [1.0, 2.0, 1.0],
            "ID_CATALOG": [9, 1, 4],
        })
        kept, discarded = split_name_duplicates(df)
        assert kept["name"].tolist() == ["a", "b"]
        assert kept["ID_CATALOG"].tolist() == [1, 4]
        assert discarded["ID_CATALOG"].tolist() == [9]
