"""Gemeinsame Fixtures: Aux-Verzeichnisse im tmp_path, Beispiel-Dokumente."""

import pandas as pd
import pytest

from utils.save_aux_csv import _AUX_DIRS, configure_aux_dirs


@pytest.fixture(autouse=True)
def aux_dirs(tmp_path):
    original = dict(_AUX_DIRS)
    target = tmp_path / "aux"
    configure_aux_dirs({
        "invalid": target / "invalid",
        "duplicates": target / "duplicates",
        "scrape_failures": target / "scrape_failures",
    })
    yield target
    _AUX_DIRS.clear()
    _AUX_DIRS.update(original)


def make_document(web_url, pub_date, *keyword_values, headline="Review"):
    return {
        "abstract": f"Abstract for {headline}",
        "web_url": web_url,
        "pub_date": pub_date,
        "document_type": "article",
        "headline": {"main": headline, "print_headline": headline.upper(), "kicker": None},
        "keywords": [
            {"name": "subject", "value": value, "rank": i + 1, "major": "N"}
            for i, value in enumerate(keyword_values)
        ],
    }


@pytest.fixture
def raw_documents():
    return [
        make_document(
            "https://www.example.test/2004/06/25/movies/notebook.html",
            "2004-06-25T05:00:00+0000",
            "Notebook, The (Movie)",
            "Cassavetes, Nick (Director)",
            headline="Notebook",
        ),
        make_document(
            "https://www.example.test/2010/07/16/movies/inception.html",
            "2010-07-16T05:00:00+0000",
            "Inception (Movie)",
            "Nolan, Christopher (Director)",
            headline="Inception",
        ),
        make_document(
            "https://www.example.test/2010/08/01/movies/festival.html",
            "2010-08-01T05:00:00+0000",
            "Spielberg, Steven (Director)",
            headline="Festival",
        ),
    ]


def review_frame(rows):
    """ReviewRecords aus (name, pub_date, web_url)-Tupeln."""
    df = pd.DataFrame(rows, columns=["name", "pub_date", "web_url"])
    df["pub_date"] = pd.to_datetime(df["pub_date"])
    df["abstract"] = "abstract"
    df["headline_main"] = "headline"
    df["headline_print"] = "HEADLINE"
    return df


def catalog_frame(rows):
    """CatalogRecords aus (ID_CATALOG, name, release_year, tagline)-Tupeln."""
    df = pd.DataFrame(rows, columns=["ID_CATALOG", "name", "release_year", "tagline"])
    df["release_year"] = df["release_year"].astype("Int64")
    df["duration_minutes"] = 120.0
    df["rating"] = 3.5
    df["description"] = "description"
    return df[["ID_CATALOG", "name", "release_year", "duration_minutes", "rating", "tagline", "description"]]
