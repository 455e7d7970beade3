"""Lexikon-basierte Sentiment-Scores je Dokument (+ VADER-Compound)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping

import nltk
import numpy as np
import pandas as pd
from nltk.corpus import stopwords
from nltk.tokenize import RegexpTokenizer
from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

logger = logging.getLogger(__name__)

VADER_COLUMN = "sentiment_vader"

_tokenizer = RegexpTokenizer(r"[a-z]+(?:'[a-z]+)?")


def load_stop_words(language: str = "english") -> set[str]:
    try:
        return set(stopwords.words(language))
    except LookupError:
        nltk.download("stopwords", quiet=True)
        return set(stopwords.words(language))


def load_lexicon(
    path: str | Path,
    *,
    sep: str = "\t",
    word_column: int | str = 0,
    score_column: int | str = 1,
    header: int | None = None,
) -> dict[str, float]:
    """Liest eine Wort→Polarität-Tabelle (z.B. AFINN: 'wort<TAB>score').

    Einträge ohne numerischen Score werden ignoriert.
    """
    table = pd.read_csv(path, sep=sep, header=header, quoting=3, keep_default_na=False, na_values=[""])
    words = table[word_column].astype(str).str.strip().str.lower()
    scores = pd.to_numeric(table[score_column], errors="coerce")
    valid = scores.notna() & (words != "")
    lexicon = dict(zip(words[valid], scores[valid].astype(float)))
    logger.info(f"Lexikon {Path(path).name}: {len(lexicon)} Einträge geladen.")
    return lexicon


def tokenize(text: str, stop_words: set[str] | frozenset[str] = frozenset()) -> list[str]:
    """Kleingeschriebene Wort-Tokens ohne Stoppwörter."""
    if not isinstance(text, str):
        return []
    return [tok for tok in _tokenizer.tokenize(text.lower()) if tok not in stop_words]


def lexicon_mean(tokens: Iterable[str], lexicon: Mapping[str, float]) -> float | None:
    """Mittelwert über Tokens MIT Lexikoneintrag; unbekannte Tokens zählen nicht mit."""
    values = [lexicon[tok] for tok in tokens if tok in lexicon]
    if not values:
        return None
    return float(np.mean(values))


class SentimentScorer:
    def __init__(
        self,
        lexicons: Mapping[str, Mapping[str, float]],
        stop_words: set[str] | None = None,
        use_vader: bool = True,
        analyzer: SentimentIntensityAnalyzer | None = None,
    ):
        self.lexicons = dict(lexicons)
        self.stop_words = load_stop_words() if stop_words is None else set(stop_words)
        self.analyzer = (analyzer or SentimentIntensityAnalyzer()) if use_vader else None

    @property
    def columns(self) -> list[str]:
        cols = [f"sentiment_{name}" for name in self.lexicons]
        if self.analyzer is not None:
            cols.append(VADER_COLUMN)
        return cols

    def score_document(self, text: str) -> dict[str, float | None]:
        scores: dict[str, float | None] = dict.fromkeys(self.columns)
        if not isinstance(text, str) or not text.strip():
            return scores
        tokens = tokenize(text, self.stop_words)
        for name, lexicon in self.lexicons.items():
            scores[f"sentiment_{name}"] = lexicon_mean(tokens, lexicon)
        if self.analyzer is not None:
            # VADER arbeitet auf dem Rohtext (eigene Tokenisierung/Negation)
            scores[VADER_COLUMN] = float(self.analyzer.polarity_scores(text)["compound"])
        return scores

    def score(self, documents: Iterable[str]) -> pd.DataFrame:
        rows = [self.score_document(doc) for doc in documents]
        return pd.DataFrame(rows, columns=self.columns, dtype="float64")


def score_documents(
    documents: Iterable[str],
    lexicons: Mapping[str, Mapping[str, float]],
    **kwargs,
) -> pd.DataFrame:
    return SentimentScorer(lexicons, **kwargs).score(documents)
