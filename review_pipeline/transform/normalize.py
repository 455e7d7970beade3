import re

import pandas as pd
from unidecode import unidecode

TARGET_MEDIA_TYPE = "movie"

# "Inception (Movie)" → name="Inception", media="Movie"
_KEYWORD_PATTERN = re.compile(r"^(?P<name>.*?)\s*\((?P<media>[^()]*)\)\s*$")

# Reihenfolge ist relevant: jede Regel wird unabhängig nacheinander angewendet
_ARTICLE_PATTERNS = (
	re.compile(r"^the\s+"),
	re.compile(r"^a\s+"),
	re.compile(r",\s*the$"),
	re.compile(r",\s*a$"),
)

REVIEW_COLUMNS = [
	"name",
	"pub_date",
	"web_url",
	"abstract",
	"headline_main",
	"headline_print",
]


def canonical_film_key(title: str) -> str:
	"""Kanonischer Matching-Schlüssel für Filmtitel.

	Wird von BEIDEN Quellen (Review-API und Katalog) verwendet, damit
	gleiche Filme byte-identische Schlüssel erhalten.
	"""
	if not isinstance(title, str):
		return ""
	# 1) ASCII + lower
	t = unidecode(title).lower()
	# 2) Spaces kollabieren + trimmen
	t = re.sub(r"\s+", " ", t).strip()
	# 3) führende/nachgestellte Artikel entfernen
	for pattern in _ARTICLE_PATTERNS:
		t = pattern.sub("", t).strip()
	return t


def parse_keyword_value(value) -> tuple[str, str | None]:
	"""Zerlegt einen Keyword-Wert in (kanonischer Name, Medientyp).

	Ohne abschließende Klammer gibt es keinen Medientyp (None).
	"""
	if not isinstance(value, str) or not value.strip():
		return "", None
	match = _KEYWORD_PATTERN.match(value.strip())
	if match is None:
		return canonical_film_key(value), None
	return canonical_film_key(match.group("name")), match.group("media").strip().lower()


def _keyword_value(keyword) -> str | None:
	if isinstance(keyword, dict):
		return keyword.get("value")
	return None


def normalize_reviews(raw_records: list[dict], media_type: str = TARGET_MEDIA_TYPE) -> pd.DataFrame:
	"""Flacht API-Dokumente ab und erzeugt eine Zeile je Film-Keyword.

	• Keywords werden "explodiert" (Dokumente ohne Keywords behalten eine Zeile)
	• Medientyp = Inhalt der letzten Klammer, Name = Präfix davor
	• nur Zeilen mit dem Ziel-Medientyp bleiben erhalten
	• Sortierung: neueste Veröffentlichung zuerst
	"""
	if not raw_records:
		return pd.DataFrame(columns=REVIEW_COLUMNS)

	df = pd.json_normalize(raw_records, sep="_")

	# ---------- Keywords explodieren (outer-Semantik) ---------------
	if "keywords" not in df.columns:
		df["keywords"] = None
	df["keywords"] = df["keywords"].apply(
		lambda kws: kws if isinstance(kws, list) and kws else [None]
	)
	exploded = df.explode("keywords", ignore_index=True)

	# ---------- Name + Medientyp extrahieren ------------------------
	parsed = exploded["keywords"].apply(_keyword_value).apply(parse_keyword_value)
	exploded["name"] = parsed.str[0]
	exploded["media"] = parsed.str[1]

	# ---------- Filter auf Ziel-Medientyp ---------------------------
	mask = (exploded["media"] == media_type) & (exploded["name"] != "")
	reviews = exploded.loc[mask].copy()

	if "pub_date" not in reviews.columns:
		reviews["pub_date"] = None
	reviews["pub_date"] = pd.to_datetime(
		reviews["pub_date"], utc=True, errors="coerce", format="ISO8601"
	).dt.tz_localize(None)
	if "headline_print_headline" in reviews.columns:
		reviews = reviews.rename(columns={"headline_print_headline": "headline_print"})
	for col in REVIEW_COLUMNS:
		if col not in reviews.columns:
			reviews[col] = pd.NA

	# stabile Sortierung, damit wiederholte Läufe identische Reihenfolgen liefern
	reviews = reviews.sort_values("pub_date", ascending=False, kind="mergesort")
	return reviews[REVIEW_COLUMNS].reset_index(drop=True)


def earliest_publication_year(reviews: pd.DataFrame) -> int | None:
	"""Kalenderjahr der frühesten Veröffentlichung (None bei leeren Daten)."""
	if reviews.empty or "pub_date" not in reviews.columns:
		return None
	earliest = reviews["pub_date"].min()
	if pd.isna(earliest):
		return None
	return int(earliest.year)
