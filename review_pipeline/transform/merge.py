from __future__ import annotations

import logging
from dataclasses import dataclass, field

import pandas as pd
from utils.save_aux_csv import save_aux_csv

logger = logging.getLogger(__name__)

# Katalog kennt nur das Jahr → fester Stichtag für die Datumsdistanz
ASSUMED_RELEASE_MONTH = 12
ASSUMED_RELEASE_DAY = 25

TIE_BREAK_ID_COL = "ID_CATALOG"


@dataclass
class MergeResult:
    merged: pd.DataFrame
    discarded: pd.DataFrame
    counts: dict[str, int] = field(default_factory=dict)


def join_on_name(reviews: pd.DataFrame, catalog: pd.DataFrame) -> pd.DataFrame:
    """Inner-Join auf 'name' (many-to-many, keine weiteren Schlüssel)."""
    return reviews.merge(catalog, on="name", how="inner", sort=False)


def add_date_proximity(joined: pd.DataFrame) -> pd.DataFrame:
    """Ergänzt assumed_release_date (<Jahr>-12-25) und dates_diff (|Δ| in Tagen)."""
    df = joined.copy()
    years = df["release_year"].astype("Int64").astype(str)
    df["assumed_release_date"] = pd.to_datetime(
        years + f"-{ASSUMED_RELEASE_MONTH:02d}-{ASSUMED_RELEASE_DAY:02d}",
        errors="coerce",
    )
    pub_date = pd.to_datetime(df["pub_date"])
    df["dates_diff"] = (pub_date - df["assumed_release_date"]).abs() / pd.Timedelta(days=1)
    return df


def keep_closest_matches(df: pd.DataFrame) -> pd.DataFrame:
    """Je name nur die Zeile(n) mit minimalem dates_diff – Gleichstände bleiben alle erhalten."""
    if df.empty:
        return df
    # fehlende Distanzen (kein Datum) nur als letzte Wahl
    diffs = df["dates_diff"].fillna(float("inf"))
    min_diff = diffs.groupby(df["name"]).transform("min")
    return df[diffs == min_diff]


def drop_exact_duplicates(df: pd.DataFrame) -> pd.DataFrame:
    """Entfernt Zeilen, die in allen Inhaltsspalten identisch sind (ID_*-Spalten ausgenommen)."""
    content_cols = [c for c in df.columns if not str(c).startswith("ID_")]
    if df.empty or not content_cols:
        return df
    return df.drop_duplicates(subset=content_cols, keep="first")


def split_name_duplicates(df: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Behält je name die erste Zeile, Rest wird als 'verworfen' zurückgegeben.

    "Erste" = stabile Sortierung nach (dates_diff, ID_CATALOG), danach
    Ankunftsreihenfolge. Ergebnis behält die ursprüngliche Zeilenreihenfolge.
    """
    sort_cols = [c for c in ("dates_diff", TIE_BREAK_ID_COL) if c in df.columns]
    ordered = df.sort_values(sort_cols, kind="mergesort") if sort_cols else df
    dup_mask = ordered.duplicated(subset=["name"], keep="first")
    kept = ordered[~dup_mask].sort_index()
    discarded = ordered[dup_mask].sort_index()
    return kept, discarded


def resolve_matches(reviews: pd.DataFrame, catalog: pd.DataFrame) -> MergeResult:
    """
    Entity-Resolution zwischen Reviews und Katalog:
      • Equi-Join auf kanonischem name
      • Datumsnähe (pub_date ↔ Jahr-12-25) als Tie-Break
      • exakte Duplikate entfernen
      • verbleibende name-Duplikate: erste Zeile behalten, Rest auditierbar speichern
    Garantie: genau eine Zeile je name, der in beiden Quellen vorkommt.
    """
    counts: dict[str, int] = {
        "reviews": len(reviews),
        "catalog": len(catalog),
    }

    joined = join_on_name(reviews, catalog)
    counts["joined"] = len(joined)
    if joined.empty:
        logger.warning("Join ergab keine gemeinsamen Filmnamen.")
        empty = add_date_proximity(joined)
        counts.update(closest=0, exact_deduplicated=0, discarded_duplicates=0, merged=0)
        return MergeResult(empty, empty.copy(), counts)

    scored = add_date_proximity(joined)
    closest = keep_closest_matches(scored)
    counts["closest"] = len(closest)

    deduped = drop_exact_duplicates(closest)
    counts["exact_deduplicated"] = len(deduped)
    n_exact = len(closest) - len(deduped)
    if n_exact:
        logger.info(f"{n_exact} exakt identische Zeilen entfernt.")

    kept, discarded = split_name_duplicates(deduped)
    counts["discarded_duplicates"] = len(discarded)
    counts["merged"] = len(kept)
    if not discarded.empty:
        logger.warning(
            f"{len(discarded)} Duplikate (gleicher name, gleiche Datumsdistanz) verworfen – "
            "erste Zeile je name behalten."
        )
        save_aux_csv("duplicates", "Resolver", discarded)

    # IDs nach vorne ziehen
    id_cols = [c for c in kept.columns if str(c).startswith("ID_")]
    kept = kept[id_cols + [c for c in kept.columns if c not in id_cols]].reset_index(drop=True)

    logger.info(
        f"Merge abgeschlossen: {counts['joined']} Join-Zeilen → {counts['merged']} eindeutige Filme."
    )
    return MergeResult(kept, discarded.reset_index(drop=True), counts)
