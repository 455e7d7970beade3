# review_pipeline/adapters/adapters/catalog_adapter.py
import logging
from typing import List

import pandas as pd
from adapters.adapters.base_adapter import BaseAdapter
from transform.normalize import canonical_film_key

logger = logging.getLogger(__name__)

CATALOG_COLUMNS = [
    "ID_CATALOG",
    "name",
    "release_year",
    "duration_minutes",
    "rating",
    "tagline",
    "description",
]


class CatalogAdapter(BaseAdapter):
    """Adapter für den Film-Katalog (CSV: name, date, minute, rating, tagline, description, id).

    • name             str, kanonischer Schlüssel (gleiche Funktion wie Reviews)
    • release_year     Int64, >= min_year - 1
    • duration_minutes float, nie NA
    • rating           float (Katalog-Skala, z.B. 0.5-5)
    • ID_CATALOG       Katalog-id, nur Herkunft + Tie-Break
    """

    def extract(self) -> pd.DataFrame:
        return pd.read_csv(self.config["file_path"], on_bad_lines="skip")

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.copy()
        min_year = self.config.get("min_year")
        invalid_rows: List[dict] = []

        # ---------- Spalten vereinheitlichen ---------------------------
        df["ID_CATALOG"] = (
            pd.to_numeric(df["id"], errors="coerce").astype("Int64")
            if "id" in df.columns
            else pd.array(range(1, len(df) + 1), dtype="Int64")
        )
        df["name"] = df["name"].apply(canonical_film_key)
        df["release_year"] = pd.to_numeric(df["date"], errors="coerce").astype("Int64")
        df["duration_minutes"] = pd.to_numeric(df["minute"], errors="coerce")
        df["rating"] = pd.to_numeric(df["rating"], errors="coerce")
        for col in ("tagline", "description"):
            if col not in df.columns:
                df[col] = pd.NA

        # ---------- Pflichtfelder prüfen -------------------------------
        missing_duration = df["duration_minutes"].isna()
        empty_name = df["name"] == ""
        for reason, mask in (("missing duration", missing_duration), ("empty name", empty_name & ~missing_duration)):
            for _, row in df.loc[mask, CATALOG_COLUMNS].iterrows():
                invalid_rows.append({**row.to_dict(), "reason": reason})
        df = df.loc[~missing_duration & ~empty_name]

        # ---------- Zeitfenster ----------------------------------------
        if min_year is not None:
            in_window = df["release_year"].ge(int(min_year) - 1).fillna(False).astype(bool)
            n_out = int((~in_window).sum())
            df = df.loc[in_window]
            logger.info(
                f"CatalogAdapter: {n_out} Zeilen vor {int(min_year) - 1} (oder ohne Jahr) entfernt."
            )

        self._save_rejects("invalid", invalid_rows)
        if invalid_rows:
            logger.warning(f"CatalogAdapter: {len(invalid_rows)} ungültige Zeilen verworfen.")

        return df[CATALOG_COLUMNS].reset_index(drop=True)


def load_catalog(source, min_year: int | None) -> pd.DataFrame:
    """Kurzform: Katalog laden, normalisieren und auf das Zeitfenster filtern."""
    adapter = CatalogAdapter({"file_path": source, "min_year": min_year})
    return adapter.load()
