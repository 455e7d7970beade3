import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

CURRENT_YEAR: int = datetime.now().year
YEAR_MIN: int = 1888
YEAR_MAX: int = CURRENT_YEAR + 1
REQUIRED_BASE_COLS: List[str] = ["name"]
YEAR_COLUMN: str = "release_year"
SCORE_COLUMN_RANGES: dict[str, Tuple[float, float]] = {
    "rating": (0, 5),
    "sentiment_vader": (-1, 1),
}

# (Fehlermeldung, Maske der betroffenen Zeilen oder None)
Finding = Tuple[str, Optional[pd.Series]]


def _check_names(df: pd.DataFrame, name: str, unique: bool) -> List[Finding]:
    if "name" not in df.columns:
        return []
    findings: List[Finding] = []
    empty = df["name"].isna() | (df["name"].astype(str).str.strip() == "")
    if empty.any():
        findings.append((f"{name}: {int(empty.sum())} Zeilen ohne 'name'.", empty))
    if unique:
        dupes = df.duplicated(subset=["name"], keep=False)
        if dupes.any():
            findings.append((f"{name}: {int(dupes.sum())} Zeilen sind doppelt hinsichtlich 'name'.", None))
    return findings


def _check_release_year(df: pd.DataFrame, name: str) -> List[Finding]:
    if YEAR_COLUMN not in df.columns:
        return []
    years = pd.to_numeric(df[YEAR_COLUMN], errors="coerce")
    bad = (~years.between(YEAR_MIN, YEAR_MAX)) | years.isna()
    if not bad.any():
        return []
    return [(
        f"{name}: {int(bad.sum())} Zeilen mit ungültigem Jahr (<{YEAR_MIN} oder >{YEAR_MAX} oder NaN) in Spalte '{YEAR_COLUMN}'.",
        bad,
    )]


def _check_review_fields(df: pd.DataFrame, name: str) -> List[Finding]:
    """Review-spezifisch: Datum vorhanden, URL absolut, Datumsdistanz >= 0."""
    findings: List[Finding] = []
    if "pub_date" in df.columns:
        no_date = pd.to_datetime(df["pub_date"], errors="coerce").isna()
        if no_date.any():
            findings.append((f"{name}: {int(no_date.sum())} Zeilen ohne gültiges pub_date.", no_date))
    if "web_url" in df.columns:
        bad_url = ~df["web_url"].astype(str).str.match(r"^https?://")
        if bad_url.any():
            findings.append((f"{name}: {int(bad_url.sum())} Zeilen ohne absolute web_url.", bad_url))
    if "dates_diff" in df.columns:
        negative = pd.to_numeric(df["dates_diff"], errors="coerce") < 0
        if negative.any():
            findings.append((f"{name}: {int(negative.sum())} negative Werte in dates_diff.", negative))
    return findings


def _check_ranges(df: pd.DataFrame, name: str, ranges: dict[str, Tuple[float, float]]) -> List[Finding]:
    findings: List[Finding] = []
    for col, (low, high) in ranges.items():
        if col not in df.columns:
            continue
        if not pd.api.types.is_numeric_dtype(df[col]):
            findings.append((f"{name}: Spalte {col} ist nicht numerisch (dtype={df[col].dtype}).", None))
            continue
        # fehlende Werte sind erlaubt (z.B. Review ohne Text)
        bad = (~df[col].between(low, high)) & df[col].notna()
        if bad.any():
            findings.append((f"{name}: {int(bad.sum())} Werte außerhalb {low}–{high} in {col}.", bad))
    return findings


def validate_dataframe(
    df: pd.DataFrame,
    *,
    required_cols: List[str] | None = None,
    allow_empty: bool = False,
    df_name: str | None = None,
    log_level: int = logging.WARNING,
    custom_range_checks: dict[str, Tuple[float, float]] | None = None,
    unique_name: bool = True,
    error_report_path: str | None = None,
    save_invalid_rows: bool = False,
    invalid_rows_output_path: str = "invalid_rows_found.csv",
) -> Tuple[bool, List[str]]:
    """
    Prüft ein Pipeline-DataFrame (Reviews, Merge-Ergebnis, Scores).

    Returns:
        (ok, Fehlermeldungen). Meldungen werden zusätzlich geloggt und
        optional als Textreport bzw. CSV der betroffenen Zeilen gespeichert.
    """
    name = df_name or "DataFrame"
    findings: List[Finding] = []

    if df.empty and not allow_empty:
        findings.append((f"{name} ist leer.", None))

    missing = set(REQUIRED_BASE_COLS + (required_cols or [])).difference(df.columns)
    if missing:
        findings.append((f"{name}: fehlende Spalten: {', '.join(sorted(missing))}", None))

    findings += _check_names(df, name, unique_name)
    findings += _check_release_year(df, name)
    findings += _check_review_fields(df, name)
    findings += _check_ranges(df, name, custom_range_checks or SCORE_COLUMN_RANGES)

    errors = [msg for msg, _ in findings]
    for msg in errors:
        logging.log(log_level, msg)

    if save_invalid_rows:
        masks = [mask for _, mask in findings if mask is not None]
        invalid_df = df[pd.concat(masks, axis=1).any(axis=1)] if masks else df.head(0)
        try:
            out_path = Path(invalid_rows_output_path)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            invalid_df.to_csv(out_path, index=False)
            logging.info(f"{name}: Fehlerhafte Zeilen gespeichert unter {out_path} (Anzahl: {len(invalid_df)})")
        except OSError as e:
            logging.error(f"{name}: Fehler beim Speichern fehlerhafter Zeilen: {e}")

    if error_report_path and errors:
        try:
            rep_path = Path(error_report_path)
            rep_path.parent.mkdir(parents=True, exist_ok=True)
            rep_path.write_text("\n".join(errors), encoding="utf-8")
            logging.info(f"{name}: Fehlerreport gespeichert unter {rep_path}")
        except OSError as e:
            logging.error(f"{name}: Fehler beim Speichern des Fehlerreports: {e}")

    return len(errors) == 0, errors
