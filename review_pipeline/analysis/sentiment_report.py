# review_pipeline/analysis/sentiment_report.py
import logging
from pathlib import Path

import numpy as np
import pandas as pd

STAT_KEYS = ['mean', 'std', 'min', 'max', 'median', 'count']


def get_score_statistics(df: pd.DataFrame, score_cols_map: dict) -> pd.DataFrame:
    """
    Berechnet deskriptive Statistiken für angegebene Score-Spalten.
    Args:
        df: DataFrame, das die Score-Spalten enthält.
        score_cols_map: Dictionary {'Spaltenname_im_df': 'Anzeigename_im_Bericht'}
    Returns:
        DataFrame mit Statistiken (eine Zeile je Spalte).
    """
    stats = {}
    for col_name, display_name in score_cols_map.items():
        if col_name in df.columns:
            series = pd.to_numeric(df[col_name], errors="coerce").dropna()
            if not series.empty:
                stats[display_name] = {
                    'mean': series.mean(),
                    'std': series.std(),
                    'min': series.min(),
                    'max': series.max(),
                    'median': series.median(),
                    'count': series.count()
                }
            else:
                stats[display_name] = {k: np.nan for k in STAT_KEYS}
        else:
            logging.warning(f"Statistik-Spalte '{col_name}' nicht im DataFrame gefunden.")
    return pd.DataFrame(stats, index=STAT_KEYS).T.round(4)


def correlate_with_outcome(
    df: pd.DataFrame,
    score_cols: list[str],
    outcome_col: str = "rating",
    method: str = "pearson",
) -> pd.DataFrame:
    """Korrelation jeder Score-Spalte mit der Zielgröße (paarweise ohne NaN)."""
    rows = []
    for col in score_cols:
        if col not in df.columns or outcome_col not in df.columns:
            logging.warning(f"Korrelation: Spalte '{col}' oder '{outcome_col}' fehlt.")
            continue
        pair = df[[col, outcome_col]].apply(pd.to_numeric, errors="coerce").dropna()
        corr = pair[col].corr(pair[outcome_col], method=method) if len(pair) >= 2 else np.nan
        rows.append({"score": col, "outcome": outcome_col, "method": method, "n": len(pair), "corr": corr})
    return pd.DataFrame(rows, columns=["score", "outcome", "method", "n", "corr"])


def generate_merge_report(counts: dict[str, int], report_path: Path) -> None:
    """Schreibt die Zeilenzahlen je Stufe als Textbericht."""
    labels = {
        "raw_documents": "API-Dokumente (roh)",
        "reviews": "Review-Zeilen nach Medientyp-Filter",
        "catalog": "Katalog-Zeilen im Zeitfenster",
        "joined": "Zeilen nach Join auf name",
        "closest": "Zeilen nach Datumsnähe-Auswahl",
        "exact_deduplicated": "Zeilen nach Entfernen exakter Duplikate",
        "discarded_duplicates": "verworfene name-Duplikate",
        "merged": "eindeutige Filme im Ergebnis",
        "scrape_failures": "Review-Seiten ohne Text",
    }
    report_lines = [
        "======================================",
        "          Merge-Bericht               ",
        "======================================",
        f"Datum der Analyse: {pd.Timestamp.now().strftime('%Y-%m-%d %H:%M:%S')}\n",
    ]
    for key, value in counts.items():
        report_lines.append(f"  - {labels.get(key, key)}: {value}")

    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text("\n".join(report_lines) + "\n", encoding="utf-8")
    logging.info(f"Merge-Bericht gespeichert unter: {report_path}")


def write_sentiment_report(
    scored: pd.DataFrame,
    score_cols: list[str],
    output_dir: Path,
    outcome_col: str = "rating",
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Statistiken + Korrelationen als CSV ablegen und zurückgeben."""
    output_dir.mkdir(parents=True, exist_ok=True)

    cols_map = {col: col for col in score_cols + [outcome_col]}
    stats_df = get_score_statistics(scored, cols_map)
    stats_df.to_csv(output_dir / "stats_sentiment_scores.csv")
    logging.info(f"Statistiken der Sentiment-Scores gespeichert. Inhalt:\n{stats_df}")

    corr_df = correlate_with_outcome(scored, score_cols, outcome_col)
    corr_df.to_csv(output_dir / "corr_sentiment_vs_outcome.csv", index=False)
    logging.info(f"Korrelationen mit '{outcome_col}':\n{corr_df}")
    return stats_df, corr_df
