import argparse
import logging
import os
import time
from pathlib import Path

import pandas as pd
import yaml

# Adapter-Importe
from adapters.adapters.article_search_adapter import ArticleSearchAdapter
from adapters.adapters.catalog_adapter import CatalogAdapter

# Transformations-Importe
from transform.merge import resolve_matches
from transform.normalize import earliest_publication_year

# Scraping / Sentiment / Analyse
from scrapers.review_scraper import ReviewScraper
from sentiment.lexicon_scorer import SentimentScorer, load_lexicon, load_stop_words
from analysis.sentiment_report import generate_merge_report, write_sentiment_report

# Loader-Importe
from loaders.checkpoint import StageCheckpoint
from loaders.csv_loader import CsvLoader
from utils.basic_validator import validate_dataframe
from utils.http import DEFAULT_USER_AGENT, build_session
from utils.retry import PipelineHttpError, RetryPolicy
from utils.save_aux_csv import configure_aux_dirs, get_aux_dir, save_aux_csv


class ReviewPipeline:
    """
    Orchestriert die Review-Pipeline: API-Abruf → Normalisierung → Katalog →
    Entity-Resolution → Scraping → Sentiment → Bericht.

    Netzwerkstufen werden als Checkpoint gespeichert und bei erneutem Lauf
    (gleiche Konfiguration) übersprungen.
    """

    def __init__(self, config_filename: str | Path = 'config.yaml', sleep=None, session=None):
        """
        Initialisiert die Pipeline.

        Liest die Konfigurationsdatei ein und initialisiert das Logging.

        Args:
            config_filename: YAML-Konfigurationsdatei, absolut oder relativ
                             zum Speicherort dieses Skripts.
            sleep: optionale Sleep-Funktion (Tests), Standard time.sleep.
            session: optionale requests.Session für alle HTTP-Aufrufe.

        Raises:
            FileNotFoundError: Wenn die Konfigurationsdatei nicht gefunden wird.
            yaml.YAMLError: Wenn die Konfigurationsdatei nicht gültig ist.
        """
        self.script_dir: Path = Path(__file__).resolve().parent
        config_path = Path(config_filename)
        if not config_path.is_absolute():
            config_path = self.script_dir / config_path

        if not config_path.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                self.config: dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logging.error(
                f"Fehler beim Parsen der Konfigurationsdatei {config_path}: {e}"
            )
            raise

        if self.config is None:  # yaml.safe_load gibt bei leerer Datei None zurück
            self.config = {}
            logging.warning(
                f"Konfigurationsdatei {config_path} ist leer oder enthält keine gültige YAML-Struktur."
            )
        self.config_dir: Path = config_path.parent

        log_config: dict = self.config.get('logging', {})
        level_name = log_config.get('level', 'INFO').upper()
        level_value = getattr(logging, level_name, logging.INFO)
        logging.basicConfig(
            level=level_value,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S')
        logging.getLogger().setLevel(level_value)
        self.logger = logging.getLogger(__name__)

        self._sleep = sleep or time.sleep
        self.session = session or build_session(
            self.config.get("scraper", {}).get("user_agent", DEFAULT_USER_AGENT))
        self.counts: dict[str, int] = {}

        aux_dirs = self.config.get("aux_output_dirs", {})
        configure_aux_dirs({kind: self._resolve_path(path) for kind, path in aux_dirs.items()})
        self.reports_dir: Path = self._resolve_path(
            self.config.get("output", {}).get("reports_dir", "data/reports"))
        self.reports_dir.mkdir(parents=True, exist_ok=True)

    def _resolve_path(self, path_value: str | Path) -> Path:
        """
        Konvertiert einen Pfadwert aus der Konfiguration in ein absolutes Path-Objekt.

        Relative Pfade werden relativ zum Verzeichnis der Konfigurationsdatei aufgelöst.

        Raises:
            ValueError: Wenn der path_value weder ein String noch ein Path-Objekt ist.
        """
        if isinstance(path_value, Path):
            path_obj = path_value
        elif isinstance(path_value, str):
            path_obj = Path(path_value)
        else:
            self.logger.error(
                f"Ungültiger Pfadwert in Config: {path_value} (Typ: {type(path_value)})"
            )
            raise ValueError(
                f"Pfadwert muss ein String oder Path-Objekt sein: {path_value}")

        if path_obj.is_absolute():
            return path_obj
        return (self.config_dir / path_obj).resolve()

    def _retry_policy(self) -> RetryPolicy:
        retry_cfg = self.config.get("retry", {})
        return RetryPolicy(
            delay_seconds=float(retry_cfg.get("delay_seconds", 12)),
            max_attempts=retry_cfg.get("max_attempts", 20),
            sleep=self._sleep,
        )

    def _checkpoint(self, stage: str, params: dict) -> StageCheckpoint:
        directory = self._resolve_path(
            self.config.get("checkpoints", {}).get("directory", "data/checkpoints"))
        return StageCheckpoint(directory, stage, params)

    def _pacing_seconds(self) -> float:
        retry_cfg = self.config.get("retry", {})
        return float(retry_cfg.get("pacing_seconds", retry_cfg.get("delay_seconds", 12)))

    # ------------------------------------------------------------ #
    # Stufe 1: API-Abruf (Checkpoint)                              #
    # ------------------------------------------------------------ #
    def _fetch_raw_documents(self) -> list[dict]:
        api_cfg = dict(self.config.get("article_search", {}))
        checkpoint = self._checkpoint("raw_documents", {
            key: api_cfg.get(key) for key in ("endpoint", "filter", "sort", "page_count")
        })
        if checkpoint.exists():
            return checkpoint.load()

        api_key_env = api_cfg.get("api_key_env", "NYT_API_KEY")
        api_cfg["api_key"] = os.getenv(api_key_env, "")
        api_cfg["page_delay_seconds"] = self._pacing_seconds()
        adapter = ArticleSearchAdapter(
            api_cfg, self._retry_policy(), session=self.session, sleep=self._sleep)

        self.logger.info(
            f"Starte API-Abruf: {api_cfg.get('page_count')} Seiten, Filter {api_cfg.get('filter')!r}")
        raw_documents = adapter.extract()
        checkpoint.save(raw_documents)
        return raw_documents

    # ------------------------------------------------------------ #
    # Stufe 2 + 3: Normalisierung + Katalog                        #
    # ------------------------------------------------------------ #
    def _normalize_reviews(self, raw_documents: list[dict]) -> pd.DataFrame:
        adapter = ArticleSearchAdapter(
            self.config.get("article_search", {}), self._retry_policy(), session=self.session)
        return adapter.transform(raw_documents)

    def _load_catalog(self, min_year: int | None) -> pd.DataFrame:
        catalog_cfg = dict(self.config.get("catalog", {}))
        if "file_path" not in catalog_cfg:
            raise ValueError("catalog.file_path fehlt in der Konfiguration.")
        file_path = catalog_cfg["file_path"]
        # URLs direkt an pandas durchreichen, lokale Pfade auflösen
        if not str(file_path).startswith(("http://", "https://")):
            catalog_cfg["file_path"] = self._resolve_path(file_path)
        catalog_cfg["min_year"] = min_year

        adapter = CatalogAdapter(catalog_cfg)
        catalog = adapter.load()
        self.logger.info(f"Katalog geladen: {len(catalog)} Zeilen ab Jahr {None if min_year is None else min_year - 1}.")
        return catalog

    # ------------------------------------------------------------ #
    # Stufe 5: Scraping (Checkpoint)                               #
    # ------------------------------------------------------------ #
    def _scrape_reviews(self, merged: pd.DataFrame) -> pd.DataFrame:
        scraper_cfg = self.config.get("scraper", {})
        selector = scraper_cfg.get("content_selector", "div.StoryBodyCompanionColumn")
        urls = merged["web_url"].tolist()
        checkpoint = self._checkpoint("review_texts", {"urls": urls, "selector": selector})

        if checkpoint.exists():
            texts = checkpoint.load()
        else:
            scraper = ReviewScraper(
                self._retry_policy(),
                content_selector=selector,
                session=self.session,
                timeout_seconds=float(scraper_cfg.get("timeout_seconds", 30)),
                pacing_seconds=self._pacing_seconds(),
                sleep=self._sleep,
            )
            self.logger.info(f"Starte Scraping von {len(urls)} Review-Seiten...")
            texts = scraper.scrape(urls)
            if scraper.failures:
                save_aux_csv("scrape_failures", "ReviewScraper", scraper.failures_frame())
            checkpoint.save(texts)

        scraped = merged.copy()
        scraped["review_text"] = texts
        self.counts["scrape_failures"] = int((scraped["review_text"] == "").sum())
        return scraped

    # ------------------------------------------------------------ #
    # Stufe 6: Sentiment                                           #
    # ------------------------------------------------------------ #
    def _build_scorer(self) -> SentimentScorer:
        sentiment_cfg = self.config.get("sentiment", {})
        lexicons: dict[str, dict[str, float]] = {}
        for lex_name, lex_cfg in (sentiment_cfg.get("lexicons") or {}).items():
            lex_path = self._resolve_path(lex_cfg["path"])
            if not lex_path.exists():
                self.logger.warning(
                    f"Lexikon '{lex_name}' nicht gefunden ({lex_path}) – Spalte bleibt leer.")
                lexicons[lex_name] = {}
                continue
            lexicons[lex_name] = load_lexicon(
                lex_path,
                sep=lex_cfg.get("sep", "\t"),
                word_column=lex_cfg.get("word_column", 0),
                score_column=lex_cfg.get("score_column", 1),
                header=lex_cfg.get("header"),
            )
        stop_words = load_stop_words(sentiment_cfg.get("stopwords_language", "english"))
        return SentimentScorer(lexicons, stop_words=stop_words, use_vader=sentiment_cfg.get("use_vader", True))

    def _score_reviews(self, scraped: pd.DataFrame) -> tuple[pd.DataFrame, list[str]]:
        scorer = self._build_scorer()
        scores = scorer.score(scraped["review_text"].tolist())
        scored = pd.concat([scraped.reset_index(drop=True), scores], axis=1)
        return scored, scorer.columns

    # ------------------------------------------------------------ #
    # Ausgabe                                                      #
    # ------------------------------------------------------------ #
    def _save_outputs(self, merged: pd.DataFrame, scored: pd.DataFrame, score_cols: list[str]) -> None:
        output_cfg = self.config.get("output", {})
        merged_path = output_cfg.get("merged_csv_path")
        if merged_path:
            CsvLoader(self._resolve_path(merged_path)).load(merged)

        scored_path = self._resolve_path(output_cfg.get("scored_csv_path", "data/processed/scored_reviews.csv"))
        ok, errs = validate_dataframe(
            scored,
            df_name="Scored-DF",
            required_cols=["review_text"] + score_cols,
            error_report_path=str(self.reports_dir / "Scored-DF_report.txt"),
            save_invalid_rows=True,
            invalid_rows_output_path=str(self.reports_dir / "Scored-DF_invalid_rows.csv"))
        if not ok:
            self.logger.warning(f"Validation-Probleme im Scored-DF: {errs}")
        CsvLoader(scored_path).load(scored)

        write_sentiment_report(
            scored, score_cols, self.reports_dir,
            outcome_col=output_cfg.get("outcome_column", "rating"))
        generate_merge_report(self.counts, self.reports_dir / "merge_report.txt")

    def run(self) -> pd.DataFrame | None:
        """Führt die gesamte Pipeline aus und gibt das Ergebnis-DataFrame zurück."""
        self.logger.info("Starte Review-Pipeline...")

        try:
            raw_documents = self._fetch_raw_documents()
        except PipelineHttpError as e:
            self.logger.error(f"API-Abruf fehlgeschlagen: {e}. Pipeline wird beendet.", exc_info=True)
            return None
        self.counts["raw_documents"] = len(raw_documents)

        reviews = self._normalize_reviews(raw_documents)
        if reviews.empty:
            self.logger.error("Keine Review-Zeilen nach der Normalisierung. Pipeline wird beendet.")
            return None

        min_year = earliest_publication_year(reviews)
        catalog = self._load_catalog(min_year)
        if catalog.empty:
            self.logger.error("Katalog lieferte keine Daten im Zeitfenster. Pipeline wird beendet.")
            return None

        result = resolve_matches(reviews, catalog)
        self.counts.update(result.counts)
        merged = result.merged
        if merged.empty:
            self.logger.error("Merge-Prozess lieferte keine Daten. Pipeline wird beendet.")
            return None
        ok, errs = validate_dataframe(
            merged,
            df_name="Merged-DF",
            required_cols=["pub_date", "web_url", "release_year", "dates_diff"],
            custom_range_checks={"rating": (0, 5)},
            error_report_path=str(self.reports_dir / "Merged-DF_report.txt"),
            save_invalid_rows=True,
            invalid_rows_output_path=str(get_aux_dir("invalid") / "Merged-DF_invalid.csv"))
        if not ok:
            # Datenqualität: melden und auditierbar ablegen, Lauf geht weiter
            self.logger.warning(f"Validation-Probleme im Merged-DF: {errs}")

        scraped = self._scrape_reviews(merged)
        scored, score_cols = self._score_reviews(scraped)
        self._save_outputs(merged, scored, score_cols)

        self.logger.info(
            f"Review-Pipeline abgeschlossen: {len(scored)} Filme mit Sentiment-Scores.")
        return scored


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Review-Sentiment-Pipeline")
    parser.add_argument("--config", default=None,
                        help="Pfad zur YAML-Konfiguration, relativ zum aktuellen Verzeichnis "
                             "(Standard: config.yaml neben diesem Skript)")
    args = parser.parse_args(argv)

    # explizite Pfade gelten relativ zum Aufrufer, nur der Standard liegt neben dem Skript
    config_filename = Path(args.config).resolve() if args.config else 'config.yaml'
    pipeline = ReviewPipeline(config_filename=config_filename)
    pipeline.run()


if __name__ == '__main__':
    main()
