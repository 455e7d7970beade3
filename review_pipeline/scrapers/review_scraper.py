# review_pipeline/scrapers/review_scraper.py
import logging
import time
from typing import Callable, Iterable

import pandas as pd
import requests
from bs4 import BeautifulSoup
from utils.http import build_session, get_checked
from utils.retry import PermanentError, RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_SELECTOR = "div.StoryBodyCompanionColumn"


def extract_review_text(html: str, selector: str = DEFAULT_CONTENT_SELECTOR) -> str:
    """Text aller Elemente mit dem Content-Selektor, in Dokumentreihenfolge verbunden.

    Fehlt der Selektor komplett, ist das ein Strukturfehler (PermanentError).
    """
    soup = BeautifulSoup(html, "html.parser")
    elements = soup.select(selector)
    if not elements:
        raise PermanentError(f"Selektor '{selector}' nicht gefunden")
    parts = [el.get_text(" ", strip=True) for el in elements]
    return " ".join(p for p in parts if p)


class ReviewScraper:
    """Lädt Review-Seiten nacheinander und extrahiert den Fließtext.

    Ergebnis hat dieselbe Länge und Reihenfolge wie die Eingabe; terminale
    Fehler ergeben einen leeren String und landen in `failures`.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        content_selector: str = DEFAULT_CONTENT_SELECTOR,
        session: requests.Session | None = None,
        timeout_seconds: float = 30.0,
        pacing_seconds: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.policy = policy
        self.content_selector = content_selector
        self.session = session or build_session()
        self.timeout_seconds = timeout_seconds
        self.pacing_seconds = pacing_seconds
        self._sleep = sleep
        self.failures: list[dict] = []

    def _fetch_text(self, url: str) -> str:
        resp = get_checked(self.session, url, timeout=self.timeout_seconds)
        return extract_review_text(resp.text, self.content_selector)

    def scrape(self, urls: Iterable[str]) -> list[str]:
        self.failures = []
        urls = list(urls)
        texts: list[str] = []
        for i, url in enumerate(urls):
            if not isinstance(url, str) or not url.strip():
                logger.warning(f"Eintrag {i}: keine gültige URL ({url!r}) – überspringe.")
                self.failures.append({"position": i, "url": url, "error": "missing url"})
                texts.append("")
                continue
            if i > 0 and self.pacing_seconds > 0:
                self._sleep(self.pacing_seconds)

            outcome = self.policy.run(self._fetch_text, url, label=url)
            if outcome.succeeded:
                texts.append(outcome.value)
            else:
                self.failures.append({"position": i, "url": url, "error": str(outcome.error)})
                texts.append("")
            if (i + 1) % 25 == 0:
                logger.info(f"{i + 1}/{len(urls)} Review-Seiten verarbeitet.")

        if self.failures:
            logger.warning(f"{len(self.failures)} von {len(urls)} Review-Seiten ohne Text.")
        return texts

    def failures_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.failures, columns=["position", "url", "error"])
