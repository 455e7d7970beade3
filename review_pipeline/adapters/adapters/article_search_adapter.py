# review_pipeline/adapters/adapters/article_search_adapter.py
import logging
import time
from typing import Any, Callable

import pandas as pd
import requests
from adapters.adapters.base_adapter import BaseAdapter
from transform.normalize import TARGET_MEDIA_TYPE, normalize_reviews
from utils.http import build_session, get_checked
from utils.retry import PermanentError, PipelineHttpError, RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.nytimes.com/svc/search/v2/articlesearch.json"
MAX_PAGE_INDEX = 100


class FetchError(PipelineHttpError):
    """Eine Seite konnte auch nach allen Versuchen nicht geladen werden."""


def _request_page(
    session: requests.Session,
    endpoint: str,
    params: dict[str, Any],
    timeout: float,
) -> list[dict]:
    resp = get_checked(session, endpoint, params=params, timeout=timeout)
    try:
        payload = resp.json()
    except ValueError as exc:
        raise PermanentError(f"Antwort für Seite {params.get('page')} ist kein JSON") from exc

    response = payload.get("response") if isinstance(payload, dict) else None
    if not isinstance(response, dict):
        raise PermanentError(f"Feld 'response' fehlt in Seite {params.get('page')}")
    docs = response.get("docs")
    if docs is None:
        return []
    if not isinstance(docs, list):
        raise PermanentError(f"Feld 'response.docs' ist keine Liste (Seite {params.get('page')})")
    return docs


def fetch_pages(
    session: requests.Session,
    endpoint: str,
    base_params: dict[str, Any],
    page_count: int,
    policy: RetryPolicy,
    *,
    timeout: float = 30.0,
    page_delay_seconds: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> list[dict]:
    """Lädt die Seiten 0..page_count-1 in Reihenfolge und sammelt alle Dokumente.

    Jede Seite gelingt genau einmal; scheitert eine Seite terminal, wird
    FetchError geworfen (keine stillen Lücken im Ergebnis).
    """
    if page_count > MAX_PAGE_INDEX + 1:
        logger.warning(
            f"page_count={page_count} überschreitet das API-Limit, begrenze auf {MAX_PAGE_INDEX + 1}."
        )
        page_count = MAX_PAGE_INDEX + 1

    records: list[dict] = []
    for page in range(page_count):
        if page > 0 and page_delay_seconds > 0:
            sleep(page_delay_seconds)
        params = {**base_params, "page": page}
        outcome = policy.run(_request_page, session, endpoint, params, timeout, label=f"Seite {page}")
        if not outcome.succeeded:
            raise FetchError(f"Seite {page} konnte nicht geladen werden: {outcome.error}") from outcome.error
        docs = outcome.value
        records.extend(docs)
        logger.info(f"Seite {page + 1}/{page_count}: {len(docs)} Dokumente (gesamt {len(records)})")
    return records


class ArticleSearchAdapter(BaseAdapter):
    """Adapter für die Article-Search-API (Review-Metadaten).

    • extract()   → Liste roher API-Dokumente (paginiert, mit Retry)
    • transform() → ReviewRecords: name, pub_date, web_url, abstract, headline_*
    """

    def __init__(
        self,
        source_config: dict,
        policy: RetryPolicy,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(source_config)
        self.policy = policy
        self.session = session or build_session()
        self._sleep = sleep

    def _base_params(self) -> dict[str, Any]:
        api_key = self.config.get("api_key")
        if not api_key:
            raise PermanentError("Kein API-Key für die Article-Search-API gesetzt.")
        params = {
            "fq": self.config["filter"],
            "sort": self.config.get("sort", "newest"),
            "api-key": api_key,
        }
        return params

    # ------------------------------------------------------------ #
    # 1) Extract                                                   #
    # ------------------------------------------------------------ #
    def extract(self) -> list[dict]:
        return fetch_pages(
            self.session,
            self.config.get("endpoint", DEFAULT_ENDPOINT),
            self._base_params(),
            int(self.config.get("page_count", 1)),
            self.policy,
            timeout=float(self.config.get("timeout_seconds", 30)),
            page_delay_seconds=float(self.config.get("page_delay_seconds", 0)),
            sleep=self._sleep,
        )

    # ------------------------------------------------------------ #
    # 2) Transform                                                 #
    # ------------------------------------------------------------ #
    def transform(self, data: list[dict]) -> pd.DataFrame:
        media_type = self.config.get("media_type", TARGET_MEDIA_TYPE)
        reviews = normalize_reviews(data, media_type=media_type)
        logger.info(
            f"ArticleSearchAdapter: {len(data)} Dokumente → {len(reviews)} Review-Zeilen (Medientyp '{media_type}')."
        )
        return reviews
