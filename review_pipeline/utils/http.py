"""HTTP-Helfer: ordnet Fehler an der Grenze als wiederholbar/terminal ein."""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from utils.retry import PermanentError, TransientError

DEFAULT_USER_AGENT = "review-pipeline/0.1 (+research; sequential requests)"


def build_session(user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    return session


def get_checked(
    session: requests.Session,
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = 30.0,
) -> requests.Response:
    """GET mit Fehlerklassifikation.

    Netzwerkfehler, 429 und 5xx → TransientError; übrige 4xx → PermanentError.
    """
    try:
        resp = session.get(url, params=params, timeout=timeout)
    except requests.exceptions.Timeout as exc:
        raise TransientError(f"Timeout bei {url}") from exc
    except requests.exceptions.RequestException as exc:
        raise TransientError(f"Netzwerkfehler bei {url}: {exc}") from exc

    if resp.status_code == 429 or resp.status_code >= 500:
        raise TransientError(f"HTTP {resp.status_code} bei {url}")
    if resp.status_code >= 400:
        raise PermanentError(f"HTTP {resp.status_code} bei {url}")
    return resp
