"""Retry-Zustandsmaschine mit fester Wartezeit und injizierbarem Sleep."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class PipelineHttpError(Exception):
    """Basisfehler für externe Aufrufe (API, Review-Seiten)."""


class TransientError(PipelineHttpError):
    """Wiederholbarer Fehler (Netzwerk, 5xx, 429)."""


class PermanentError(PipelineHttpError):
    """Nicht wiederholbarer Fehler (4xx, fehlende Struktur, kaputtes JSON)."""


class AttemptState(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED_RETRYABLE = "failed_retryable"
    FAILED_TERMINAL = "failed_terminal"


@dataclass
class RetryOutcome:
    state: AttemptState
    value: Any = None
    attempts: int = 0
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.state is AttemptState.SUCCEEDED


class RetryPolicy:
    """Führt eine Funktion aus, bis sie gelingt oder terminal scheitert.

    • TransientError → warten (fester Abstand), erneut versuchen
    • PermanentError → sofort terminal
    • max_attempts=None → unbegrenzt viele Versuche
    Andere Exceptions (Programmierfehler) werden nicht abgefangen.
    """

    def __init__(
        self,
        delay_seconds: float,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts muss >= 1 oder None sein.")
        self.delay_seconds = float(delay_seconds)
        self.max_attempts = max_attempts
        self._sleep = sleep

    def run(self, func: Callable[..., Any], *args: Any, label: str = "", **kwargs: Any) -> RetryOutcome:
        state = AttemptState.PENDING
        attempts = 0
        last_error: Optional[Exception] = None

        while state in (AttemptState.PENDING, AttemptState.FAILED_RETRYABLE):
            attempts += 1
            try:
                value = func(*args, **kwargs)
            except TransientError as exc:
                last_error = exc
                if self.max_attempts is not None and attempts >= self.max_attempts:
                    logger.error(
                        f"{label}: Versuch {attempts}/{self.max_attempts} fehlgeschlagen ({exc}). "
                        "Maximale Anzahl erreicht – gebe auf."
                    )
                    state = AttemptState.FAILED_TERMINAL
                    continue
                logger.warning(
                    f"{label}: Versuch {attempts} fehlgeschlagen ({exc}). "
                    f"Neuer Versuch in {self.delay_seconds:g}s."
                )
                state = AttemptState.FAILED_RETRYABLE
                self._sleep(self.delay_seconds)
            except PermanentError as exc:
                logger.error(f"{label}: nicht wiederholbarer Fehler: {exc}")
                state = AttemptState.FAILED_TERMINAL
                last_error = exc
            else:
                return RetryOutcome(AttemptState.SUCCEEDED, value=value, attempts=attempts)

        return RetryOutcome(state, attempts=attempts, error=last_error)
