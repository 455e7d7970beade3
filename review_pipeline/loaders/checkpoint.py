import hashlib
import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)


def stage_fingerprint(params: dict[str, Any] | None) -> str:
    """Stabiler Hash der Stufen-Eingaben (Konfiguration bzw. Eingabedaten)."""
    data = json.dumps(params or {}, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(data).hexdigest()


class StageCheckpoint:
    """Pickle-Snapshot einer kompletten Pipeline-Stufe.

    Der Dateiname enthält den Hash der Stufen-Parameter, eine geänderte
    Konfiguration führt also zu einer Neuberechnung.
    """

    def __init__(self, directory: str | Path, stage: str, params: dict[str, Any] | None = None):
        self.directory = Path(directory)
        self.stage = stage
        self.fingerprint = stage_fingerprint(params)

    @property
    def path(self) -> Path:
        return self.directory / f"{self.stage}_{self.fingerprint[:12]}.pkl"

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Any:
        obj = pd.read_pickle(self.path)
        logger.info(f"Checkpoint '{self.stage}' geladen: {self.path}")
        return obj

    def save(self, obj: Any) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        pd.to_pickle(obj, self.path)
        logger.info(f"Checkpoint '{self.stage}' gespeichert: {self.path}")
        return self.path
