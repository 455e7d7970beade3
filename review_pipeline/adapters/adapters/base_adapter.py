from abc import ABC, abstractmethod
from typing import Any

import pandas as pd
from utils.save_aux_csv import save_aux_csv


class BaseAdapter(ABC):
    """Gemeinsame Schnittstelle der Datenquellen (Review-API, Katalog)."""

    def __init__(self, source_config: dict):
        self.config = source_config

    @property
    def source_name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def extract(self) -> Any:
        """Rohdaten der Quelle (Liste von API-Dokumenten oder DataFrame)."""

    @abstractmethod
    def transform(self, data: Any) -> pd.DataFrame:
        """Rohdaten → DataFrame mit kanonischem 'name'."""

    def load(self) -> pd.DataFrame:
        return self.transform(self.extract())

    def _save_rejects(self, kind: str, rows: list[dict]) -> None:
        # nur schreiben, wenn tatsächlich etwas verworfen wurde
        if rows:
            save_aux_csv(kind, self.source_name, pd.DataFrame(rows))
