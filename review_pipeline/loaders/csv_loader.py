import logging
from pathlib import Path

import pandas as pd

class CsvLoader:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self, df: pd.DataFrame):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(self.path, index=False)
        logging.info(f"{len(df)} Zeilen gespeichert unter: {self.path}")
