from pathlib import Path
import logging
import pandas as pd

# Fallback neben dem Pipeline-Skript, bis die Pipeline die Werte aus der Config setzt
DEFAULT_AUX_ROOT: Path = Path(__file__).resolve().parent.parent / "data" / "aux"

_AUX_DIRS: dict[str, str] = {
    kind: str(DEFAULT_AUX_ROOT / kind)
    for kind in ("invalid", "duplicates", "scrape_failures")
}


def configure_aux_dirs(dirs: dict[str, str | Path]) -> None:
    """Überschreibt die Zielverzeichnisse (z.B. aus config.yaml: aux_output_dirs)."""
    for kind, path in dirs.items():
        _AUX_DIRS[kind] = str(path)


def get_aux_dir(kind: str) -> Path:
    """Liefert das Zielverzeichnis für eine CSV-Art (invalid/duplicates/scrape_failures)."""
    return Path(_AUX_DIRS.get(kind, DEFAULT_AUX_ROOT / kind))


def save_aux_csv(kind: str, source_name: str, df: pd.DataFrame) -> Path:
    """Speichert DataFrame unter <dir>/<source_name>_<kind>.csv."""
    target_dir = get_aux_dir(kind)
    target_dir.mkdir(parents=True, exist_ok=True)
    out_path = target_dir / f"{source_name}_{kind}.csv"
    df.to_csv(out_path, index=False)
    logging.info(f"{source_name}: {len(df)} Zeilen ({kind}) gespeichert unter {out_path}")
    return out_path
