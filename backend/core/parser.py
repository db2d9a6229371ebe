"""
parser.py — File ingestion for VPR exports.

Supports:
- CSV files
- Excel (.xlsx) — first sheet
- Column alias mapping (e.g. "login" -> school_id, "ooName" -> school_name)

A data directory holds marks, scores and bias tables named
marks.csv / scores.csv / bias.csv (or .xlsx). The bias table is optional.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from core.store import RecordStore, build_store

logger = logging.getLogger(__name__)

TABLE_FILES = ("marks", "scores", "bias")
SUPPORTED_EXTENSIONS = (".csv", ".xlsx")

# Common column name variations in regional exports
COLUMN_ALIASES = {
    "year": ["year", "год"],
    "grade": ["grade", "class", "класс", "параллель"],
    "subject": ["subject", "предмет"],
    "municipality": ["municipality", "муниципалитет", "мо"],
    "school_id": ["school_id", "login", "логин", "oo", "oo_login"],
    "school_name": ["school_name", "ooname", "oo_name", "оо", "наименование оо"],
    "participants": ["participants", "участники", "кол-во участников"],
    "mark2": ["mark2", "2"],
    "mark3": ["mark3", "3"],
    "mark4": ["mark4", "4"],
    "mark5": ["mark5", "5"],
    "markers_4_ru": ["markers_4_ru", "4 ру", "4_ru"],
    "markers_4_ma": ["markers_4_ma", "4 ма", "4_ma"],
    "markers_5_ru": ["markers_5_ru", "5 ру", "5_ru"],
    "markers_5_ma": ["markers_5_ma", "5 ма", "5_ma"],
    "total_markers": ["total_markers", "totalmarkers", "всего"],
}


def read_table(file_path: str) -> pd.DataFrame:
    """
    Read one CSV/Excel table and rename known column aliases.
    Every cell is read as text so ids like "00123" keep their leading zeros;
    numeric columns are coerced later by the store.
    """
    path = Path(file_path)
    ext = path.suffix.lower()

    if ext == ".csv":
        df = pd.read_csv(file_path, dtype=str)
    elif ext == ".xlsx":
        df = pd.read_excel(file_path, engine="openpyxl", dtype=str)
    else:
        raise ValueError(f"Unsupported file type: {ext}")

    return df.rename(columns=suggest_column_mapping(df))


def suggest_column_mapping(df: pd.DataFrame) -> Dict[str, str]:
    """
    Map actual column names to canonical field names.
    Returns: { actual_column_name: canonical_field }
    """
    mapping: Dict[str, str] = {}
    taken = set()
    for col in df.columns:
        key = str(col).lower().strip()
        if key.startswith("score_"):
            continue
        for field, aliases in COLUMN_ALIASES.items():
            if field in taken:
                continue
            if key in aliases:
                if col != field:
                    mapping[col] = field
                taken.add(field)
                break
    return mapping


def _find_table_file(data_dir: Path, name: str) -> Optional[Path]:
    for ext in SUPPORTED_EXTENSIONS:
        candidate = data_dir / f"{name}{ext}"
        if candidate.is_file():
            return candidate
    return None


def load_store(data_dir: str) -> RecordStore:
    """Load marks/scores/bias tables from a directory into a validated store."""
    root = Path(data_dir)
    if not root.is_dir():
        raise ValueError(f"Data directory not found: {data_dir}")

    tables: Dict[str, Optional[pd.DataFrame]] = {}
    missing: List[str] = []
    for name in TABLE_FILES:
        path = _find_table_file(root, name)
        if path is None:
            missing.append(name)
            tables[name] = None
            continue
        tables[name] = read_table(str(path))
        logger.info("Read %d rows from %s", len(tables[name]), path.name)

    required_missing = [m for m in missing if m != "bias"]
    if required_missing:
        raise ValueError(
            f"Missing table file(s) in {data_dir}: "
            + ", ".join(f"{m}.csv" for m in required_missing)
        )
    if "bias" in missing:
        logger.info("No bias table in %s; no school is flagged", data_dir)

    return build_store(tables["marks"], tables["scores"], tables["bias"])
