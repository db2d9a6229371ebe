"""
store.py — Write-once record store for the three VPR fact tables.

Handles:
- Coercion of raw rows (dicts or DataFrames) into typed tables
- Expansion of score distributions into fixed score_0..score_38 columns
- Rejection of rows that use the reserved "all" labels as identifiers
- One canonical name per school id
- Bias marker validation and total recomputation
- A validation report (steps + warnings) in the style of a cleaning report
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Union

import numpy as np
import pandas as pd

from core.records import (
    BIAS_SCHEMA,
    MARK_COLUMNS,
    MARKER_COLUMNS,
    MARKS_SCHEMA,
    SCORE_COLUMNS,
    SCORE_RANGE,
    SCORES_SCHEMA,
    is_reserved_label,
)

logger = logging.getLogger(__name__)

RowSource = Union[pd.DataFrame, Iterable[Dict[str, Any]], None]

DISTRIBUTION_ALIASES = ["score_distribution", "scoreDistribution", "distribution"]

# What astype(str) makes of empty cells
MISSING_TEXT = ["", "nan", "None"]


@dataclass(frozen=True, eq=False)
class RecordStore:
    """
    The three fact tables, validated at load time and read-only afterwards.
    Hashes by identity so results can be memoised per store.
    """

    marks: pd.DataFrame
    scores: pd.DataFrame
    bias: pd.DataFrame
    report: Dict[str, Any] = field(default_factory=dict)

    def summary(self) -> Dict[str, int]:
        return {
            "marks_rows": len(self.marks),
            "scores_rows": len(self.scores),
            "bias_rows": len(self.bias),
            "schools": int(self.marks["school_id"].nunique()) if len(self.marks) else 0,
        }


# ── Helpers ─────────────────────────────────────────────────────────

def _to_frame(data: RowSource) -> pd.DataFrame:
    if data is None:
        return pd.DataFrame()
    if isinstance(data, pd.DataFrame):
        return data.copy()
    return pd.DataFrame(list(data))


def _warn(report: Dict, message: str) -> None:
    logger.warning(message)
    report["warnings"].append(message)


def _require(df: pd.DataFrame, columns: List[str], table: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"Table '{table}' is missing required columns: {', '.join(missing)}")


def _drop(df: pd.DataFrame, bad: pd.Series, report: Dict, reason: str, table: str) -> pd.DataFrame:
    count = int(bad.sum())
    if count:
        _warn(report, f"{table}: dropped {count} row(s) with {reason}.")
        df = df[~bad].copy()
    return df


def _normalize_keys(df: pd.DataFrame, report: Dict, table: str, has_grade: bool = True) -> pd.DataFrame:
    """Trim identifiers, coerce year/grade to int, reject reserved labels."""
    if "school_name" not in df.columns:
        df["school_name"] = ""
    text_cols = ["municipality", "school_id", "school_name"] + (["subject"] if has_grade else [])
    for col in text_cols:
        df[col] = df[col].astype(str).str.strip()
    df["school_name"] = df["school_name"].where(~df["school_name"].isin(MISSING_TEXT), "")

    int_cols = ["year", "grade"] if has_grade else ["year"]
    for col in int_cols:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    bad_ints = pd.Series(False, index=df.index)
    for col in int_cols:
        bad_ints |= df[col].isna() | (df[col] % 1 != 0)
    df = _drop(df, bad_ints, report, "a non-integer year or grade", table)
    for col in int_cols:
        df[col] = df[col].astype("int64")

    reserved = df["municipality"].map(is_reserved_label) | df["school_id"].map(is_reserved_label)
    df = _drop(df, reserved, report, "a reserved 'all' label as municipality or school id", table)

    empty_ids = df["school_id"].isin(MISSING_TEXT)
    df = _drop(df, empty_ids, report, "an empty school id", table)

    dims = ["municipality"] + (["subject"] if has_grade else [])
    empty_dims = df[dims].isin(MISSING_TEXT).any(axis=1)
    df = _drop(df, empty_dims, report, "an empty municipality or subject", table)
    return df


def _normalize_participants(df: pd.DataFrame, report: Dict, table: str) -> pd.DataFrame:
    df["participants"] = pd.to_numeric(df["participants"], errors="coerce")
    bad = df["participants"].isna() | (df["participants"] < 0) | (df["participants"] % 1 != 0)
    df = _drop(df, bad, report, "a missing, negative or fractional participant count", table)
    df["participants"] = df["participants"].astype("int64")
    return df


def _expand_distributions(df: pd.DataFrame, report: Dict) -> pd.DataFrame:
    """Turn a per-row {score: percentage} mapping into fixed bucket columns."""
    dist_col = next((c for c in DISTRIBUTION_ALIASES if c in df.columns), None)
    if dist_col is None:
        return df

    buckets = np.zeros((len(df), len(SCORE_COLUMNS)), dtype=float)
    bad = np.zeros(len(df), dtype=bool)
    for pos, dist in enumerate(df[dist_col].tolist()):
        if not isinstance(dist, dict):
            bad[pos] = dist is not None and not (isinstance(dist, float) and np.isnan(dist))
            continue
        for key, value in dist.items():
            try:
                score = int(key)
                pct = float(value)
            except (TypeError, ValueError):
                bad[pos] = True
                break
            if score not in SCORE_RANGE or float(key) != score:
                bad[pos] = True
                break
            buckets[pos, score] = 0.0 if np.isnan(pct) else pct

    expanded = pd.DataFrame(buckets, columns=SCORE_COLUMNS, index=df.index)
    df = pd.concat([df.drop(columns=[dist_col]), expanded], axis=1)
    return _drop(df, pd.Series(bad, index=df.index), report, "a score bucket outside 0..38", "scores")


def _normalize_buckets(df: pd.DataFrame, report: Dict) -> pd.DataFrame:
    extra = [
        c for c in df.columns
        if str(c).startswith("score_") and c not in SCORE_COLUMNS
    ]
    if extra:
        _warn(report, f"scores: ignored out-of-range bucket columns: {', '.join(map(str, extra))}.")
        df = df.drop(columns=extra)
    for col in SCORE_COLUMNS:
        if col not in df.columns:
            df[col] = 0.0
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).astype(float)
    negative = (df[SCORE_COLUMNS] < 0).any(axis=1)
    return _drop(df, negative, report, "a negative score percentage", "scores")


def _canonical_names(frames: List[pd.DataFrame], report: Dict) -> Dict[str, str]:
    """First-seen non-empty name per school id; conflicting names are reported."""
    names: Dict[str, str] = {}
    conflicts: Dict[str, set] = {}
    for df in frames:
        if df.empty:
            continue
        pairs = df[["school_id", "school_name"]].drop_duplicates()
        for sid, sname in pairs.itertuples(index=False, name=None):
            if not sname:
                continue
            if sid not in names:
                names[sid] = sname
            elif names[sid] != sname:
                conflicts.setdefault(sid, {names[sid]}).add(sname)
    for sid, variants in conflicts.items():
        _warn(
            report,
            f"School id '{sid}' appears with {len(variants)} names "
            f"({', '.join(sorted(variants))}); using '{names[sid]}'.",
        )
    return names


# ── Builders ────────────────────────────────────────────────────────

def _prepare_marks(data: RowSource, report: Dict) -> pd.DataFrame:
    df = _to_frame(data)
    if df.empty:
        return pd.DataFrame(columns=MARKS_SCHEMA)
    _require(df, [c for c in MARKS_SCHEMA if c != "school_name"], "marks")
    df = _normalize_keys(df, report, "marks")
    df = _normalize_participants(df, report, "marks")
    for col in MARK_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df = _drop(df, df[MARK_COLUMNS].isna().any(axis=1), report, "a non-numeric mark share", "marks")
    df[MARK_COLUMNS] = df[MARK_COLUMNS].astype(float)
    report["steps"].append(f"Loaded {len(df)} mark rows.")
    return df[MARKS_SCHEMA].reset_index(drop=True)


def _prepare_scores(data: RowSource, report: Dict) -> pd.DataFrame:
    df = _to_frame(data)
    if df.empty:
        return pd.DataFrame(columns=SCORES_SCHEMA)
    _require(df, ["year", "grade", "subject", "municipality", "school_id", "participants"], "scores")
    df = _expand_distributions(df, report)
    df = _normalize_keys(df, report, "scores")
    df = _normalize_participants(df, report, "scores")
    df = _normalize_buckets(df, report)
    report["steps"].append(f"Loaded {len(df)} score rows with {len(SCORE_COLUMNS)} buckets each.")
    return df[SCORES_SCHEMA].reset_index(drop=True)


def _prepare_bias(data: RowSource, report: Dict) -> pd.DataFrame:
    df = _to_frame(data)
    if df.empty:
        return pd.DataFrame(columns=BIAS_SCHEMA)
    _require(df, ["year", "municipality", "school_id"] + MARKER_COLUMNS, "bias")
    df = _normalize_keys(df, report, "bias", has_grade=False)

    for col in MARKER_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    not_flag = ~df[MARKER_COLUMNS].isin([0, 1]).all(axis=1)
    df = _drop(df, not_flag, report, "marker flags other than 0/1", "bias")
    df[MARKER_COLUMNS] = df[MARKER_COLUMNS].astype("int64")

    computed = df[MARKER_COLUMNS].sum(axis=1)
    if "total_markers" in df.columns:
        given = pd.to_numeric(df["total_markers"], errors="coerce")
        mismatched = int((given != computed).sum())
        if mismatched:
            _warn(report, f"bias: recomputed total_markers for {mismatched} row(s).")
    df["total_markers"] = computed.astype("int64")

    df = _drop(df, df["total_markers"] == 0, report, "no markers set", "bias")
    duplicated = df.duplicated(subset=["year", "school_id"], keep="first")
    df = _drop(df, duplicated, report, "a duplicate (year, school)", "bias")
    report["steps"].append(f"Loaded {len(df)} bias rows.")
    return df[BIAS_SCHEMA].reset_index(drop=True)


def build_store(
    marks: RowSource = None,
    scores: RowSource = None,
    bias: RowSource = None,
) -> RecordStore:
    """
    Validate raw rows and freeze them into a RecordStore.
    Raises ValueError if a table is missing required columns; row-level
    problems are dropped and listed in store.report["warnings"].
    """
    report: Dict[str, Any] = {"steps": [], "warnings": []}

    marks_df = _prepare_marks(marks, report)
    scores_df = _prepare_scores(scores, report)
    bias_df = _prepare_bias(bias, report)

    names = _canonical_names([marks_df, scores_df, bias_df], report)
    for df in (marks_df, scores_df, bias_df):
        if not df.empty:
            df["school_name"] = df["school_id"].map(names).fillna(df["school_id"])
    report["steps"].append(f"Resolved canonical names for {len(names)} schools.")
    report["rows"] = {
        "marks": len(marks_df),
        "scores": len(scores_df),
        "bias": len(bias_df),
    }

    store = RecordStore(marks=marks_df, scores=scores_df, bias=bias_df, report=report)
    logger.info(
        "Record store ready: %d mark rows, %d score rows, %d bias rows (%d warnings)",
        len(marks_df), len(scores_df), len(bias_df), len(report["warnings"]),
    )
    return store
