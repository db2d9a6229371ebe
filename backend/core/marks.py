"""
marks.py — Mark aggregator.

Reduces filtered mark rows into participant-weighted shares of marks 2-5,
plus pass rate (3+4+5) and quality rate (4+5).
"""

from typing import Any, Dict

import pandas as pd

from core.helpers import round_half_up
from core.records import MARK_COLUMNS

ZERO_STATS = {
    "participants": 0,
    "pass_rate": 0.0,
    "quality_rate": 0.0,
    "avg_mark2": 0.0,
    "avg_mark3": 0.0,
    "avg_mark4": 0.0,
    "avg_mark5": 0.0,
}


def compute_mark_stats(rows: pd.DataFrame) -> Dict[str, Any]:
    """
    Weighted mark statistics for a set of mark rows.

    Each share is sum(share * participants) / sum(participants), rounded
    half-up to 2 decimals. Pass and quality rates add the already rounded
    shares, so they always agree with the displayed components.
    """
    if rows is None or rows.empty:
        return dict(ZERO_STATS)

    participants = rows["participants"].astype("int64")
    total = int(participants.sum())
    if total == 0:
        return dict(ZERO_STATS)

    weighted = rows[MARK_COLUMNS].astype(float).mul(participants, axis=0).sum()
    avg = {col: round_half_up(weighted[col] / total) for col in MARK_COLUMNS}

    return {
        "participants": total,
        "pass_rate": round_half_up(avg["mark3"] + avg["mark4"] + avg["mark5"]),
        "quality_rate": round_half_up(avg["mark4"] + avg["mark5"]),
        "avg_mark2": avg["mark2"],
        "avg_mark3": avg["mark3"],
        "avg_mark4": avg["mark4"],
        "avg_mark5": avg["mark5"],
    }
