"""
scores.py — Raw-score distribution aggregator.
"""

from typing import Dict, List

import pandas as pd

from core.filters import filtered_score_rows
from core.helpers import round_half_up
from core.records import SCORE_COLUMNS, SCORE_RANGE, FilterSelection


def aggregate_score_rows(rows: pd.DataFrame) -> List[Dict[str, float]]:
    """
    Participant-weighted share of participants at every raw score 0..38.
    Returns [] for no rows, otherwise exactly one entry per score.
    """
    if rows is None or rows.empty:
        return []

    participants = rows["participants"].astype("int64")
    total = int(participants.sum())
    weighted = rows[SCORE_COLUMNS].astype(float).mul(participants, axis=0).sum()

    return [
        {
            "score": score,
            "percentage": round_half_up(weighted[col] / total) if total > 0 else 0.0,
        }
        for score, col in zip(SCORE_RANGE, SCORE_COLUMNS)
    ]


def compute_score_distribution(store, selection: FilterSelection) -> List[Dict[str, float]]:
    """Score distribution for the rows matching the selection."""
    return aggregate_score_rows(filtered_score_rows(store, selection))
