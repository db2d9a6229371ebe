"""
bias.py — Non-objectivity (bias marker) views.

Computes, for the selected year and municipality:
- The marker row of the selected school
- Whether that school was flagged in either of the two previous years
- Every flagged school in scope with its per-category breakdown
- The share of flagged schools over the last three years

Bias rows exist only for flagged schools, so "has a row" means "has markers".
"""

import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from core.helpers import _sanitize, round_half_up
from core.records import (
    ALL,
    BIAS_SCHEMA,
    PROXY_GRADE,
    PROXY_SUBJECT,
    FilterSelection,
    Scope,
    marker_breakdown,
    scope_label,
)

logger = logging.getLogger(__name__)


def _in_municipality(df: pd.DataFrame, municipality: Scope) -> pd.Series:
    if municipality is ALL:
        return pd.Series(True, index=df.index)
    return df["municipality"] == municipality


def _scoped_bias(store, year: int, municipality: Scope) -> pd.DataFrame:
    df = store.bias
    return df[(df["year"] == year) & _in_municipality(df, municipality)]


def selected_school_bias(store, selection: FilterSelection) -> Optional[Dict[str, Any]]:
    """Marker row of the selected school in the current scope, or None."""
    if selection.school is ALL:
        return None
    scoped = _scoped_bias(store, selection.year, selection.municipality)
    match = scoped[(scoped["school_id"] == selection.school) & (scoped["total_markers"] > 0)]
    if match.empty:
        return None
    row = match.iloc[0]
    record = {col: row[col] for col in BIAS_SCHEMA}
    record["disciplines"] = marker_breakdown(row)
    return _sanitize(record)


def school_history(store, selection: FilterSelection) -> List[int]:
    """Previous years (year-1, then year-2) in which the selected school was flagged."""
    if selection.school is ALL:
        return []
    df = store.bias
    flagged = df[(df["school_id"] == selection.school) & (df["total_markers"] > 0)]
    years = set(flagged["year"].tolist())
    return [y for y in (selection.year - 1, selection.year - 2) if y in years]


def schools_with_markers(store, selection: FilterSelection) -> List[Dict[str, Any]]:
    """Flagged schools in year + municipality scope, in store order."""
    scoped = _scoped_bias(store, selection.year, selection.municipality)
    scoped = scoped[scoped["total_markers"] > 0]
    return [
        {
            "school_id": str(row["school_id"]),
            "name": str(row["school_name"]),
            "markers": int(row["total_markers"]),
            "disciplines": marker_breakdown(row),
        }
        for _, row in scoped.iterrows()
    ]


def bias_trend(store, selection: FilterSelection) -> List[Dict[str, Any]]:
    """
    Percentage of flagged schools for year-2, year-1 and year.

    The denominator is the number of distinct schools with grade 4 Russian
    language results in that year and municipality scope, independent of the
    grade/subject filter. A zero denominator yields 0. More flagged schools
    than cohort schools is logged and reported as 100.
    """
    marks = store.marks
    trend = []
    for year in (selection.year - 2, selection.year - 1, selection.year):
        cohort = marks[
            (marks["year"] == year)
            & (marks["grade"] == PROXY_GRADE)
            & (marks["subject"] == PROXY_SUBJECT)
            & _in_municipality(marks, selection.municipality)
        ]
        total_schools = cohort["school_id"].nunique()
        flagged = _scoped_bias(store, year, selection.municipality)
        flagged_schools = flagged["school_id"].nunique()

        if flagged_schools > total_schools > 0:
            logger.warning(
                "Bias trend %d (%s): %d flagged schools but only %d in the grade %d %s cohort; capping at 100%%",
                year, scope_label(selection.municipality), flagged_schools, total_schools,
                PROXY_GRADE, PROXY_SUBJECT,
            )
            percentage = 100.0
        elif total_schools > 0:
            percentage = round_half_up(flagged_schools / total_schools * 100, 1)
        else:
            percentage = 0.0
        trend.append({"year": year, "percentage": percentage})
    return trend


def compute_bias_data(store, selection: FilterSelection) -> Dict[str, Any]:
    """All bias views for one filter selection."""
    return {
        "selected_school_bias": selected_school_bias(store, selection),
        "history": school_history(store, selection),
        "schools_with_markers": schools_with_markers(store, selection),
        "bias_trend": bias_trend(store, selection),
    }
