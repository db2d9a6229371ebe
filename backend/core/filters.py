"""
filters.py — Filter predicate over the fact tables.

Year is always matched exactly. Grade and subject apply to mark and score
rows only. Municipality and school match unless the selection holds ALL.
An empty result is a valid outcome.
"""

from typing import Any, Mapping

import pandas as pd

from core.records import ALL, FilterSelection, Table, TABLE_DIMENSIONS


def _wanted(selection: FilterSelection, dimension: str):
    return {
        "year": selection.year,
        "grade": selection.grade,
        "subject": selection.subject,
        "municipality": selection.municipality,
        "school_id": selection.school,
    }[dimension]


def row_matches(selection: FilterSelection, row: Mapping[str, Any], table: Table) -> bool:
    """True iff the row matches every dimension that applies to its table."""
    for dimension in TABLE_DIMENSIONS[table]:
        wanted = _wanted(selection, dimension)
        if wanted is ALL:
            continue
        if row[dimension] != wanted:
            return False
    return True


def filter_frame(df: pd.DataFrame, selection: FilterSelection, table: Table) -> pd.DataFrame:
    """Vectorised form of row_matches; returns the matching rows."""
    mask = pd.Series(True, index=df.index)
    for dimension in TABLE_DIMENSIONS[table]:
        wanted = _wanted(selection, dimension)
        if wanted is ALL:
            continue
        mask &= df[dimension] == wanted
    return df[mask]


def filtered_marks(store, selection: FilterSelection) -> pd.DataFrame:
    """Mark rows matching the selection."""
    return filter_frame(store.marks, selection, Table.MARKS)


def filtered_score_rows(store, selection: FilterSelection) -> pd.DataFrame:
    """Raw score rows matching the selection."""
    return filter_frame(store.scores, selection, Table.SCORES)
