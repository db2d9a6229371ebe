"""
dimensions.py — Option lists for the dashboard filters.
"""

from enum import Enum
from typing import Any, Dict, List

from core.records import ALL, Scope


class Dimension(Enum):
    """Mark-table fields that may be enumerated, each bound to its column."""

    YEAR = "year"
    GRADE = "grade"
    SUBJECT = "subject"
    MUNICIPALITY = "municipality"
    SCHOOL = "school_id"

    @property
    def column(self) -> str:
        return self.value

    @property
    def cast(self):
        return int if self in (Dimension.YEAR, Dimension.GRADE) else str


def unique_values(store, dimension: Dimension) -> List[Any]:
    """Distinct values of a dimension across the whole mark table, ascending."""
    if not isinstance(dimension, Dimension):
        dimension = Dimension(dimension)
    values = store.marks[dimension.column].dropna().unique()
    return sorted(dimension.cast(v) for v in values)


def available_schools(store, year: int, municipality: Scope = ALL) -> List[Dict[str, str]]:
    """
    Schools present in the mark table for a year, optionally within one
    municipality. One entry per school id, in first-seen order.
    """
    df = store.marks
    mask = df["year"] == year
    if municipality is not ALL:
        mask &= df["municipality"] == municipality
    pairs = df.loc[mask, ["school_id", "school_name"]].drop_duplicates(subset="school_id")
    return [
        {"id": sid, "name": sname}
        for sid, sname in pairs.itertuples(index=False, name=None)
    ]
