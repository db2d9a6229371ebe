"""
dashboard.py — Everything the dashboard needs for one filter selection.

Bundles mark statistics, the score distribution, bias views and the filter
option lists. Stores are immutable and selections are frozen, so results are
memoised per (store, selection).
"""

import copy
from functools import lru_cache
from typing import Any, Dict

from core.bias import compute_bias_data
from core.dimensions import Dimension, available_schools, unique_values
from core.filters import filtered_marks
from core.marks import compute_mark_stats
from core.records import ALL, ALL_LABEL, FilterSelection, Scope
from core.scores import compute_score_distribution

CACHE_SIZE = 256


def filter_options(store, year: int, municipality: Scope = ALL) -> Dict[str, Any]:
    """Option lists for the filter bar. Municipalities start with the "all" label."""
    return {
        "years": unique_values(store, Dimension.YEAR),
        "grades": unique_values(store, Dimension.GRADE),
        "subjects": unique_values(store, Dimension.SUBJECT),
        "municipalities": [ALL_LABEL] + unique_values(store, Dimension.MUNICIPALITY),
        "schools": available_schools(store, year, municipality),
    }


@lru_cache(maxsize=CACHE_SIZE)
def _compute_dashboard_cached(store, selection: FilterSelection) -> Dict[str, Any]:
    return {
        "filters": selection.to_dict(),
        "stats": compute_mark_stats(filtered_marks(store, selection)),
        "scores": compute_score_distribution(store, selection),
        "bias": compute_bias_data(store, selection),
        "options": filter_options(store, selection.year, selection.municipality),
    }


def compute_dashboard(store, selection: FilterSelection) -> Dict[str, Any]:
    """
    Stats, score distribution and bias views for one selection.
    Each call gets its own copy; the cached result is never handed out.
    """
    return copy.deepcopy(_compute_dashboard_cached(store, selection))
