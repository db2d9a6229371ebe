"""
Dashboard routes — VPR aggregation API endpoints.
"""

import logging
import os
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, HTTPException

from core.bias import compute_bias_data
from core.dashboard import compute_dashboard, filter_options
from core.dimensions import Dimension, available_schools, unique_values
from core.filters import filtered_marks
from core.marks import compute_mark_stats
from core.mock_data import generate_store
from core.parser import load_store
from core.records import FilterSelection, parse_scope
from core.scores import compute_score_distribution
from core.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def get_store() -> RecordStore:
    """Load the dataset once per process: files if VPR_DATA_DIR is set, else mock data."""
    data_dir = os.getenv("VPR_DATA_DIR", "").strip()
    if data_dir:
        logger.info("Loading VPR tables from %s", data_dir)
        return load_store(data_dir)
    seed = int(os.getenv("VPR_MOCK_SEED", "42"))
    return generate_store(seed)


def _selection_from_payload(payload: dict) -> FilterSelection:
    """Extract FilterSelection from request payload."""
    if not payload:
        raise HTTPException(400, "No filter provided.")
    try:
        return FilterSelection.from_payload(payload)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.get("/options")
async def options(year: Optional[int] = None, municipality: Optional[str] = None):
    """Filter option lists: years, grades, subjects, municipalities, schools."""
    store = get_store()
    if year is None:
        years = unique_values(store, Dimension.YEAR)
        year = years[-1] if years else 0
    return filter_options(store, year, parse_scope(municipality))


@router.get("/schools")
async def schools(year: int, municipality: Optional[str] = None):
    """Schools with results in a year, optionally within one municipality."""
    return available_schools(get_store(), year, parse_scope(municipality))


@router.post("/marks")
async def marks(payload: dict):
    """Participant-weighted mark shares, pass rate and quality rate."""
    selection = _selection_from_payload(payload)
    return compute_mark_stats(filtered_marks(get_store(), selection))


@router.post("/scores")
async def scores(payload: dict):
    """Raw-score distribution (0 or 39 entries)."""
    selection = _selection_from_payload(payload)
    return compute_score_distribution(get_store(), selection)


@router.post("/bias")
async def bias(payload: dict):
    """Bias markers: selected school, history, flagged schools, three-year trend."""
    selection = _selection_from_payload(payload)
    return compute_bias_data(get_store(), selection)


@router.post("/summary")
async def summary(payload: dict):
    """Everything the dashboard renders for one filter selection."""
    selection = _selection_from_payload(payload)
    return compute_dashboard(get_store(), selection)


@router.get("/validation")
async def validation():
    """Load-time validation report of the active dataset."""
    store = get_store()
    return {**store.summary(), "report": store.report}
