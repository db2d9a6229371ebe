"""
Tests for core/marks.py — weighted mark shares, pass and quality rates.
"""

import os
import sys
import pytest
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.filters import filtered_marks
from core.marks import compute_mark_stats
from core.records import ALL, FilterSelection
from core.store import build_store

RU = "Русский язык"


def _row(participants, mark2, mark3, mark4, mark5, sid="S1"):
    return {
        "year": 2023, "grade": 4, "subject": RU, "municipality": "M1",
        "school_id": sid, "school_name": sid, "participants": participants,
        "mark2": mark2, "mark3": mark3, "mark4": mark4, "mark5": mark5,
    }


class TestComputeMarkStats:

    def test_empty_rows_give_zeros(self):
        result = compute_mark_stats(build_store().marks)
        assert result == {
            "participants": 0, "pass_rate": 0.0, "quality_rate": 0.0,
            "avg_mark2": 0.0, "avg_mark3": 0.0, "avg_mark4": 0.0, "avg_mark5": 0.0,
        }

    def test_none_gives_zeros(self):
        assert compute_mark_stats(None)["participants"] == 0

    def test_zero_participants_give_zeros(self):
        store = build_store(marks=[_row(0, 10, 20, 30, 40)])
        result = compute_mark_stats(store.marks)
        assert result["participants"] == 0
        assert result["avg_mark4"] == 0.0

    def test_single_school_scenario(self):
        store = build_store(marks=[_row(100, 5, 25, 40, 30)])
        selection = FilterSelection(2023, 4, RU, ALL, ALL)
        result = compute_mark_stats(filtered_marks(store, selection))
        assert result == {
            "participants": 100, "pass_rate": 95, "quality_rate": 70,
            "avg_mark2": 5, "avg_mark3": 25, "avg_mark4": 40, "avg_mark5": 30,
        }

    def test_single_school_scenario_with_ui_labels(self):
        store = build_store(marks=[_row(100, 5, 25, 40, 30)])
        selection = FilterSelection(2023, 4, RU, "Все", "Все")
        result = compute_mark_stats(filtered_marks(store, selection))
        assert result == {
            "participants": 100, "pass_rate": 95, "quality_rate": 70,
            "avg_mark2": 5, "avg_mark3": 25, "avg_mark4": 40, "avg_mark5": 30,
        }

    def test_weighted_not_simple_mean(self):
        store = build_store(marks=[_row(100, 10, 20, 40, 30), _row(50, 40, 20, 10, 30, sid="S2")])
        result = compute_mark_stats(store.marks)
        assert result["avg_mark4"] == 30.0
        assert result["avg_mark2"] == 20.0

    def test_participants_exact_sum(self):
        rows = [_row(n, 25, 25, 25, 25, sid=f"S{n}") for n in (17, 203, 41, 1)]
        result = compute_mark_stats(build_store(marks=rows).marks)
        assert result["participants"] == 262
        assert isinstance(result["participants"], int)

    def test_rates_sum_rounded_components(self):
        # weighted shares: 1/3 -> 33.33 each; the rates add the rounded values
        rows = pd.DataFrame([
            _row(1, 0, 100, 0, 0, "A"),
            _row(1, 0, 0, 100, 0, "B"),
            _row(1, 0, 0, 0, 100, "C"),
        ])
        result = compute_mark_stats(build_store(marks=rows).marks)
        assert result["avg_mark3"] == 33.33
        assert result["pass_rate"] == 99.99
        assert result["quality_rate"] == 66.66

    def test_round_half_up(self):
        # 12.125 is exact in binary; half-up gives 12.13 where round() gives 12.12
        rows = [_row(1, 12.125, 0, 0, 87.875)]
        result = compute_mark_stats(build_store(marks=rows).marks)
        assert result["avg_mark2"] == 12.13
        assert result["avg_mark5"] == 87.88

    def test_shares_sum_to_100(self):
        rows = [
            _row(37, 3.21, 28.4, 39.17, 29.22, "A"),
            _row(121, 9.99, 12.01, 38.5, 39.5, "B"),
            _row(64, 0.5, 29.5, 20.0, 50.0, "C"),
        ]
        result = compute_mark_stats(build_store(marks=rows).marks)
        total = sum(result[k] for k in ("avg_mark2", "avg_mark3", "avg_mark4", "avg_mark5"))
        assert total == pytest.approx(100, abs=0.05)

    def test_idempotent(self):
        store = build_store(marks=[_row(37, 3.21, 28.4, 39.17, 29.22), _row(5, 1, 2, 3, 94, "S2")])
        assert compute_mark_stats(store.marks) == compute_mark_stats(store.marks)
