"""
Tests for core/parser.py — loading VPR tables from a data directory.
"""

import os
import sys
import pytest
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.parser import load_store, read_table, suggest_column_mapping


@pytest.fixture
def data_dir(tmp_path):
    pd.DataFrame([{
        "year": 2023, "grade": 4, "subject": "Русский язык", "municipality": "M1",
        "login": "edu050001", "ooName": "МБОУ СОШ №1", "participants": 80,
        "mark2": 5, "mark3": 25, "mark4": 40, "mark5": 30,
    }]).to_csv(tmp_path / "marks.csv", index=False)

    score = {
        "year": 2023, "grade": 4, "subject": "Русский язык", "municipality": "M1",
        "login": "edu050001", "ooName": "МБОУ СОШ №1", "participants": 80,
    }
    score.update({f"score_{i}": 0.0 for i in range(39)})
    score["score_15"] = 100.0
    pd.DataFrame([score]).to_csv(tmp_path / "scores.csv", index=False)
    return tmp_path


class TestSuggestColumnMapping:

    def test_aliases(self):
        df = pd.DataFrame(columns=["Login", "ooName", "Год", "score_3"])
        assert suggest_column_mapping(df) == {
            "Login": "school_id", "ooName": "school_name", "Год": "year",
        }

    def test_canonical_names_untouched(self):
        df = pd.DataFrame(columns=["school_id", "participants"])
        assert suggest_column_mapping(df) == {}


class TestLoadStore:

    def test_loads_without_bias(self, data_dir):
        store = load_store(str(data_dir))
        assert store.marks.iloc[0]["school_id"] == "edu050001"
        assert store.scores.iloc[0]["score_15"] == 100.0
        assert store.bias.empty

    def test_loads_bias(self, data_dir):
        pd.DataFrame([{
            "year": 2023, "municipality": "M1", "login": "edu050001",
            "markers_4_ru": 1, "markers_4_ma": 0, "markers_5_ru": 0, "markers_5_ma": 1,
        }]).to_csv(data_dir / "bias.csv", index=False)
        store = load_store(str(data_dir))
        assert store.bias.iloc[0]["total_markers"] == 2
        assert store.bias.iloc[0]["school_name"] == "МБОУ СОШ №1"

    def test_missing_required_table(self, tmp_path):
        pd.DataFrame([{"year": 2023}]).to_csv(tmp_path / "marks.csv", index=False)
        with pytest.raises(ValueError, match="scores.csv"):
            load_store(str(tmp_path))

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            load_store(str(tmp_path / "nope"))

    def test_unsupported_file(self, tmp_path):
        path = tmp_path / "marks.json"
        path.write_text("{}")
        with pytest.raises(ValueError, match="Unsupported"):
            read_table(str(path))


class TestIdentifiersKeptAsText:

    def test_zero_padded_logins_not_merged(self, tmp_path):
        base = {
            "year": 2023, "grade": 4, "subject": "Русский язык", "municipality": "M1",
            "participants": 10, "mark2": 0, "mark3": 50, "mark4": 25, "mark5": 25,
        }
        pd.DataFrame([
            {**base, "login": "00123", "ooName": "Школа A"},
            {**base, "login": "123", "ooName": "Школа B"},
        ]).to_csv(tmp_path / "marks.csv", index=False)
        pd.DataFrame([
            {
                **{k: v for k, v in base.items() if not k.startswith("mark")},
                "login": "00123", "ooName": "Школа A", "score_5": 100.0,
            },
        ]).to_csv(tmp_path / "scores.csv", index=False)

        store = load_store(str(tmp_path))
        assert store.marks["school_id"].tolist() == ["00123", "123"]
        assert store.scores["school_id"].tolist() == ["00123"]
        assert store.marks["participants"].tolist() == [10, 10]
        assert store.marks.iloc[0]["mark3"] == 50.0
        assert store.report["warnings"] == []
