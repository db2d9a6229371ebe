"""
records.py — Shared vocabulary for the VPR fact tables.

Defines:
- Column names of the mark, score and bias tables
- The fixed raw-score domain (0..38)
- The ALL sentinel ("no restriction on this dimension")
- FilterSelection, the immutable filter state passed to every aggregator
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union


# ── Columns ─────────────────────────────────────────────────────────

KEY_COLUMNS = ["year", "grade", "subject", "municipality", "school_id", "school_name"]

MARK_COLUMNS = ["mark2", "mark3", "mark4", "mark5"]

MAX_SCORE = 38
SCORE_RANGE = range(0, MAX_SCORE + 1)
SCORE_COLUMNS = [f"score_{i}" for i in SCORE_RANGE]

# Column -> display label used by the dashboard tables
MARKER_CATEGORIES = {
    "markers_4_ru": "4 РУ",
    "markers_4_ma": "4 МА",
    "markers_5_ru": "5 РУ",
    "markers_5_ma": "5 МА",
}
MARKER_COLUMNS = list(MARKER_CATEGORIES)

MARKS_SCHEMA = KEY_COLUMNS + ["participants"] + MARK_COLUMNS
SCORES_SCHEMA = KEY_COLUMNS + ["participants"] + SCORE_COLUMNS
BIAS_SCHEMA = ["year", "municipality", "school_id", "school_name"] + MARKER_COLUMNS + ["total_markers"]

# The denominator cohort of the bias trend is fixed, whatever the filter says.
PROXY_GRADE = 4
PROXY_SUBJECT = "Русский язык"


class Table(Enum):
    MARKS = "marks"
    SCORES = "scores"
    BIAS = "bias"


# Dimensions that apply to each table. Bias rows carry no grade/subject.
TABLE_DIMENSIONS = {
    Table.MARKS: ("year", "grade", "subject", "municipality", "school_id"),
    Table.SCORES: ("year", "grade", "subject", "municipality", "school_id"),
    Table.BIAS: ("year", "municipality", "school_id"),
}


# ── ALL sentinel ────────────────────────────────────────────────────

class _AllScope:
    """Singleton marking an unrestricted dimension."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ALL"

    def __reduce__(self):
        return (_AllScope, ())


ALL = _AllScope()

ALL_LABEL = "Все"
RESERVED_LABELS = {ALL_LABEL.lower(), "all"}

Scope = Union[str, _AllScope]


def is_reserved_label(value: Any) -> bool:
    """True for strings the UI uses to mean "everything"."""
    return isinstance(value, str) and value.strip().lower() in RESERVED_LABELS


def parse_scope(value: Any) -> Scope:
    """Map a UI value to ALL or a concrete identifier."""
    if value is None or value is ALL:
        return ALL
    text = str(value).strip()
    if not text or is_reserved_label(text):
        return ALL
    return text


def scope_label(scope: Scope) -> str:
    return ALL_LABEL if scope is ALL else str(scope)


# ── Filter selection ────────────────────────────────────────────────

@dataclass(frozen=True)
class FilterSelection:
    """Current dashboard filter. Replaced wholesale on every change."""

    year: int
    grade: int
    subject: str
    municipality: Scope = ALL
    school: Scope = ALL

    def __post_init__(self):
        # "Все" / "all" passed directly mean ALL, never a concrete id
        object.__setattr__(self, "municipality", parse_scope(self.municipality))
        object.__setattr__(self, "school", parse_scope(self.school))

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "FilterSelection":
        """
        Build a selection from a JSON-like dict.
        Accepts "oo" as an alias of "school". Raises ValueError on bad input.
        """
        missing = [k for k in ("year", "grade", "subject") if payload.get(k) in (None, "")]
        if missing:
            raise ValueError(f"Missing filter fields: {', '.join(missing)}")
        try:
            year = int(payload["year"])
            grade = int(payload["grade"])
        except (TypeError, ValueError):
            raise ValueError("Filter fields 'year' and 'grade' must be integers.")
        school = payload.get("school", payload.get("oo"))
        return cls(
            year=year,
            grade=grade,
            subject=str(payload["subject"]).strip(),
            municipality=parse_scope(payload.get("municipality")),
            school=parse_scope(school),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "grade": self.grade,
            "subject": self.subject,
            "municipality": scope_label(self.municipality),
            "school": scope_label(self.school),
        }


def marker_breakdown(row: Dict[str, Any]) -> Dict[str, int]:
    """Per-category marker flags of a bias row, keyed by display label."""
    return {label: int(row[col]) for col, label in MARKER_CATEGORIES.items()}
