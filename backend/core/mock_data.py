"""
mock_data.py — Synthetic VPR dataset for demos and development.

Generates, for every school x year x grade x subject:
- a mark row (shares of marks 2-5 summing to 100)
- a score row (bell-shaped distribution over raw scores 0..38)
and randomly flags about 30% of school-years with bias markers.
The generator is seeded, so the same seed always yields the same store.
"""

import logging
from typing import Dict, List, Tuple

import numpy as np

from core.records import MARKER_COLUMNS, SCORE_RANGE
from core.store import RecordStore, build_store

logger = logging.getLogger(__name__)

MUNICIPALITIES = [
    "г. Махачкала",
    "г. Каспийск",
    "г. Дербент",
    "Акушинский район",
    "Агульский район",
]
SUBJECTS = ["Русский язык", "Математика", "Окружающий мир"]
GRADES = [4, 5, 6, 7]
YEARS = [2021, 2022, 2023]
SCHOOLS_PER_MUNICIPALITY = 10
LOGIN_PREFIX = "edu05"


def _random_marks(rng: np.random.Generator) -> Dict[str, float]:
    m2 = rng.random() * 10
    m3 = rng.random() * 30
    m4 = rng.random() * 40
    m5 = 100 - m2 - m3 - m4
    return {
        "mark2": round(m2, 2),
        "mark3": round(m3, 2),
        "mark4": round(m4, 2),
        "mark5": round(m5, 2),
    }


def _random_distribution(rng: np.random.Generator) -> Dict[int, float]:
    scores = np.arange(len(SCORE_RANGE))
    curve = np.exp(-((scores - 20) ** 2) / 50) * 10
    noisy = np.maximum(0, curve + rng.uniform(-1, 1, size=len(scores)))
    return {int(s): float(v) for s, v in zip(scores, noisy)}


def generate_rows(seed: int = 42) -> Tuple[List[Dict], List[Dict], List[Dict]]:
    """Return (marks, scores, bias) row lists."""
    rng = np.random.default_rng(seed)
    marks: List[Dict] = []
    scores: List[Dict] = []
    bias: List[Dict] = []

    counter = 1
    for muni in MUNICIPALITIES:
        for _ in range(SCHOOLS_PER_MUNICIPALITY):
            school_id = f"{LOGIN_PREFIX}{counter:04d}"
            school_name = f"МБОУ СОШ №{counter} {muni}"
            counter += 1

            for year in YEARS:
                for grade in GRADES:
                    for subject in SUBJECTS:
                        key = {
                            "year": year,
                            "grade": grade,
                            "subject": subject,
                            "municipality": muni,
                            "school_id": school_id,
                            "school_name": school_name,
                        }
                        participants = int(rng.integers(20, 220))
                        marks.append({**key, "participants": participants, **_random_marks(rng)})
                        scores.append({
                            **key,
                            "participants": participants,
                            "score_distribution": _random_distribution(rng),
                        })

                if rng.random() > 0.7:
                    flags = {col: int(rng.random() > 0.5) for col in MARKER_COLUMNS}
                    total = sum(flags.values())
                    if total > 0:
                        bias.append({
                            "year": year,
                            "municipality": muni,
                            "school_id": school_id,
                            "school_name": school_name,
                            **flags,
                            "total_markers": total,
                        })

    return marks, scores, bias


def generate_store(seed: int = 42) -> RecordStore:
    """Build a validated store from freshly generated rows."""
    marks, scores, bias = generate_rows(seed)
    logger.info(
        "Generated mock VPR dataset (seed=%d): %d schools, %d flagged school-years",
        seed, len(MUNICIPALITIES) * SCHOOLS_PER_MUNICIPALITY, len(bias),
    )
    return build_store(marks, scores, bias)
