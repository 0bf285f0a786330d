"""
Analytics and Metrics Calculation Module
=========================================

This module folds graded results into dashboard statistics and prepares
tabular views of API responses for the dashboard.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Sequence

import pandas as pd

from models.assessment_models import DashboardSummary, DepartmentSummary, ResultRecord

PASS_THRESHOLD = 6

SCORE_BINS = (("0-2", 0, 2), ("3-4", 3, 4), ("5-6", 5, 6), ("7-8", 7, 8), ("9-10", 9, 10))

FRAME_COLUMNS = ["Name", "Employee ID", "Department", "DOB", "Score", "Status",
                 "Submission Date", "Reference", "Detailed Answers"]


def round_half_up(value: float, places: int = 1) -> float:
    """Rounds 2.25 -> 2.3 (Python's round() would give 2.2)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def is_passed(score: int) -> bool:
    return score >= PASS_THRESHOLD


def _average(scores: Sequence[int]) -> float:
    return round_half_up(sum(scores) / len(scores)) if scores else 0.0


def calculate_department_stats(results: Sequence[ResultRecord], department: str) -> DepartmentSummary:
    scores = [r.score for r in results if r.department == department]
    passed = sum(1 for score in scores if is_passed(score))
    return DepartmentSummary(
        name=department,
        total_candidates=len(scores),
        passed=passed,
        failed=len(scores) - passed,
        average_score=_average(scores),
    )


def calculate_summary(results: Iterable[ResultRecord]) -> DashboardSummary:
    """
    Computes totals, pass/fail counts, the average score and per-department
    statistics. The first record is reported as the reference.
    """
    results = tuple(results)
    if not results:
        return DashboardSummary()

    scores = [r.score for r in results]
    passed = sum(1 for score in scores if is_passed(score))
    departments = tuple(dict.fromkeys(r.department for r in results if r.department))

    return DashboardSummary(
        total_responses=len(results),
        passed_count=passed,
        failed_count=len(results) - passed,
        average_score=_average(scores),
        departments=departments,
        department_stats=tuple(calculate_department_stats(results, d) for d in departments),
        responses=results,
        reference=results[0],
    )


def pass_percentage(passed: int, total: int) -> int:
    return int(round_half_up(passed / total * 100, 0)) if total else 0


def score_distribution(scores: Iterable[int]) -> Dict[str, int]:
    """Counts scores into the 0-2 .. 9-10 bands used by the distribution chart."""
    counts = {label: 0 for label, _, _ in SCORE_BINS}
    for score in scores:
        for label, _, upper in SCORE_BINS:
            if score <= upper:
                counts[label] += 1
                break
        else:
            counts[SCORE_BINS[-1][0]] += 1
    return counts


def describe_answers(answers: List[Dict[str, Any]]) -> str:
    return "; ".join(
        f"Q{i + 1}: {a.get('selectedAnswer', '')} ({'Correct' if a.get('isCorrect') else 'Wrong'})"
        for i, a in enumerate(answers)
    )


def results_to_frame(responses: List[Dict[str, Any]]) -> pd.DataFrame:
    """Flattens response dicts (as served by the API) into one row per employee."""
    flat_data = []
    for response in responses:
        score = int(response.get("score", 0))
        flat_data.append({
            "Name": response.get("fullName", ""),
            "Employee ID": str(response.get("employeeId", "")),
            "Department": response.get("department", ""),
            "DOB": response.get("dateOfBirth", ""),
            "Score": score,
            "Status": "Passed" if is_passed(score) else "Failed",
            "Submission Date": pd.to_datetime(response.get("submissionDate"), errors="coerce"),
            "Reference": bool(response.get("isReferenceEmployee", False)),
            "Detailed Answers": describe_answers(response.get("answers", [])),
        })

    return pd.DataFrame(flat_data, columns=FRAME_COLUMNS)
