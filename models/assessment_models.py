"""
Data Models for Assessment Reporting
====================================

This module defines the data structures used to represent quiz submissions
throughout the fetch, scoring and aggregation pipeline. All models are
implemented as dataclasses; everything produced by the pipeline is frozen.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

Row = Tuple[str, ...]
Table = Tuple[Row, ...]


class DropReason(str, Enum):
    """Why a sheet row did not become a result record."""
    TOO_FEW_CELLS = "too_few_cells"
    MISSING_NAME = "missing_name"


@dataclass(frozen=True)
class DroppedRow:
    row_index: int
    reason: DropReason

    def to_dict(self) -> Dict[str, Any]:
        return {"rowIndex": self.row_index, "reason": self.reason.value}


@dataclass(frozen=True)
class ScoringKey:
    """Questions from the header row and the answers of the reference row.

    Index ``i`` of ``answer_key`` is the correct answer to ``questions[i]``.
    """
    questions: Tuple[str, ...]
    answer_key: Tuple[str, ...]
    reference_name: str = ""

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questions": list(self.questions),
            "correctAnswers": list(self.answer_key),
            "totalQuestions": self.total_questions,
        }


@dataclass(frozen=True)
class AnswerEntry:
    question_index: int
    selected_answer: str
    is_correct: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionIndex": self.question_index,
            "selectedAnswer": self.selected_answer,
            "isCorrect": self.is_correct,
        }


@dataclass(frozen=True)
class ResultRecord:
    full_name: str
    employee_id: str
    date_of_birth: str
    department: str
    timestamp: str
    original_score: str
    submission_date: datetime
    is_reference: bool = False
    answers: Tuple[AnswerEntry, ...] = ()

    @property
    def score(self) -> int:
        return sum(1 for answer in self.answers if answer.is_correct)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fullName": self.full_name,
            "employeeId": self.employee_id,
            "dateOfBirth": self.date_of_birth,
            "department": self.department,
            "score": self.score,
            "answers": [answer.to_dict() for answer in self.answers],
            "submissionDate": self.submission_date.isoformat(),
            "originalScore": self.original_score,
            "timestamp": self.timestamp,
            "isReferenceEmployee": self.is_reference,
        }


@dataclass(frozen=True)
class DepartmentSummary:
    name: str
    total_candidates: int
    passed: int
    failed: int
    average_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "totalCandidates": self.total_candidates,
            "passed": self.passed,
            "failed": self.failed,
            "averageScore": self.average_score,
        }


@dataclass(frozen=True)
class DashboardSummary:
    total_responses: int = 0
    passed_count: int = 0
    failed_count: int = 0
    average_score: float = 0.0
    departments: Tuple[str, ...] = ()
    department_stats: Tuple[DepartmentSummary, ...] = ()
    responses: Tuple[ResultRecord, ...] = ()
    reference: Optional[ResultRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalResponses": self.total_responses,
            "passedCount": self.passed_count,
            "failedCount": self.failed_count,
            "averageScore": self.average_score,
            "departments": list(self.departments),
            "departmentStats": [stats.to_dict() for stats in self.department_stats],
            "responses": [record.to_dict() for record in self.responses],
            "referenceEmployee": self.reference.to_dict() if self.reference else None,
        }


@dataclass(frozen=True)
class ProcessedSheet:
    """Everything one pass of the scoring pipeline produced for a table."""
    key: Optional[ScoringKey] = None
    results: Tuple[ResultRecord, ...] = ()
    dropped: Tuple[DroppedRow, ...] = ()

    @property
    def reference(self) -> Optional[ResultRecord]:
        return next((r for r in self.results if r.is_reference), None)


@dataclass(frozen=True)
class SheetSnapshot:
    """A fetched table plus where it came from ("remote" or "fallback")."""
    table: Table
    source: str
    fetched_at: datetime
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"
