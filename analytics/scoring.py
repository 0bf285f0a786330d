"""
Scoring Module
==============

Derives the scoring key from a parsed sheet and grades every submission
against it.

Sheet layout (by column index):
    0 timestamp, 1 score shown in the sheet, 2 full name, 3 employee id,
    4 date of birth, 5 department, 6.. one column per question.

Row 0 holds the questions and row 1 is the reference employee, whose answers
are the key. The key is returned as a value and passed to every grading call.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional, Sequence

import pandas as pd

from models.assessment_models import (AnswerEntry, DropReason, DroppedRow, ProcessedSheet,
                                      ResultRecord, ScoringKey, Table)
from sheets.csv_parser import MIN_ROW_CELLS

logger = logging.getLogger(__name__)

QUESTION_START = 6
MAX_QUESTIONS = 10
NAME_COLUMN = 2

QUESTION_PREFIX = re.compile(r"^\d+\.\s*")


def _cell(row: Sequence[str], index: int) -> str:
    return row[index].strip() if index < len(row) and row[index] else ""


def strip_question_number(header: str) -> str:
    """'1. Which law...' -> 'Which law...'"""
    return QUESTION_PREFIX.sub("", header.strip()).strip()


def initialize_scoring_key(table: Table) -> Optional[ScoringKey]:
    """
    Builds the key from the header row and the reference row (row 1).
    Returns None when the table has no reference row or no question columns.
    """
    if not table or len(table) < 2:
        logger.warning("Insufficient data to initialize correct answers")
        return None

    header, reference_row = table[0], table[1]
    count = min(MAX_QUESTIONS, len(header) - QUESTION_START)
    if count <= 0:
        logger.warning("Header has no question columns (%d columns)", len(header))
        return None

    columns = range(QUESTION_START, QUESTION_START + count)
    questions = tuple(strip_question_number(header[i]) for i in columns)
    answer_key = tuple(_cell(reference_row, i) for i in columns)

    key = ScoringKey(questions=questions, answer_key=answer_key,
                     reference_name=_cell(reference_row, NAME_COLUMN))
    logger.info("Loaded %d questions, reference employee: %s",
                key.total_questions, key.reference_name or "unknown")
    for index, (question, answer) in enumerate(zip(questions, answer_key)):
        logger.debug("Q%d: %s -> %s", index + 1, question[:50], answer)
    return key


def is_answer_correct(answer: str, question_index: int, key: ScoringKey) -> bool:
    """Case-insensitive, whitespace-trimmed match. Blank answers never count."""
    if question_index >= len(key.answer_key) or not answer or not answer.strip():
        return False
    return answer.strip().lower() == key.answer_key[question_index].strip().lower()


def parse_submission_date(timestamp: str, now: Optional[datetime] = None) -> datetime:
    """
    Parses the sheet timestamp.
    Unparseable values become ``now``, or the current time when ``now`` is not given.
    """
    parsed = pd.NaT
    if timestamp and timestamp.strip():
        try:
            parsed = pd.to_datetime(timestamp.strip(), errors="coerce")
        except (ValueError, TypeError, OverflowError):
            parsed = pd.NaT

    if pd.isna(parsed):
        return now if now is not None else datetime.now()
    return parsed.to_pydatetime()


def row_drop_reason(row: Sequence[str]) -> Optional[DropReason]:
    if not row or len(row) < MIN_ROW_CELLS:
        return DropReason.TOO_FEW_CELLS
    if not _cell(row, NAME_COLUMN):
        return DropReason.MISSING_NAME
    return None


def map_row_to_result(row: Sequence[str], key: ScoringKey, is_reference: bool = False,
                      now: Optional[datetime] = None) -> Optional[ResultRecord]:
    """
    Grades one sheet row. Returns None for rows that row_drop_reason rejects.

    The reference row is graded as fully correct: its answers are the key.
    """
    if row_drop_reason(row) is not None:
        return None

    answers = []
    for index in range(key.total_questions):
        selected = _cell(row, QUESTION_START + index)
        answers.append(AnswerEntry(
            question_index=index,
            selected_answer=selected,
            is_correct=True if is_reference else is_answer_correct(selected, index, key),
        ))

    timestamp = row[0] or ""
    record = ResultRecord(
        full_name=_cell(row, 2),
        employee_id=_cell(row, 3),
        date_of_birth=_cell(row, 4),
        department=_cell(row, 5),
        timestamp=timestamp,
        original_score=row[1] or "",
        submission_date=parse_submission_date(timestamp, now),
        is_reference=is_reference,
        answers=tuple(answers),
    )

    logger.debug("%s %s - Score: %d/%d", "Reference" if is_reference else "Employee",
                 record.full_name, record.score, key.total_questions)
    return record


def process_sheet_data(table: Table, now: Optional[datetime] = None) -> ProcessedSheet:
    """
    Runs initialization and grading over a whole table.
    The first data row is graded as the reference.
    """
    if not table or len(table) <= 1:
        logger.warning("No data rows to process")
        return ProcessedSheet()

    key = initialize_scoring_key(table)
    if key is None:
        logger.error("Failed to initialize correct answers")
        return ProcessedSheet()

    results: List[ResultRecord] = []
    dropped: List[DroppedRow] = []
    for row_index, row in enumerate(table[1:], start=1):
        reason = row_drop_reason(row)
        if reason is not None:
            dropped.append(DroppedRow(row_index=row_index, reason=reason))
            continue
        results.append(map_row_to_result(row, key, is_reference=row_index == 1, now=now))

    logger.info("Processed %d responses (%d rows skipped)", len(results), len(dropped))
    return ProcessedSheet(key=key, results=tuple(results), dropped=tuple(dropped))
