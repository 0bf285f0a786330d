"""
CSV Parser Module for Spreadsheet Exports
=========================================

This module turns the raw text of a spreadsheet CSV export into a table of
string cells. Nothing is coerced here; later stages read cells by position.
"""

from typing import List

from models.assessment_models import Row, Table

MIN_ROW_CELLS = 6


class CsvParseError(Exception):
    pass


def parse_csv_line(line: str) -> Row:
    """
    Splits one line on commas outside double quotes.
    A doubled quote inside a quoted field is a literal quote.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return tuple(fields)


def parse_csv(text: str) -> Table:
    """
    Parses CSV text into rows of trimmed cells.
    Blank lines and rows with fewer than MIN_ROW_CELLS cells are dropped.
    """
    try:
        lines = [line for line in text.split("\n") if line.strip()]
        rows = (parse_csv_line(line) for line in lines)
        return tuple(row for row in rows if len(row) >= MIN_ROW_CELLS)
    except Exception as e:
        raise CsvParseError(f"Could not parse CSV data: {e}") from e
