"""Best-effort nutrition extraction from generated recipe markdown.

Parsing is lossy and never raises: a marker that cannot be found leaves its
field as None. Inline markers (``**Calories**: 450``) win over values read
from a markdown nutrition table.
"""

import re

from what2eat.domain.recipes import ParsedNutrition

_MARKERS: dict[str, str] = {
    "calories": r"calories",
    "protein": r"protein",
    "carbs": r"carbohydrates|carbs",
    "fat": r"fat",
}

# Marker, optional emphasis/colon/dash noise, then the first run of digits.
NUTRITION_PATTERNS: dict[str, re.Pattern[str]] = {
    field: re.compile(
        rf"(?<![a-z])(?:{marker})(?![a-z])"
        r"[ \t*_:~\-]*(?:approx\.?|about)?[ \t~]*(\d+)",
        re.IGNORECASE,
    )
    for field, marker in _MARKERS.items()
}

_HEADER_PATTERNS: dict[str, re.Pattern[str]] = {
    field: re.compile(rf"^\W*(?:{marker})\b", re.IGNORECASE)
    for field, marker in _MARKERS.items()
}
_SEPARATOR_CELL = re.compile(r"^:?-{2,}:?$")
_FIRST_INT = re.compile(r"(\d+)")


def parse_nutrition(text: object) -> ParsedNutrition:
    """Return the calories and macros found in ``text``."""
    if not isinstance(text, str) or not text:
        return ParsedNutrition()
    values = _parse_table(text)
    for field, pattern in NUTRITION_PATTERNS.items():
        match = pattern.search(text)
        if match:
            values[field] = int(match.group(1))
    return ParsedNutrition(
        calories=values.get("calories"),
        protein=values.get("protein"),
        carbs=values.get("carbs"),
        fat=values.get("fat"),
    )


def _parse_table(text: str) -> dict[str, int]:
    lines = [line.strip() for line in text.splitlines()]
    for index, line in enumerate(lines):
        if not line.startswith("|"):
            continue
        header = _cells(line)
        columns = _header_columns(header)
        if not columns:
            continue
        value_row = _next_value_row(lines[index + 1 :])
        if value_row is None:
            return {}
        values: dict[str, int] = {}
        for position, field in columns.items():
            if position >= len(value_row):
                continue
            match = _FIRST_INT.search(value_row[position])
            if match:
                values[field] = int(match.group(1))
        return values
    return {}


def _header_columns(cells: list[str]) -> dict[int, str]:
    columns: dict[int, str] = {}
    for position, cell in enumerate(cells):
        for field, pattern in _HEADER_PATTERNS.items():
            if field not in columns.values() and pattern.search(cell):
                columns[position] = field
                break
    # A table that only mentions one field is more likely prose than nutrition.
    return columns if len(columns) >= 2 else {}


def _next_value_row(lines: list[str]) -> list[str] | None:
    for line in lines:
        if not line.startswith("|"):
            return None
        cells = _cells(line)
        if all(_SEPARATOR_CELL.match(cell) for cell in cells if cell):
            continue
        return cells
    return None


def _cells(line: str) -> list[str]:
    return [cell.strip() for cell in line.strip().strip("|").split("|")]
