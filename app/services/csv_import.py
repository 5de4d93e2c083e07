"""Student roster import from CSV.

Lines are split on commas with no quoting support. Bad rows are reported per
line and skipped; the import succeeds when at least one row is valid.
"""
from __future__ import annotations

import re

from app.models.student import ImportResult, Student, StudentCreate
from app.services.students import add_students

REQUIRED_HEADERS = ["studentId", "firstName", "lastName", "class", "gradeLevel"]
OPTIONAL_HEADERS = ["email", "contactPhone"]

# CSV header -> StudentCreate field
FIELD_MAP = {
    "studentId": "student_id",
    "firstName": "first_name",
    "lastName": "last_name",
    "class": "class_name",
    "gradeLevel": "grade_level",
    "email": "email",
    "contactPhone": "contact_phone",
}

_LINE_SPLIT_RE = re.compile(r"\r\n|\n")
_INT_RE = re.compile(r"^\s*[+-]?\d+")


def _parse_grade(value: str) -> int | None:
    # Leading-integer parse: "10" and "10th" both give 10.
    match = _INT_RE.match(value)
    return int(match.group(0)) if match else None


def parse_students_csv(content: str) -> ImportResult:
    lines = _LINE_SPLIT_RE.split(content)
    if len(lines) < 2:
        return ImportResult(
            success=False,
            message="CSV file is empty or invalid",
            errors=["No data found in the file"],
        )

    headers = lines[0].split(",")
    missing = [h for h in REQUIRED_HEADERS if h not in headers]
    if missing:
        return ImportResult(
            success=False,
            message="Missing required headers in CSV file",
            errors=[f"Missing headers: {', '.join(missing)}"],
        )

    rows: list[StudentCreate] = []
    errors: list[str] = []
    for i, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        values = line.split(",")
        if len(values) != len(headers):
            errors.append(f"Line {i}: Incorrect number of fields")
            continue

        raw = dict(zip(headers, values))
        absent = next((f for f in REQUIRED_HEADERS if not raw.get(f)), None)
        if absent:
            errors.append(f"Line {i}: Missing {absent}")
            continue

        grade = _parse_grade(raw["gradeLevel"])
        if grade is None:
            errors.append(f"Line {i}: gradeLevel must be a number")
            continue

        fields = {FIELD_MAP[h]: raw[h] for h in REQUIRED_HEADERS + OPTIONAL_HEADERS if h in raw}
        fields["grade_level"] = grade
        for optional in ("email", "contact_phone"):
            if optional in fields and not fields[optional].strip():
                fields[optional] = None
        rows.append(StudentCreate(**fields))

    if not rows:
        return ImportResult(success=False, message="No valid students found in the CSV file", errors=errors)

    return ImportResult(
        success=True,
        message=f"Successfully imported {len(rows)} students with {len(errors)} errors",
        data=rows,
        errors=errors,
    )


async def import_students_csv(content: str) -> tuple[ImportResult, list[Student]]:
    """Parse and insert the valid rows."""
    result = parse_students_csv(content)
    if not result.success:
        return result, []
    students = await add_students(result.data)
    return result, students


def get_csv_template() -> str:
    return (
        "studentId,firstName,lastName,class,gradeLevel,email,contactPhone\n"
        "12345,John,Doe,10A,10,john.doe@school.edu,555-123-4567\n"
        "12346,Jane,Smith,10A,10,jane.smith@school.edu,555-234-5678"
    )
