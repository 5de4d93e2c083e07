from app.models.student import Student
from app.services.csv_import import get_csv_template, import_students_csv, parse_students_csv

HEADER = "studentId,firstName,lastName,class,gradeLevel,email,contactPhone"


def test_missing_grade_level_header_fails_whole_batch():
    content = "studentId,firstName,lastName,class\n1,Ana,Lee,10A\n"
    result = parse_students_csv(content)
    assert result.success is False
    assert result.message == "Missing required headers in CSV file"
    assert result.errors == ["Missing headers: gradeLevel"]
    assert result.data == []


def test_one_bad_grade_among_valid_rows():
    content = "\n".join(
        [
            HEADER,
            "1,Ana,Lee,10A,10,ana@school.mu,5234 1234",
            "2,Ben,Ng,10A,ten,,",
            "3,Cy,Oh,10B,11,,",
        ]
    )
    result = parse_students_csv(content)
    assert result.success is True
    assert [s.student_id for s in result.data] == ["1", "3"]
    assert result.errors == ["Line 3: gradeLevel must be a number"]
    assert result.message == "Successfully imported 2 students with 1 errors"


def test_row_level_errors_are_numbered_by_file_line():
    content = "\n".join(
        [
            HEADER,
            "1,Ana,Lee,10A,10,,",
            "",
            "2,Ben,Ng,10A",
            "3,,Oh,10B,11,,",
        ]
    )
    result = parse_students_csv(content)
    assert result.success is True
    assert len(result.data) == 1
    assert result.errors == [
        "Line 4: Incorrect number of fields",
        "Line 5: Missing firstName",
    ]


def test_empty_file():
    result = parse_students_csv("")
    assert result.success is False
    assert result.message == "CSV file is empty or invalid"


def test_no_valid_rows():
    result = parse_students_csv(HEADER + "\n1,Ana,Lee,10A,x,,\r\n")
    assert result.success is False
    assert result.message == "No valid students found in the CSV file"
    assert result.errors == ["Line 2: gradeLevel must be a number"]


def test_optional_columns_may_be_absent_or_blank():
    result = parse_students_csv("studentId,firstName,lastName,class,gradeLevel\n7,Ana,Lee,9C,9\n")
    row = result.data[0]
    assert row.class_name == "9C"
    assert row.grade_level == 9
    assert row.email is None
    assert row.contact_phone is None


def test_template_parses_cleanly():
    result = parse_students_csv(get_csv_template())
    assert result.success is True
    assert len(result.data) == 2
    assert result.errors == []


async def test_import_inserts_valid_rows_with_generated_ids(db):
    content = HEADER + "\n1,Ana,Lee,10A,10,ana@school.mu,\n2,Ben,Ng,10A,bad,,\n"
    result, students = await import_students_csv(content)
    assert result.success is True
    assert len(students) == 1
    assert students[0].id is not None
    stored = await Student.find_all().to_list()
    assert [s.first_name for s in stored] == ["Ana"]
    assert stored[0].email == "ana@school.mu"


async def test_failed_import_inserts_nothing(db):
    result, students = await import_students_csv("studentId,firstName\n1,Ana\n")
    assert result.success is False
    assert students == []
    assert await Student.count() == 0
