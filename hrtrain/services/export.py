"""CSV export of visible records in the import row format."""
import csv
import io
from typing import Iterable, List, Optional

from hrtrain.models.domain import Course, User
from hrtrain.models.enums import TrainingType
from hrtrain.services.normalizer import (
    CSV_HEADER,
    EXTERNAL_LABEL,
    FULL_WIDTH_COMMA,
    INTERNAL_LABEL,
    ROSTER_JOIN,
    ROSTER_SEPARATOR
)
from hrtrain.services.permissions import filter_visible


def filter_courses(
    courses: Iterable[Course],
    start_from: Optional[str] = None,
    start_to: Optional[str] = None,
    training_type: Optional[TrainingType] = None
) -> List[Course]:
    """Filter by inclusive start-date range (ISO strings) and training type."""
    result = []
    for course in courses:
        if start_from and (course.start_date or "") < start_from:
            continue
        if start_to and (course.start_date or "") > start_to:
            continue
        if training_type is not None and course.training_type != training_type:
            continue
        result.append(course)
    return result


def _format_number(value) -> str:
    if value is None:
        return "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def course_to_row(course: Course) -> List[str]:
    """Serialize a course to the 14 positional import fields."""
    is_external = course.training_type == TrainingType.EXTERNAL
    return [
        course.name or "",
        course.company or "",
        course.department or "",
        course.objective or "",
        course.start_date or "",
        course.end_date or "",
        course.time or "",
        _format_number(course.duration),
        _format_number(course.expected_attendees),
        course.instructor or "",
        course.instructor_org or "",
        _format_number(course.cost),
        EXTERNAL_LABEL if is_external else INTERNAL_LABEL,
        (course.trainees or "").replace(ROSTER_JOIN, ROSTER_SEPARATOR) if is_external else "",
    ]


def _write_row(buffer: io.StringIO, row: List[str]) -> None:
    # csv only knows one delimiter; rows with a full-width comma get every field quoted
    if any(FULL_WIDTH_COMMA in field for field in row):
        quoting = csv.QUOTE_ALL
    else:
        quoting = csv.QUOTE_MINIMAL
    csv.writer(buffer, quoting=quoting, lineterminator="\n").writerow(row)


def format_row(course: Course) -> str:
    """One course as a single import line, without the trailing newline."""
    buffer = io.StringIO()
    _write_row(buffer, course_to_row(course))
    return buffer.getvalue().rstrip("\n")


def export_csv(
    courses: Iterable[Course],
    principal: User,
    start_from: Optional[str] = None,
    start_to: Optional[str] = None,
    training_type: Optional[TrainingType] = None
) -> str:
    """
    Serialize the visible, filtered records as CSV text with a header line.

    Fields containing either delimiter (comma or full-width comma), a quote
    or a newline are quoted.
    """
    visible = filter_visible(courses, principal)
    rows = filter_courses(visible, start_from, start_to, training_type)

    buffer = io.StringIO()
    _write_row(buffer, CSV_HEADER.split(","))
    for course in rows:
        _write_row(buffer, course_to_row(course))
    return buffer.getvalue()
