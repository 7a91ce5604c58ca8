"""
Record validator/normalizer for batch-import rows.

Turns one raw CSV line into either a canonical Course or a RowRejection.
Rows are positional; the named-index RawRow exists only at this boundary.
"""
import csv
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import List, NamedTuple, Optional, Union

from hrtrain.models.domain import Course, User, new_course_id
from hrtrain.models.enums import CourseStatus, TrainingType
from hrtrain.services.permissions import created_by_for, view_refusal_reason

logger = logging.getLogger(__name__)

# Header label of the first column; a first line containing it is skipped
HEADER_LABEL = "課程名稱"

CSV_HEADER = (
    "課程名稱,公司別,部門/單位,課程目的,開始日期,結束日期,時間,時數,"
    "預計人數,講師,講師單位,費用,訓練類型(內訓/外訓),受訓名單"
)

SAMPLE_ROWS = (
    "Excel進階實戰,神資,600-數位科技事業群,提升資料處理效率,2024-01-15,2024-01-15,"
    "09:00-17:00,7,30,陳大文,數據中心,12000,內訓,\n"
    "溝通技巧,新達,Z10-統合通訊處,強化跨部門溝通,2024-01-20,2024-01-20,"
    "13:30-16:30,3,20,林小美,HR,5000,外訓,王小明|李大偉"
)

FULL_WIDTH_COMMA = "，"
ROSTER_SEPARATOR = "|"  # Separator inside the trainees cell
ROSTER_JOIN = ","  # Canonical join character of Course.trainees

INTERNAL_LABEL = "內訓"
EXTERNAL_LABEL = "外訓"

MIN_FIELDS = 3
ROW_WIDTH = 14

DEFAULT_COURSE_NAME = "未命名課程"
UNKNOWN_NAME = "(unknown)"

_FLOAT_PREFIX = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")
_INT_PREFIX = re.compile(r"\s*([-+]?\d+)")


class RawRow(NamedTuple):
    """The 14 positional fields of an import row, in CSV column order."""
    name: str
    company: str
    department: str
    objective: str
    start_date: str
    end_date: str
    time: str
    duration: str
    expected_attendees: str
    instructor: str
    instructor_org: str
    cost: str
    training_type: str
    trainees: str


@dataclass
class RowRejection:
    """A rejected import row, with the original text kept for audit."""
    row_number: int
    display_name: str
    reason: str
    raw_row_text: str


def _unify_separators(line: str) -> str:
    """Turn full-width commas outside quoted fields into plain commas."""
    chars = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == FULL_WIDTH_COMMA and not in_quotes:
            char = ","
        chars.append(char)
    return "".join(chars)


def split_fields(line: str) -> List[str]:
    """
    Split one line into trimmed fields.

    A full-width comma also separates fields, except inside a quoted field.
    """
    fields = next(csv.reader([_unify_separators(line)]), [])
    return [f.strip() for f in fields]


def to_raw_row(fields: List[str]) -> RawRow:
    """Pad (or cut) positional fields to the fixed row width."""
    padded = list(fields[:ROW_WIDTH]) + [""] * max(0, ROW_WIDTH - len(fields))
    return RawRow(*padded)


def parse_number(value: str) -> float:
    """
    Parse the leading number of a text field.

    Unparsable, absent or negative values give 0; a bad number never rejects a row.
    """
    match = _FLOAT_PREFIX.match(value or "")
    if not match:
        return 0.0
    number = float(match.group(1))
    return number if number > 0 else 0.0


def parse_integer(value: str) -> int:
    """Integer counterpart of parse_number: leading digits only, 0 otherwise."""
    match = _INT_PREFIX.match(value or "")
    if not match:
        return 0
    number = int(match.group(1))
    return number if number > 0 else 0


def classify_training_type(label: str) -> TrainingType:
    """External iff the label mentions external training in either language."""
    label = label or ""
    if EXTERNAL_LABEL in label or "external" in label.lower():
        return TrainingType.EXTERNAL
    return TrainingType.INTERNAL


def normalize_roster(value: str) -> str:
    return (value or "").replace(ROSTER_SEPARATOR, ROSTER_JOIN)


def normalize_row(
    line: str,
    row_number: int,
    principal: User,
    today: Optional[date] = None
) -> Union[Course, RowRejection]:
    """
    Validate and normalize one import row.

    Steps, in order (each may reject):
    1. Column count - fewer than 3 physical fields rejects the row
    2. Permission - the principal must be able to view company/department
    3. Coercion - numbers default to 0, dates to today, type to Internal
    4. Identity - a fresh id is minted, never read from the row
    5. Attribution - created_by comes from the principal's role
    6. Execution defaults - imported courses always start Planned
    """
    raw_text = line.strip()
    fields = split_fields(raw_text)

    if len(fields) < MIN_FIELDS:
        return RowRejection(
            row_number=row_number,
            display_name=(fields[0] if fields else "") or UNKNOWN_NAME,
            reason="Malformed row (insufficient fields)",
            raw_row_text=raw_text
        )

    row = to_raw_row(fields)
    name = row.name or DEFAULT_COURSE_NAME

    reason = view_refusal_reason(principal, row.company, row.department)
    if reason is not None:
        logger.debug("Row %d rejected: %s", row_number, reason)
        return RowRejection(
            row_number=row_number,
            display_name=name,
            reason=reason,
            raw_row_text=raw_text
        )

    today_iso = (today or date.today()).isoformat()

    return Course(
        id=new_course_id(),
        name=name,
        company=row.company,
        department=row.department,
        objective=row.objective,
        start_date=row.start_date or today_iso,
        end_date=row.end_date or row.start_date or today_iso,
        time=row.time,
        duration=parse_number(row.duration),
        expected_attendees=parse_integer(row.expected_attendees),
        instructor=row.instructor,
        instructor_org=row.instructor_org,
        cost=parse_integer(row.cost),
        training_type=classify_training_type(row.training_type),
        trainees=normalize_roster(row.trainees),
        actual_attendees=0,
        satisfaction=0,
        status=CourseStatus.PLANNED,
        cancellation_reason=None,
        created_by=created_by_for(principal)
    )
