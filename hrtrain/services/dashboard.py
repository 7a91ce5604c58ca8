"""Dashboard metrics and monthly grouping over a (visibility-filtered) record set."""
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Sequence

from hrtrain.models.domain import Course
from hrtrain.models.enums import CourseStatus


@dataclass
class DashboardStats:
    total_courses: int
    expected_total_cost: int
    actual_total_cost: int
    expected_total_hours: float
    actual_total_hours: float
    avg_satisfaction: float
    completion_rate: int
    opening_rate: int
    participation_rate: int


def _percent(part: float, whole: float) -> int:
    # Half-up rounding, matching how the rates are displayed
    if not whole:
        return 0
    return int(part / whole * 100 + 0.5)


def compute_stats(courses: Sequence[Course]) -> DashboardStats:
    """
    Compute the KPI cards.

    - Actual cost/hours exclude cancelled courses
    - Average satisfaction only counts completed courses
    - Participation rate divides by expected attendees of non-cancelled courses
    """
    total = len(courses)
    completed = [c for c in courses if c.status == CourseStatus.COMPLETED]
    running = [c for c in courses if c.status != CourseStatus.CANCELLED]

    avg_satisfaction = 0.0
    if completed:
        avg_satisfaction = sum(c.satisfaction or 0 for c in completed) / len(completed)

    expected_in_running = sum(c.expected_attendees or 0 for c in running)
    actual_attendees = sum(c.actual_attendees or 0 for c in courses)

    return DashboardStats(
        total_courses=total,
        expected_total_cost=sum(c.cost or 0 for c in courses),
        actual_total_cost=sum(c.cost or 0 for c in running),
        expected_total_hours=sum(c.duration or 0 for c in courses),
        actual_total_hours=sum(c.duration or 0 for c in running),
        avg_satisfaction=round(avg_satisfaction, 1),
        completion_rate=_percent(len(completed), total),
        opening_rate=_percent(len(running), total),
        participation_rate=_percent(actual_attendees, expected_in_running)
    )


def month_of(course: Course) -> str:
    """YYYY-MM of the start date."""
    return (course.start_date or "")[:7]


def monthly_series(courses: Sequence[Course]) -> List[Dict]:
    """Course count and cost per start month, months ascending."""
    data: Dict[str, Dict] = {}
    for course in courses:
        month = month_of(course)
        entry = data.setdefault(month, {"month": month, "courses": 0, "cost": 0})
        entry["courses"] += 1
        entry["cost"] += course.cost or 0
    return [data[month] for month in sorted(data)]


def status_breakdown(courses: Sequence[Course]) -> Dict[str, int]:
    """Count per status; statuses with no courses are omitted."""
    counts = OrderedDict((status.value, 0) for status in CourseStatus)
    for course in courses:
        if course.status is not None:
            counts[CourseStatus(course.status).value] += 1
    return OrderedDict((k, v) for k, v in counts.items() if v > 0)


def group_by_month(courses: Sequence[Course]) -> "OrderedDict[str, List[Course]]":
    """Group records by start month, months ascending, records by start date within a month."""
    groups: Dict[str, List[Course]] = {}
    for course in courses:
        groups.setdefault(month_of(course), []).append(course)
    return OrderedDict(
        (month, sorted(groups[month], key=lambda c: c.start_date or ""))
        for month in sorted(groups)
    )
