"""
Tests for dashboard metrics, monthly grouping and CSV export.
"""
import csv
import io

from hrtrain.models.enums import CourseStatus, TrainingType
from hrtrain.services.dashboard import compute_stats, group_by_month, monthly_series, status_breakdown
from hrtrain.services.export import export_csv, filter_courses
from hrtrain.services.normalizer import CSV_HEADER


class TestDashboardStats:
    """KPI formulas."""

    def test_empty_set(self):
        stats = compute_stats([])
        assert stats.total_courses == 0
        assert stats.avg_satisfaction == 0
        assert stats.completion_rate == 0
        assert stats.opening_rate == 0
        assert stats.participation_rate == 0

    def test_formulas(self, make_course):
        courses = [
            make_course(status=CourseStatus.COMPLETED, cost=1000, duration=2,
                        expected_attendees=10, actual_attendees=8, satisfaction=4.5),
            make_course(status=CourseStatus.COMPLETED, cost=2000, duration=3,
                        expected_attendees=10, actual_attendees=9, satisfaction=4.1),
            make_course(status=CourseStatus.PLANNED, cost=500, duration=1, expected_attendees=20),
            make_course(status=CourseStatus.CANCELLED, cost=700, duration=4,
                        expected_attendees=100, cancellation_reason="停辦"),
        ]
        stats = compute_stats(courses)

        assert stats.total_courses == 4
        assert stats.expected_total_cost == 4200
        assert stats.actual_total_cost == 3500
        assert stats.expected_total_hours == 10
        assert stats.actual_total_hours == 6
        assert stats.avg_satisfaction == 4.3
        assert stats.completion_rate == 50
        assert stats.opening_rate == 75
        # 17 actual / 40 expected in non-cancelled courses
        assert stats.participation_rate == 43

    def test_monthly_series_sorted(self, make_course):
        courses = [
            make_course(start_date="2024-03-02", cost=10),
            make_course(start_date="2024-01-05", cost=5),
            make_course(start_date="2024-03-20", cost=1),
        ]
        assert monthly_series(courses) == [
            {"month": "2024-01", "courses": 1, "cost": 5},
            {"month": "2024-03", "courses": 2, "cost": 11},
        ]

    def test_status_breakdown_omits_zero(self, make_course):
        courses = [make_course(status=CourseStatus.PLANNED), make_course(status=CourseStatus.PLANNED)]
        assert dict(status_breakdown(courses)) == {"Planned": 2}

    def test_group_by_month(self, make_course):
        late = make_course(start_date="2024-02-20")
        early = make_course(start_date="2024-02-01")
        january = make_course(start_date="2024-01-31")
        groups = group_by_month([late, early, january])

        assert list(groups) == ["2024-01", "2024-02"]
        assert groups["2024-02"] == [early, late]


class TestExport:
    """CSV export of visible, filtered records."""

    def test_only_visible_rows(self, hr_user, make_course):
        mine = make_course(name="可見")
        foreign = make_course(name="不可見", company="新達", department="Z10-統合通訊處")
        rows = list(csv.reader(io.StringIO(export_csv([mine, foreign], hr_user))))

        assert rows[0] == CSV_HEADER.split(",")
        assert [r[0] for r in rows[1:]] == ["可見"]

    def test_fields_with_delimiters_are_quoted(self, admin, make_course):
        course = make_course(objective='含, 逗號 "引號"\n換行')
        text = export_csv([course], admin)

        parsed = list(csv.reader(io.StringIO(text)))
        assert parsed[1][3] == course.objective
        assert '"含, 逗號 ""引號""' in text

    def test_roster_uses_pipe(self, admin, make_course):
        course = make_course(training_type=TrainingType.EXTERNAL, trainees="甲,乙")
        row = list(csv.reader(io.StringIO(export_csv([course], admin))))[1]
        assert row[12] == "外訓"
        assert row[13] == "甲|乙"

    def test_date_and_type_filters(self, admin, make_course):
        jan = make_course(start_date="2024-01-10")
        feb = make_course(start_date="2024-02-10", training_type=TrainingType.EXTERNAL)
        mar = make_course(start_date="2024-03-10")

        assert filter_courses([jan, feb, mar], start_from="2024-02-01") == [feb, mar]
        assert filter_courses([jan, feb, mar], start_to="2024-02-10") == [jan, feb]
        assert filter_courses([jan, feb, mar], training_type=TrainingType.EXTERNAL) == [feb]
