"""Default principals and sample courses for an empty store."""
import logging

from sqlalchemy.orm import Session

from hrtrain.models.domain import CompanyPermission, Course, User
from hrtrain.models.enums import CourseStatus, CreatedBy, TrainingType, UserRole

logger = logging.getLogger(__name__)


def default_users():
    return [
        User(
            id="admin",
            username="admin",
            password="123",
            name="系統管理員",
            role=UserRole.SYSTEM_ADMIN,
            must_change_password=False,
            permissions=[]
        ),
        User(
            id="hr_user",
            username="hr",
            password="123",
            name="人資主管",
            role=UserRole.HR,
            must_change_password=True,
            permissions=[
                CompanyPermission(company="神資", view_all_departments=True, allowed_departments=[]),
                CompanyPermission(company="新達", view_all_departments=True, allowed_departments=[])
            ]
        ),
        User(
            id="dept_manager",
            username="user",
            password="123",
            name="部門主管",
            role=UserRole.GENERAL_USER,
            must_change_password=True,
            permissions=[
                CompanyPermission(
                    company="神資",
                    view_all_departments=False,
                    allowed_departments=["600-數位科技事業群"]
                )
            ]
        ),
    ]


def sample_courses():
    return [
        Course(
            id="1", name="React 基礎與實戰", company="神資", department="600-數位科技事業群",
            objective="提升前端開發能力", start_date="2023-11-05", end_date="2023-11-05",
            time="09:00-17:00", duration=7, expected_attendees=30, actual_attendees=28,
            instructor="張志明", instructor_org="前端技術學院", cost=15000, satisfaction=4.6,
            status=CourseStatus.COMPLETED, created_by=CreatedBy.HR,
            training_type=TrainingType.INTERNAL, trainees=""
        ),
        Course(
            id="2", name="溝通與領導力工作坊", company="新達", department="Z10-統合通訊處",
            objective="強化中階主管管理職能", start_date="2023-11-15", end_date="2023-11-16",
            time="13:00-17:00", duration=8, expected_attendees=15, actual_attendees=0,
            instructor="李春嬌", instructor_org="企管顧問公司", cost=25000, satisfaction=0,
            status=CourseStatus.PLANNED, created_by=CreatedBy.HR,
            training_type=TrainingType.EXTERNAL, trainees="陳經理, 林副理, 王襄理"
        ),
        Course(
            id="3", name="AI 工具應用分享", company="神耀", department="QA0-智能科技中心",
            objective="學習使用 Generative AI 提升工作效率", start_date="2023-12-01",
            end_date="2023-12-01", time="12:00-13:30", duration=1.5, expected_attendees=50,
            actual_attendees=0, instructor="王小明", instructor_org="內部講師", cost=0,
            satisfaction=0, status=CourseStatus.PLANNED, created_by=CreatedBy.USER,
            training_type=TrainingType.INTERNAL, trainees=""
        ),
    ]


def seed_defaults(db: Session) -> None:
    """Insert default principals and sample courses into empty tables."""
    if db.query(User).count() == 0:
        db.add_all(default_users())
        logger.info("Seeded default users")
    if db.query(Course).count() == 0:
        db.add_all(sample_courses())
        logger.info("Seeded sample courses")
    db.commit()
