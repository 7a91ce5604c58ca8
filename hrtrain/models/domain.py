"""Domain models - training courses, principals and their company permissions."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, ForeignKey, Enum as SQLEnum, JSON
from sqlalchemy.orm import relationship
from hrtrain.database import Base
from hrtrain.models.enums import (
    UserRole,
    CourseStatus,
    CreatedBy,
    TrainingType
)


def new_course_id() -> str:
    """Mint a fresh globally-unique course id."""
    return str(uuid.uuid4())


class Course(Base):
    """
    One training-course record.

    Invariants:
    - id is assigned at creation and never changes
    - company + department together decide who may see the record
    - created_by is set from the creating principal's role, never from input
    - cancellation_reason is only meaningful when status is Cancelled
    - trainees is only meaningful for External training
    """
    __tablename__ = "courses"

    id = Column(String, primary_key=True, default=new_course_id)

    # Descriptive fields
    name = Column(String, nullable=False)
    objective = Column(String, nullable=False, default="")
    instructor = Column(String, nullable=False, default="")
    instructor_org = Column(String, nullable=False, default="")

    # Scoping fields
    company = Column(String, nullable=False, index=True)
    department = Column(String, nullable=False, default="")

    # Scheduling - ISO dates kept as strings so they compare in calendar order
    start_date = Column(String, nullable=False)
    end_date = Column(String, nullable=False)
    time = Column(String, nullable=False, default="")
    duration = Column(Float, nullable=False, default=0)  # Hours

    expected_attendees = Column(Integer, nullable=False, default=0)
    actual_attendees = Column(Integer, nullable=False, default=0)
    cost = Column(Integer, nullable=False, default=0)
    satisfaction = Column(Float, nullable=False, default=0)  # 0 = not rated

    status = Column(SQLEnum(CourseStatus), nullable=False, default=CourseStatus.PLANNED)
    cancellation_reason = Column(String, nullable=True)
    created_by = Column(SQLEnum(CreatedBy), nullable=False, default=CreatedBy.HR)
    training_type = Column(SQLEnum(TrainingType), nullable=False, default=TrainingType.INTERNAL)
    trainees = Column(String, nullable=False, default="")  # Comma-joined roster

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class User(Base):
    """
    A principal: credentials, role and per-company visibility grants.

    The credential is compared for equality only.
    """
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    username = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.GENERAL_USER)
    must_change_password = Column(Boolean, nullable=False, default=False)

    permissions = relationship(
        "CompanyPermission",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="CompanyPermission.id"
    )


class CompanyPermission(Base):
    """
    A principal's visibility grant for one company.

    Invariants:
    - When view_all_departments is true, allowed_departments is empty
    - Otherwise allowed_departments lists the departments the principal may access
    """
    __tablename__ = "company_permissions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    company = Column(String, nullable=False)
    view_all_departments = Column(Boolean, nullable=False, default=False)
    allowed_departments = Column(JSON, nullable=False, default=list)

    user = relationship("User", back_populates="permissions")
