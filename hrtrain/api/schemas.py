"""Pydantic schemas for request/response validation."""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from hrtrain.models.enums import (
    UserRole,
    CourseStatus,
    CreatedBy,
    TrainingType,
    ImportStage
)


# Course schemas
class CourseWrite(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    company: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    objective: str = ""
    start_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    end_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    time: str = ""
    duration: float = Field(0, ge=0)
    expected_attendees: int = Field(0, ge=0)
    actual_attendees: int = Field(0, ge=0)
    instructor: str = ""
    instructor_org: str = ""
    cost: int = Field(0, ge=0)
    satisfaction: float = Field(0, ge=0, le=5)
    status: CourseStatus = CourseStatus.PLANNED
    cancellation_reason: Optional[str] = None
    training_type: TrainingType = TrainingType.INTERNAL
    trainees: str = ""

    @model_validator(mode="after")
    def cancellation_needs_reason(self):
        if self.status == CourseStatus.CANCELLED and not (self.cancellation_reason or "").strip():
            raise ValueError("cancellation_reason is required when status is Cancelled")
        return self


class CourseResponse(BaseModel):
    id: str
    name: str
    company: str
    department: str
    objective: str
    start_date: str
    end_date: str
    time: str
    duration: float
    expected_attendees: int
    actual_attendees: int
    instructor: str
    instructor_org: str
    cost: int
    satisfaction: float
    status: CourseStatus
    cancellation_reason: Optional[str]
    created_by: CreatedBy
    training_type: TrainingType
    trainees: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MonthGroup(BaseModel):
    month: str
    courses: List[CourseResponse]


class BatchDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)
    confirm: bool = False


class BatchOutcomeResponse(BaseModel):
    succeeded: int
    failed: int
    error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# Import schemas
class ImportTextRequest(BaseModel):
    text: str


class RowRejectionResponse(BaseModel):
    row_number: int
    display_name: str
    reason: str
    raw_row_text: str

    model_config = ConfigDict(from_attributes=True)


class ImportSessionResponse(BaseModel):
    id: str
    stage: ImportStage
    accepted_count: int
    rejected_count: int
    accepted: List[CourseResponse]
    rejected: List[RowRejectionResponse]
    error: Optional[str] = None


class ImportTemplateResponse(BaseModel):
    header: str
    sample: str


# Dashboard schemas
class DashboardStatsResponse(BaseModel):
    total_courses: int
    expected_total_cost: int
    actual_total_cost: int
    expected_total_hours: float
    actual_total_hours: float
    avg_satisfaction: float
    completion_rate: int
    opening_rate: int
    participation_rate: int

    model_config = ConfigDict(from_attributes=True)


class MonthlyPoint(BaseModel):
    month: str
    courses: int
    cost: int


class DashboardResponse(BaseModel):
    stats: DashboardStatsResponse
    monthly: List[MonthlyPoint]
    status: Dict[str, int]


# Account schemas
class CompanyPermissionSchema(BaseModel):
    company: str
    view_all_departments: bool = False
    allowed_departments: List[str] = []

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    id: str
    username: str
    name: str
    role: UserRole
    must_change_password: bool
    permissions: List[CompanyPermissionSchema]

    model_config = ConfigDict(from_attributes=True)


class UserWrite(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    role: UserRole = UserRole.GENERAL_USER
    must_change_password: bool = True
    permissions: List[CompanyPermissionSchema] = []


class LoginRequest(BaseModel):
    username: str
    password: str


class ChangePasswordRequest(BaseModel):
    new_password: str
    confirm_password: str


class TaxonomyResponse(BaseModel):
    companies: List[str]
    departments: Dict[str, List[str]]


# Error response
class RefusalResponse(BaseModel):
    """Response when an action is refused."""
    message: str
