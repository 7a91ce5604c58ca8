"""Enums for the training-record system - these define the valid values for roles and course fields."""
from enum import Enum


class UserRole(str, Enum):
    """Principal roles. SystemAdmin bypasses every company/department scope."""
    SYSTEM_ADMIN = "SystemAdmin"
    HR = "HR"
    GENERAL_USER = "GeneralUser"


class CourseStatus(str, Enum):
    """Lifecycle of a course."""
    PLANNED = "Planned"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class CreatedBy(str, Enum):
    """Who logically created a course. Drives the delete rule for general users."""
    HR = "HR"
    USER = "User"


class TrainingType(str, Enum):
    """Internal training vs. external training (the latter carries a trainee roster)."""
    INTERNAL = "Internal"
    EXTERNAL = "External"


class ViewName(str, Enum):
    """Top-level views of the workspace. Switching view clears the selection."""
    DASHBOARD = "dashboard"
    LIST = "list"
    IMPORT = "import"
    USERS = "users"


class ImportStage(str, Enum):
    """Stages of one batch-import session: Input -> Preview -> Result."""
    INPUT = "Input"
    PREVIEW = "Preview"
    RESULT = "Result"
