"""
Internal audit logging model - NOT a user-facing domain object.

This model exists to provide immutable, append-only audit trails
for course mutations, batch operations and import commits.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON
from hrtrain.database import Base


class AuditEvent(Base):
    """
    Immutable audit event.

    Invariants:
    - Once written, never edited or deleted
    - Append-only
    """
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    event_type = Column(String, nullable=False, index=True)  # e.g., "import_committed"
    entity_type = Column(String, nullable=False)  # e.g., "Course", "ImportSession"
    entity_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=True)  # Nullable for system events
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    payload_json = Column(JSON, nullable=True)  # Minimal contextual data


class AuditEventType:
    """Enumeration of audit event types."""
    # Course lifecycle
    COURSE_CREATED = "course_created"
    COURSE_UPDATED = "course_updated"
    COURSE_DELETED = "course_deleted"

    # Batch operations
    COURSES_BATCH_DELETED = "courses_batch_deleted"
    IMPORT_COMMITTED = "import_committed"

    # Accounts
    PASSWORD_CHANGED = "password_changed"
