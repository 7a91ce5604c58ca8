"""Append-only audit writer for the AuditEvent table."""
from typing import Optional

from sqlalchemy.orm import Session

from hrtrain.models.audit import AuditEvent


class AuditTrail:
    """Writes AuditEvent rows. Events are never edited or deleted."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        event_type: str,
        entity_type: str,
        entity_id: str,
        user_id: Optional[str] = None,
        payload: Optional[dict] = None
    ) -> AuditEvent:
        event = AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=str(entity_id),
            user_id=user_id,
            payload_json=payload
        )
        self.db.add(event)
        self.db.commit()
        return event
