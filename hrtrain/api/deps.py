"""Request dependencies: principal resolution and per-request workspace."""
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from hrtrain.database import get_db
from hrtrain.models.domain import User
from hrtrain.models.enums import UserRole
from hrtrain.services.audit_trail import AuditTrail
from hrtrain.services.store import SqlCourseStore, SqlUserStore
from hrtrain.services.workspace import Workspace


def get_principal(
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the X-User-Id header to a principal (401 if absent or unknown)."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
    user = SqlUserStore(db).get(x_user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


def get_active_principal(principal: User = Depends(get_principal)) -> User:
    """Principals flagged for a password change may do nothing else first."""
    if principal.must_change_password:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Password change required before continuing."}
        )
    return principal


def require_admin(principal: User = Depends(get_active_principal)) -> User:
    if principal.role != UserRole.SYSTEM_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Only system administrators may manage users."}
        )
    return principal


def get_workspace(
    principal: User = Depends(get_active_principal),
    db: Session = Depends(get_db)
) -> Workspace:
    return Workspace(principal, SqlCourseStore(db), audit=AuditTrail(db))
