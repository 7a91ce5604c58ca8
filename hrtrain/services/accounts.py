"""
Account rules: login, forced password change, principal management.

Credentials are compared for equality; they are not hashed.
"""
import logging
from typing import List, Optional

from hrtrain.models.domain import CompanyPermission, User
from hrtrain.models import taxonomy
from hrtrain.services.errors import RefusalError

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ID = "admin"
MIN_PASSWORD_LENGTH = 4


def login(user_store, username: str, password: str) -> Optional[User]:
    """Return the principal whose username and password both match, else None."""
    user = user_store.find_by_username(username)
    if user is None or user.password != password:
        logger.info("Failed login for %s", username)
        return None
    return user


def change_password(user_store, user: User, new_password: str, confirm_password: str) -> User:
    """
    Replace a principal's password and clear the force-change flag.

    Refusals:
    - Shorter than 4 characters
    - Confirmation differs
    """
    if len(new_password or "") < MIN_PASSWORD_LENGTH:
        raise RefusalError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if new_password != confirm_password:
        raise RefusalError("The two passwords do not match.")

    user.password = new_password
    user.must_change_password = False
    user_store.save_users([user])
    return user


def normalize_permissions(permissions: List[CompanyPermission]) -> List[CompanyPermission]:
    """
    Validate grants against the taxonomy.

    - Company must exist
    - View-all grants carry no department list
    - Listed departments must belong to the company
    """
    seen = set()
    for permission in permissions:
        if not taxonomy.is_known_company(permission.company):
            raise RefusalError(f"Unknown company: {permission.company}")
        if permission.company in seen:
            raise RefusalError(f"Duplicate permission for company: {permission.company}")
        seen.add(permission.company)

        if permission.view_all_departments:
            permission.allowed_departments = []
            continue

        valid = set(taxonomy.departments_of(permission.company))
        unknown = [d for d in permission.allowed_departments or [] if d not in valid]
        if unknown:
            raise RefusalError(
                f"Unknown departments for {permission.company}: {', '.join(unknown)}"
            )
        permission.allowed_departments = list(permission.allowed_departments or [])
    return permissions


def save_user(user_store, user: User) -> User:
    """
    Create or replace a principal after validating required fields and grants.

    The default administrator keeps its username and role.
    """
    if not user.username or not user.password or not user.name:
        raise RefusalError("Username, password and name are required.")

    if user.id == DEFAULT_ADMIN_ID:
        current = user_store.get(DEFAULT_ADMIN_ID)
        if current is not None and (current.username != user.username or current.role != user.role):
            raise RefusalError("The default administrator's username and role cannot be changed.")

    existing = user_store.find_by_username(user.username)
    if existing is not None and existing.id != user.id:
        raise RefusalError(f"Username already taken: {user.username}")

    normalize_permissions(user.permissions)

    user_store.save_users([user])
    return user_store.get(user.id)


def delete_user(user_store, user_id: str) -> None:
    if user_id == DEFAULT_ADMIN_ID:
        raise RefusalError("The default administrator cannot be deleted.")
    if user_store.get(user_id) is None:
        raise LookupError(user_id)
    user_store.delete_user(user_id)
