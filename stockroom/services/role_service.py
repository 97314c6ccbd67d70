import json
import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from stockroom.models.enums import AppRole
from stockroom.models.identity import UserRole

logger = logging.getLogger("stockroom.api")


# Role lookups read user_roles directly and never go through the policy engine,
# otherwise checking the user_roles policies would need a role lookup itself.

def has_role(db: Session, user_id: str | None, role: AppRole) -> bool:
    if not user_id:
        return False
    found = db.execute(
        select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == role).limit(1)
    ).scalar_one_or_none()
    return found is not None


def load_roles(db: Session, user_id: str | None) -> frozenset[AppRole]:
    if not user_id:
        return frozenset()
    rows = db.execute(select(UserRole.role).where(UserRole.user_id == user_id)).scalars().all()
    return frozenset(AppRole(role) for role in rows)


def grant_role_elevated(db: Session, *, user_id: str, role: AppRole) -> UserRole:
    """Bootstrap path used by the operations CLI; bypasses the admin-only policy."""
    existing = db.execute(
        select(UserRole).where(UserRole.user_id == user_id, UserRole.role == role)
    ).scalar_one_or_none()
    if existing:
        return existing
    assignment = UserRole(user_id=user_id, role=role)
    db.add(assignment)
    db.flush()
    logger.info(json.dumps({"event": "role_granted", "user_id": user_id, "role": role.value, "elevated": True}))
    return assignment


def revoke_role_elevated(db: Session, *, user_id: str, role: AppRole) -> int:
    result = db.execute(
        delete(UserRole).where(UserRole.user_id == user_id, UserRole.role == role)
    )
    logger.info(json.dumps({"event": "role_revoked", "user_id": user_id, "role": role.value, "elevated": True}))
    return result.rowcount or 0
