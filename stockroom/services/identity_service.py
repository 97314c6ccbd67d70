from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stockroom.core.security import hash_password, verify_password
from stockroom.models.identity import Identity
from stockroom.services.lifecycle_hooks import IDENTITY_CREATED, LifecycleHooks, hooks


def find_identity_by_email(db: Session, email: str) -> Identity | None:
    return db.execute(
        select(Identity).where(func.lower(Identity.email) == email.strip().lower())
    ).scalar_one_or_none()


def create_identity(
    db: Session,
    *,
    email: str,
    password: str,
    full_name: str | None = None,
    lifecycle: LifecycleHooks = hooks,
) -> Identity:
    """
    Insert an identity and run the identity_created hooks in the same unit of
    work. Does not commit: if provisioning raises, the caller's rollback
    discards the identity too.
    """
    metadata = {"full_name": full_name} if full_name is not None else {}
    identity = Identity(
        email=email.strip().lower(),
        hashed_password=hash_password(password),
        raw_user_meta_data=metadata,
    )
    db.add(identity)
    db.flush()
    lifecycle.emit(IDENTITY_CREATED, db, identity)
    return identity


def authenticate(db: Session, email: str, password: str) -> Identity | None:
    identity = find_identity_by_email(db, email)
    if not identity or not verify_password(password, identity.hashed_password):
        return None
    return identity
