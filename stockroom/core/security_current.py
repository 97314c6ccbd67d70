from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from stockroom.core.deps import get_db
from stockroom.core.policies import Caller
from stockroom.core.security import TokenValidationError, decode_token
from stockroom.db.gateway import DataGateway
from stockroom.models.identity import Identity
from stockroom.services.role_service import load_roles

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


def get_current_identity(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Identity:
    try:
        payload = decode_token(token, expected_type="access")
    except TokenValidationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    identity = db.execute(
        select(Identity).where(Identity.id == payload.get("sub"))
    ).scalar_one_or_none()
    if not identity:
        raise HTTPException(status_code=401, detail="User not found")
    return identity


def get_current_caller(
    identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)
) -> Caller:
    return Caller(user_id=identity.id, roles=load_roles(db, identity.id))


def get_gateway(
    caller: Caller = Depends(get_current_caller), db: Session = Depends(get_db)
) -> DataGateway:
    return DataGateway(db, caller)
