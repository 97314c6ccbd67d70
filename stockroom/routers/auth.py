from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from stockroom.core.api_docs import error_responses
from stockroom.core.deps import get_db
from stockroom.core.policies import Caller
from stockroom.core.security import create_access_token
from stockroom.core.security_current import get_current_caller, get_gateway
from stockroom.db.gateway import DataGateway
from stockroom.models.identity import Profile
from stockroom.schemas.auth import LoginIn, ProfileOut, ProfileUpdateIn, RegisterIn, TokenOut
from stockroom.services.identity_service import authenticate, create_identity, find_identity_by_email

router = APIRouter(prefix="/auth", tags=["auth"])


def _profile_out(profile: Profile, caller: Caller) -> ProfileOut:
    return ProfileOut(
        id=profile.id,
        full_name=profile.full_name,
        email=profile.email,
        roles=sorted(caller.roles, key=lambda role: role.value),
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


def _own_profile(gateway: DataGateway) -> Profile:
    profile = gateway.get(Profile, gateway.caller.user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.post(
    "/register",
    response_model=TokenOut,
    summary="Register an identity",
    description="Creates the identity and its profile in one transaction, then returns an access token.",
    responses=error_responses(400, 422, 500),
)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    if find_identity_by_email(db, payload.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    try:
        identity = create_identity(
            db,
            email=payload.email,
            password=payload.password,
            full_name=payload.full_name,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return TokenOut(access_token=create_access_token(identity.id))


@router.post(
    "/login",
    response_model=TokenOut,
    summary="Login with JSON",
    responses=error_responses(401, 422, 500),
)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    identity = authenticate(db, payload.email, payload.password)
    if not identity:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return TokenOut(access_token=create_access_token(identity.id))


@router.post(
    "/token",
    response_model=TokenOut,
    summary="OAuth2 password token (Swagger Authorize)",
    description="Form-data login endpoint used by Swagger Authorize. Put the email in the `username` field.",
    responses=error_responses(401, 422, 500),
)
def login_for_swagger(
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
):
    identity = authenticate(db, form_data.username, form_data.password)
    if not identity:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return TokenOut(access_token=create_access_token(identity.id))


@router.get(
    "/me",
    response_model=ProfileOut,
    summary="Current profile and roles",
    responses=error_responses(401, 404, 500),
)
def me(
    gateway: DataGateway = Depends(get_gateway),
    caller: Caller = Depends(get_current_caller),
):
    return _profile_out(_own_profile(gateway), caller)


@router.patch(
    "/me",
    response_model=ProfileOut,
    summary="Update own profile",
    responses=error_responses(401, 403, 404, 422, 500),
)
def update_me(
    payload: ProfileUpdateIn,
    gateway: DataGateway = Depends(get_gateway),
    caller: Caller = Depends(get_current_caller),
):
    profile = gateway.update(_own_profile(gateway), {"full_name": payload.full_name})
    gateway.db.commit()
    return _profile_out(profile, caller)
