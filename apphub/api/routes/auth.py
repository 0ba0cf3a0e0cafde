"""Authentication routes — login opens the caller's hub session, logout closes it."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import HubConfig
from ...dependencies import (
    SESSION_COOKIE,
    get_app_config,
    get_db,
    get_identity,
    get_record_store,
    get_session_registry,
    identity_from_claims,
)
from ...engine.types import UserIdentity
from ...errors import RecordStoreError
from ...models.user import User
from ...utils.logging import get_logger
from ...utils.security import create_access_token, verify_password

logger = get_logger("api.auth")

router = APIRouter(prefix="/auth", tags=["auth"])

FALLBACK_USERNAME = "User"


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    config: HubConfig = Depends(get_app_config),
):
    """Authenticate, issue a JWT and start a fresh hub session."""
    result = await db.execute(select(User).where(User.username == body.username))
    user = result.scalar_one_or_none()

    if not user or not verify_password(body.password, user.password_hash):
        logger.info("login_failed", username=body.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    user.last_login = datetime.now(timezone.utc)
    await db.commit()

    claims = {"sub": user.username, "uid": user.id, "role": user.role}
    token = create_access_token(
        data=claims,
        secret_key=config.secret_key,
        algorithm=config.jwt_algorithm,
        expires_minutes=config.jwt_expiry_minutes,
    )

    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="strict",
        secure=not config.debug,
        max_age=config.jwt_expiry_minutes * 60,
        path="/",
    )

    # A new sign-in always re-fetches and resets edit mode
    await get_session_registry().open(identity_from_claims(claims))
    logger.info("login_succeeded", user_id=user.id, role=user.role)

    return {"access_token": token, "token_type": "bearer"}


@router.post("/logout")
async def logout(response: Response, identity: UserIdentity = Depends(get_identity)):
    """Drop the caller's hub session and clear the cookie."""
    closed = get_session_registry().close(identity.user_id)
    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"logged_out": True, "session_closed": closed}


@router.get("/me")
async def me(
    identity: UserIdentity = Depends(get_identity),
    config: HubConfig = Depends(get_app_config),
):
    """Profile of the signed-in user, with a minimal fallback if it cannot be read."""
    try:
        profile = await get_record_store().get_user_profile(identity.user_id)
    except RecordStoreError as e:
        logger.warning("profile_fetch_failed", user_id=identity.user_id, error=str(e))
        profile = None

    if profile is None:
        profile = {"id": identity.user_id, "username": FALLBACK_USERNAME, "img_url": "", "role": 0}

    profile["is_admin"] = profile["role"] >= config.admin_role_threshold
    return profile
