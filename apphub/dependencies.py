"""FastAPI dependency injection providers."""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import HubConfig, get_config
from .database import get_session, get_session_factory
from .engine.types import UserIdentity
from .utils.logging import get_logger
from .utils.security import decode_access_token

_dep_logger = get_logger("dependencies")

security_scheme = HTTPBearer(auto_error=False)

SESSION_COOKIE = "apphub_session"

_config_instance: HubConfig | None = None
_record_store = None
_session_registry = None


def get_app_config() -> HubConfig:
    """Get the application config singleton."""
    global _config_instance
    if _config_instance is None:
        _config_instance = get_config()
    return _config_instance


async def get_db(config: HubConfig = Depends(get_app_config)):
    """Get an async database session."""
    async for session in get_session(config):
        yield session


def get_record_store():
    """Get the record store singleton."""
    global _record_store
    if _record_store is None:
        from .store.record_store import RecordStore
        config = get_app_config()
        _record_store = RecordStore(
            db_session_factory=get_session_factory(config),
            default_card_color=config.default_card_color,
        )
    return _record_store


def get_session_registry():
    """Get the hub session registry singleton."""
    global _session_registry
    if _session_registry is None:
        from .engine.session import HubSessionRegistry
        config = get_app_config()
        _session_registry = HubSessionRegistry(
            get_record_store(),
            admin_threshold=config.admin_role_threshold,
            unknown_position=config.unknown_position_sentinel,
        )
    return _session_registry


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    config: HubConfig = Depends(get_app_config),
) -> dict:
    """Validate the JWT (Bearer header, then cookie) and return its claims."""
    raw_token = credentials.credentials if credentials else request.cookies.get(SESSION_COOKIE)

    if not raw_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(raw_token, config.secret_key, config.jwt_algorithm)
    if payload is None or "uid" not in payload:
        _dep_logger.debug("token_rejected", path=str(request.url.path))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


def identity_from_claims(claims: dict) -> UserIdentity:
    return UserIdentity(
        user_id=int(claims["uid"]),
        username=claims.get("sub", ""),
        role=int(claims.get("role", 0)),
    )


async def get_identity(current_user: dict = Depends(get_current_user)) -> UserIdentity:
    """The signed-in user as a UserIdentity."""
    return identity_from_claims(current_user)


async def get_hub_session(identity: UserIdentity = Depends(get_identity)):
    """The caller's hub session, opened (and loaded) on first use."""
    return await get_session_registry().get(identity)
