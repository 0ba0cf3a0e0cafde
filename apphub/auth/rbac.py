"""Role-based access control — numeric role levels with an admin threshold."""

from fastapi import Depends, HTTPException, status

from ..config import HubConfig
from ..dependencies import get_app_config, get_current_user
from ..utils.logging import get_logger

logger = get_logger("auth.rbac")

ROLE_NONE = 0


def is_admin(role: int, threshold: int) -> bool:
    """Whether a role level meets the admin threshold."""
    return int(role) >= threshold


def require_admin():
    """FastAPI dependency factory that rejects callers below the admin threshold."""
    async def _check(
        current_user: dict = Depends(get_current_user),
        config: HubConfig = Depends(get_app_config),
    ) -> dict:
        role = int(current_user.get("role", ROLE_NONE))
        if not is_admin(role, config.admin_role_threshold):
            logger.info("admin_required_denied", user=current_user.get("sub"), role=role)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role {config.admin_role_threshold} or higher required",
            )
        current_user["is_admin"] = True
        return current_user

    return _check
