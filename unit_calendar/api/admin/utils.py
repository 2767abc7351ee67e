"""Admin utility functions for access control."""

from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy.orm import Session

from unit_calendar.config.settings import settings
from unit_calendar.db.models import User


def require_admin(user_id: str, session: Session) -> None:
    """Require that the user is an admin or dev user.

    Checks admin status via:
    1. Dev user ID (DEV_USER_ID env var)
    2. Admin user IDs list (ADMIN_USER_IDS env var - comma-separated)
    3. The "admin" role on the user's record

    Args:
        user_id: User ID to check
        session: Database session used to look up the user's roles

    Raises:
        HTTPException: 401 if user_id is missing
        HTTPException: 403 if user is not admin/dev
    """
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    if settings.dev_user_id and user_id == settings.dev_user_id:
        return

    if user_id in settings.admin_user_id_list:
        return

    user = session.get(User, user_id)
    if user is not None and "admin" in (user.roles or []):
        return

    logger.warning(f"[AUTH] Admin access denied for user_id={user_id}")
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Admin access required",
    )
