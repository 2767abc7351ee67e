"""FastAPI dependency resolving the calling user.

Authentication happens upstream in the portal's auth gateway, which forwards
the verified user id in the X-User-Id header.
"""

from __future__ import annotations

from fastapi import Header, HTTPException, status
from loguru import logger


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the authenticated user id.

    Raises:
        HTTPException: 401 if the gateway did not forward a user id
    """
    if not x_user_id or not x_user_id.strip():
        logger.warning("[AUTH] Request without X-User-Id header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return x_user_id.strip()
