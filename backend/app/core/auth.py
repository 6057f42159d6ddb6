"""
Owner identity dependency.

Authentication happens upstream; the gateway forwards the authenticated
user id in the ``X-Owner-Id`` header and this service trusts it as-is.
"""
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from app.core.logging_config import LoggingConfig

OWNER_HEADER = "X-Owner-Id"
OWNER_ID_MAX_LENGTH = 255


async def get_current_owner(
    request: Request,
    x_owner_id: Optional[str] = Header(default=None, alias=OWNER_HEADER)
) -> str:
    """
    Resolve the calling owner

    Returns:
        Owner identifier

    Raises:
        HTTPException 401 if the header is missing or blank
    """
    owner_id = (x_owner_id or "").strip()
    if not owner_id or len(owner_id) > OWNER_ID_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing or invalid {OWNER_HEADER} header"
        )
    request.state.owner_id = owner_id
    LoggingConfig.set_context(owner_id=owner_id)
    return owner_id
