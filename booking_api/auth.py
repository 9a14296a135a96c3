"""
Admin authentication for dashboard endpoints.

User sign-in lives outside this service; the admin dashboard calls the API
with a shared bearer token.
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import ADMIN_API_TOKEN

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """Reject requests that don't carry the admin bearer token"""
    if not ADMIN_API_TOKEN:
        logger.error("❌ ADMIN_API_TOKEN not configured - admin endpoints disabled")
        raise HTTPException(status_code=503, detail="Admin access not configured")

    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    if not hmac.compare_digest(credentials.credentials, ADMIN_API_TOKEN):
        logger.warning("🚫 Invalid admin token presented")
        raise HTTPException(status_code=401, detail="Invalid token")
