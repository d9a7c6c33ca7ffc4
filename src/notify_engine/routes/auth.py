"""
Authentication

Bearer JWT verification for the notification API.
Tokens are issued by the identity service; this module only verifies them.
"""
import jwt
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Header

from ..config import Config

logger = logging.getLogger("notify.routes.auth")


def verify_token(token: str) -> Optional[dict]:
    """Verify and decode JWT token"""
    try:
        payload = jwt.decode(token, Config.JWT_SECRET, algorithms=[Config.JWT_ALGORITHM])
        return payload
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        return None
    except jwt.InvalidTokenError:
        return None


async def get_current_user(authorization: str = Header(None)) -> dict:
    """Dependency to get current authenticated caller"""
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    # Expect "Bearer <token>"
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    payload = verify_token(parts[1])
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user_id = payload.get("user_id") or payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token has no subject")

    return {
        "user_id": str(user_id),
        "is_admin": bool(payload.get("is_admin", False)),
    }


async def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """Dependency for operator-only endpoints"""
    if not current_user["is_admin"]:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
