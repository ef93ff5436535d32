import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security_utils import verify_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from a FixerHub access token"""

    if not credentials:
        logger.error("❌ No credentials provided")
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials

    # Basic token format validation before processing
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, token length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    payload = verify_access_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=401, detail="Invalid token claims") from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token for unknown user id {user_id}")
        raise HTTPException(status_code=401, detail="User not found")

    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Restrict a route to admin accounts"""
    if not current_user.is_admin:
        logger.warning(f"⚠️ Non-admin user {current_user.id} attempted an admin action")
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


async def require_provider(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_provider:
        raise HTTPException(status_code=403, detail="Only service providers can perform this action")
    return current_user
