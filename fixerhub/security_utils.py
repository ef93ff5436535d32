"""
Security Utilities
Password hashing, access tokens and email verification tokens
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

# Token generation and validation
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, EMAIL_VERIFICATION_MAX_AGE, SECRET_KEY

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
EMAIL_VERIFICATION_SALT = "email-verification"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# TOKEN GENERATION & VALIDATION
# ============================================================================


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token"""
    return secrets.token_urlsafe(length)


def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token for a user

    Args:
        user_id: Stored as the 'sub' claim
        role: User role, carried for the frontend
        expires_delta: Token lifetime (default ACCESS_TOKEN_EXPIRE_MINUTES)
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user_id), "role": role, "exp": expire}
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode an access token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


def generate_email_verification_token(email: str) -> str:
    """Time-limited token embedded in verification links"""
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    return serializer.dumps({"email": email}, salt=EMAIL_VERIFICATION_SALT)


def verify_email_verification_token(token: str, max_age: int = EMAIL_VERIFICATION_MAX_AGE) -> Optional[str]:
    """
    Verify a verification token

    Returns:
        The email it was issued for, None if invalid or expired
    """
    serializer = URLSafeTimedSerializer(SECRET_KEY)
    try:
        data = serializer.loads(token, salt=EMAIL_VERIFICATION_SALT, max_age=max_age)
        return data.get("email")
    except SignatureExpired:
        logger.warning("Verification token expired")
        return None
    except BadSignature:
        logger.warning("Invalid verification token signature")
        return None
