"""Caller identity for the analytics API.

Implements JWT bearer authentication. A request without a token, or with an
invalid or expired one, has no identity; the analytics layer then returns
its empty result instead of an error, so callers cannot probe which ids
exist.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt
from pydantic import BaseModel, EmailStr

from classroom_analytics.core.logging import get_logger
from classroom_analytics.core.config import settings, DEV_SECRET_KEY

logger = get_logger(__name__)

# JWT Configuration from settings
SECRET_KEY = settings.jwt_secret_key
ALGORITHM = settings.jwt_algorithm
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes

# Production security check
if settings.environment == "production":
    if SECRET_KEY == DEV_SECRET_KEY:
        raise ValueError("JWT_SECRET_KEY must be set to a secure value in production!")
    if len(SECRET_KEY) < 32:
        logger.warning("JWT_SECRET_KEY should be at least 32 characters for security")

security_optional = HTTPBearer(auto_error=False)


class User(BaseModel):
    """Authenticated caller. `id` is compared against a class's teacher_id."""
    id: str
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    role: str = "teacher"


class TokenData(BaseModel):
    """JWT token payload."""
    sub: str  # User ID
    email: Optional[str] = None
    name: Optional[str] = None
    role: str
    exp: datetime


class InvalidTokenError(Exception):
    """Raised when a bearer token cannot be decoded or has expired."""


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token for user.

    Args:
        user: User object
        expires_delta: Token expiration time (default: ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT token

    Example:
        >>> token = create_access_token(User(id="teacher_1"))
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "exp": expire,
        "iat": now,
    }

    token = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)

    logger.debug(
        f"Access token created for user {user.id}",
        extra={"user_id": user.id}
    )

    return token


def decode_token(token: str) -> TokenData:
    """Decode and validate JWT token.

    Args:
        token: JWT token string

    Returns:
        TokenData with user info

    Raises:
        InvalidTokenError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        logger.warning("Expired token attempted")
        raise InvalidTokenError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token attempted: {e}")
        raise InvalidTokenError("Invalid authentication token") from e

    if not payload.get("sub"):
        raise InvalidTokenError("Token has no subject")

    return TokenData(
        sub=payload["sub"],
        email=payload.get("email"),
        name=payload.get("name"),
        role=payload.get("role") or "teacher",
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional)
) -> Optional[User]:
    """FastAPI dependency resolving the caller, or None.

    Missing and invalid tokens both yield None.

    Example:
        >>> @router.get("/classes/{class_id}/analytics")
        >>> async def route(class_id: str, user: Optional[User] = Depends(get_optional_user)):
        ...     return service.get_class_analytics(user.id if user else None, class_id)
    """
    if credentials is None:
        return None

    try:
        token_data = decode_token(credentials.credentials)
    except InvalidTokenError:
        return None

    user = User(
        id=token_data.sub,
        email=token_data.email,
        name=token_data.name,
        role=token_data.role,
    )
    logger.debug(f"User authenticated: {user.id}", extra={"user_id": user.id})
    return user


def user_id_of(user: Optional[User]) -> Optional[str]:
    return user.id if user else None
