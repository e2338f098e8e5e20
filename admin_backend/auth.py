"""
JWT Authentication for the dashboard API.
"""
from datetime import timedelta
from typing import Optional

import bcrypt
from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_SECRET_KEY
from database import get_admin_user, update_admin_last_login
from utils.time_utils import now_utc

ALGORITHM = "HS256"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/admin/login", auto_error=False)


def _truncate_password_bytes(password: str, max_bytes: int = 72) -> bytes:
    """Truncate password to max_bytes without splitting a UTF-8 character."""
    password_bytes = password.encode("utf-8")
    if len(password_bytes) <= max_bytes:
        return password_bytes

    truncated = password_bytes[:max_bytes]
    # Backtrack to the last valid UTF-8 boundary
    while truncated:
        try:
            truncated.decode("utf-8")
            return truncated
        except UnicodeDecodeError:
            truncated = truncated[:-1]
    return truncated


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    # Bcrypt has a 72-byte limit, so truncate if necessary
    password_bytes = _truncate_password_bytes(plain_password)
    if isinstance(hashed_password, str):
        hashed_password = hashed_password.encode("utf-8")

    try:
        return bcrypt.checkpw(password_bytes, hashed_password)
    except (ValueError, TypeError):
        return False


def get_password_hash(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    hashed = bcrypt.hashpw(_truncate_password_bytes(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = now_utc() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=ALGORITHM)


async def authenticate_admin(email: str, password: str) -> Optional[dict]:
    """Authenticate an admin user."""
    user = await get_admin_user(email)
    if not user:
        return None

    if not verify_password(password, user["password_hash"]):
        return None

    await update_admin_last_login(email)
    return user


async def get_current_admin(
    token: str = Depends(oauth2_scheme),
    access_token: str = Cookie(None)
) -> dict:
    """Get current authenticated admin from JWT token (cookie or header)."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    # Try to get token from cookie first, then from header
    token_value = access_token or token
    if not token_value:
        raise credentials_exception

    try:
        payload = jwt.decode(token_value, JWT_SECRET_KEY, algorithms=[ALGORITHM])
        email: str = payload.get("sub")
        if email is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = await get_admin_user(email)
    if user is None:
        raise credentials_exception

    return user


def public_profile(user: dict) -> dict:
    """Admin user fields safe to return to the client."""
    return {
        "id": user.get("id"),
        "email": user.get("email"),
        "full_name": user.get("full_name"),
        "role": user.get("role"),
        "last_login": user.get("last_login"),
    }
