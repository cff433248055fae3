import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from app.core.config import settings
from app.db.connection import get_db

logger = logging.getLogger(__name__)

# Bearer header is optional; the browser sends the session cookie instead
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)

ROLE_ALIASES = {"department_head": "hod"}

# Roles allowed to act on any faculty member's records
FACULTY_MANAGER_ROLES = ("admin", "hod", "department")


class TokenPayload(BaseModel):
    userId: Union[int, str]
    role: str


class CurrentUser(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    role: str
    name: Optional[str] = None
    department_id: Optional[int] = None


def normalize_role(role: Optional[str]) -> str:
    role = (role or "").strip().lower()
    return ROLE_ALIASES.get(role, role)


def create_session_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a session token in the format issued by the login service."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=settings.SESSION_TOKEN_EXPIRE_HOURS))
    claims = {"userId": user_id, "role": role, "exp": expire}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def _extract_token(request: Request, bearer_token: Optional[str]) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or bearer_token


async def _load_user(conn: AsyncConnection, user_id: Union[int, str]) -> Optional[CurrentUser]:
    result = await conn.execute(
        text(
            "SELECT id, username, email, role, name, department_id FROM users "
            "WHERE id = :user_id AND is_active = 1"
        ),
        {"user_id": user_id},
    )
    row = result.mappings().first()
    if row is None:
        return None
    return CurrentUser(
        id=row["id"],
        username=str(row["username"]),
        email=row["email"],
        role=normalize_role(row["role"]),
        name=row["name"],
        department_id=row["department_id"],
    )


async def get_current_user(
    request: Request,
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    conn: AsyncConnection = Depends(get_db),
) -> CurrentUser:
    """
    Decode the session token (cookie or Bearer header) and load the active user.
    Raises HTTPException 401 for missing, invalid or expired tokens and unknown users.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = _extract_token(request, bearer_token)
    if not token:
        logger.debug("No session token on request")
        raise credentials_exception

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": True},
        )
        token_data = TokenPayload(**payload)
    except JWTError as e:
        logger.warning(f"Token validation failed: {e}")
        raise credentials_exception from e
    except ValidationError as e:
        logger.warning(f"Token payload validation failed: {e}")
        raise credentials_exception from e

    try:
        user = await _load_user(conn, token_data.userId)
    except Exception as e:
        logger.error(f"Unexpected error loading user {token_data.userId}: {e}", exc_info=True)
        raise credentials_exception from e

    if user is None:
        logger.warning(f"Token references unknown or inactive user {token_data.userId}")
        raise credentials_exception
    return user


async def get_optional_user(
    request: Request,
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    conn: AsyncConnection = Depends(get_db),
) -> Optional[CurrentUser]:
    """Like get_current_user, but anonymous requests get None instead of 401."""
    if not _extract_token(request, bearer_token):
        return None
    return await get_current_user(request, bearer_token, conn)


def require_roles(*roles: str) -> Callable:
    """Dependency factory: 403 unless the caller has one of ``roles``."""
    allowed = {normalize_role(r) for r in roles}

    async def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            logger.warning(f"User {current_user.id} with role '{current_user.role}' denied; requires one of {sorted(allowed)}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return checker
