"""JWT helpers for actor identity.

Tokens are issued by the external auth service; this module only needs to
decode them. ``create_access_token`` exists for tooling and tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from allowance_server.core.config import get_settings
from allowance_server.schemas import TokenData

ROLE_INTERN = "intern"
ROLE_SUPERVISOR = "supervisor"
ROLE_ADMIN = "admin"
ROLES = {ROLE_INTERN, ROLE_SUPERVISOR, ROLE_ADMIN}

settings = get_settings()
security = HTTPBearer()


def create_access_token(subject: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    expire_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": subject,
        "role": role,
        "exp": datetime.now(timezone.utc) + expire_delta,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> TokenData:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials") from exc

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or role not in ROLES:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
    return TokenData(subject=subject, role=role)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> TokenData:
    return decode_access_token(credentials.credentials)


async def get_current_supervisor(principal: TokenData = Depends(get_current_principal)) -> TokenData:
    if principal.role != ROLE_SUPERVISOR:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Supervisor role required")
    return principal


async def get_current_admin(principal: TokenData = Depends(get_current_principal)) -> TokenData:
    if principal.role != ROLE_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return principal


async def get_sync_operator(principal: TokenData = Depends(get_current_principal)) -> TokenData:
    if principal.role not in {ROLE_SUPERVISOR, ROLE_ADMIN}:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Supervisor or admin role required")
    return principal


def ensure_can_read(principal: TokenData, intern_id: str) -> None:
    """Interns may only read their own claims and wallet."""
    if principal.role == ROLE_INTERN and principal.subject != intern_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to view this intern")
