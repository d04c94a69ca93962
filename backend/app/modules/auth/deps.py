import os
from dataclasses import dataclass
from datetime import datetime, timezone

import jwt
from fastapi import Depends, HTTPException, Request, status

from app.modules.auth.models import ROLE_ADMIN, ROLE_CHILD

ALLOWED_ROLES = {ROLE_ADMIN, ROLE_CHILD}
INVALID_TOKEN_DETAIL = "Invalid or expired token"


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(f"Missing required env var: {name}")
    return value


def _unauthenticated(detail: str = INVALID_TOKEN_DETAIL) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode_access_token(token: str) -> dict:
    secret = _require_env("JWT_SECRET_KEY")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            options={"require": ["sub", "exp"]},
        )
    except jwt.InvalidTokenError as exc:
        # ExpiredSignatureError is a subclass; callers get one answer for both.
        raise _unauthenticated() from exc


@dataclass
class UserContext:
    Id: int
    Name: str
    Role: str

    @property
    def IsAdmin(self) -> bool:
        return self.Role == ROLE_ADMIN


def VerifyAccessToken(token: str | None) -> UserContext:
    if not token:
        raise _unauthenticated("Authentication required")

    payload = _decode_access_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise _unauthenticated() from exc

    name = payload.get("name")
    role = payload.get("role")
    if not name or role not in ALLOWED_ROLES:
        raise _unauthenticated()
    return UserContext(Id=user_id, Name=name, Role=role)


def RequireAuthenticated(request: Request) -> UserContext:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise _unauthenticated("Authentication required")

    token = auth_header.replace("Bearer ", "", 1).strip()
    return VerifyAccessToken(token)


def RequireRole(role: str):
    def _checker(user: UserContext = Depends(RequireAuthenticated)) -> UserContext:
        if user.Role != role:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return _checker


def NowUtc() -> datetime:
    return datetime.now(tz=timezone.utc)
