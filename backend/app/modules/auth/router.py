import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.models import User
from app.modules.auth.schemas import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserOut,
)
from app.modules.auth.service import (
    CreateAccessToken,
    HashPassword,
    PasswordMinLength,
    VerifyPassword,
)

router = APIRouter(prefix="/api/money", tags=["auth"])
logger = logging.getLogger("app.auth")

INVALID_CREDENTIALS_DETAIL = "Invalid username or password"


def _handle_db_error(exc: Exception) -> None:
    logger.exception("auth database error")
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Storage unavailable",
    ) from exc


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def Register(payload: RegisterRequest, db: Session = Depends(GetDb)) -> RegisterResponse:
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name required")

    min_length = PasswordMinLength()
    if len(payload.password) < min_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {min_length} characters",
        )

    try:
        existing = db.query(User).filter(User.Name == name).first()
    except SQLAlchemyError as exc:
        _handle_db_error(exc)
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")

    record = User(
        Name=name,
        PasswordHash=HashPassword(payload.password),
        Role=payload.role,
    )
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
    except SQLAlchemyError as exc:
        db.rollback()
        _handle_db_error(exc)

    logger.info("registered user name=%s role=%s", name, payload.role)
    return RegisterResponse(message="User created successfully")


@router.post("/login", response_model=TokenResponse)
def Login(payload: LoginRequest, db: Session = Depends(GetDb)) -> TokenResponse:
    try:
        user = db.query(User).filter(User.Name == payload.name.strip()).first()
    except SQLAlchemyError as exc:
        _handle_db_error(exc)

    if not user or not VerifyPassword(payload.password, user.PasswordHash):
        logger.warning("failed login name=%s", payload.name)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_CREDENTIALS_DETAIL)

    access_token, expires_in = CreateAccessToken(user.Id, user.Name, user.Role)
    return TokenResponse(
        accessToken=access_token,
        expiresIn=expires_in,
        user=UserOut(id=user.Id, name=user.Name, role=user.Role),
    )
