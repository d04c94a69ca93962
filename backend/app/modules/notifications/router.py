import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import RequireAuthenticated, UserContext
from app.modules.notifications.push_service import ReadVapidPublicKey
from app.modules.notifications.schemas import (
    PushSubscriptionCreate,
    SubscribeResponse,
    VapidPublicKeyResponse,
)
from app.modules.notifications.services import RegisterSubscription

router = APIRouter(prefix="/api/money", tags=["notifications"])
logger = logging.getLogger("notifications")


@router.get("/vapid-public-key", response_model=VapidPublicKeyResponse)
def GetVapidPublicKey() -> VapidPublicKeyResponse:
    return VapidPublicKeyResponse(publicKey=ReadVapidPublicKey())


@router.post("/subscribe", response_model=SubscribeResponse, status_code=status.HTTP_201_CREATED)
def Subscribe(
    payload: PushSubscriptionCreate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> SubscribeResponse:
    try:
        RegisterSubscription(
            db,
            user_id=user.Id,
            subscription=payload.model_dump(exclude_none=True),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("could not save subscription user_id=%s", user.Id)
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to save subscription.",
        ) from exc
    return SubscribeResponse(message="Subscription saved.")
