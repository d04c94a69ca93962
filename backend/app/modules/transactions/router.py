import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import RequireAuthenticated, RequireRole, UserContext
from app.modules.auth.models import ROLE_ADMIN
from app.modules.notifications.services import DispatchPendingTransaction
from app.modules.transactions.models import STATUS_PENDING, Transaction
from app.modules.transactions.schemas import (
    BalanceSummaryOut,
    ChildOut,
    MessageResponse,
    TransactionCreate,
    TransactionOut,
)
from app.modules.transactions.services import (
    ApproveTransaction,
    ComputeBalances,
    CreateTransaction,
    DecisionLocked,
    DeclineTransaction,
    Forbidden,
    ListChildren,
    ListTransactions,
    NotFound,
)

router = APIRouter(prefix="/api/money", tags=["transactions"])
logger = logging.getLogger("transactions")


def _handle_db_error(db: Session, exc: Exception) -> None:
    logger.exception("transactions database error")
    db.rollback()
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Storage unavailable",
    ) from exc


def _BuildTransactionOut(record: Transaction) -> TransactionOut:
    return TransactionOut(
        id=record.Id,
        description=record.Description,
        amount=float(record.Amount),
        type=record.Type,
        child_name=record.ChildName,
        status=record.Status,
        approved_by=record.ApprovedBy,
        created_at=record.CreatedAt,
    )


@router.get("/children", response_model=list[ChildOut])
def GetChildren(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireRole(ROLE_ADMIN)),
) -> list[ChildOut]:
    try:
        return [ChildOut(name=name) for name in ListChildren(db)]
    except SQLAlchemyError as exc:
        _handle_db_error(db, exc)


@router.get("/transactions", response_model=list[TransactionOut])
def GetTransactions(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[TransactionOut]:
    try:
        return [_BuildTransactionOut(record) for record in ListTransactions(db, user)]
    except SQLAlchemyError as exc:
        _handle_db_error(db, exc)


@router.get("/balances", response_model=BalanceSummaryOut)
def GetBalances(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> BalanceSummaryOut:
    try:
        return BalanceSummaryOut(**ComputeBalances(ListTransactions(db, user)))
    except SQLAlchemyError as exc:
        _handle_db_error(db, exc)


@router.post("/transactions", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def AddTransaction(
    payload: TransactionCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> TransactionOut:
    try:
        record = CreateTransaction(
            db,
            user,
            description=payload.description,
            amount=payload.amount,
            transaction_type=payload.type,
            child_name=payload.child_name,
        )
    except Forbidden as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        _handle_db_error(db, exc)

    if record.Status == STATUS_PENDING:
        background_tasks.add_task(DispatchPendingTransaction, record.Id)

    return _BuildTransactionOut(record)


def _Decide(decide, db: Session, user: UserContext, transaction_id: int) -> None:
    try:
        decide(db, user, transaction_id)
    except Forbidden as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden") from exc
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DecisionLocked as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        _handle_db_error(db, exc)


@router.put("/transactions/{transaction_id}/approve", response_model=MessageResponse)
def ApproveTransactionItem(
    transaction_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireRole(ROLE_ADMIN)),
) -> MessageResponse:
    _Decide(ApproveTransaction, db, user, transaction_id)
    return MessageResponse(message="Transaction approved successfully")


@router.put("/transactions/{transaction_id}/decline", response_model=MessageResponse)
def DeclineTransactionItem(
    transaction_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireRole(ROLE_ADMIN)),
) -> MessageResponse:
    _Decide(DeclineTransaction, db, user, transaction_id)
    return MessageResponse(message="Transaction declined successfully")
