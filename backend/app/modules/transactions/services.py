import logging
import os
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from sqlalchemy.orm import Session

from app.modules.auth.deps import NowUtc, UserContext
from app.modules.auth.models import ROLE_CHILD, User
from app.modules.transactions.models import (
    DECIDED_STATUSES,
    STATUS_APPROVED,
    STATUS_DECLINED,
    STATUS_PENDING,
    TYPE_INCOME,
    Transaction,
)

logger = logging.getLogger("transactions")

_CENTS = Decimal("0.01")
# Amount column is Numeric(12, 2).
MAX_AMOUNT = Decimal("10000000000")


class Forbidden(Exception):
    pass


class NotFound(Exception):
    pass


class DecisionLocked(Exception):
    pass


def _ReadBoolEnv(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def DecisionsLocked() -> bool:
    return _ReadBoolEnv("TRANSACTIONS_LOCK_DECISIONS", default=False)


def _ToMoney(value) -> Decimal:
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise ValueError("Amount must be a finite number")
        return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError("Amount is not a valid money value") from exc


def ListTransactions(db: Session, user: UserContext) -> list[Transaction]:
    query = db.query(Transaction)
    if not user.IsAdmin:
        query = query.filter(Transaction.ChildName == user.Name)
    return query.order_by(Transaction.CreatedAt.desc(), Transaction.Id.desc()).all()


def ListChildren(db: Session) -> list[str]:
    rows = db.query(User.Name).filter(User.Role == ROLE_CHILD).order_by(User.Name.asc()).all()
    return [row.Name for row in rows]


def CreateTransaction(
    db: Session,
    user: UserContext,
    *,
    description: str,
    amount,
    transaction_type: str,
    child_name: str,
) -> Transaction:
    child_name = child_name.strip()
    if user.IsAdmin:
        child = (
            db.query(User.Id)
            .filter(User.Name == child_name, User.Role == ROLE_CHILD)
            .first()
        )
        if not child:
            raise ValueError("Unknown child")
        status, approved_by = STATUS_APPROVED, user.Name
    else:
        if child_name != user.Name:
            raise Forbidden("You can only submit requests for yourself.")
        status, approved_by = STATUS_PENDING, None

    money = _ToMoney(amount)
    if money <= 0:
        raise ValueError("Amount must be positive")
    if money >= MAX_AMOUNT:
        raise ValueError("Amount is too large")

    record = Transaction(
        Description=description.strip(),
        Amount=money,
        Type=transaction_type,
        ChildName=child_name,
        Status=status,
        ApprovedBy=approved_by,
        CreatedAt=NowUtc(),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(
        "transaction created id=%s child=%s status=%s by=%s",
        record.Id,
        record.ChildName,
        record.Status,
        user.Name,
    )
    return record


def _DecideTransaction(db: Session, user: UserContext, transaction_id: int, status: str) -> Transaction:
    if not user.IsAdmin:
        raise Forbidden("Only admins can decide transactions.")

    record = db.query(Transaction).filter(Transaction.Id == transaction_id).first()
    if not record:
        raise NotFound("Transaction not found")

    if record.Status in DECIDED_STATUSES and record.Status != status and DecisionsLocked():
        raise DecisionLocked(f"Transaction already {record.Status}")

    record.Status = status
    record.ApprovedBy = user.Name
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("transaction %s id=%s by=%s", status, record.Id, user.Name)
    return record


def ApproveTransaction(db: Session, user: UserContext, transaction_id: int) -> Transaction:
    return _DecideTransaction(db, user, transaction_id, STATUS_APPROVED)


def DeclineTransaction(db: Session, user: UserContext, transaction_id: int) -> Transaction:
    return _DecideTransaction(db, user, transaction_id, STATUS_DECLINED)


def _SignedAmount(record: Transaction) -> Decimal:
    amount = _ToMoney(record.Amount)
    return amount if record.Type == TYPE_INCOME else -amount


def ComputeBalances(transactions: Iterable[Transaction]) -> dict:
    """Approved income minus approved expense, overall and per child.

    Pending and declined rows never count. Every child that appears in the
    input is listed, even with a zero balance.
    """
    total = Decimal("0")
    per_child: dict[str, Decimal] = {}
    for record in transactions:
        per_child.setdefault(record.ChildName, Decimal("0"))
        if record.Status != STATUS_APPROVED:
            continue
        signed = _SignedAmount(record)
        total += signed
        per_child[record.ChildName] += signed

    return {
        "balance": float(total),
        "children": [
            {"name": name, "balance": float(per_child[name])} for name in sorted(per_child)
        ],
    }
