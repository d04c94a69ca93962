import json
import logging

from sqlalchemy.orm import Session

from app.db import OpenSession
from app.modules.auth.deps import NowUtc
from app.modules.notifications.models import PushSubscription
from app.modules.notifications.push_service import (
    DELIVERED,
    GONE,
    BuildPendingTransactionPayload,
    LoadVapidConfig,
    SendWebPush,
)
from app.modules.transactions.models import Transaction

logger = logging.getLogger("notifications")


def RegisterSubscription(db: Session, *, user_id: int, subscription: dict) -> PushSubscription:
    endpoint = str(subscription.get("endpoint") or "").strip()
    if not endpoint:
        raise ValueError("Subscription endpoint is required.")

    now = NowUtc()
    record = db.query(PushSubscription).filter(PushSubscription.Endpoint == endpoint).first()
    if not record:
        record = PushSubscription(Endpoint=endpoint, CreatedAt=now)

    record.UserId = user_id
    record.SubscriptionJson = json.dumps(subscription, separators=(",", ":"))
    record.LastError = None
    record.UpdatedAt = now
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def _ParseSubscription(record: PushSubscription) -> dict | None:
    try:
        parsed = json.loads(record.SubscriptionJson)
    except (TypeError, json.JSONDecodeError):
        return None
    return parsed if isinstance(parsed, dict) else None


def NotifyPendingTransaction(db: Session, transaction: Transaction) -> int:
    """Fan a pending-transaction alert out to every stored subscription.

    Each subscription is attempted on its own; a failure on one never stops
    the rest. Subscriptions the push service reports as gone are deleted,
    anything else is logged and kept for the next request. Returns the
    number of successful deliveries and never raises.
    """
    try:
        config = LoadVapidConfig()
        if not config:
            return 0

        subscriptions = db.query(PushSubscription).all()
        if not subscriptions:
            return 0

        payload = BuildPendingTransactionPayload(transaction.ChildName, transaction.Amount)
    except Exception:  # noqa: BLE001
        logger.exception("failed to prepare notifications transaction_id=%s", transaction.Id)
        return 0

    delivered = 0
    for record in subscriptions:
        try:
            subscription_info = _ParseSubscription(record)
            if subscription_info is None:
                logger.warning("dropping unreadable subscription id=%s", record.Id)
                db.delete(record)
                db.commit()
                continue

            result = SendWebPush(config, subscription_info, payload)
            now = NowUtc()
            if result.outcome == DELIVERED:
                delivered += 1
                record.LastDeliveredAt = now
                record.LastError = None
                record.UpdatedAt = now
                db.add(record)
            elif result.outcome == GONE:
                logger.info(
                    "subscription expired, deleting id=%s status=%s",
                    record.Id,
                    result.status_code,
                )
                db.delete(record)
            else:
                logger.warning(
                    "push delivery failed subscription_id=%s status=%s reason=%s",
                    record.Id,
                    result.status_code,
                    result.reason,
                )
                record.LastError = result.reason
                record.UpdatedAt = now
                db.add(record)
            db.commit()
        except Exception:  # noqa: BLE001
            logger.exception("push delivery crashed subscription_id=%s", record.Id)
            db.rollback()

    logger.info(
        "pending transaction notifications transaction_id=%s delivered=%s of=%s",
        transaction.Id,
        delivered,
        len(subscriptions),
    )
    return delivered


def DispatchPendingTransaction(transaction_id: int) -> None:
    """Background-task entry point; runs after the HTTP response is sent."""
    try:
        db = OpenSession()
    except Exception:  # noqa: BLE001
        logger.exception("notification dispatch could not open a session")
        return
    try:
        transaction = db.query(Transaction).filter(Transaction.Id == transaction_id).first()
        if not transaction:
            logger.warning("notification dispatch skipped, transaction_id=%s missing", transaction_id)
            return
        NotifyPendingTransaction(db, transaction)
    except Exception:  # noqa: BLE001
        logger.exception("notification dispatch failed transaction_id=%s", transaction_id)
    finally:
        db.close()
