import base64
import json
import logging
import os
from dataclasses import dataclass

from pywebpush import WebPushException, webpush

logger = logging.getLogger("notifications.push")

# Push services answer 404/410 once a browser has dropped the subscription.
_GONE_STATUS_CODES = {404, 410}

DELIVERED = "delivered"
GONE = "gone"
FAILED = "failed"


@dataclass(frozen=True)
class VapidConfig:
    public_key: str
    private_key: str
    subject: str
    timeout_seconds: float


@dataclass(frozen=True)
class DeliveryResult:
    outcome: str
    status_code: int | None = None
    reason: str | None = None


def _NormalizePrivateKey(raw: str | None) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    normalized = value.replace("\\n", "\n").strip()
    if "BEGIN" in normalized:
        return normalized
    try:
        decoded = base64.b64decode(normalized, validate=True).decode("utf-8").strip()
    except Exception:  # noqa: BLE001
        return normalized
    if "BEGIN" in decoded:
        return decoded
    # Raw base64url keys as produced by `web-push generate-vapid-keys`.
    return normalized


def _NormalizeSubject(raw: str | None) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    if value.startswith(("mailto:", "https://")):
        return value
    return f"mailto:{value}"


def ReadVapidPublicKey() -> str:
    return os.getenv("VAPID_PUBLIC_KEY", "").strip()


def LoadVapidConfig() -> VapidConfig | None:
    public_key = ReadVapidPublicKey()
    private_key = _NormalizePrivateKey(os.getenv("VAPID_PRIVATE_KEY"))
    subject = _NormalizeSubject(os.getenv("VAPID_MAILTO"))
    if not (public_key and private_key and subject):
        logger.warning("web push disabled: VAPID configuration is incomplete")
        return None

    timeout_raw = os.getenv("WEBPUSH_TIMEOUT_SECONDS", "").strip()
    try:
        timeout_seconds = float(timeout_raw) if timeout_raw else 8.0
    except ValueError:
        timeout_seconds = 8.0

    return VapidConfig(
        public_key=public_key,
        private_key=private_key,
        subject=subject,
        timeout_seconds=timeout_seconds,
    )


def BuildPendingTransactionPayload(child_name: str, amount) -> str:
    return json.dumps(
        {
            "title": "New Transaction Pending",
            "body": f"{child_name} submitted a new request for ${float(amount):.2f}.",
        }
    )


def _ShouldDropSubscription(status_code: int | None) -> bool:
    return status_code in _GONE_STATUS_CODES


def SendWebPush(config: VapidConfig, subscription_info: dict, payload: str) -> DeliveryResult:
    try:
        webpush(
            subscription_info=subscription_info,
            data=payload,
            vapid_private_key=config.private_key,
            vapid_claims={"sub": config.subject},
            timeout=config.timeout_seconds,
        )
    except WebPushException as exc:
        status_code = getattr(exc.response, "status_code", None)
        reason = str(exc)[:255]
        if _ShouldDropSubscription(status_code):
            return DeliveryResult(outcome=GONE, status_code=status_code, reason=reason)
        return DeliveryResult(outcome=FAILED, status_code=status_code, reason=reason)
    return DeliveryResult(outcome=DELIVERED)
