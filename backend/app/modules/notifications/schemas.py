from pydantic import BaseModel, ConfigDict, Field


class PushSubscriptionKeys(BaseModel):
    p256dh: str = Field(..., max_length=255)
    auth: str = Field(..., max_length=255)


class PushSubscriptionCreate(BaseModel):
    # Browsers may add fields over time; they are stored as-is.
    model_config = ConfigDict(extra="allow")

    endpoint: str = Field(..., min_length=1, max_length=500)
    expirationTime: float | None = None
    keys: PushSubscriptionKeys


class VapidPublicKeyResponse(BaseModel):
    publicKey: str


class SubscribeResponse(BaseModel):
    message: str
