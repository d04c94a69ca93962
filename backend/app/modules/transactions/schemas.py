from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

TransactionType = Literal["income", "expense"]
TransactionStatus = Literal["pending", "approved", "declined"]


class TransactionCreate(BaseModel):
    description: str = Field(min_length=1, max_length=255)
    amount: float = Field(gt=0, lt=10**10, allow_inf_nan=False)
    type: TransactionType
    child_name: str = Field(min_length=1, max_length=120)


class TransactionOut(BaseModel):
    id: int
    description: str
    amount: float
    type: TransactionType
    child_name: str
    status: TransactionStatus
    approved_by: str | None = None
    created_at: datetime


class ChildOut(BaseModel):
    name: str


class ChildBalanceOut(BaseModel):
    name: str
    balance: float


class BalanceSummaryOut(BaseModel):
    balance: float
    children: list[ChildBalanceOut]


class MessageResponse(BaseModel):
    message: str
