from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, Numeric, String

from app.db import Base

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_DECLINED = "declined"
DECIDED_STATUSES = {STATUS_APPROVED, STATUS_DECLINED}

TYPE_INCOME = "income"
TYPE_EXPENSE = "expense"


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_child_created", "ChildName", "CreatedAt"),
        CheckConstraint("Amount > 0", name="ck_transactions_amount_positive"),
    )

    Id = Column(Integer, primary_key=True)
    Description = Column(String(255), nullable=False)
    Amount = Column(Numeric(12, 2), nullable=False)
    Type = Column(String(20), nullable=False)
    ChildName = Column(String(120), nullable=False)
    Status = Column(String(20), nullable=False, default=STATUS_PENDING)
    ApprovedBy = Column(String(120))
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
