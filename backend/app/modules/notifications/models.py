from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, UniqueConstraint

from app.db import Base


class PushSubscription(Base):
    __tablename__ = "push_subscriptions"
    __table_args__ = (
        UniqueConstraint("Endpoint", name="uq_push_subscriptions_endpoint"),
        Index("ix_push_subscriptions_user_id", "UserId"),
    )

    Id = Column(Integer, primary_key=True)
    UserId = Column(Integer, nullable=False)
    Endpoint = Column(String(500), nullable=False)
    SubscriptionJson = Column(Text, nullable=False)
    LastError = Column(String(255))
    LastDeliveredAt = Column(DateTime(timezone=True))
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
