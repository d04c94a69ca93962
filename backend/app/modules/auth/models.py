from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, UniqueConstraint

from app.db import Base

ROLE_ADMIN = "admin"
ROLE_CHILD = "child"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("Name", name="uq_users_name"),
        Index("ix_users_name", "Name"),
    )

    Id = Column(Integer, primary_key=True)
    Name = Column(String(120), nullable=False)
    PasswordHash = Column(String(255), nullable=False)
    Role = Column(String(20), nullable=False, default=ROLE_CHILD)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
