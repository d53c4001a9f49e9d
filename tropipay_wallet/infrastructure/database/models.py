"""SQLAlchemy ORM models for the local wallet cache"""

from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, Integer, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class CachedUser(Base):
    """Stable internal id for a TropiPay client; secrets and tokens are never stored"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Text, nullable=False, unique=True)
    profile = Column(JSON, nullable=True)
    environment = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class CachedAccount(Base):
    """Last-seen account snapshot; money columns hold minor units"""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Text, nullable=False)
    currency = Column(String(3), nullable=True)
    balance = Column(BigInteger, nullable=False, default=0)
    available = Column(BigInteger, nullable=False, default=0)
    blocked = Column(BigInteger, nullable=False, default=0)
    pending_in = Column(BigInteger, nullable=False, default=0)
    pending_out = Column(BigInteger, nullable=False, default=0)
    is_default = Column(Boolean, nullable=False, default=False)
    status = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    data = Column(JSON, nullable=True)
    cached_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class CachedBeneficiary(Base):
    """Last-seen beneficiary list entry"""

    __tablename__ = "beneficiaries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    beneficiary_id = Column(Text, nullable=False)
    type = Column(String(10), nullable=False)
    name = Column(Text, nullable=True)
    account_number = Column(Text, nullable=True)
    currency = Column(String(3), nullable=True)
    country = Column(String(2), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)
    data = Column(JSON, nullable=True)
    cached_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
