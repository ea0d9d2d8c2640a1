"""SQLAlchemy ORM models for the backend tables the pricing service reads and writes"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, ForeignKey, Text, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

Money = Numeric(12, 2)


class AppSetting(Base):
    """Key/value pricing policy row (values stored as text)"""

    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PricingTierRecord(Base):
    """Discount tier band; soft-disabled through is_active"""

    __tablename__ = "pricing_tiers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=True)
    icon = Column(Text, nullable=True)
    tier_level = Column(Integer, nullable=False)
    min_amount = Column(Money, nullable=False)
    max_amount = Column(Money, nullable=True)
    transfer_discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    withdrawal_discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id", ondelete="CASCADE"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class CustomerRecord(Base):
    """Customer account (pricing-relevant columns)"""

    __tablename__ = "customers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    branch_id = Column(UUID(as_uuid=True), nullable=True)
    balance = Column(Money, nullable=False, default=0)
    loyalty_points = Column(Integer, nullable=False, default=0)
    tier = Column(Text, nullable=False, default="normal")
    can_request_services = Column(Boolean, nullable=False, default=False)
    last_transaction_date = Column(Date, nullable=True)
    total_transactions_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    transactions = relationship("TransactionRecord", back_populates="customer")
    reminders = relationship("RechargeReminderRecord", back_populates="customer", cascade="all, delete-orphan")


class TransactionRecord(Base):
    """Immutable ledger line; corrections are new adjustment rows"""

    __tablename__ = "transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)
    branch_id = Column(UUID(as_uuid=True), nullable=True)
    date = Column(Date, nullable=False, index=True)
    account_type = Column(Text, nullable=False)
    account_id = Column(Text, nullable=False)
    account_name = Column(Text, nullable=False)
    operation_type = Column(Text, nullable=False)
    amount = Column(Money, nullable=False)
    wallet_fees = Column(Money, nullable=False, default=0)
    base_service_fees = Column(Money, nullable=False, default=0)
    tier_discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    tier_discount_amount = Column(Money, nullable=False, default=0)
    service_fees = Column(Money, nullable=False, default=0)
    total_charged = Column(Money, nullable=False)
    profit = Column(Money, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    customer = relationship("CustomerRecord", back_populates="transactions")


class RechargeReminderRecord(Base):
    """Recurring phone top-up reminder"""

    __tablename__ = "recharge_reminders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    phone_number = Column(Text, nullable=False)
    recharge_cycle_type = Column(Text, nullable=False)
    recharge_day = Column(Integer, nullable=True)
    cycle_days = Column(Integer, nullable=True)
    last_recharge_date = Column(Date, nullable=False)
    next_recharge_date = Column(Date, nullable=False, index=True)
    remind_before_days = Column(Integer, nullable=False, default=1)
    contact_method = Column(Text, nullable=False, default="whatsapp")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    customer = relationship("CustomerRecord", back_populates="reminders")


class WalletRecord(Base):
    """Electronic wallet with daily/monthly limits"""

    __tablename__ = "wallets"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    daily_withdrawal_limit = Column(Money, nullable=False, default=0)
    daily_transfer_limit = Column(Money, nullable=False, default=0)
    monthly_withdrawal_limit = Column(Money, nullable=False, default=0)
    monthly_transfer_limit = Column(Money, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    usage = relationship("WalletUsageRecord", back_populates="wallet", cascade="all, delete-orphan")


class WalletUsageRecord(Base):
    """Running totals for a wallet per day or per month (date = first day of month)"""

    __tablename__ = "wallet_usage"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    wallet_id = Column(UUID(as_uuid=True), ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    period_type = Column(Text, nullable=False)  # daily | monthly
    total_withdrawals = Column(Money, nullable=False, default=0)
    total_transfers = Column(Money, nullable=False, default=0)

    wallet = relationship("WalletRecord", back_populates="usage")
