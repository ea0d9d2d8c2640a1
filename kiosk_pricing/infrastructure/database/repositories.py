"""Data access layer for pricing settings, tiers, customers, transactions and reminders"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from kiosk_pricing.domain.exceptions import InvalidReminderError
from kiosk_pricing.domain.models import (
    AccountType,
    CustomerTier,
    DiscountTier,
    OperationType,
    PricingSettings,
    RechargeReminder,
    TransactionDraft,
    WalletUsageSnapshot,
)
from kiosk_pricing.domain.money import money
from kiosk_pricing.domain.tiers import validate_tier_bands
from kiosk_pricing.infrastructure.database.models import (
    AppSetting,
    CustomerRecord,
    PricingTierRecord,
    RechargeReminderRecord,
    TransactionRecord,
    WalletRecord,
    WalletUsageRecord,
)


def _uuid_or_none(value: Optional[str]) -> Optional[uuid.UUID]:
    return uuid.UUID(str(value)) if value else None


class SettingsRepository:
    """Repository for the key/value settings table"""

    def __init__(self, db: Session):
        self.db = db

    def get_pricing_settings(self) -> PricingSettings:
        """Parse and validate all rows once; raises InvalidPricingSettingsError on bad data"""
        rows = self.db.query(AppSetting.key, AppSetting.value).all()
        return PricingSettings.from_key_values({key: value for key, value in rows})


class DiscountTierRepository:
    """Repository for discount tiers"""

    def __init__(self, db: Session):
        self.db = db

    def list_active_discount_tiers(self) -> List[DiscountTier]:
        """Active global tiers ordered by threshold ascending"""
        rows = (
            self.db.query(PricingTierRecord)
            .filter(PricingTierRecord.is_active.is_(True))
            .filter(PricingTierRecord.customer_id.is_(None))
            .order_by(PricingTierRecord.min_amount, PricingTierRecord.tier_level)
            .all()
        )
        tiers = [
            DiscountTier(
                id=str(row.id),
                order=row.tier_level,
                name=row.name or "",
                icon=row.icon or "",
                threshold_from=row.min_amount,
                threshold_to=row.max_amount,
                transfer_discount_percent=row.transfer_discount_percent,
                withdrawal_discount_percent=row.withdrawal_discount_percent,
                is_active=row.is_active,
            )
            for row in rows
        ]
        for problem in validate_tier_bands(tiers):
            logging.warning(f"Discount tier table: {problem}", extra={"step": "tier_load"})
        return tiers


class CustomerRepository:
    """Repository for customers"""

    def __init__(self, db: Session):
        self.db = db

    def get_customer(self, customer_id: uuid.UUID) -> Optional[CustomerRecord]:
        return self.db.get(CustomerRecord, customer_id)

    def apply_balance_delta(self, customer: CustomerRecord, delta: Decimal) -> CustomerRecord:
        customer.balance = money(customer.balance) + delta
        self.db.flush()
        return customer

    def record_activity(self, customer: CustomerRecord, on_date: date, loyalty_points: int) -> CustomerRecord:
        """Bump transaction count, last activity date and loyalty points"""
        customer.total_transactions_count = (customer.total_transactions_count or 0) + 1
        if customer.last_transaction_date is None or on_date > customer.last_transaction_date:
            customer.last_transaction_date = on_date
        customer.loyalty_points = (customer.loyalty_points or 0) + loyalty_points
        self.db.flush()
        return customer

    def update_tier(self, customer: CustomerRecord, tier: CustomerTier) -> bool:
        """Cache the derived activity label; returns True when it changed"""
        if customer.tier == tier.value:
            return False
        customer.tier = tier.value
        self.db.flush()
        return True


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def get_customer_monthly_cash_volume(self, customer_id: uuid.UUID, period: Tuple[date, date]) -> Decimal:
        """Sum of cash transfers and withdrawals for a customer within an inclusive date window"""
        start, end = period
        total = (
            self.db.query(func.coalesce(func.sum(TransactionRecord.amount), 0))
            .filter(TransactionRecord.customer_id == customer_id)
            .filter(TransactionRecord.account_type == AccountType.CASH.value)
            .filter(
                TransactionRecord.operation_type.in_(
                    [OperationType.TRANSFER.value, OperationType.WITHDRAWAL.value]
                )
            )
            .filter(TransactionRecord.date >= start, TransactionRecord.date <= end)
            .scalar()
        )
        return money(total)

    def create(self, draft: TransactionDraft) -> TransactionRecord:
        """Persist a transaction draft"""
        db_transaction = TransactionRecord(
            customer_id=_uuid_or_none(draft.customer_id),
            branch_id=_uuid_or_none(draft.branch_id),
            date=draft.date,
            account_type=draft.account_type.value,
            account_id=draft.account_id,
            account_name=draft.account_name,
            operation_type=draft.operation_type.value,
            amount=draft.amount,
            wallet_fees=draft.wallet_fees,
            base_service_fees=draft.base_service_fees,
            tier_discount_percent=draft.tier_discount_percent,
            tier_discount_amount=draft.tier_discount_amount,
            service_fees=draft.service_fees,
            total_charged=draft.total_charged,
            profit=draft.profit,
            notes=draft.notes,
        )
        self.db.add(db_transaction)
        self.db.flush()  # Get ID without committing
        return db_transaction


class ReminderRepository:
    """Repository for recharge reminders"""

    def __init__(self, db: Session):
        self.db = db

    def create_reminder(self, reminder: RechargeReminder) -> RechargeReminderRecord:
        """Persist a scheduled reminder (next_recharge_date must be set)"""
        db_reminder = RechargeReminderRecord(
            customer_id=uuid.UUID(str(reminder.customer_id)),
            phone_number=reminder.phone_number,
            recharge_cycle_type=reminder.cycle_type.value,
            recharge_day=reminder.cycle_day_of_month,
            cycle_days=reminder.cycle_days,
            last_recharge_date=reminder.last_recharge_date,
            next_recharge_date=reminder.next_recharge_date,
            remind_before_days=reminder.remind_before_days,
            contact_method=reminder.contact_method.value,
            is_active=reminder.is_active,
        )
        self.db.add(db_reminder)
        self.db.flush()
        reminder.id = str(db_reminder.id)
        return db_reminder

    def list_active_reminders(self, limit: int = 100) -> List[RechargeReminder]:
        """Active reminders, soonest first"""
        rows = (
            self.db.query(RechargeReminderRecord)
            .filter(RechargeReminderRecord.is_active.is_(True))
            .order_by(RechargeReminderRecord.next_recharge_date)
            .limit(limit)
            .all()
        )
        reminders = []
        for row in rows:
            try:
                reminders.append(
                    RechargeReminder(
                        id=str(row.id),
                        customer_id=str(row.customer_id),
                        phone_number=row.phone_number,
                        last_recharge_date=row.last_recharge_date,
                        cycle_type=row.recharge_cycle_type,
                        cycle_day_of_month=row.recharge_day,
                        cycle_days=row.cycle_days,
                        remind_before_days=row.remind_before_days,
                        contact_method=row.contact_method,
                        is_active=row.is_active,
                        next_recharge_date=row.next_recharge_date,
                    )
                )
            except (InvalidReminderError, ValueError) as e:
                logging.warning(f"Skipping malformed reminder {row.id}: {e}")
        return reminders


class WalletRepository:
    """Repository for wallet limits and usage"""

    def __init__(self, db: Session):
        self.db = db

    def list_usage_snapshots(self, on_date: date) -> List[WalletUsageSnapshot]:
        """Active wallets with today's and this month's usage totals"""
        month_start = on_date.replace(day=1)
        snapshots = []

        for wallet in self.db.query(WalletRecord).filter(WalletRecord.is_active.is_(True)).order_by(WalletRecord.name):
            daily = next(
                (u for u in wallet.usage if u.period_type == "daily" and u.date == on_date),
                None,
            )
            monthly = next(
                (u for u in wallet.usage if u.period_type == "monthly" and u.date == month_start),
                None,
            )
            snapshots.append(
                WalletUsageSnapshot(
                    wallet_id=str(wallet.id),
                    wallet_name=wallet.name,
                    daily_withdrawal_limit=money(wallet.daily_withdrawal_limit),
                    daily_transfer_limit=money(wallet.daily_transfer_limit),
                    monthly_withdrawal_limit=money(wallet.monthly_withdrawal_limit),
                    monthly_transfer_limit=money(wallet.monthly_transfer_limit),
                    daily_withdrawals=money(daily.total_withdrawals) if daily else money(0),
                    daily_transfers=money(daily.total_transfers) if daily else money(0),
                    monthly_withdrawals=money(monthly.total_withdrawals) if monthly else money(0),
                    monthly_transfers=money(monthly.total_transfers) if monthly else money(0),
                )
            )

        return snapshots
