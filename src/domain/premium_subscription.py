"""Premium Subscription Domain Entity

One record per (guild, feature). Tracks whether the guild has access to the
feature, who pays for it and when the next deduction is due.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String, UniqueConstraint
from src.domain.base import BaseModel, IdType, utcnow
from src.domain.premium_feature import FeatureDefinition, FeaturePeriod


class DisableReason(str, Enum):
    """Why a subscription was disabled"""
    FEATURE_REMOVED = "feature_removed"
    CANCELLED = "cancelled"
    INSUFFICIENT_BALANCE = "insufficient_balance"


class SubscriptionState(str, Enum):
    """Lifecycle state derived from the record and the current time"""
    ACTIVE_CURRENT = "active_current"
    PENDING_RENEWAL = "pending_renewal"
    GRACE_PERIOD = "grace_period"
    CANCELLED_PENDING_EXPIRY = "cancelled_pending_expiry"
    DISABLED = "disabled"


class Subscription(BaseModel, table=True):
    """
    Subscription - a guild's entitlement to one premium feature

    Domain Rules:
    - Exactly one record per (guild_id, feature_id), never deleted
    - cost/period/period_days are snapshots taken when a cycle starts
    - Cancellation stops renewal but keeps access until next_deduction_date
    - Disablement is terminal until a new activation starts a fresh cycle
    - version is bumped on every write (compare-and-swap updates)

    State transitions:
    active_current -> pending_renewal -> active_current (renewed) | grace_period
    grace_period -> disabled
    cancelled_pending_expiry -> disabled
    """

    __tablename__ = "premium_subscriptions"
    __table_args__ = (
        UniqueConstraint('guild_id', 'feature_id', name='uq_premium_subscriptions_guild_feature'),
        Index('ix_premium_subscriptions_active_due', 'active', 'next_deduction_date'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique subscription identifier (auto-increment)"
    )

    guild_id: str = Field(
        index=True,
        description="Guild the feature is granted to"
    )

    feature_id: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="Feature identifier from the catalog"
    )

    active: bool = Field(
        default=True,
        description="Whether the entitlement is currently granted"
    )

    payer_user_id: str = Field(
        description="User whose credits pay for the feature"
    )

    activated_at: datetime = Field(
        default_factory=utcnow,
        description="Start of the current activation"
    )

    last_deduction_date: datetime = Field(
        default_factory=utcnow,
        description="When credits were last deducted"
    )

    next_deduction_date: datetime = Field(
        description="When the next period must be paid for"
    )

    cost: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Credits per period, snapshotted when the cycle started"
    )

    period: FeaturePeriod = Field(
        description="Billing unit, snapshotted when the cycle started"
    )

    period_days: int = Field(
        description="Cycle length in days, snapshotted when the cycle started"
    )

    auto_renew: bool = Field(
        default=True,
        description="False once the payer cancelled"
    )

    cancelled_at: Optional[datetime] = Field(
        default=None,
        description="When the payer cancelled"
    )

    cancelled_by: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="User who cancelled"
    )

    disabled_at: Optional[datetime] = Field(
        default=None,
        description="When the entitlement was disabled"
    )

    disable_reason: Optional[DisableReason] = Field(
        default=None,
        description="Why the entitlement was disabled"
    )

    version: int = Field(
        default=1,
        description="Optimistic concurrency token"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Record creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last update timestamp"
    )

    @property
    def cancelled(self) -> bool:
        return self.cancelled_at is not None

    def access_deadline(self, grace_period: timedelta) -> datetime:
        """Last instant the guild keeps access without another payment"""
        if not self.auto_renew:
            return self.next_deduction_date
        return self.next_deduction_date + grace_period

    def is_active_at(self, now: datetime, grace_period: timedelta) -> bool:
        return self.active and now < self.access_deadline(grace_period)

    def is_due(self, now: datetime) -> bool:
        return now >= self.next_deduction_date

    def state_at(
        self,
        now: datetime,
        grace_period: timedelta,
        warning_horizon: timedelta = timedelta(0),
    ) -> SubscriptionState:
        if not self.is_active_at(now, grace_period):
            return SubscriptionState.DISABLED
        if not self.auto_renew:
            return SubscriptionState.CANCELLED_PENDING_EXPIRY
        if self.is_due(now):
            return SubscriptionState.GRACE_PERIOD
        if now >= self.next_deduction_date - warning_horizon:
            return SubscriptionState.PENDING_RENEWAL
        return SubscriptionState.ACTIVE_CURRENT

    def start_cycle(self, feature: FeatureDefinition, payer_user_id: str, now: datetime) -> None:
        """Reset the record for a fresh, paid activation

        Paid time still left on an active record is kept: the new period
        starts at the later of now and the current due date.
        """
        starts_at = max(now, self.next_deduction_date) if self.active else now
        self.active = True
        self.payer_user_id = payer_user_id
        self.activated_at = now
        self.last_deduction_date = now
        self.next_deduction_date = starts_at + timedelta(days=feature.period_days)
        self.cost = feature.cost
        self.period = feature.period
        self.period_days = feature.period_days
        self.auto_renew = True
        self.cancelled_at = None
        self.cancelled_by = None
        self.disabled_at = None
        self.disable_reason = None
        self.updated_at = now

    def renew(self, feature: FeatureDefinition, now: datetime) -> None:
        """Advance one period from the previous due date, not from now"""
        self.next_deduction_date = self.next_deduction_date + timedelta(days=feature.period_days)
        self.last_deduction_date = now
        self.cost = feature.cost
        self.period = feature.period
        self.period_days = feature.period_days
        self.updated_at = now

    def cancel(self, user_id: str, now: datetime) -> None:
        self.cancelled_at = now
        self.cancelled_by = user_id
        self.auto_renew = False
        self.updated_at = now

    def disable(self, reason: DisableReason, now: datetime) -> None:
        self.active = False
        self.disabled_at = now
        self.disable_reason = reason
        self.updated_at = now

    @classmethod
    def activate(cls, guild_id: str, feature: FeatureDefinition, payer_user_id: str, now: datetime) -> "Subscription":
        subscription = cls(
            guild_id=guild_id,
            feature_id=feature.id,
            payer_user_id=payer_user_id,
            next_deduction_date=now,
            cost=feature.cost,
            period=feature.period,
            period_days=feature.period_days,
            created_at=now,
        )
        subscription.start_cycle(feature, payer_user_id, now)
        return subscription

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "guild_id": "1029384756",
                "feature_id": "pro_engine",
                "active": True,
                "payer_user_id": "184405311681986560",
                "activated_at": "2024-01-01T00:00:00Z",
                "last_deduction_date": "2024-01-01T00:00:00Z",
                "next_deduction_date": "2024-01-31T00:00:00Z",
                "cost": "50.000000",
                "period": "month",
                "period_days": 30,
                "auto_renew": True,
                "cancelled_at": None,
                "cancelled_by": None,
                "disabled_at": None,
                "disable_reason": None,
                "version": 1
            }
        }
