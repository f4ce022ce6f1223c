"""GetSubscriptionStatus and CheckFeatureActive Use Cases

Read-only views of a guild's subscription. Neither writes anything.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.clock import Clock, system_clock
from src.app.services.unit_of_work import UnitOfWorkFactory
from src.domain.premium_feature import FeatureCatalog
from src.domain.premium_subscription import Subscription
from . import error_codes
from .dtos import SubscriptionStatusDTO, FeatureActiveResponseDTO

logger = logging.getLogger(__name__)


def to_status_dto(
    subscription: Subscription,
    now: datetime,
    grace_period: timedelta,
    warning_horizon: timedelta = timedelta(0),
) -> SubscriptionStatusDTO:
    return SubscriptionStatusDTO(
        guild_id=subscription.guild_id,
        feature_id=subscription.feature_id,
        active=subscription.is_active_at(now, grace_period),
        state=subscription.state_at(now, grace_period, warning_horizon).value,
        payer_user_id=subscription.payer_user_id,
        activated_at=subscription.activated_at,
        last_deduction_date=subscription.last_deduction_date,
        next_deduction_date=subscription.next_deduction_date,
        expires_at=subscription.access_deadline(grace_period),
        cost=subscription.cost,
        period=subscription.period.value,
        period_days=subscription.period_days,
        auto_renew=subscription.auto_renew,
        cancelled=subscription.cancelled,
        cancelled_at=subscription.cancelled_at,
        cancelled_by=subscription.cancelled_by,
        disabled_at=subscription.disabled_at,
        disable_reason=subscription.disable_reason.value if subscription.disable_reason else None,
    )


def _unknown_feature(feature_id: str) -> Error:
    return Error(
        code=error_codes.UNKNOWN_FEATURE,
        message="Invalid feature ID",
        reason=f"feature_id={feature_id}",
    )


class GetSubscriptionStatus:
    """
    Use Case: Project a subscription for status displays

    Returns ok(None) when the guild never subscribed to the feature.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        catalog: FeatureCatalog,
        grace_period: timedelta,
        warning_horizon: timedelta = timedelta(0),
        clock: Clock = system_clock,
    ):
        self.uow_factory = uow_factory
        self.catalog = catalog
        self.grace_period = grace_period
        self.warning_horizon = warning_horizon
        self.clock = clock

    async def execute(self, guild_id: str, feature_id: str) -> Result[Optional[SubscriptionStatusDTO]]:
        if feature_id not in self.catalog:
            return Return.err(_unknown_feature(feature_id))

        try:
            async with self.uow_factory() as uow:
                subscription = await uow.subscriptions.get(guild_id, feature_id)
        except Exception as e:
            logger.error(f"Failed to load subscription {feature_id} for guild {guild_id}: {e}")
            return Return.err(
                Error(
                    code=error_codes.STATUS_LOOKUP_FAILED,
                    message="Failed to get premium status",
                    reason=str(e),
                )
            )

        if subscription is None:
            return Return.ok(None)
        return Return.ok(to_status_dto(subscription, self.clock(), self.grace_period, self.warning_horizon))


class CheckFeatureActive:
    """
    Use Case: Feature gate

    Active means the record exists, is flagged active, and the access
    deadline (next deduction plus grace, or just next deduction once
    cancelled) has not passed.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        catalog: FeatureCatalog,
        grace_period: timedelta,
        clock: Clock = system_clock,
    ):
        self.uow_factory = uow_factory
        self.catalog = catalog
        self.grace_period = grace_period
        self.clock = clock

    async def execute(self, guild_id: str, feature_id: str) -> Result[FeatureActiveResponseDTO]:
        if feature_id not in self.catalog:
            return Return.err(_unknown_feature(feature_id))

        try:
            async with self.uow_factory() as uow:
                subscription = await uow.subscriptions.get(guild_id, feature_id)
        except Exception as e:
            logger.error(f"Error checking feature status for guild {guild_id}: {e}")
            return Return.err(
                Error(
                    code=error_codes.STATUS_LOOKUP_FAILED,
                    message="Failed to check feature status",
                    reason=str(e),
                )
            )

        active = subscription is not None and subscription.is_active_at(self.clock(), self.grace_period)
        return Return.ok(
            FeatureActiveResponseDTO(guild_id=guild_id, feature_id=feature_id, active=active)
        )
