"""CancelFeature Use Case

Turns off auto-renewal. The guild keeps the feature until the period it
already paid for ends; the renewal sweep disables it afterwards.
"""

import logging
from datetime import timedelta
from libs.result import Result, Return, Error
from src.app.services.clock import Clock, system_clock
from src.app.services.subscription_locks import SubscriptionLocks
from src.app.services.transaction_recorder import TransactionRecorder
from src.app.services.unit_of_work import UnitOfWorkFactory
from src.domain.premium_feature import FeatureCatalog, FeatureDefinition
from src.domain.subscription_transaction import TransactionType
from . import error_codes
from .dtos import SubscriptionCommandDTO, CancellationResponseDTO

logger = logging.getLogger(__name__)


class CancelFeature:
    """
    Use Case: Cancel a guild's premium feature at period end

    Business Rules:
    1. Only an active subscription can be cancelled
    2. Only the payer may cancel
    3. No credits move; next_deduction_date is left untouched
    4. Cancelling twice is a no-op that reports the same expiry
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        recorder: TransactionRecorder,
        catalog: FeatureCatalog,
        locks: SubscriptionLocks,
        grace_period: timedelta,
        clock: Clock = system_clock,
    ):
        self.uow_factory = uow_factory
        self.recorder = recorder
        self.catalog = catalog
        self.locks = locks
        self.grace_period = grace_period
        self.clock = clock

    async def execute(self, command: SubscriptionCommandDTO) -> Result[CancellationResponseDTO]:
        feature = self.catalog.get(command.feature_id)
        if feature is None:
            return Return.err(
                Error(
                    code=error_codes.UNKNOWN_FEATURE,
                    message="Invalid feature ID",
                    reason=f"feature_id={command.feature_id}",
                )
            )

        try:
            async with self.locks.hold(command.guild_id, command.feature_id):
                result, newly_cancelled = await self._cancel(command, feature)
        except Exception as e:
            logger.error(
                f"Failed to cancel feature {command.feature_id} for guild {command.guild_id}: {e}",
                exc_info=True,
            )
            return Return.err(
                Error(
                    code=error_codes.CANCELLATION_FAILED,
                    message="An internal error occurred.",
                    reason=str(e),
                )
            )

        if newly_cancelled:
            await self.recorder.record(
                guild_id=command.guild_id,
                user_id=command.user_id,
                feature_id=feature.id,
                transaction_type=TransactionType.CANCELLATION,
                metadata={"expires_at": result.value.expires_at.isoformat()},
            )
        return result

    async def _cancel(self, command: SubscriptionCommandDTO, feature: FeatureDefinition):
        now = self.clock()

        async with self.uow_factory() as uow:
            subscription = await uow.subscriptions.get(command.guild_id, command.feature_id)

            if subscription is None or not subscription.is_active_at(now, self.grace_period):
                return Return.err(
                    Error(
                        code=error_codes.NOT_ACTIVE,
                        message=f"{feature.name} is not active for this server.",
                    )
                ), False

            if subscription.payer_user_id != command.user_id:
                return Return.err(
                    Error(
                        code=error_codes.UNAUTHORIZED,
                        message="Only the user who pays for this feature can cancel it.",
                        reason=f"payer={subscription.payer_user_id}, caller={command.user_id}",
                    )
                ), False

            newly_cancelled = subscription.auto_renew
            if newly_cancelled:
                subscription.cancel(command.user_id, now)
                subscription = await uow.subscriptions.update(subscription)
                await uow.commit()
                logger.info(
                    f"Premium feature {feature.id} cancelled for guild {command.guild_id} "
                    f"by user {command.user_id}, active until {subscription.next_deduction_date.isoformat()}"
                )

        expires_at = subscription.next_deduction_date
        return Return.ok(
            CancellationResponseDTO(
                message=(
                    f"{feature.name} will stay active until {expires_at:%Y-%m-%d} "
                    f"and will not renew"
                ),
                guild_id=subscription.guild_id,
                feature_id=subscription.feature_id,
                expires_at=expires_at,
            )
        ), newly_cancelled
