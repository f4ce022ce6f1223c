"""ActivateFeature Use Case

Charges the payer for one period of a premium feature and grants it to a
guild. The debit happens before the entitlement is written; if the write
fails the debit is refunded.
"""

import logging
from datetime import timedelta
from typing import Mapping, Optional
from libs.result import Result, Return, Error
from src.app.services.clock import Clock, system_clock
from src.app.services.credit_ledger_service import CreditLedgerService
from src.app.services.side_effect_hook import SideEffectHook
from src.app.services.subscription_locks import SubscriptionLocks
from src.app.services.transaction_recorder import TransactionRecorder
from src.app.services.unit_of_work import UnitOfWorkFactory
from src.app.services.warning_notifier import WarningNotifier
from src.domain.premium_feature import FeatureCatalog, FeatureDefinition
from src.domain.premium_subscription import Subscription
from src.domain.subscription_transaction import TransactionType
from . import error_codes
from .dtos import SubscriptionCommandDTO, ActivationResponseDTO

logger = logging.getLogger(__name__)


class ActivateFeature:
    """
    Use Case: Activate a premium feature for a guild

    Business Rules:
    1. Feature must exist in the catalog
    2. A paid-up, auto-renewing subscription cannot be bought twice;
       one in its grace period can be paid for by any member
    3. Insufficient balance fails without any state change
    4. Debit first, then persist; a failed persist is compensated with a refund
    5. Audit record and side-effect hook never undo the activation

    Flow:
    1. Resolve feature
    2. Lock (guild, feature)
    3. Load existing record, reject if already active
    4. Check balance, debit
    5. Write new cycle (create or compare-and-swap update), commit
    6. Clear stale warnings, record activation, run hook
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        ledger: CreditLedgerService,
        recorder: TransactionRecorder,
        catalog: FeatureCatalog,
        locks: SubscriptionLocks,
        grace_period: timedelta,
        hooks: Optional[Mapping[str, SideEffectHook]] = None,
        warning_notifier: Optional[WarningNotifier] = None,
        clock: Clock = system_clock,
    ):
        self.uow_factory = uow_factory
        self.ledger = ledger
        self.recorder = recorder
        self.catalog = catalog
        self.locks = locks
        self.grace_period = grace_period
        self.hooks = hooks or {}
        self.warning_notifier = warning_notifier
        self.clock = clock

    async def execute(self, command: SubscriptionCommandDTO) -> Result[ActivationResponseDTO]:
        """
        Execute activation

        Args:
            command: SubscriptionCommandDTO with guild_id, feature_id, user_id

        Returns:
            Result[ActivationResponseDTO]: Success with new cycle details or error
        """
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
                result = await self._activate(command, feature)
        except Exception as e:
            logger.error(
                f"Failed to activate feature {command.feature_id} for guild {command.guild_id} "
                f"(payer {command.user_id}): {e}",
                exc_info=True,
            )
            return Return.err(
                Error(
                    code=error_codes.ACTIVATION_FAILED,
                    message="An internal error occurred.",
                    reason=str(e),
                )
            )

        if result.is_ok():
            await self._after_activation(command, feature, result.value)
        return result

    async def _activate(
        self, command: SubscriptionCommandDTO, feature: FeatureDefinition
    ) -> Result[ActivationResponseDTO]:
        now = self.clock()

        async with self.uow_factory() as uow:
            # Step 1: Reject double purchase of a paid-up cycle; a due record may be paid again
            existing = await uow.subscriptions.get(command.guild_id, command.feature_id)
            if (
                existing
                and existing.auto_renew
                and existing.is_active_at(now, self.grace_period)
                and not existing.is_due(now)
            ):
                return Return.err(
                    Error(
                        code=error_codes.ALREADY_ACTIVE,
                        message=f"{feature.name} is already active for this server.",
                        reason=f"next_deduction_date={existing.next_deduction_date.isoformat()}",
                    )
                )

            # Step 2: Validate balance before touching the ledger
            balance = await self.ledger.get_balance(command.user_id)
            if balance < feature.cost:
                return self._insufficient(feature, balance)

            # Step 3: Debit; a concurrent spend can still make this fail
            if not await self.ledger.debit(command.user_id, feature.cost):
                balance = await self.ledger.get_balance(command.user_id)
                return self._insufficient(feature, balance)

            # Step 4: Persist the new cycle, refund if that fails
            try:
                if existing:
                    existing.start_cycle(feature, command.user_id, now)
                    subscription = await uow.subscriptions.update(existing)
                else:
                    subscription = await uow.subscriptions.create(
                        Subscription.activate(command.guild_id, feature, command.user_id, now)
                    )
                await uow.commit()
            except Exception as e:
                await uow.rollback()
                logger.error(
                    f"Persisting activation of {feature.id} for guild {command.guild_id} failed "
                    f"after debiting {feature.cost} from user {command.user_id}: {e}"
                )
                await self._refund(command, feature)
                raise

        logger.info(
            f"Premium feature {feature.id} activated for guild {command.guild_id} by user {command.user_id}"
        )

        return Return.ok(
            ActivationResponseDTO(
                message=(
                    f"Feature {feature.name} activated successfully until "
                    f"{subscription.next_deduction_date:%Y-%m-%d}"
                ),
                guild_id=subscription.guild_id,
                feature_id=subscription.feature_id,
                payer_user_id=subscription.payer_user_id,
                cost=subscription.cost,
                next_deduction_date=subscription.next_deduction_date,
            )
        )

    async def _refund(self, command: SubscriptionCommandDTO, feature: FeatureDefinition) -> None:
        try:
            await self.ledger.refund(command.user_id, feature.cost)
            logger.info(f"Refunded {feature.cost} to user {command.user_id} after failed activation")
        except Exception as e:
            logger.critical(
                f"Refund of {feature.cost} to user {command.user_id} failed after an unpersisted "
                f"activation of {feature.id} for guild {command.guild_id}; credits need manual restore: {e}"
            )

    async def _after_activation(
        self, command: SubscriptionCommandDTO, feature: FeatureDefinition, response: ActivationResponseDTO
    ) -> None:
        if self.warning_notifier:
            await self.warning_notifier.reset(command.guild_id, feature.id, command.user_id)

        await self.recorder.record(
            guild_id=command.guild_id,
            user_id=command.user_id,
            feature_id=feature.id,
            transaction_type=TransactionType.ACTIVATION,
            amount=-feature.cost,
            metadata={
                "period": feature.period.value,
                "period_days": feature.period_days,
                "next_deduction_date": response.next_deduction_date.isoformat(),
            },
        )

        hook = self.hooks.get(feature.id)
        if hook is None:
            return
        try:
            await hook.on_activate(command.guild_id)
        except Exception as e:
            logger.error(f"Activation hook for {feature.id} failed in guild {command.guild_id}: {e}")

    @staticmethod
    def _insufficient(feature: FeatureDefinition, balance) -> Result[ActivationResponseDTO]:
        return Return.err(
            Error(
                code=error_codes.INSUFFICIENT_CREDITS,
                message=(
                    f"Insufficient credits. You need {feature.cost} credits, "
                    f"but you only have {balance}."
                ),
                reason=f"balance={balance}, required={feature.cost}",
            )
        )
