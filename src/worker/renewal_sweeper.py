"""Premium Renewal Sweeper Background Worker

Periodically reconciles active premium subscriptions: renews the ones that
are due, warns payers about low balances, tolerates underfunding for a grace
period and disables what can no longer be paid for.
Can be run as a standalone script or started alongside the API.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta
from enum import Enum
from typing import Mapping, Optional, Tuple

from src.app.services.clock import Clock, system_clock
from src.app.services.credit_ledger_service import CreditLedgerService
from src.app.services.side_effect_hook import SideEffectHook
from src.app.services.subscription_locks import SubscriptionLocks
from src.app.services.transaction_recorder import TransactionRecorder
from src.app.services.unit_of_work import UnitOfWork, UnitOfWorkFactory
from src.app.services.warning_notifier import WarningNotifier
from src.app.use_cases.premium.dtos import SweepResultDTO
from src.domain.premium_feature import FeatureCatalog, FeatureDefinition
from src.domain.premium_subscription import Subscription, DisableReason
from src.domain.subscription_transaction import TransactionType

logger = logging.getLogger(__name__)


class SweepAction(str, Enum):
    """What one sweep did to one subscription"""
    NONE = "none"
    WARNED = "warned"
    RENEWED = "renewed"
    GRACE = "grace"
    DISABLED = "disabled"


class RenewalSweeper:
    """
    Background worker for premium subscription renewal

    Features:
    - Store-side filter: only records due within the warning horizon, or
      whose feature left the catalog, are loaded
    - Each subscription is processed under its (guild, feature) lock in its
      own unit of work; one failure never aborts the batch
    - Renewal and disablement are exclusive outcomes of one evaluation
    - Overlapping ticks are skipped, not queued
    - stop() lets an in-flight tick finish

    Usage:
        # Run once
        result = await sweeper.run_once()

        # Run in the background
        sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        ledger: CreditLedgerService,
        notifier: WarningNotifier,
        recorder: TransactionRecorder,
        catalog: FeatureCatalog,
        locks: SubscriptionLocks,
        grace_period: timedelta = timedelta(days=3),
        warning_horizon: timedelta = timedelta(days=3),
        hooks: Optional[Mapping[str, SideEffectHook]] = None,
        interval_seconds: int = 6 * 3600,
        clock: Clock = system_clock,
    ):
        self.uow_factory = uow_factory
        self.ledger = ledger
        self.notifier = notifier
        self.recorder = recorder
        self.catalog = catalog
        self.locks = locks
        self.grace_period = grace_period
        self.warning_horizon = warning_horizon
        self.hooks = hooks or {}
        self.interval_seconds = interval_seconds
        self.clock = clock

        self._sweep_lock = asyncio.Lock()
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

        logger.info("RenewalSweeper initialized")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> SweepResultDTO:
        """
        Run one sweep

        Returns:
            SweepResultDTO with counts; skipped=True if a sweep was already running
        """
        if self._sweep_lock.locked():
            logger.warning("Previous renewal sweep still running, skipping this tick")
            return SweepResultDTO(skipped=True, sweep_time=self.clock())

        async with self._sweep_lock:
            return await self._sweep()

    async def _sweep(self) -> SweepResultDTO:
        start_time = time.time()
        now = self.clock()

        logger.info("Checking for premium feature renewals...")

        async with self.uow_factory() as uow:
            subscriptions = await uow.subscriptions.list_active(
                due_before=now + self.warning_horizon,
                known_feature_ids=self.catalog.ids(),
            )
        keys = [(s.guild_id, s.feature_id) for s in subscriptions]

        counts = {action: 0 for action in SweepAction}
        warnings_sent = 0
        failed = 0

        for guild_id, feature_id in keys:
            try:
                action, warned = await self._process(guild_id, feature_id, now)
                counts[action] += 1
                if warned:
                    warnings_sent += 1
            except Exception as e:
                logger.error(
                    f"Unexpected error processing {feature_id} for guild {guild_id}: {e}",
                    exc_info=True,
                )
                failed += 1

        execution_time_ms = int((time.time() - start_time) * 1000)

        result = SweepResultDTO(
            total_checked=len(keys),
            renewed=counts[SweepAction.RENEWED],
            warnings_sent=warnings_sent,
            disabled=counts[SweepAction.DISABLED],
            failed=failed,
            sweep_time=now,
            execution_time_ms=execution_time_ms,
        )

        logger.info(
            f"Renewal sweep complete: {result.total_checked} checked, "
            f"{result.renewed} renewed, {result.warnings_sent} warned, "
            f"{result.disabled} disabled, {result.failed} failed, "
            f"{execution_time_ms}ms"
        )

        return result

    async def _process(self, guild_id: str, feature_id: str, now: datetime) -> Tuple[SweepAction, bool]:
        """
        Evaluate one subscription

        Returns:
            The action taken and whether a warning went out
        """
        async with self.locks.hold(guild_id, feature_id):
            async with self.uow_factory() as uow:
                # Re-read under the lock; a user call may have changed it since listing
                subscription = await uow.subscriptions.get(guild_id, feature_id)
                if subscription is None or not subscription.active:
                    return SweepAction.NONE, False

                feature = self.catalog.get(feature_id)
                if feature is None:
                    return await self._disable(uow, subscription, DisableReason.FEATURE_REMOVED, now), False

                if not subscription.auto_renew:
                    if subscription.is_due(now):
                        return await self._disable(uow, subscription, DisableReason.CANCELLED, now), False
                    return SweepAction.NONE, False

                if not subscription.is_due(now):
                    if now >= subscription.next_deduction_date - self.warning_horizon:
                        if await self._warn_low_balance(subscription, feature):
                            return SweepAction.WARNED, True
                    return SweepAction.NONE, False

                return await self._renew_or_grace(uow, subscription, feature, now)

    async def _warn_low_balance(self, subscription: Subscription, feature: FeatureDefinition) -> bool:
        balance = await self.ledger.get_balance(subscription.payer_user_id)
        if balance >= feature.cost:
            return False
        return await self.notifier.warn_low_balance(
            subscription.guild_id,
            feature,
            subscription.payer_user_id,
            {
                "balance": balance,
                "required": feature.cost,
                "next_deduction_date": subscription.next_deduction_date.isoformat(),
            },
        )

    async def _renew_or_grace(
        self, uow: UnitOfWork, subscription: Subscription, feature: FeatureDefinition, now: datetime
    ) -> Tuple[SweepAction, bool]:
        payer = subscription.payer_user_id

        if await self.ledger.debit(payer, feature.cost):
            previous_due = subscription.next_deduction_date
            subscription.renew(feature, now)
            try:
                await uow.subscriptions.update(subscription)
                await uow.commit()
            except Exception:
                await uow.rollback()
                await self._refund(subscription, feature)
                raise

            logger.info(
                f"Renewed feature {feature.id} for guild {subscription.guild_id}, "
                f"next deduction {subscription.next_deduction_date.isoformat()}"
            )
            await self.notifier.reset(subscription.guild_id, feature.id, payer)
            await self.recorder.record(
                guild_id=subscription.guild_id,
                user_id=payer,
                feature_id=feature.id,
                transaction_type=TransactionType.RENEWAL,
                amount=-feature.cost,
                metadata={
                    "previous_deduction_date": previous_due.isoformat(),
                    "next_deduction_date": subscription.next_deduction_date.isoformat(),
                },
            )
            return SweepAction.RENEWED, False

        grace_deadline = subscription.next_deduction_date + self.grace_period
        if now < grace_deadline:
            balance = await self.ledger.get_balance(payer)
            warned = await self.notifier.warn_grace_period(
                subscription.guild_id,
                feature,
                payer,
                {
                    "balance": balance,
                    "required": feature.cost,
                    "grace_deadline": grace_deadline.isoformat(),
                },
            )
            logger.info(
                f"Renewal of {feature.id} for guild {subscription.guild_id} underfunded, "
                f"in grace until {grace_deadline.isoformat()}"
            )
            return SweepAction.GRACE, warned

        return await self._disable(uow, subscription, DisableReason.INSUFFICIENT_BALANCE, now), False

    async def _disable(
        self, uow: UnitOfWork, subscription: Subscription, reason: DisableReason, now: datetime
    ) -> SweepAction:
        subscription.disable(reason, now)
        await uow.subscriptions.update(subscription)
        await uow.commit()

        guild_id = subscription.guild_id
        feature_id = subscription.feature_id
        payer = subscription.payer_user_id
        logger.info(f"Premium feature {feature_id} disabled for guild {guild_id} ({reason.value})")

        await self.recorder.record(
            guild_id=guild_id,
            user_id=payer,
            feature_id=feature_id,
            transaction_type=TransactionType.DISABLED,
            metadata={"reason": reason.value},
        )
        await self.notifier.reset(guild_id, feature_id, payer)

        feature = self.catalog.get(feature_id) or self._snapshot_feature(subscription)
        await self.notifier.notify_deactivation(
            guild_id,
            feature,
            payer,
            {"reason": reason.value, "disabled_at": now.isoformat()},
        )

        hook = self.hooks.get(feature_id)
        if hook is not None:
            try:
                await hook.on_disable(guild_id)
            except Exception as e:
                logger.error(f"Disable hook for {feature_id} failed in guild {guild_id}: {e}")

        return SweepAction.DISABLED

    async def _refund(self, subscription: Subscription, feature: FeatureDefinition) -> None:
        try:
            await self.ledger.refund(subscription.payer_user_id, feature.cost)
            logger.info(f"Refunded {feature.cost} to user {subscription.payer_user_id} after failed renewal")
        except Exception as e:
            logger.critical(
                f"Refund of {feature.cost} to user {subscription.payer_user_id} failed after an "
                f"unpersisted renewal of {feature.id} for guild {subscription.guild_id}: {e}"
            )

    @staticmethod
    def _snapshot_feature(subscription: Subscription) -> FeatureDefinition:
        # Feature left the catalog; describe it from what the record remembers
        return FeatureDefinition(
            id=subscription.feature_id,
            name=subscription.feature_id,
            cost=subscription.cost,
            period=subscription.period,
            period_days=subscription.period_days,
        )

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop"""
        if self.is_running:
            logger.warning("RenewalSweeper already started")
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name="premium-renewal-sweeper")

    async def stop(self) -> None:
        """Stop between ticks; an in-flight sweep is allowed to finish"""
        if self._task is None:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("RenewalSweeper stopped")

    async def run_forever(self) -> None:
        self.start()
        await self._task

    async def _loop(self) -> None:
        logger.info(
            f"Starting premium renewal sweeper with {self.interval_seconds}s interval"
        )

        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Renewal sweep failed: {e}", exc_info=True)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.renewal_sweeper --once

        # Run continuously (default: every 6 hours)
        python -m src.worker.renewal_sweeper

        # Run continuously with custom interval (in seconds)
        python -m src.worker.renewal_sweeper --interval 3600
    """
    import argparse
    from config import ApplicationConfig
    from src.depends import build_container

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Premium Renewal Sweeper")
    parser.add_argument(
        "--once", action="store_true", help="Run once and exit"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.PREMIUM_SWEEP_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 21600 = 6 hours)"
    )
    args = parser.parse_args()

    container = build_container(ApplicationConfig, sweep_interval_seconds=args.interval)

    try:
        if args.once:
            result = await container.sweeper.run_once()
            print("Renewal sweep complete:")
            print(f"  Checked: {result.total_checked}")
            print(f"  Renewed: {result.renewed}")
            print(f"  Warnings sent: {result.warnings_sent}")
            print(f"  Disabled: {result.disabled}")
            print(f"  Failed: {result.failed}")
            print(f"  Execution time: {result.execution_time_ms}ms")
        else:
            await container.sweeper.run_forever()
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await container.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
