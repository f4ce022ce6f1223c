"""Unit tests for RenewalSweeper

Tests cover:
- Renewal of due subscriptions, exactly once per period
- Low-balance warnings ahead of the due date, deduplicated
- Grace period warnings and disablement once grace runs out
- Cancelled subscriptions expiring at their due date
- Subscriptions whose feature left the catalog
- Per-record failure isolation and refund on failed renewal writes
- Overlapping ticks are skipped
- start/stop lifecycle
"""

import asyncio
import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

from src.domain.premium_feature import FeatureDefinition, FeaturePeriod, PremiumFeatures
from src.domain.premium_subscription import DisableReason, Subscription
from src.domain.subscription_transaction import TransactionType
from tests.fakes import GUILD_ID, PAYER_ID, OTHER_USER_ID


@pytest.fixture
def due_pro(store, clock):
    """Pro subscription whose next deduction is exactly now"""
    subscription = Subscription.activate(GUILD_ID, PremiumFeatures.PRO, PAYER_ID, clock.now - timedelta(days=30))
    return store.seed(subscription)


@pytest.mark.asyncio
class TestRenewal:
    """Test renewals"""

    async def test_renews_due_subscription_once(self, sweeper, due_pro, store, ledger, audit, clock):
        """
        Given: A pro subscription due now and a payer with 60 credits
        When: The sweep runs twice at the same instant
        Then: 50 credits are deducted once and the due date moves by 30 days
        """
        # Act
        first = await sweeper.run_once()
        second = await sweeper.run_once()

        # Assert
        assert first.renewed == 1
        assert first.total_checked == 1
        assert second.renewed == 0
        assert ledger.balances[PAYER_ID] == Decimal("10")
        assert ledger.debits == [(PAYER_ID, Decimal("50"))]

        stored = store.stored(GUILD_ID, "pro_engine")
        assert stored.next_deduction_date == due_pro.next_deduction_date + timedelta(days=30)
        assert stored.last_deduction_date == clock.now
        assert stored.active is True

        renewals = audit.of_type(TransactionType.RENEWAL)
        assert len(renewals) == 1
        assert renewals[0].amount == Decimal("-50")

    async def test_late_renewal_keeps_schedule(self, sweeper, due_pro, store, clock):
        """Test a renewal caught two days late still advances from the old due date"""
        # Arrange
        clock.advance(days=2)

        # Act
        result = await sweeper.run_once()

        # Assert
        assert result.renewed == 1
        stored = store.stored(GUILD_ID, "pro_engine")
        assert stored.next_deduction_date == due_pro.next_deduction_date + timedelta(days=30)

    async def test_not_due_is_left_alone(self, sweeper, store, ledger, clock):
        store.seed(Subscription.activate(GUILD_ID, PremiumFeatures.PRO, PAYER_ID, clock.now))

        result = await sweeper.run_once()

        assert result.total_checked == 0
        assert ledger.debits == []

    async def test_renewal_write_failure_refunds(self, sweeper, due_pro, store, ledger):
        """
        Given: The entitlement store rejects the renewal write
        When: The sweep runs
        Then: The debit is refunded and the record is counted as failed
        """
        # Arrange
        store.fail_writes = True

        # Act
        result = await sweeper.run_once()

        # Assert
        assert result.failed == 1
        assert result.renewed == 0
        assert ledger.refunds == [(PAYER_ID, Decimal("50"))]
        assert ledger.balances[PAYER_ID] == Decimal("60")


@pytest.mark.asyncio
class TestLowBalanceWarning:
    """Test warnings ahead of the due date"""

    async def test_warns_once_inside_horizon(self, sweeper, store, ledger, notifications, clock):
        """
        Given: Pro renews in two days and the payer only has 40 credits
        When: The sweep runs twice
        Then: One low-balance warning is sent
        """
        # Arrange
        ledger.balances[PAYER_ID] = Decimal("40")
        store.seed(Subscription.activate(GUILD_ID, PremiumFeatures.PRO, PAYER_ID, clock.now - timedelta(days=28)))

        # Act
        first = await sweeper.run_once()
        clock.advance(hours=6)
        second = await sweeper.run_once()

        # Assert
        assert first.warnings_sent == 1
        assert second.warnings_sent == 0
        warnings = notifications.of_kind("low_balance")
        assert len(warnings) == 1
        _, user_id, feature_id, context = warnings[0]
        assert user_id == PAYER_ID
        assert feature_id == "pro_engine"
        assert context["guild_id"] == GUILD_ID
        assert context["balance"] == Decimal("40")
        assert ledger.debits == []

    async def test_no_warning_with_enough_balance(self, sweeper, store, notifications, clock):
        store.seed(Subscription.activate(GUILD_ID, PremiumFeatures.PRO, PAYER_ID, clock.now - timedelta(days=28)))

        result = await sweeper.run_once()

        assert result.warnings_sent == 0
        assert notifications.sent == []

    async def test_notification_failure_still_counts_as_warned(self, sweeper, store, ledger, notifications, clock):
        """Test an undeliverable warning is not retried every tick"""
        # Arrange
        ledger.balances[PAYER_ID] = Decimal("10")
        notifications.fail = True
        store.seed(Subscription.activate(GUILD_ID, PremiumFeatures.PRO, PAYER_ID, clock.now - timedelta(days=28)))

        # Act
        first = await sweeper.run_once()
        second = await sweeper.run_once()

        # Assert
        assert first.failed == 0
        assert first.warnings_sent == 1
        assert second.warnings_sent == 0
        assert len(notifications.sent) == 1


@pytest.mark.asyncio
class TestGracePeriod:
    """Test underfunded renewals"""

    async def test_grace_warning_sent_once(self, sweeper, due_pro, store, ledger, notifications, clock, manager):
        """
        Given: A due subscription and a payer with 40 credits
        When: The sweep runs on the due date and the next day
        Then: One grace warning is sent, nothing is debited and access continues
        """
        # Arrange
        ledger.balances[PAYER_ID] = Decimal("40")

        # Act
        first = await sweeper.run_once()
        clock.advance(days=1)
        second = await sweeper.run_once()

        # Assert
        assert first.warnings_sent == 1
        assert second.warnings_sent == 0
        assert first.disabled == 0 and second.disabled == 0
        assert len(notifications.of_kind("grace_period")) == 1
        assert ledger.balances[PAYER_ID] == Decimal("40")
        assert store.stored(GUILD_ID, "pro_engine").active is True
        assert await manager.is_feature_active(GUILD_ID, "pro_engine") is True

    async def test_top_up_during_grace_renews(self, sweeper, due_pro, store, ledger, clock):
        """
        Given: A subscription in grace
        When: The payer tops up and the next sweep runs
        Then: It renews, and the due date moves from the missed due date
        """
        # Arrange
        ledger.balances[PAYER_ID] = Decimal("40")
        await sweeper.run_once()
        clock.advance(days=2)
        ledger.balances[PAYER_ID] = Decimal("100")

        # Act
        result = await sweeper.run_once()

        # Assert
        assert result.renewed == 1
        assert ledger.balances[PAYER_ID] == Decimal("50")
        stored = store.stored(GUILD_ID, "pro_engine")
        assert stored.next_deduction_date == due_pro.next_deduction_date + timedelta(days=30)

    async def test_disabled_after_grace(
        self, sweeper, due_pro, store, ledger, audit, notifications, command_sync, clock, manager
    ):
        """
        Given: A payer with 40 credits who never tops up
        When: The sweep runs three days after the due date
        Then: The subscription is disabled with a disabled transaction, a
              deactivation notice, and pro commands reset to default visibility
        """
        # Arrange
        ledger.balances[PAYER_ID] = Decimal("40")
        await sweeper.run_once()
        clock.now = due_pro.next_deduction_date + timedelta(days=3)

        # Act
        result = await sweeper.run_once()

        # Assert
        assert result.disabled == 1
        assert result.renewed == 0
        stored = store.stored(GUILD_ID, "pro_engine")
        assert stored.active is False
        assert stored.disable_reason == DisableReason.INSUFFICIENT_BALANCE
        assert stored.disabled_at == clock.now

        disabled = audit.of_type(TransactionType.DISABLED)
        assert len(disabled) == 1
        assert disabled[0].metadata_dict == {"reason": "insufficient_balance"}
        assert disabled[0].amount == Decimal("0")

        assert len(notifications.of_kind("deactivation")) == 1
        assert command_sync.syncs == [(GUILD_ID, [])]
        assert ledger.balances[PAYER_ID] == Decimal("40")
        assert await manager.is_feature_active(GUILD_ID, "pro_engine") is False

    async def test_disabled_record_is_not_revisited(self, sweeper, due_pro, ledger, clock, notifications):
        # Arrange
        ledger.balances[PAYER_ID] = Decimal("0")
        clock.now = due_pro.next_deduction_date + timedelta(days=3)
        await sweeper.run_once()

        # Act
        result = await sweeper.run_once()

        # Assert
        assert result.total_checked == 0
        assert len(notifications.of_kind("deactivation")) == 1

    async def test_deactivation_notice_failure_does_not_block(self, sweeper, due_pro, store, ledger, notifications, clock):
        # Arrange
        ledger.balances[PAYER_ID] = Decimal("0")
        notifications.fail = True
        clock.now = due_pro.next_deduction_date + timedelta(days=3)

        # Act
        result = await sweeper.run_once()

        # Assert
        assert result.disabled == 1
        assert result.failed == 0
        assert store.stored(GUILD_ID, "pro_engine").active is False

    async def test_disable_hook_failure_does_not_block(self, sweeper, due_pro, store, ledger, command_sync, clock):
        ledger.balances[PAYER_ID] = Decimal("0")
        command_sync.sync_guild_commands = AsyncMock(side_effect=RuntimeError("platform unavailable"))
        clock.now = due_pro.next_deduction_date + timedelta(days=3)

        result = await sweeper.run_once()

        assert result.disabled == 1
        assert store.stored(GUILD_ID, "pro_engine").active is False


@pytest.mark.asyncio
class TestCancelledExpiry:
    """Test cancelled subscriptions"""

    async def test_cancelled_disabled_at_due_date_without_charge(
        self, sweeper, manager, store, ledger, audit, notifications, clock
    ):
        """
        Given: A pro subscription the payer cancelled
        When: The sweep runs on its due date
        Then: It is disabled with reason cancelled and no credits are deducted
        """
        # Arrange
        await manager.activate_feature(GUILD_ID, "pro_engine", PAYER_ID)
        await manager.cancel_feature(GUILD_ID, "pro_engine", PAYER_ID)
        clock.advance(days=30)

        # Act
        result = await sweeper.run_once()

        # Assert
        assert result.disabled == 1
        assert ledger.balances[PAYER_ID] == Decimal("10")
        stored = store.stored(GUILD_ID, "pro_engine")
        assert stored.active is False
        assert stored.disable_reason == DisableReason.CANCELLED
        assert audit.of_type(TransactionType.DISABLED)[0].metadata_dict == {"reason": "cancelled"}
        assert len(notifications.of_kind("deactivation")) == 1
        assert notifications.of_kind("low_balance") == []

    async def test_cancelled_before_due_date_untouched(self, sweeper, manager, store, clock):
        # Arrange
        await manager.activate_feature(GUILD_ID, "pro_engine", PAYER_ID)
        await manager.cancel_feature(GUILD_ID, "pro_engine", PAYER_ID)
        clock.advance(days=29)

        # Act
        result = await sweeper.run_once()

        # Assert
        assert result.total_checked == 1
        assert result.disabled == 0
        assert store.stored(GUILD_ID, "pro_engine").active is True


@pytest.mark.asyncio
class TestRemovedFeature:
    """Test subscriptions to features no longer in the catalog"""

    async def test_removed_feature_disabled(self, sweeper, store, ledger, notifications, audit, clock):
        """
        Given: An active subscription to a feature that left the catalog, not yet due
        When: The sweep runs
        Then: It is disabled with reason feature_removed and the payer is told
        """
        # Arrange
        legacy = FeatureDefinition(
            id="legacy_boost", name="Legacy Boost", cost=Decimal("10"),
            period=FeaturePeriod.WEEK, period_days=7,
        )
        store.seed(Subscription.activate(GUILD_ID, legacy, PAYER_ID, clock.now))

        # Act
        result = await sweeper.run_once()

        # Assert
        assert result.disabled == 1
        stored = store.stored(GUILD_ID, "legacy_boost")
        assert stored.active is False
        assert stored.disable_reason == DisableReason.FEATURE_REMOVED
        assert ledger.debits == []
        notices = notifications.of_kind("deactivation")
        assert len(notices) == 1
        assert notices[0][2] == "legacy_boost"
        assert notices[0][3]["reason"] == "feature_removed"


@pytest.mark.asyncio
class TestSweepRobustness:
    """Test failure isolation and overlap handling"""

    async def test_one_failure_does_not_abort_batch(self, sweeper, store, ledger, clock):
        """
        Given: Two due subscriptions, one of whose payer cannot be reached
        When: The sweep runs
        Then: The other is still renewed and the failure is counted
        """
        # Arrange
        start = clock.now - timedelta(days=30)
        store.seed(Subscription.activate("guild_a", PremiumFeatures.PRO, PAYER_ID, start))
        store.seed(Subscription.activate("guild_b", PremiumFeatures.PRO, OTHER_USER_ID, start))
        ledger.balances[OTHER_USER_ID] = Decimal("100")
        ledger.unreachable_users.add(PAYER_ID)

        # Act
        result = await sweeper.run_once()

        # Assert
        assert result.total_checked == 2
        assert result.failed == 1
        assert result.renewed == 1
        assert store.stored("guild_b", "pro_engine").next_deduction_date == clock.now + timedelta(days=30)
        assert store.stored("guild_a", "pro_engine").next_deduction_date == clock.now

    async def test_listing_failure_propagates(self, sweeper, store):
        store.list_active = AsyncMock(side_effect=ConnectionError("db down"))

        with pytest.raises(ConnectionError):
            await sweeper.run_once()

    async def test_overlapping_tick_is_skipped(self, sweeper, due_pro, ledger):
        """
        Given: A sweep blocked inside the ledger
        When: A second tick fires
        Then: It returns skipped without processing anything
        """
        # Arrange
        release = asyncio.Event()
        original_debit = ledger.debit

        async def slow_debit(user_id, amount):
            await release.wait()
            return await original_debit(user_id, amount)

        ledger.debit = slow_debit
        first = asyncio.create_task(sweeper.run_once())
        while not sweeper._sweep_lock.locked():
            await asyncio.sleep(0)

        # Act
        skipped = await sweeper.run_once()
        release.set()
        completed = await first

        # Assert
        assert skipped.skipped is True
        assert skipped.total_checked == 0
        assert completed.renewed == 1
        assert ledger.debits == [(PAYER_ID, Decimal("50"))]

    async def test_sweep_waits_for_user_call_on_same_subscription(self, sweeper, due_pro, locks, store):
        """Test the sweep takes the same per-subscription lock as user calls"""
        # Arrange
        async with locks.hold(GUILD_ID, "pro_engine"):
            task = asyncio.create_task(sweeper.run_once())
            for _ in range(10):
                await asyncio.sleep(0)

            # Assert
            assert not task.done()
            assert store.stored(GUILD_ID, "pro_engine").next_deduction_date == due_pro.next_deduction_date

        result = await task
        assert result.renewed == 1


@pytest.mark.asyncio
class TestSweeperLifecycle:
    """Test start/stop"""

    async def test_start_runs_immediately_and_stop_ends_loop(self, sweeper):
        # Arrange
        sweeper.run_once = AsyncMock()

        # Act
        sweeper.start()
        while sweeper.run_once.await_count == 0:
            await asyncio.sleep(0)
        await sweeper.stop()

        # Assert
        assert sweeper.run_once.await_count == 1
        assert sweeper.is_running is False

    async def test_loop_survives_failing_tick(self, sweeper):
        sweeper.interval_seconds = 0
        calls = []

        async def tick():
            calls.append(1)
            await asyncio.sleep(0)
            if len(calls) == 1:
                raise RuntimeError("boom")

        sweeper.run_once = tick

        sweeper.start()
        while len(calls) < 2:
            await asyncio.sleep(0)
        await sweeper.stop()

        assert len(calls) >= 2

    async def test_stop_without_start(self, sweeper):
        await sweeper.stop()

        assert sweeper.is_running is False

    async def test_start_twice_keeps_one_task(self, sweeper):
        sweeper.run_once = AsyncMock()

        sweeper.start()
        task = sweeper._task
        sweeper.start()

        assert sweeper._task is task
        await sweeper.stop()
