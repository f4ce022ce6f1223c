from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from src.adapter.services.warning_cache import InMemoryWarningCache
from src.app.services.side_effect_hook import CommandVisibilityHook
from src.app.services.subscription_locks import SubscriptionLocks
from src.app.services.transaction_recorder import TransactionRecorder
from src.app.services.warning_notifier import WarningNotifier
from src.app.use_cases.premium.subscription_manager import SubscriptionManager
from src.domain.premium_feature import DEFAULT_CATALOG, PremiumFeatures
from src.worker.renewal_sweeper import RenewalSweeper
from tests.fakes import (
    GUILD_ID,
    PAYER_ID,
    FakeClock,
    FakeCreditLedger,
    FakeUnitOfWorkFactory,
    RecordingCommandSync,
    RecordingNotificationService,
)

GRACE_PERIOD = timedelta(days=3)
WARNING_HORIZON = timedelta(days=3)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0))


@pytest.fixture
def ledger():
    return FakeCreditLedger({PAYER_ID: Decimal("60")})


@pytest.fixture
def uow_factory():
    return FakeUnitOfWorkFactory()


@pytest.fixture
def store(uow_factory):
    return uow_factory.subscriptions


@pytest.fixture
def audit(uow_factory):
    return uow_factory.transactions


@pytest.fixture
def recorder(uow_factory, clock):
    return TransactionRecorder(uow_factory, clock=clock)


@pytest.fixture
def locks():
    return SubscriptionLocks()


@pytest.fixture
def notifications():
    return RecordingNotificationService()


@pytest.fixture
def warning_cache(clock):
    return InMemoryWarningCache(clock=clock)


@pytest.fixture
def notifier(notifications, warning_cache):
    return WarningNotifier(notifications, warning_cache, warning_ttl_seconds=7 * 24 * 3600)


@pytest.fixture
def command_sync():
    return RecordingCommandSync({GUILD_ID: ["ban", "kick"]})


@pytest.fixture
def hooks(command_sync):
    return {PremiumFeatures.PRO.id: CommandVisibilityHook(command_sync)}


@pytest.fixture
def manager(uow_factory, ledger, recorder, locks, hooks, notifier, clock):
    return SubscriptionManager(
        uow_factory=uow_factory,
        ledger=ledger,
        recorder=recorder,
        catalog=DEFAULT_CATALOG,
        locks=locks,
        grace_period=GRACE_PERIOD,
        warning_horizon=WARNING_HORIZON,
        hooks=hooks,
        warning_notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def sweeper(uow_factory, ledger, notifier, recorder, locks, hooks, clock):
    return RenewalSweeper(
        uow_factory=uow_factory,
        ledger=ledger,
        notifier=notifier,
        recorder=recorder,
        catalog=DEFAULT_CATALOG,
        locks=locks,
        grace_period=GRACE_PERIOD,
        warning_horizon=WARNING_HORIZON,
        hooks=hooks,
        interval_seconds=3600,
        clock=clock,
    )
