"""Composition root

Builds every engine component once from configuration and hands them to
the API and the worker. Nothing here is a module-level singleton.
"""

import logging
from datetime import timedelta
from typing import Dict, Optional
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.services.command_sync import LoggingCommandSyncService, WebhookCommandSyncService
from src.adapter.services.credit_ledger_service import SqlAlchemyCreditLedgerService
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.unit_of_work import create_unit_of_work_factory
from src.adapter.services.warning_cache import InMemoryWarningCache, RedisWarningCache
from src.app.services.clock import Clock, system_clock
from src.app.services.side_effect_hook import CommandVisibilityHook, SideEffectHook
from src.app.services.subscription_locks import SubscriptionLocks
from src.app.services.transaction_recorder import TransactionRecorder
from src.app.services.warning_cache import WarningCache
from src.app.services.warning_notifier import WarningNotifier
from src.app.use_cases.premium.subscription_manager import SubscriptionManager
from src.domain.premium_feature import DEFAULT_CATALOG, FeatureCatalog, PremiumFeatures
from src.worker.renewal_sweeper import RenewalSweeper

logger = logging.getLogger(__name__)


class PremiumContainer:
    """Wired engine components sharing one engine, one lock table and one clock"""

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: sessionmaker,
        warning_cache: WarningCache,
        manager: SubscriptionManager,
        sweeper: RenewalSweeper,
        catalog: FeatureCatalog,
    ):
        self.engine = engine
        self.session_factory = session_factory
        self.warning_cache = warning_cache
        self.manager = manager
        self.sweeper = sweeper
        self.catalog = catalog

    async def create_tables(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def shutdown(self):
        """Cleanup resources"""
        await self.sweeper.stop()
        if isinstance(self.warning_cache, RedisWarningCache):
            await self.warning_cache.disconnect()
        await self.engine.dispose()
        logger.info("Premium engine shutdown complete")


def build_container(
    config,
    catalog: FeatureCatalog = DEFAULT_CATALOG,
    clock: Clock = system_clock,
    engine: Optional[AsyncEngine] = None,
    warning_cache: Optional[WarningCache] = None,
    sweep_interval_seconds: Optional[int] = None,
) -> PremiumContainer:
    engine = engine or create_async_engine(config.DB_URI, echo=False, future=True)
    session_factory = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    uow_factory = create_unit_of_work_factory(session_factory)

    if warning_cache is None:
        if config.CACHE_BACKEND == "redis":
            warning_cache = RedisWarningCache(config.REDIS_URL)
        else:
            warning_cache = InMemoryWarningCache(clock=clock)

    if config.PREMIUM_COMMAND_SYNC_WEBHOOK:
        command_sync = WebhookCommandSyncService(config.PREMIUM_COMMAND_SYNC_WEBHOOK)
    else:
        command_sync = LoggingCommandSyncService()
    hooks: Dict[str, SideEffectHook] = {
        PremiumFeatures.PRO.id: CommandVisibilityHook(command_sync),
    }

    grace_period = timedelta(days=config.PREMIUM_GRACE_PERIOD_DAYS)
    warning_horizon = timedelta(days=config.PREMIUM_WARNING_HORIZON_DAYS)
    ledger = SqlAlchemyCreditLedgerService(session_factory)
    recorder = TransactionRecorder(uow_factory, clock=clock)
    locks = SubscriptionLocks()
    notifier = WarningNotifier(
        create_notification_service(config.PREMIUM_NOTIFICATION_WEBHOOK),
        warning_cache,
        warning_ttl_seconds=config.PREMIUM_WARNING_TTL_SECONDS,
    )

    manager = SubscriptionManager(
        uow_factory=uow_factory,
        ledger=ledger,
        recorder=recorder,
        catalog=catalog,
        locks=locks,
        grace_period=grace_period,
        warning_horizon=warning_horizon,
        hooks=hooks,
        warning_notifier=notifier,
        clock=clock,
    )
    sweeper = RenewalSweeper(
        uow_factory=uow_factory,
        ledger=ledger,
        notifier=notifier,
        recorder=recorder,
        catalog=catalog,
        locks=locks,
        grace_period=grace_period,
        warning_horizon=warning_horizon,
        hooks=hooks,
        interval_seconds=sweep_interval_seconds or config.PREMIUM_SWEEP_INTERVAL_SECONDS,
        clock=clock,
    )

    return PremiumContainer(
        engine=engine,
        session_factory=session_factory,
        warning_cache=warning_cache,
        manager=manager,
        sweeper=sweeper,
        catalog=catalog,
    )


def get_subscription_manager(request: Request) -> SubscriptionManager:
    return request.app.state.container.manager
