"""Subscription Manager

Synchronous, user-triggered entry point to the entitlement engine. Built
once by the composition root and injected where needed.
"""

import logging
from datetime import timedelta
from typing import List, Mapping, Optional
from libs.result import Result
from src.app.services.clock import Clock, system_clock
from src.app.services.credit_ledger_service import CreditLedgerService
from src.app.services.side_effect_hook import SideEffectHook
from src.app.services.subscription_locks import SubscriptionLocks
from src.app.services.transaction_recorder import TransactionRecorder
from src.app.services.unit_of_work import UnitOfWorkFactory
from src.app.services.warning_notifier import WarningNotifier
from src.domain.premium_feature import FeatureCatalog
from .activate_feature import ActivateFeature
from .cancel_feature import CancelFeature
from .get_subscription_status import GetSubscriptionStatus, CheckFeatureActive
from .dtos import (
    SubscriptionCommandDTO,
    ActivationResponseDTO,
    CancellationResponseDTO,
    SubscriptionStatusDTO,
    FeatureDTO,
)

logger = logging.getLogger(__name__)


class SubscriptionManager:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        ledger: CreditLedgerService,
        recorder: TransactionRecorder,
        catalog: FeatureCatalog,
        locks: SubscriptionLocks,
        grace_period: timedelta,
        warning_horizon: timedelta = timedelta(days=3),
        hooks: Optional[Mapping[str, SideEffectHook]] = None,
        warning_notifier: Optional[WarningNotifier] = None,
        clock: Clock = system_clock,
    ):
        self.catalog = catalog
        self._activate = ActivateFeature(
            uow_factory=uow_factory,
            ledger=ledger,
            recorder=recorder,
            catalog=catalog,
            locks=locks,
            grace_period=grace_period,
            hooks=hooks,
            warning_notifier=warning_notifier,
            clock=clock,
        )
        self._cancel = CancelFeature(
            uow_factory=uow_factory,
            recorder=recorder,
            catalog=catalog,
            locks=locks,
            grace_period=grace_period,
            clock=clock,
        )
        self._status = GetSubscriptionStatus(
            uow_factory=uow_factory,
            catalog=catalog,
            grace_period=grace_period,
            warning_horizon=warning_horizon,
            clock=clock,
        )
        self._check_active = CheckFeatureActive(
            uow_factory=uow_factory,
            catalog=catalog,
            grace_period=grace_period,
            clock=clock,
        )

    async def activate_feature(
        self, guild_id: str, feature_id: str, user_id: str
    ) -> Result[ActivationResponseDTO]:
        return await self._activate.execute(
            SubscriptionCommandDTO(guild_id=guild_id, feature_id=feature_id, user_id=user_id)
        )

    async def cancel_feature(
        self, guild_id: str, feature_id: str, user_id: str
    ) -> Result[CancellationResponseDTO]:
        return await self._cancel.execute(
            SubscriptionCommandDTO(guild_id=guild_id, feature_id=feature_id, user_id=user_id)
        )

    async def is_feature_active(self, guild_id: str, feature_id: str) -> bool:
        """Feature gate; lookup failures deny access"""
        result = await self._check_active.execute(guild_id, feature_id)
        if result.is_err():
            logger.warning(
                f"Treating {feature_id} as inactive for guild {guild_id}: {result.error.message}"
            )
            return False
        return result.value.active

    async def get_subscription_status(
        self, guild_id: str, feature_id: str
    ) -> Result[Optional[SubscriptionStatusDTO]]:
        return await self._status.execute(guild_id, feature_id)

    def list_features(self) -> List[FeatureDTO]:
        return [FeatureDTO.from_definition(feature) for feature in self.catalog]
