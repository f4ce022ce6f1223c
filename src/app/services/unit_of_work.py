"""Unit of Work Interface

Groups the repositories that must be committed or rolled back together.
"""

from abc import ABC, abstractmethod
from typing import Callable
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.subscription_transaction_repository import SubscriptionTransactionRepository


class UnitOfWork(ABC):
    """
    Transaction boundary over the entitlement store

    Usage:
        async with uow_factory() as uow:
            subscription = await uow.subscriptions.get(guild_id, feature_id)
            ...
            await uow.commit()

    Leaving the block without commit rolls back.
    """

    subscriptions: SubscriptionRepository
    transactions: SubscriptionTransactionRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


UnitOfWorkFactory = Callable[[], UnitOfWork]
