from typing import Callable
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories.subscription_repository import SqlAlchemySubscriptionRepository
from src.adapter.repositories.subscription_transaction_repository import SqlAlchemySubscriptionTransactionRepository
from src.app.services.unit_of_work import UnitOfWork, UnitOfWorkFactory


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession, close_session: bool = False):
        self.session = session
        self.subscriptions = SqlAlchemySubscriptionRepository(session)
        self.transactions = SqlAlchemySubscriptionTransactionRepository(session)
        self._close_session = close_session

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()
        if self._close_session:
            await self.session.close()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()


def create_unit_of_work_factory(session_factory: Callable[[], AsyncSession]) -> UnitOfWorkFactory:
    """Each call opens a fresh session owned by the returned unit of work"""

    def factory() -> UnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory(), close_session=True)

    return factory
