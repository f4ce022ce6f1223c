"""SQLAlchemy implementation of SubscriptionTransactionRepository

Append-only persistence of the subscription audit trail.
"""

from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.subscription_transaction_repository import SubscriptionTransactionRepository
from src.domain.subscription_transaction import SubscriptionTransaction


class SqlAlchemySubscriptionTransactionRepository(SubscriptionTransactionRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: SubscriptionTransaction) -> SubscriptionTransaction:
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def list_by_subscription(
        self, guild_id: str, feature_id: Optional[str] = None, limit: int = 100
    ) -> List[SubscriptionTransaction]:
        stmt = select(SubscriptionTransaction).where(SubscriptionTransaction.guild_id == guild_id)

        if feature_id:
            stmt = stmt.where(SubscriptionTransaction.feature_id == feature_id)

        stmt = stmt.order_by(
            SubscriptionTransaction.created_at.desc(), SubscriptionTransaction.id.desc()
        ).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
