"""SQLAlchemy Subscription Repository Implementation

Implements premium subscription persistence with compare-and-swap updates
on the version column.
"""

from typing import Iterable, List, Optional
from datetime import datetime
from sqlalchemy import or_, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.subscription_repository import SubscriptionRepository, StaleSubscriptionError
from src.domain.premium_subscription import Subscription

_IMMUTABLE_COLUMNS = {"id", "guild_id", "feature_id", "created_at", "version"}


class SqlAlchemySubscriptionRepository(SubscriptionRepository):
    """
    SQLAlchemy implementation of SubscriptionRepository

    Features:
    - One row per (guild_id, feature_id), enforced by a unique constraint
    - Optimistic concurrency: UPDATE ... WHERE version = :expected
    - Store-side sweep filter on active/next_deduction_date
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, guild_id: str, feature_id: str) -> Optional[Subscription]:
        statement = select(Subscription).where(
            Subscription.guild_id == guild_id,
            Subscription.feature_id == feature_id,
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list_by_guild(self, guild_id: str) -> List[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.guild_id == guild_id)
            .order_by(Subscription.feature_id)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_active(
        self,
        due_before: Optional[datetime] = None,
        known_feature_ids: Optional[Iterable[str]] = None,
    ) -> List[Subscription]:
        """
        Retrieve active subscriptions needing attention

        Args:
            due_before: Upper bound on next_deduction_date (None = no bound)
            known_feature_ids: Records outside this set are always returned

        Returns:
            List of active subscriptions, earliest due first
        """
        statement = select(Subscription).where(Subscription.active == True)  # noqa: E712

        if due_before is not None:
            conditions = [Subscription.next_deduction_date <= due_before]
            if known_feature_ids is not None:
                conditions.append(Subscription.feature_id.not_in(list(known_feature_ids)))
            statement = statement.where(or_(*conditions))

        statement = statement.order_by(Subscription.next_deduction_date, Subscription.id)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription

        Raises:
            IntegrityError: If the guild already has a record for the feature
        """
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription

    async def update(self, subscription: Subscription) -> Subscription:
        """
        Compare-and-swap update

        The ORM instance is detached first so the unit of work does not
        flush a second, unconditional UPDATE for the same changes.

        Raises:
            StaleSubscriptionError: If the stored version moved on
        """
        expected_version = subscription.version
        values = {
            column.name: getattr(subscription, column.name)
            for column in Subscription.__table__.columns
            if column.name not in _IMMUTABLE_COLUMNS
        }

        if subscription in self.session:
            self.session.expunge(subscription)

        statement = (
            update(Subscription)
            .where(
                Subscription.id == subscription.id,
                Subscription.version == expected_version,
            )
            .values(**values, version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)

        if result.rowcount != 1:
            raise StaleSubscriptionError(
                subscription.guild_id, subscription.feature_id, expected_version
            )

        subscription.version = expected_version + 1
        return subscription
