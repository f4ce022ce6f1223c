"""Subscription Transaction Repository Interface

Defines the contract for the append-only subscription audit trail.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.subscription_transaction import SubscriptionTransaction


class SubscriptionTransactionRepository(ABC):
    """Repository interface for SubscriptionTransaction persistence"""

    @abstractmethod
    async def create(self, transaction: SubscriptionTransaction) -> SubscriptionTransaction:
        """
        Append a transaction to the audit trail

        Args:
            transaction: SubscriptionTransaction entity to persist

        Returns:
            Created SubscriptionTransaction with generated ID
        """
        pass

    @abstractmethod
    async def list_by_subscription(
        self, guild_id: str, feature_id: Optional[str] = None, limit: int = 100
    ) -> List[SubscriptionTransaction]:
        """
        Retrieve the audit trail of a guild, newest first

        Args:
            guild_id: Guild identifier
            feature_id: Optional filter by feature
            limit: Maximum number of records

        Returns:
            List of transactions
        """
        pass
