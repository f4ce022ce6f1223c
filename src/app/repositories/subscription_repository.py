"""Subscription Repository Interface

Defines the contract for premium subscription persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional
from src.domain.premium_subscription import Subscription


class StaleSubscriptionError(Exception):
    """Raised when a compare-and-swap update finds a newer version stored"""

    def __init__(self, guild_id: str, feature_id: str, expected_version: int):
        self.guild_id = guild_id
        self.feature_id = feature_id
        self.expected_version = expected_version
        super().__init__(
            f"Subscription {feature_id} for guild {guild_id} changed concurrently "
            f"(expected version {expected_version})"
        )


class SubscriptionRepository(ABC):
    """
    Repository interface for Subscription persistence

    One independently addressable record per (guild_id, feature_id).
    Updates are optimistic: they succeed only if the stored version still
    matches the version the caller read.
    """

    @abstractmethod
    async def get(self, guild_id: str, feature_id: str) -> Optional[Subscription]:
        """
        Retrieve the subscription of a guild to a feature

        Args:
            guild_id: Guild identifier
            feature_id: Feature identifier

        Returns:
            Subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_by_guild(self, guild_id: str) -> List[Subscription]:
        """
        Retrieve every subscription record of a guild, active or not

        Args:
            guild_id: Guild identifier

        Returns:
            List of subscriptions ordered by feature_id
        """
        pass

    @abstractmethod
    async def list_active(
        self,
        due_before: Optional[datetime] = None,
        known_feature_ids: Optional[Iterable[str]] = None,
    ) -> List[Subscription]:
        """
        Retrieve active subscriptions that need attention from the sweep

        Args:
            due_before: Only return records with next_deduction_date <= due_before.
                None returns every active record.
            known_feature_ids: When given, records whose feature_id is not in
                this set are returned regardless of due_before.

        Returns:
            List of active subscriptions
        """
        pass

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription record

        Args:
            subscription: Subscription entity to persist

        Returns:
            Created Subscription with generated ID
        """
        pass

    @abstractmethod
    async def update(self, subscription: Subscription) -> Subscription:
        """
        Compare-and-swap update of an existing subscription

        The write only applies if the stored version equals subscription.version;
        on success the version is incremented.

        Args:
            subscription: Subscription entity with updated values

        Returns:
            Updated Subscription

        Raises:
            StaleSubscriptionError: If the record changed since it was read
        """
        pass
