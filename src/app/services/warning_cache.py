"""Warning Cache Interface

Suppresses repeat warnings for the same (kind, guild, feature, user).
"""

from abc import ABC, abstractmethod
from enum import Enum


class WarningKind(str, Enum):
    LOW_BALANCE = "low_balance"
    GRACE_PERIOD = "grace_period"


def warning_key(kind: WarningKind, guild_id: str, feature_id: str, user_id: str) -> str:
    return f"premium_warning:{kind.value}:{guild_id}:{feature_id}:{user_id}"


class WarningCache(ABC):
    """
    Dedup store for sent warnings

    Entries expire after their TTL so neither restarts nor extra instances
    can suppress a warning forever.
    """

    @abstractmethod
    async def claim(self, key: str, ttl_seconds: int) -> bool:
        """
        Record key as warned if it is not already

        Args:
            key: Dedup key from warning_key()
            ttl_seconds: Lifetime of the entry

        Returns:
            True if the caller claimed the key and should send the warning
        """
        pass

    @abstractmethod
    async def release(self, key: str) -> None:
        """Forget key so the next warning of this kind is sent"""
        pass
