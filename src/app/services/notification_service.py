"""Notification Service Interface

Defines the contract for outbound messages to the paying user.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict
from src.domain.premium_feature import FeatureDefinition


class NotificationService(ABC):
    """
    Abstract notification transport for premium billing events

    Implementations can deliver via:
    - Logs
    - Webhook (HTTP POST to the bot, which sends the direct message)
    - etc.

    Context always carries guild_id; warnings add balance and the relevant
    deadline, deactivation notices add the disable reason.
    """

    @abstractmethod
    async def send_low_balance_warning(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        """
        Warn that an upcoming renewal is not covered by the balance

        Returns:
            True if the notification was delivered, False otherwise
        """
        pass

    @abstractmethod
    async def send_grace_period_warning(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        """
        Warn that a renewal failed and the feature will be disabled at grace end

        Returns:
            True if the notification was delivered, False otherwise
        """
        pass

    @abstractmethod
    async def send_deactivation_notice(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        """
        Tell the payer the feature was disabled

        Returns:
            True if the notification was delivered, False otherwise
        """
        pass
