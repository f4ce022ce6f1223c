"""Notification Service Implementations

Provides concrete transports for premium billing notifications.
"""

import logging
from typing import Any, Dict, Optional
import httpx
from src.app.services.notification_service import NotificationService
from src.domain.premium_feature import FeatureDefinition

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs messages

    Useful for development and testing, or as a fallback.
    """

    async def send_low_balance_warning(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        logger.warning(
            f"[LOW BALANCE] User: {user_id}, Guild: {context.get('guild_id')}, "
            f"Feature: {feature.id}, Required: {feature.cost}, "
            f"Balance: {context.get('balance')}, Renews: {context.get('next_deduction_date')}"
        )
        return True

    async def send_grace_period_warning(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        logger.warning(
            f"[GRACE PERIOD] User: {user_id}, Guild: {context.get('guild_id')}, "
            f"Feature: {feature.id}, Required: {feature.cost}, "
            f"Balance: {context.get('balance')}, Disables at: {context.get('grace_deadline')}"
        )
        return True

    async def send_deactivation_notice(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        logger.warning(
            f"[DEACTIVATED] User: {user_id}, Guild: {context.get('guild_id')}, "
            f"Feature: {feature.id}, Reason: {context.get('reason')}"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that posts messages to an HTTP webhook

    The receiving bot turns each payload into a direct message.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST notifications to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def send_low_balance_warning(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        return await self._post("low_balance_warning", user_id, feature, context)

    async def send_grace_period_warning(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        return await self._post("grace_period_warning", user_id, feature, context)

    async def send_deactivation_notice(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        return await self._post("deactivation_notice", user_id, feature, context)

    async def _post(
        self, event_type: str, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        payload = {
            "type": event_type,
            "user_id": user_id,
            "feature_id": feature.id,
            "feature_name": feature.name,
            "cost": str(feature.cost),
            "context": {key: str(value) if value is not None else None for key, value in context.items()},
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(f"Webhook {event_type} sent for user {user_id} to {self.webhook_url}")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send webhook {event_type} for user {user_id}: {e}")
            return False


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Useful for sending to multiple channels (e.g., log + webhook).
    Returns True if at least one service delivered.
    """

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def send_low_balance_warning(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        return await self._fan_out("send_low_balance_warning", user_id, feature, context)

    async def send_grace_period_warning(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        return await self._fan_out("send_grace_period_warning", user_id, feature, context)

    async def send_deactivation_notice(
        self, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        return await self._fan_out("send_deactivation_notice", user_id, feature, context)

    async def _fan_out(
        self, method: str, user_id: str, feature: FeatureDefinition, context: Dict[str, Any]
    ) -> bool:
        success = False
        for service in self.services:
            try:
                if await getattr(service, method)(user_id, feature, context):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     service with logging + webhook. Otherwise, just logging.

    Returns:
        Configured NotificationService
    """
    services: list[NotificationService] = [LoggingNotificationService()]

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
