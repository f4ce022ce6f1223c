"""Warning Notifier

Sends billing notifications to payers on top of a NotificationService.
Warnings are deduplicated through a WarningCache; every send is best-effort.
"""

import logging
from typing import Any, Dict
from src.app.services.notification_service import NotificationService
from src.app.services.warning_cache import WarningCache, WarningKind, warning_key
from src.domain.premium_feature import FeatureDefinition

logger = logging.getLogger(__name__)


class WarningNotifier:
    """
    Dedup + best-effort wrapper around the notification transport

    A warning key is claimed before sending, so a user whose notifications
    keep failing is still counted as warned and is not retried every sweep.
    """

    def __init__(
        self,
        notification_service: NotificationService,
        warning_cache: WarningCache,
        warning_ttl_seconds: int = 7 * 24 * 3600,
    ):
        self.notification_service = notification_service
        self.warning_cache = warning_cache
        self.warning_ttl_seconds = warning_ttl_seconds

    async def warn_low_balance(
        self, guild_id: str, feature: FeatureDefinition, user_id: str, context: Dict[str, Any]
    ) -> bool:
        """
        Returns:
            True if this call sent (or attempted) the warning, False if it was deduplicated
        """
        return await self._warn_once(
            WarningKind.LOW_BALANCE,
            guild_id,
            feature,
            user_id,
            context,
            self.notification_service.send_low_balance_warning,
        )

    async def warn_grace_period(
        self, guild_id: str, feature: FeatureDefinition, user_id: str, context: Dict[str, Any]
    ) -> bool:
        return await self._warn_once(
            WarningKind.GRACE_PERIOD,
            guild_id,
            feature,
            user_id,
            context,
            self.notification_service.send_grace_period_warning,
        )

    async def notify_deactivation(
        self, guild_id: str, feature: FeatureDefinition, user_id: str, context: Dict[str, Any]
    ) -> bool:
        """Deactivation notices are not deduplicated; each disablement happens once"""
        try:
            return await self.notification_service.send_deactivation_notice(
                user_id, feature, {"guild_id": guild_id, **context}
            )
        except Exception as e:
            logger.warning(
                f"Could not send deactivation notice to user {user_id} "
                f"for {feature.id} in guild {guild_id}: {e}"
            )
            return False

    async def reset(self, guild_id: str, feature_id: str, user_id: str) -> None:
        """Clear every warning kind for the subscription so the next cycle can warn again"""
        for kind in WarningKind:
            try:
                await self.warning_cache.release(warning_key(kind, guild_id, feature_id, user_id))
            except Exception as e:
                logger.warning(
                    f"Could not clear {kind.value} warning for guild {guild_id}, "
                    f"feature {feature_id}, user {user_id}: {e}"
                )

    async def _warn_once(self, kind, guild_id, feature, user_id, context, send) -> bool:
        key = warning_key(kind, guild_id, feature.id, user_id)
        try:
            claimed = await self.warning_cache.claim(key, self.warning_ttl_seconds)
        except Exception as e:
            logger.warning(f"Warning cache unavailable, skipping {kind.value} warning for {key}: {e}")
            return False

        if not claimed:
            logger.debug(f"Skipping {kind.value} warning, already sent: {key}")
            return False

        try:
            delivered = await send(user_id, feature, {"guild_id": guild_id, **context})
            if delivered:
                logger.info(f"Sent {kind.value} warning to user {user_id} for {feature.id} in guild {guild_id}")
            else:
                logger.warning(f"{kind.value} warning to user {user_id} was not delivered")
        except Exception as e:
            logger.warning(f"Could not send {kind.value} warning to user {user_id}: {e}")
        return True
