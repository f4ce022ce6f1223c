"""Command Sync Service Implementations

Pushes per-guild command visibility to the bot that owns command
registration. Used by the pro feature's CommandVisibilityHook.
"""

import logging
from typing import List
import httpx
from src.app.services.side_effect_hook import CommandSyncService

logger = logging.getLogger(__name__)


class LoggingCommandSyncService(CommandSyncService):
    """Records sync requests without contacting the bot"""

    async def get_disabled_commands(self, guild_id: str) -> List[str]:
        return []

    async def sync_guild_commands(self, guild_id: str, disabled_commands: List[str]) -> None:
        logger.info(
            f"[COMMAND SYNC] Guild: {guild_id}, disabled commands: {disabled_commands or 'none'}"
        )


class WebhookCommandSyncService(CommandSyncService):
    """
    Talks to the bot's internal HTTP API

    Endpoints:
    - GET  {base_url}/guilds/{guild_id}/disabled-commands -> ["cmd", ...]
    - POST {base_url}/guilds/{guild_id}/commands/sync {"disabled_commands": [...]}
    """

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def get_disabled_commands(self, guild_id: str) -> List[str]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(f"{self.base_url}/guilds/{guild_id}/disabled-commands")
            response.raise_for_status()
            return list(response.json())

    async def sync_guild_commands(self, guild_id: str, disabled_commands: List[str]) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/guilds/{guild_id}/commands/sync",
                json={"disabled_commands": disabled_commands},
            )
            response.raise_for_status()
        logger.info(f"Synced commands for guild {guild_id} ({len(disabled_commands)} hidden)")
