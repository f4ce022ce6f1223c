"""Side Effect Hook Interfaces

Optional per-feature callbacks run after activation and disablement.
"""

from abc import ABC, abstractmethod
from typing import List


class SideEffectHook(ABC):
    """Feature-specific reaction to entitlement changes"""

    @abstractmethod
    async def on_activate(self, guild_id: str) -> None:
        pass

    @abstractmethod
    async def on_disable(self, guild_id: str) -> None:
        pass


class CommandSyncService(ABC):
    """Pushes per-guild command visibility to the chat platform"""

    @abstractmethod
    async def get_disabled_commands(self, guild_id: str) -> List[str]:
        """Commands the guild has chosen to hide"""
        pass

    @abstractmethod
    async def sync_guild_commands(self, guild_id: str, disabled_commands: List[str]) -> None:
        """Register the guild's command list, hiding disabled_commands"""
        pass


class CommandVisibilityHook(SideEffectHook):
    """
    Keeps command visibility in step with the pro feature

    Activation applies the guild's stored overrides. Disablement syncs an
    empty override list so every command is visible again; the stored
    choices are left alone and come back on re-activation.
    """

    def __init__(self, command_sync: CommandSyncService):
        self.command_sync = command_sync

    async def on_activate(self, guild_id: str) -> None:
        disabled_commands = await self.command_sync.get_disabled_commands(guild_id)
        await self.command_sync.sync_guild_commands(guild_id, disabled_commands)

    async def on_disable(self, guild_id: str) -> None:
        await self.command_sync.sync_guild_commands(guild_id, [])
