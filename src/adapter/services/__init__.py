from .unit_of_work import SqlAlchemyUnitOfWork, create_unit_of_work_factory
from .credit_ledger_service import SqlAlchemyCreditLedgerService
from .notification_service import (
    LoggingNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
)
from .warning_cache import InMemoryWarningCache, RedisWarningCache
from .command_sync import LoggingCommandSyncService, WebhookCommandSyncService

__all__ = [
    "SqlAlchemyUnitOfWork",
    "create_unit_of_work_factory",
    "SqlAlchemyCreditLedgerService",
    "LoggingNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
    "InMemoryWarningCache",
    "RedisWarningCache",
    "LoggingCommandSyncService",
    "WebhookCommandSyncService",
]
