from .unit_of_work import UnitOfWork, UnitOfWorkFactory
from .credit_ledger_service import CreditLedgerService
from .notification_service import NotificationService
from .warning_cache import WarningCache, WarningKind, warning_key
from .side_effect_hook import SideEffectHook, CommandSyncService, CommandVisibilityHook
from .subscription_locks import SubscriptionLocks
from .transaction_recorder import TransactionRecorder
from .warning_notifier import WarningNotifier

__all__ = [
    "UnitOfWork",
    "UnitOfWorkFactory",
    "CreditLedgerService",
    "NotificationService",
    "WarningCache",
    "WarningKind",
    "warning_key",
    "SideEffectHook",
    "CommandSyncService",
    "CommandVisibilityHook",
    "SubscriptionLocks",
    "TransactionRecorder",
    "WarningNotifier",
]
