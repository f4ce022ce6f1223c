from .subscription_repository import SubscriptionRepository, StaleSubscriptionError
from .subscription_transaction_repository import SubscriptionTransactionRepository

__all__ = [
    "SubscriptionRepository",
    "StaleSubscriptionError",
    "SubscriptionTransactionRepository",
]
