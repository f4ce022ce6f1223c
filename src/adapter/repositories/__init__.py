from .subscription_repository import SqlAlchemySubscriptionRepository
from .subscription_transaction_repository import SqlAlchemySubscriptionTransactionRepository

__all__ = [
    "SqlAlchemySubscriptionRepository",
    "SqlAlchemySubscriptionTransactionRepository",
]
