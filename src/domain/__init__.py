from .base import BaseModel, IdType, utcnow
from .credit_ledger import CreditLedger
from .premium_feature import FeatureCatalog, FeatureDefinition, FeaturePeriod, PremiumFeatures, DEFAULT_CATALOG
from .premium_subscription import Subscription, SubscriptionState, DisableReason
from .subscription_transaction import SubscriptionTransaction, TransactionType

__all__ = [
    "BaseModel",
    "IdType",
    "utcnow",
    "CreditLedger",
    "FeatureCatalog",
    "FeatureDefinition",
    "FeaturePeriod",
    "PremiumFeatures",
    "DEFAULT_CATALOG",
    "Subscription",
    "SubscriptionState",
    "DisableReason",
    "SubscriptionTransaction",
    "TransactionType",
]
