"""Premium entitlement use cases"""
from .activate_feature import ActivateFeature
from .cancel_feature import CancelFeature
from .get_subscription_status import GetSubscriptionStatus, CheckFeatureActive, to_status_dto
from .subscription_manager import SubscriptionManager
from .dtos import (
    SubscriptionCommandDTO,
    ActivationResponseDTO,
    CancellationResponseDTO,
    SubscriptionStatusDTO,
    FeatureActiveResponseDTO,
    FeatureDTO,
    SweepResultDTO,
)

__all__ = [
    "ActivateFeature",
    "CancelFeature",
    "GetSubscriptionStatus",
    "CheckFeatureActive",
    "to_status_dto",
    "SubscriptionManager",
    "SubscriptionCommandDTO",
    "ActivationResponseDTO",
    "CancellationResponseDTO",
    "SubscriptionStatusDTO",
    "FeatureActiveResponseDTO",
    "FeatureDTO",
    "SweepResultDTO",
]
