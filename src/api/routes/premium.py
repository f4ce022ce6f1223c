"""Premium API Routes

FastAPI routes for guild premium feature subscriptions.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, status

from src.api.error import ClientError
from src.api.schemas.premium_request import SubscriptionActionRequestSchema
from src.app.use_cases.premium import error_codes
from src.app.use_cases.premium.dtos import (
    ActivationResponseDTO,
    CancellationResponseDTO,
    FeatureActiveResponseDTO,
    FeatureDTO,
    SubscriptionStatusDTO,
)
from src.app.use_cases.premium.subscription_manager import SubscriptionManager
from src.depends import get_subscription_manager
from libs.result import Error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/premium", tags=["Premium"])


@router.get("/features", response_model=List[FeatureDTO])
async def list_features(manager: SubscriptionManager = Depends(get_subscription_manager)):
    """List every feature a guild can subscribe to."""
    return manager.list_features()


@router.post(
    "/guilds/{guild_id}/features/{feature_id}/activate",
    response_model=ActivationResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        402: {
            "description": "Insufficient credits",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INSUFFICIENT_CREDITS",
                            "message": "Insufficient credits. You need 50 credits, but you only have 40."
                        }
                    }
                }
            }
        },
        404: {"description": "Unknown feature"},
        409: {"description": "Feature already active"},
    }
)
async def activate_feature(
    guild_id: str,
    feature_id: str,
    request: SubscriptionActionRequestSchema,
    manager: SubscriptionManager = Depends(get_subscription_manager),
):
    """
    Activate a premium feature for a guild, paid from the user's credits.

    One period is charged up front. The subscription renews automatically
    from the same user's balance until cancelled.

    **Returns:**
    - 200: Feature activated
    - 402: Insufficient credits
    - 404: Unknown feature
    - 409: Feature already active and renewing
    """
    logger.info(f"Activate premium feature: {feature_id} for guild {guild_id}")
    result = await manager.activate_feature(guild_id, feature_id, request.user_id)

    if result.is_err():
        raise ClientError.from_error(result.error)

    return result.value


@router.post(
    "/guilds/{guild_id}/features/{feature_id}/cancel",
    response_model=CancellationResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        403: {"description": "Caller is not the payer"},
        404: {"description": "Unknown feature"},
        409: {"description": "Feature not active"},
    }
)
async def cancel_feature(
    guild_id: str,
    feature_id: str,
    request: SubscriptionActionRequestSchema,
    manager: SubscriptionManager = Depends(get_subscription_manager),
):
    """
    Cancel a premium feature subscription.

    The feature remains active until the end of the current billing cycle
    and is not renewed afterwards.
    """
    logger.info(f"Cancel premium feature: {feature_id} for guild {guild_id}")
    result = await manager.cancel_feature(guild_id, feature_id, request.user_id)

    if result.is_err():
        raise ClientError.from_error(result.error)

    return result.value


@router.get(
    "/guilds/{guild_id}/features/{feature_id}",
    response_model=Optional[SubscriptionStatusDTO],
)
async def get_subscription_status(
    guild_id: str,
    feature_id: str,
    manager: SubscriptionManager = Depends(get_subscription_manager),
):
    """Subscription details for status displays, or null if the guild never subscribed."""
    result = await manager.get_subscription_status(guild_id, feature_id)

    if result.is_err():
        raise ClientError.from_error(result.error)

    return result.value


@router.get(
    "/guilds/{guild_id}/features/{feature_id}/active",
    response_model=FeatureActiveResponseDTO,
)
async def is_feature_active(
    guild_id: str,
    feature_id: str,
    manager: SubscriptionManager = Depends(get_subscription_manager),
):
    """Feature gate used by other services."""
    if feature_id not in manager.catalog:
        raise ClientError.from_error(
            Error(code=error_codes.UNKNOWN_FEATURE, message="Invalid feature ID")
        )

    active = await manager.is_feature_active(guild_id, feature_id)
    return FeatureActiveResponseDTO(guild_id=guild_id, feature_id=feature_id, active=active)
