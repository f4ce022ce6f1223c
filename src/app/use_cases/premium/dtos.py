"""Data Transfer Objects for Premium Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from src.domain.premium_feature import FeatureDefinition


class SubscriptionCommandDTO(BaseModel):
    """
    Command DTO identifying a guild's feature and the acting user

    Used as input to ActivateFeature and CancelFeature.
    """

    guild_id: str = Field(
        ...,
        min_length=1,
        description="Guild identifier"
    )

    feature_id: str = Field(
        ...,
        min_length=1,
        description="Feature identifier from the catalog"
    )

    user_id: str = Field(
        ...,
        min_length=1,
        description="User paying for (or cancelling) the feature"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "guild_id": "1029384756",
                "feature_id": "pro_engine",
                "user_id": "184405311681986560"
            }
        }


class ActivationResponseDTO(BaseModel):
    """Response DTO for a successful activation"""

    success: bool = Field(default=True, description="Always True for ok results")
    message: str = Field(..., description="Human-readable outcome")
    guild_id: str = Field(..., description="Guild identifier")
    feature_id: str = Field(..., description="Feature identifier")
    payer_user_id: str = Field(..., description="User who paid")
    cost: Decimal = Field(..., description="Credits debited")
    next_deduction_date: datetime = Field(..., description="When the next period is due")

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "Feature Pro Engine activated successfully until 2024-01-31",
                "guild_id": "1029384756",
                "feature_id": "pro_engine",
                "payer_user_id": "184405311681986560",
                "cost": "50.000000",
                "next_deduction_date": "2024-01-31T00:00:00Z"
            }
        }


class CancellationResponseDTO(BaseModel):
    """Response DTO for a successful cancellation"""

    success: bool = Field(default=True, description="Always True for ok results")
    message: str = Field(..., description="Human-readable outcome")
    guild_id: str = Field(..., description="Guild identifier")
    feature_id: str = Field(..., description="Feature identifier")
    expires_at: datetime = Field(..., description="Access ends at this instant")

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "Pro Engine will stay active until 2024-01-31 and will not renew",
                "guild_id": "1029384756",
                "feature_id": "pro_engine",
                "expires_at": "2024-01-31T00:00:00Z"
            }
        }


class SubscriptionStatusDTO(BaseModel):
    """Read-only projection of a subscription for dashboards"""

    guild_id: str
    feature_id: str
    active: bool = Field(..., description="Whether the guild currently has access")
    state: str = Field(..., description="Lifecycle state (active_current, grace_period, ...)")
    payer_user_id: str
    activated_at: datetime
    last_deduction_date: datetime
    next_deduction_date: datetime
    expires_at: datetime = Field(..., description="Access deadline including grace, if any")
    cost: Decimal
    period: str
    period_days: int
    auto_renew: bool
    cancelled: bool
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    disabled_at: Optional[datetime] = None
    disable_reason: Optional[str] = None


class FeatureActiveResponseDTO(BaseModel):
    guild_id: str
    feature_id: str
    active: bool


class FeatureDTO(BaseModel):
    """Catalog entry as exposed to clients"""

    id: str
    name: str
    cost: Decimal
    period: str
    period_days: int
    includes: List[str] = Field(default_factory=list)

    @classmethod
    def from_definition(cls, feature: FeatureDefinition) -> "FeatureDTO":
        return cls(
            id=feature.id,
            name=feature.name,
            cost=feature.cost,
            period=feature.period.value,
            period_days=feature.period_days,
            includes=list(feature.includes),
        )


class SweepResultDTO(BaseModel):
    """
    Summary of one renewal sweep

    Returned by RenewalSweeper.run_once.
    """

    total_checked: int = Field(default=0, description="Active subscriptions examined")
    renewed: int = Field(default=0, description="Subscriptions renewed")
    warnings_sent: int = Field(default=0, description="Low-balance and grace warnings sent")
    disabled: int = Field(default=0, description="Subscriptions disabled")
    failed: int = Field(default=0, description="Subscriptions whose processing raised")
    skipped: bool = Field(default=False, description="True if another sweep was still running")
    sweep_time: datetime = Field(..., description="Clock reading the sweep evaluated against")
    execution_time_ms: int = Field(default=0, description="Wall time of the sweep")

    class Config:
        json_schema_extra = {
            "example": {
                "total_checked": 12,
                "renewed": 3,
                "warnings_sent": 1,
                "disabled": 1,
                "failed": 0,
                "skipped": False,
                "sweep_time": "2024-01-31T06:00:00Z",
                "execution_time_ms": 420
            }
        }
