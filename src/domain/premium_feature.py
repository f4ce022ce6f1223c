"""Premium Feature Catalog

Static table of purchasable guild features. Definitions are immutable at
runtime; subscriptions snapshot cost and period when a cycle starts.
"""

from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Iterator, List, Optional, Tuple
from pydantic import BaseModel, Field


class FeaturePeriod(str, Enum):
    """Calendar unit a feature is billed in"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class FeatureDefinition(BaseModel):
    """
    Feature Definition - cost and billing period of a premium feature

    Domain Rules:
    - cost is charged once per period, up front
    - period_days is the exact cycle length used for deduction dates
    """

    id: str = Field(..., min_length=1, description="Stable feature identifier")
    name: str = Field(..., description="Display name")
    cost: Decimal = Field(..., gt=0, description="Credits charged per period")
    period: FeaturePeriod = Field(..., description="Calendar unit of the billing period")
    period_days: int = Field(..., gt=0, description="Length of one billing period in days")
    includes: Tuple[str, ...] = Field(default=(), description="What the feature unlocks")

    class Config:
        frozen = True


class FeatureCatalog:
    """Read-only lookup of feature definitions by id"""

    def __init__(self, features: Iterable[FeatureDefinition]):
        table = {}
        for feature in features:
            if feature.id in table:
                raise ValueError(f"Duplicate feature id {feature.id!r}")
            table[feature.id] = feature
        self._features = MappingProxyType(table)

    def get(self, feature_id: str) -> Optional[FeatureDefinition]:
        return self._features.get(feature_id)

    def ids(self) -> List[str]:
        return list(self._features.keys())

    def all(self) -> List[FeatureDefinition]:
        return list(self._features.values())

    def __contains__(self, feature_id: object) -> bool:
        return feature_id in self._features

    def __iter__(self) -> Iterator[FeatureDefinition]:
        return iter(self._features.values())

    def __len__(self) -> int:
        return len(self._features)


class PremiumFeatures:
    """Features offered to guilds"""

    PRO = FeatureDefinition(
        id="pro_engine",
        name="Pro Engine",
        cost=Decimal("50"),
        period=FeaturePeriod.MONTH,
        period_days=30,
        includes=(
            "Per-guild command visibility overrides",
            "Priority command processing",
            "Extended scheduled role limits",
        ),
    )

    ANALYTICS = FeatureDefinition(
        id="analytics_suite",
        name="Analytics Suite",
        cost=Decimal("25"),
        period=FeaturePeriod.WEEK,
        period_days=7,
        includes=(
            "Member growth history",
            "Command usage breakdown",
        ),
    )


DEFAULT_CATALOG = FeatureCatalog([PremiumFeatures.PRO, PremiumFeatures.ANALYTICS])
