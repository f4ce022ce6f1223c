"""Subscription Transaction Domain Entity

Immutable append-only audit trail of every subscription event and the
credit movement (if any) it caused.
"""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String, Text
from src.domain.base import BaseModel, IdType, utcnow


class TransactionType(str, Enum):
    """Subscription event types"""
    ACTIVATION = "activation"      # Credits debited to start a cycle
    RENEWAL = "renewal"            # Credits debited to extend a cycle
    CANCELLATION = "cancellation"  # Auto-renew turned off, no credit movement
    DISABLED = "disabled"          # Entitlement revoked, no credit movement


class SubscriptionTransaction(BaseModel, table=True):
    """
    Subscription Transaction - audit record of a subscription event

    Domain Rules:
    - Transactions are immutable (append-only)
    - amount is negative for a debit and zero for non-monetary events
    - metadata_json holds free-form context (reason, cycle dates)
    """

    __tablename__ = "subscription_transactions"
    __table_args__ = (
        Index('ix_subscription_transactions_guild_feature', 'guild_id', 'feature_id'),
        Index('ix_subscription_transactions_created_at', 'created_at'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique transaction identifier (auto-increment)"
    )

    guild_id: str = Field(
        description="Guild the subscription belongs to"
    )

    user_id: str = Field(
        index=True,
        description="User who paid or triggered the event"
    )

    feature_id: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="Feature identifier"
    )

    transaction_type: TransactionType = Field(
        description="Type of event (activation, renewal, cancellation, disabled)"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Credit movement (negative = debit, 0 = none)"
    )

    metadata_json: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="JSON metadata for additional context"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Event timestamp (immutable)"
    )

    @property
    def metadata_dict(self) -> Dict[str, Any]:
        if not self.metadata_json:
            return {}
        return json.loads(self.metadata_json)

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "guild_id": "1029384756",
                "user_id": "184405311681986560",
                "feature_id": "pro_engine",
                "transaction_type": "renewal",
                "amount": "-50.000000",
                "metadata_json": "{\"next_deduction_date\": \"2024-03-01T00:00:00\"}",
                "created_at": "2024-01-31T00:00:00Z"
            }
        }
