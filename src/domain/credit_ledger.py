"""Credit Ledger Domain Entity

Tracks the prepaid credit balance of a user. Each user has exactly one ledger.
Balance is always >= 0 and only changes through atomic debit/refund calls.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Numeric
from src.domain.base import BaseModel, IdType, utcnow


class CreditLedger(BaseModel, table=True):
    """
    Credit Ledger - Tracks a user's credit balance

    Domain Rules:
    - One ledger per user (user_id is unique)
    - Balance must be non-negative
    - Debits are conditional updates, never read-modify-write
    """

    __tablename__ = "credit_ledgers"
    __table_args__ = (
        CheckConstraint('balance >= 0', name='balance_non_negative'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique ledger identifier (auto-increment)"
    )

    user_id: str = Field(
        index=True,
        unique=True,
        description="User ID (unique - one ledger per user)"
    )

    balance: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False, default=0),
        description="Current credit balance (must be >= 0, precision: 18,6)"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Ledger creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last balance update timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "user_id": "184405311681986560",
                "balance": "120.000000",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z"
            }
        }
