"""Shared base for domain entities"""

from datetime import datetime, timezone
from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel

# SQLite only auto-increments INTEGER primary keys
IdType = BigInteger().with_variant(Integer(), "sqlite")


class BaseModel(SQLModel):
    """Base class for all table-backed domain entities"""
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in every datetime column"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
