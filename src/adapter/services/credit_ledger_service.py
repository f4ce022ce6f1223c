"""SQLAlchemy implementation of CreditLedgerService

Each call runs in its own session and commits immediately, so the ledger
behaves like an independent store next to the entitlement store.
"""

import logging
from decimal import Decimal
from typing import Callable
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.credit_ledger_service import CreditLedgerService
from src.domain.base import utcnow
from src.domain.credit_ledger import CreditLedger

logger = logging.getLogger(__name__)


class SqlAlchemyCreditLedgerService(CreditLedgerService):
    """
    Features:
    - Debit is one conditional UPDATE (balance >= amount), atomic per user
    - No read-modify-write, so concurrent debits cannot overdraw
    - Refund creates the ledger if the user never had one
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def get_balance(self, user_id: str) -> Decimal:
        async with self.session_factory() as session:
            stmt = select(CreditLedger.balance).where(CreditLedger.user_id == user_id)
            result = await session.execute(stmt)
            balance = result.scalar_one_or_none()
            return Decimal(str(balance)) if balance is not None else Decimal("0")

    async def debit(self, user_id: str, amount: Decimal) -> bool:
        if amount <= 0:
            raise ValueError(f"Debit amount must be positive, got {amount}")

        async with self.session_factory() as session:
            stmt = (
                update(CreditLedger)
                .where(
                    CreditLedger.user_id == user_id,
                    CreditLedger.balance >= amount,
                )
                .values(balance=CreditLedger.balance - amount, updated_at=utcnow())
            )
            result = await session.execute(stmt)
            await session.commit()

        debited = result.rowcount == 1
        if debited:
            logger.info(f"Debited {amount} credits from user {user_id}")
        else:
            logger.info(f"Debit of {amount} credits from user {user_id} rejected: insufficient balance")
        return debited

    async def refund(self, user_id: str, amount: Decimal) -> None:
        if amount <= 0:
            raise ValueError(f"Refund amount must be positive, got {amount}")

        async with self.session_factory() as session:
            stmt = (
                update(CreditLedger)
                .where(CreditLedger.user_id == user_id)
                .values(balance=CreditLedger.balance + amount, updated_at=utcnow())
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                session.add(CreditLedger(user_id=user_id, balance=amount))
            await session.commit()

        logger.info(f"Refunded {amount} credits to user {user_id}")
