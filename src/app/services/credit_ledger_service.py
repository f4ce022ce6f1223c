"""Credit Ledger Service Interface

Contract of the per-user credit store that pays for premium features.
"""

from abc import ABC, abstractmethod
from decimal import Decimal


class CreditLedgerService(ABC):
    """
    Per-user credit balance with atomic debit

    The ledger is its own store: every call is committed independently of
    the entitlement store. Callers that debit and then fail to persist must
    refund explicitly.
    """

    @abstractmethod
    async def get_balance(self, user_id: str) -> Decimal:
        """
        Current balance of a user

        Args:
            user_id: User identifier

        Returns:
            Balance, Decimal("0") for users without a ledger
        """
        pass

    @abstractmethod
    async def debit(self, user_id: str, amount: Decimal) -> bool:
        """
        Atomically subtract amount if the balance covers it

        Args:
            user_id: User identifier
            amount: Credits to subtract (> 0)

        Returns:
            True if the debit was applied, False if the balance was insufficient
        """
        pass

    @abstractmethod
    async def refund(self, user_id: str, amount: Decimal) -> None:
        """
        Add amount back to the user's balance (compensation for a failed write)

        Args:
            user_id: User identifier
            amount: Credits to add back (> 0)
        """
        pass
