"""Transaction Recorder

Appends subscription events to the audit trail. Recording is best-effort:
it runs in its own unit of work after the state change has been committed,
and a failure here is logged, never propagated.
"""

import json
import logging
from decimal import Decimal
from typing import Any, Dict, Optional
from src.app.services.clock import Clock, system_clock
from src.app.services.unit_of_work import UnitOfWorkFactory
from src.domain.subscription_transaction import SubscriptionTransaction, TransactionType

logger = logging.getLogger(__name__)


class TransactionRecorder:
    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = system_clock):
        self.uow_factory = uow_factory
        self.clock = clock

    async def record(
        self,
        guild_id: str,
        user_id: str,
        feature_id: str,
        transaction_type: TransactionType,
        amount: Decimal = Decimal("0"),
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[SubscriptionTransaction]:
        """
        Append one transaction

        Returns:
            The stored transaction, or None if it could not be written
        """
        transaction = SubscriptionTransaction(
            guild_id=guild_id,
            user_id=user_id,
            feature_id=feature_id,
            transaction_type=transaction_type,
            amount=amount,
            metadata_json=json.dumps(metadata, default=str) if metadata else None,
            created_at=self.clock(),
        )

        try:
            async with self.uow_factory() as uow:
                created = await uow.transactions.create(transaction)
                await uow.commit()
                return created
        except Exception as e:
            logger.error(
                f"Failed to record {transaction_type.value} transaction for guild {guild_id}, "
                f"feature {feature_id}, user {user_id} (amount={amount}): {e}"
            )
            return None
