"""Unit tests for TransactionRecorder"""

import pytest
from decimal import Decimal

from src.domain.subscription_transaction import TransactionType
from tests.fakes import GUILD_ID, PAYER_ID


@pytest.mark.asyncio
class TestTransactionRecorder:
    """Test audit trail writes"""

    async def test_records_transaction(self, recorder, audit, uow_factory, clock):
        # Act
        created = await recorder.record(
            guild_id=GUILD_ID,
            user_id=PAYER_ID,
            feature_id="pro_engine",
            transaction_type=TransactionType.RENEWAL,
            amount=Decimal("-50"),
            metadata={"next_deduction_date": clock.now},
        )

        # Assert
        assert created is not None
        assert audit.transactions == [created]
        assert created.created_at == clock.now
        assert created.metadata_dict == {"next_deduction_date": clock.now.isoformat(sep=" ")}
        assert uow_factory.opened[0].commits == 1

    async def test_defaults_to_zero_amount(self, recorder):
        created = await recorder.record(GUILD_ID, PAYER_ID, "pro_engine", TransactionType.CANCELLATION)

        assert created.amount == Decimal("0")
        assert created.metadata_json is None
        assert created.metadata_dict == {}

    async def test_failure_is_swallowed(self, recorder, audit):
        """
        Given: The audit store rejects writes
        When: A transaction is recorded
        Then: None is returned and no exception escapes
        """
        audit.fail_writes = True

        created = await recorder.record(GUILD_ID, PAYER_ID, "pro_engine", TransactionType.DISABLED)

        assert created is None
