"""
Gas Allocator - creates one funding coin per asset.

Splits the signer's SUI balance into N equal coins in a single transaction
and returns them in creation order.
"""

from typing import List, Optional

import structlog

from linkdrop.config import LinkdropConfig, get_config
from linkdrop.chain.interface import (
    SUI_COIN_TYPE,
    ChainClient,
    ChainError,
    Coin,
    ExecutionOptions,
)
from linkdrop.core.types import FundingCoin
from linkdrop.tx.signer import TransactionSigner
from linkdrop.tx.transaction import MAX_GAS_OBJECTS, ObjectRef, TransactionBlock

logger = structlog.get_logger(__name__)


class FundingError(Exception):
    """Raised when the funding coins cannot be created."""
    pass


def select_gas_coins(coins: List[Coin], required: int) -> List[Coin]:
    """
    Pick the largest coins until their total covers ``required``.

    Raises:
        FundingError: If the balance is insufficient within MAX_GAS_OBJECTS coins
    """
    selected: List[Coin] = []
    total = 0

    for coin in sorted(coins, key=lambda c: c.balance, reverse=True):
        if total >= required or len(selected) == MAX_GAS_OBJECTS:
            break
        selected.append(coin)
        total += coin.balance

    if total < required:
        raise FundingError(
            f"Insufficient SUI balance: need {required} MIST, "
            f"usable {total} MIST across {len(selected)} coins"
        )
    return selected


class GasAllocator:
    """
    Builds and executes the coin-splitting transaction.

    The step is atomic on chain: either all N coins are created or none.
    """

    def __init__(
        self,
        client: ChainClient,
        signer: TransactionSigner,
        config: Optional[LinkdropConfig] = None,
    ):
        self.client = client
        self.signer = signer
        self.config = config or get_config()

    def build_split_transaction(
        self,
        count: int,
        value: int,
        gas_payment: List[ObjectRef],
    ) -> TransactionBlock:
        """Split ``count`` coins of ``value`` off the gas coin and keep them."""
        tx = TransactionBlock()
        amount = tx.pure_u64(value)
        coins = tx.split_coins(tx.gas, [amount] * count)
        tx.transfer_objects(coins, tx.pure_address(self.signer.address))

        tx.set_sender(self.signer.address)
        tx.set_gas_owner(self.signer.address)
        tx.set_gas_payment(gas_payment)
        tx.set_gas_budget(self.config.funding_gas_budget)
        return tx

    async def allocate(self, count: int, value: int) -> List[FundingCoin]:
        """
        Create ``count`` funding coins of ``value`` MIST each.

        Args:
            count: Number of coins (the number of discovered assets)
            value: Value of each coin (gas budget + tip)

        Returns:
            Funding coins in creation order (empty if count is 0)

        Raises:
            FundingError: If the transaction cannot be funded or does not succeed
        """
        if count == 0:
            logger.info("funding_skipped", reason="no assets")
            return []

        if not self.signer.is_loaded:
            raise FundingError("Signer key not loaded")

        owner = self.signer.address
        required = count * value + self.config.funding_gas_budget

        logger.info("funding_started", count=count, value=value, required=required)

        try:
            available = await self.client.get_all_coins(owner, SUI_COIN_TYPE)
            gas_coins = select_gas_coins(available, required)

            tx = self.build_split_transaction(
                count,
                value,
                [ObjectRef(c.object_id, c.version, c.digest) for c in gas_coins],
            )
            result = await self.client.sign_and_execute(
                tx,
                self.signer,
                ExecutionOptions(show_effects=True, show_object_changes=True),
            )
        except ChainError as e:
            logger.error("funding_failed", error=str(e))
            raise FundingError(f"Funding transaction failed: {e}") from e

        if not result.succeeded:
            logger.error(
                "funding_failed",
                digest=result.digest,
                status=result.status,
                error=result.error,
            )
            raise FundingError(
                f"Funding transaction {result.digest} ended with status "
                f"{result.status}: {result.error}"
            )

        funding_coins = [
            FundingCoin(
                object_id=change.object_id,
                version=change.version,
                digest=change.digest,
                value=value,
            )
            for change in result.created_objects()
        ]

        if len(funding_coins) != count:
            raise FundingError(
                f"Funding transaction {result.digest} created "
                f"{len(funding_coins)} coins, expected {count}"
            )

        logger.info("funding_complete", digest=result.digest, count=len(funding_coins))
        return funding_coins
