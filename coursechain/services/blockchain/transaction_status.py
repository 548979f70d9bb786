"""
Transaction Status Checker.

Provides receipt lookup and waiting for submitted transactions.
"""

import asyncio
from typing import Any

from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import TimeExhausted, TransactionNotFound

from coursechain.config.constants import RECEIPT_POLL_INTERVAL
from coursechain.utils.security import mask_tx_hash


class TransactionStatusChecker:
    """
    Checks transaction status on the blockchain.

    Features:
    - Receipt retrieval
    - Waiting for block inclusion, with no deadline unless one is configured
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        poll_interval: float = RECEIPT_POLL_INTERVAL,
        timeout: float | None = None,
    ):
        """
        Initialize transaction status checker.

        Args:
            web3: AsyncWeb3 instance
            poll_interval: Seconds between receipt polls
            timeout: Optional deadline in seconds for wait_for_receipt
        """
        self.web3 = web3
        self.poll_interval = poll_interval
        self.timeout = timeout

    async def get_receipt(self, tx_hash: str) -> Any | None:
        """
        Get the receipt of a transaction.

        Returns:
            Receipt, or None while the transaction is not yet mined
        """
        try:
            return await self.web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

    async def wait_for_receipt(self, tx_hash: str) -> Any:
        """
        Suspend until the transaction is included in a block.

        Args:
            tx_hash: Transaction hash

        Returns:
            Transaction receipt

        Raises:
            TimeExhausted: If a timeout is configured and elapses
        """
        if self.timeout is None:
            return await self._poll_receipt(tx_hash)

        try:
            return await asyncio.wait_for(
                self._poll_receipt(tx_hash), timeout=self.timeout
            )
        except TimeoutError as e:
            # Timeout does NOT mean the transaction failed, it may still land
            raise TimeExhausted(
                f"Transaction {tx_hash} is not in the chain after "
                f"{self.timeout} seconds"
            ) from e

    async def _poll_receipt(self, tx_hash: str) -> Any:
        attempts = 0
        while True:
            receipt = await self.get_receipt(tx_hash)
            if receipt is not None:
                logger.debug(
                    f"Receipt for {mask_tx_hash(tx_hash)} after {attempts} poll(s), "
                    f"block: {receipt['blockNumber']}"
                )
                return receipt

            attempts += 1
            await asyncio.sleep(self.poll_interval)
