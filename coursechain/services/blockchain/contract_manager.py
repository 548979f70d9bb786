"""
Contract Manager - Centralized connection and contract instantiation.

Holds the single AsyncWeb3 connection shared by every manager and hands out
the course contract bound to it.
"""

from eth_utils import to_checksum_address
from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.contract import AsyncContract

from .core_constants import COURSE_ABI


class ContractManager:
    """
    Manages the RPC connection and the course contract instance.

    Features:
    - Lazy loading of the contract (created only when first accessed)
    - Read-only by construction: no account is attached, signing happens
      in TransactionManager with a local key
    """

    def __init__(
        self,
        contract_address: str,
        rpc_url: str | None = None,
        web3: AsyncWeb3 | None = None,
    ) -> None:
        """
        Initialize contract manager.

        Args:
            contract_address: Course contract address
            rpc_url: JSON-RPC endpoint (ignored when web3 is given)
            web3: Pre-built AsyncWeb3 instance (optional)
        """
        if web3 is None:
            if not rpc_url:
                raise ValueError("rpc_url or web3 is required")
            web3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))

        self.web3 = web3
        self.rpc_url = rpc_url
        self.contract_address = to_checksum_address(contract_address)
        self._contract: AsyncContract | None = None

        logger.debug(
            f"ContractManager initialized: contract={self.contract_address}, "
            f"rpc={rpc_url or 'injected'}"
        )

    @property
    def contract(self) -> AsyncContract:
        """
        Get course contract instance (lazy loaded).

        Returns:
            AsyncContract bound to the course contract address
        """
        if self._contract is None:
            self._contract = self.web3.eth.contract(
                address=self.contract_address,
                abi=COURSE_ABI,
            )
            logger.debug(f"Course contract created: {self.contract_address}")
        return self._contract

    async def close(self) -> None:
        """Release the provider's HTTP session, if it keeps one."""
        disconnect = getattr(self.web3.provider, "disconnect", None)
        if disconnect is None:
            return
        try:
            await disconnect()
        except Exception as e:
            logger.warning(f"Failed to close RPC provider: {e}")
