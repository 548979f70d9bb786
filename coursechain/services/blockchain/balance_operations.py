"""
Balance operations for the native token.

This module handles:
- Native balance checking for any account (defaults to the signer)
"""

from loguru import logger
from web3 import AsyncWeb3

from coursechain.utils.exceptions import InvalidArgumentError
from coursechain.utils.security import mask_address
from coursechain.utils.validation import normalize_address

from .results import AccountBalance, ServiceResult, TokenAmount


class BalanceManager:
    """
    Manages native balance lookups.
    """

    def __init__(self, web3: AsyncWeb3, default_address: str | None = None) -> None:
        """
        Initialize balance manager.

        Args:
            web3: AsyncWeb3 instance
            default_address: Address used when no account is given
                (normally the signer)
        """
        self.web3 = web3
        self.default_address = default_address

    async def get_native_balance(self, address: str | None = None) -> ServiceResult:
        """
        Get native token balance for address.

        Args:
            address: Wallet address to check (default: signer address)

        Returns:
            ServiceResult with AccountBalance data
        """
        target = address or self.default_address
        try:
            if not target:
                raise InvalidArgumentError(
                    "No address given and no signing credential configured"
                )
            target = normalize_address(target)
            wei = await self.web3.eth.get_balance(target)
            return ServiceResult.ok(
                AccountBalance(address=target, balance=TokenAmount(int(wei)))
            )
        except Exception as e:
            logger.error(f"Get balance failed for {mask_address(target)}: {e}")
            return ServiceResult.from_exception(e)
