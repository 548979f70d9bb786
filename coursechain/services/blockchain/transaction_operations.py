"""
Transaction operations for the course contract.

This module handles:
- Building, signing and sending createCourse / purchaseCourse calls
- Waiting for block inclusion
- Normalizing every outcome (including failures) into TransactionOutcome
"""

import asyncio
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from loguru import logger
from web3 import AsyncWeb3
from web3.contract import AsyncContract

from coursechain.utils.exceptions import (
    ErrorKind,
    InvalidArgumentError,
    classify_error,
)
from coursechain.utils.security import mask_address
from coursechain.utils.validation import validate_course_id, validate_text

from .core_constants import EventKind
from .event_decoder import EventDecoder, to_hex_str
from .results import CourseEvent, TokenAmount, TransactionOutcome, TxState
from .transaction_status import TransactionStatusChecker


class TransactionManager:
    """
    Drives state-changing calls through their lifecycle.

    Building -> Submitted -> (Confirmed | Reverted | NetworkFailure).
    Input validation failures end in Rejected before any RPC is made.
    No retries are attempted; retry policy belongs to the caller.
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        contract: AsyncContract,
        decoder: EventDecoder,
        status_checker: TransactionStatusChecker,
        private_key: str | None = None,
    ) -> None:
        """
        Initialize transaction manager.

        Args:
            web3: AsyncWeb3 instance
            contract: Course contract instance
            decoder: Event decoder for receipt logs
            status_checker: Receipt waiter
            private_key: Signing credential (writes fail without it)
        """
        self.web3 = web3
        self.contract = contract
        self.decoder = decoder
        self.status_checker = status_checker
        self._account: LocalAccount | None = (
            Account.from_key(private_key) if private_key else None
        )
        # Nonce acquisition + send must not interleave for one account
        self._nonce_lock = asyncio.Lock()
        self.logger = logger.bind(service=self.__class__.__name__)

    @property
    def wallet_address(self) -> str | None:
        """Address of the signing credential."""
        return self._account.address if self._account else None

    async def submit_create(
        self,
        title: str,
        description: str,
        price: Decimal | int | float | str,
    ) -> TransactionOutcome:
        """
        Create a course.

        Args:
            title: Course title
            description: Course description
            price: Price in whole native units (e.g. "0.1")

        Returns:
            TransactionOutcome; course_id is set when the CourseCreated
            event was found in the receipt
        """
        try:
            validate_text(title, "title")
            validate_text(description, "description")
            price_amount = TokenAmount.from_decimal(price)
        except InvalidArgumentError as e:
            return self._rejected(e)

        self.logger.info(
            f"Creating course: title={title!r}, price={price_amount.display} "
            f"({price_amount.wei} wei)"
        )

        outcome, events = await self._execute(
            lambda: self.contract.functions.createCourse(
                title, description, price_amount.wei
            ),
            value=0,
            label="createCourse",
        )
        if not outcome.success:
            return outcome

        created = [
            event for event in events
            if event.kind is EventKind.COURSE_CREATED
        ]
        if created:
            outcome.course_id = created[0].course_id
            self.logger.success(f"Course created, id: {outcome.course_id}")
        else:
            self.logger.warning(
                f"No CourseCreated event in receipt of {outcome.tx_hash}"
            )
        return outcome

    async def submit_purchase(
        self,
        course_id: int | str,
        payment: Decimal | int | float | str,
    ) -> TransactionOutcome:
        """
        Purchase a course, sending `payment` along with the call.

        Args:
            course_id: Course id
            payment: Payment in whole native units

        Returns:
            TransactionOutcome
        """
        try:
            course_id = validate_course_id(course_id)
            if course_id == 0:
                raise InvalidArgumentError("Course ids start at 1")
            payment_amount = TokenAmount.from_decimal(payment)
            if payment_amount.wei == 0:
                raise InvalidArgumentError("Payment must be greater than zero")
        except InvalidArgumentError as e:
            return self._rejected(e)

        self.logger.info(
            f"Purchasing course {course_id}: payment={payment_amount.display} "
            f"({payment_amount.wei} wei)"
        )

        outcome, _ = await self._execute(
            lambda: self.contract.functions.purchaseCourse(course_id),
            value=payment_amount.wei,
            label="purchaseCourse",
        )
        if outcome.success:
            self.logger.success(f"Course {course_id} purchased: {outcome.tx_hash}")
        return outcome

    async def _execute(
        self,
        make_call: Callable[[], Any],
        value: int,
        label: str,
    ) -> tuple[TransactionOutcome, list[CourseEvent]]:
        """
        Run one call through Building -> Submitted -> terminal state.

        Returns:
            Outcome plus the course events decoded from the receipt
        """
        if self._account is None:
            return TransactionOutcome.failed(
                TxState.REJECTED,
                "Signing credential not configured",
                ErrorKind.INVALID_ARGUMENT,
            ), []

        state = TxState.BUILDING
        tx_hash: str | None = None

        try:
            async with self._nonce_lock:
                nonce = await self.web3.eth.get_transaction_count(
                    self._account.address, "pending"
                )
                # build_transaction fills gas, fees and chainId from the node
                transaction = await make_call().build_transaction(
                    {
                        "from": self._account.address,
                        "nonce": nonce,
                        "value": value,
                    }
                )
                signed = self._account.sign_transaction(transaction)
                raw_hash = await self.web3.eth.send_raw_transaction(
                    signed.raw_transaction
                )

            state = TxState.SUBMITTED
            tx_hash = to_hex_str(raw_hash)
            self.logger.info(
                f"{label} sent from {mask_address(self._account.address)} "
                f"(nonce {nonce}), waiting for confirmation... {tx_hash}"
            )

            receipt = await self.status_checker.wait_for_receipt(tx_hash)

        except asyncio.CancelledError:
            self.logger.warning(f"{label} cancelled in state {state}")
            raise
        except Exception as e:
            kind = classify_error(e)
            if kind is ErrorKind.REVERTED:
                terminal = TxState.REVERTED
            elif kind is ErrorKind.INVALID_ARGUMENT and state is TxState.BUILDING:
                terminal = TxState.REJECTED
            else:
                terminal = TxState.NETWORK_FAILURE
            self.logger.error(f"{label} failed in state {state}: {e}")
            return TransactionOutcome.failed(
                terminal, str(e) or e.__class__.__name__, kind, tx_hash=tx_hash
            ), []

        block_number = receipt.get("blockNumber")
        gas_used = receipt.get("gasUsed")

        if receipt.get("status") != 1:
            self.logger.error(f"{label} reverted in block {block_number}: {tx_hash}")
            return TransactionOutcome.failed(
                TxState.REVERTED,
                "Transaction reverted",
                ErrorKind.REVERTED,
                tx_hash=tx_hash,
                block_number=block_number,
                gas_used=gas_used,
            ), []

        self.logger.info(f"{label} confirmed in block {block_number}: {tx_hash}")
        outcome = TransactionOutcome(
            success=True,
            state=TxState.CONFIRMED,
            tx_hash=tx_hash,
            block_number=block_number,
            gas_used=gas_used,
        )
        return outcome, self.decoder.decode_receipt(receipt)

    def _rejected(self, error: InvalidArgumentError) -> TransactionOutcome:
        self.logger.warning(f"Rejected before submission: {error}")
        return TransactionOutcome.failed(
            TxState.REJECTED, str(error), ErrorKind.INVALID_ARGUMENT
        )
