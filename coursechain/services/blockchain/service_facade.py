"""
Course contract service - Main coordinator.

This module provides the CourseContractService class that coordinates all
contract operations by delegating to specialized managers:
- ContractManager: RPC connection and contract instance
- TransactionManager: createCourse / purchaseCourse lifecycle
- CourseQueryManager: read-only queries
- BalanceManager: native balance lookups
- CoursePaginator: concurrent page assembly
- SubscriptionManager: live CourseCreated / CoursePurchased events

Every public method returns a tagged result (TransactionOutcome or
ServiceResult) and never raises, so the HTTP facade can serve many requests
from one long-lived instance.
"""

from decimal import Decimal

from loguru import logger
from web3 import AsyncWeb3

from coursechain.config.settings import Settings
from coursechain.utils.security import mask_address

from .balance_operations import BalanceManager
from .contract_manager import ContractManager
from .core_constants import EventKind
from .event_decoder import EventDecoder
from .pagination import CoursePaginator
from .query_operations import CourseQueryManager
from .results import ServiceResult, TransactionOutcome
from .subscription_manager import EventHandler, Subscription, SubscriptionManager
from .transaction_operations import TransactionManager
from .transaction_status import TransactionStatusChecker


class CourseContractService:
    """
    Client service for the course contract.

    One instance holds one signing credential. Use with_signer() to act as a
    different account over the same connection.
    """

    def __init__(
        self,
        settings: Settings,
        web3: AsyncWeb3 | None = None,
        private_key: str | None = None,
    ) -> None:
        """
        Initialize course contract service.

        Args:
            settings: Application settings
            web3: Pre-built AsyncWeb3 instance (optional, mainly for tests)
            private_key: Signing credential; defaults to settings.private_key
        """
        self.settings = settings
        # Derived signer services share the parent connection and never close it
        self._owns_connection = True

        self.contract_manager = ContractManager(
            settings.require_contract_address(),
            rpc_url=settings.rpc_url,
            web3=web3,
        )
        self.decoder = EventDecoder(self.contract_manager.contract_address)
        self.status_checker = TransactionStatusChecker(
            self.web3,
            poll_interval=settings.receipt_poll_interval,
            timeout=settings.receipt_timeout,
        )
        self.transaction_manager = TransactionManager(
            self.web3,
            self.contract,
            self.decoder,
            self.status_checker,
            private_key=private_key if private_key is not None else settings.private_key,
        )
        self.query_manager = CourseQueryManager(self.contract)
        self.balance_manager = BalanceManager(
            self.web3, default_address=self.wallet_address
        )
        self.paginator = CoursePaginator(
            self.query_manager, max_page_size=settings.max_page_size
        )
        self.subscription_manager = SubscriptionManager(
            self.web3,
            self.decoder,
            course_count=self.query_manager.fetch_course_count,
            poll_interval=settings.event_poll_interval,
        )

        wallet_display = (
            mask_address(self.wallet_address)
            if self.wallet_address
            else 'Not configured (read-only)'
        )
        logger.success(
            f"CourseContractService initialized\n"
            f"  RPC: {settings.rpc_url}\n"
            f"  Contract: {self.contract_address}\n"
            f"  Signer: {wallet_display}"
        )

    # ========== Properties ==========

    @property
    def web3(self) -> AsyncWeb3:
        return self.contract_manager.web3

    @property
    def contract(self):
        return self.contract_manager.contract

    @property
    def contract_address(self) -> str:
        return self.contract_manager.contract_address

    @property
    def wallet_address(self) -> str | None:
        """Address of the signing credential, if any."""
        return self.transaction_manager.wallet_address

    def with_signer(self, private_key: str) -> "CourseContractService":
        """
        Return a service acting as another account over the same connection.

        Args:
            private_key: Signing credential of the other account

        Returns:
            Service whose close() leaves the shared connection open
        """
        derived = CourseContractService(
            self.settings, web3=self.web3, private_key=private_key
        )
        derived._owns_connection = False
        return derived

    # ========== Transactions ==========

    async def create_course(
        self,
        title: str,
        description: str,
        price: Decimal | int | float | str,
    ) -> TransactionOutcome:
        """Create a course priced in whole native units."""
        return await self.transaction_manager.submit_create(title, description, price)

    async def purchase_course(
        self,
        course_id: int | str,
        payment: Decimal | int | float | str,
    ) -> TransactionOutcome:
        """Purchase a course, paying `payment` whole native units."""
        return await self.transaction_manager.submit_purchase(course_id, payment)

    # ========== Queries ==========

    async def get_course(self, course_id: int | str) -> ServiceResult:
        return await self.query_manager.get_course(course_id)

    async def get_course_buyers(self, course_id: int | str) -> ServiceResult:
        return await self.query_manager.get_course_buyers(course_id)

    async def get_user_purchased_courses(self, account: str) -> ServiceResult:
        return await self.query_manager.get_user_purchased_courses(account)

    async def has_user_purchased_course(
        self, course_id: int | str, account: str
    ) -> ServiceResult:
        return await self.query_manager.has_user_purchased_course(course_id, account)

    async def get_course_count(self) -> ServiceResult:
        return await self.query_manager.get_course_count()

    async def get_balance(self, address: str | None = None) -> ServiceResult:
        """Native balance of `address`, or of the signer when omitted."""
        return await self.balance_manager.get_native_balance(address)

    async def get_courses_page(self, page: int = 1, limit: int = 10) -> ServiceResult:
        """One page of courses; unreadable ids are dropped from the page."""
        return await self.paginator.get_page(page, limit)

    # ========== Events ==========

    def on_course_created(self, handler: EventHandler) -> Subscription:
        """Invoke `handler` for every CourseCreated event from now on."""
        return self.subscription_manager.subscribe(EventKind.COURSE_CREATED, handler)

    def on_course_purchased(self, handler: EventHandler) -> Subscription:
        """Invoke `handler` for every CoursePurchased event from now on."""
        return self.subscription_manager.subscribe(EventKind.COURSE_PURCHASED, handler)

    def stop_listening(self) -> None:
        """Remove all event handlers. Safe to call repeatedly."""
        self.subscription_manager.unsubscribe_all()

    # ========== Cleanup Methods ==========

    async def close(self) -> None:
        """
        Stop listeners and release the RPC session.

        Services returned by with_signer() only stop their own listeners; the
        shared session stays open until the originating service is closed.
        """
        await self.subscription_manager.aclose()
        if self._owns_connection:
            await self.contract_manager.close()
