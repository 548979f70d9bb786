"""
Result containers returned across the service boundary.

Every public service operation returns one of these instead of raising, so a
single failed call can never take down the long-lived process serving it.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from coursechain.utils.exceptions import ErrorKind, classify_error

from .core_constants import EventKind
from .units import format_amount, to_decimal, to_smallest_unit


@dataclass(frozen=True)
class TokenAmount:
    """Native-token amount carried in both wei and decimal form."""

    wei: int

    @classmethod
    def from_decimal(cls, amount: Decimal | int | float | str) -> "TokenAmount":
        """Build from a decimal amount (raises InvalidAmountError)."""
        return cls(int(to_smallest_unit(amount)))

    @property
    def decimal(self) -> Decimal:
        return to_decimal(self.wei)

    @property
    def display(self) -> str:
        return format_amount(self.decimal)

    def to_dict(self) -> dict[str, str]:
        return {"decimal": self.display, "wei": str(self.wei)}


@dataclass(frozen=True)
class CourseRecord:
    """A course as stored by the contract."""

    course_id: int
    title: str
    description: str
    author: str
    price: TokenAmount
    created_at: int

    @property
    def created_at_iso(self) -> str:
        return (
            datetime.fromtimestamp(self.created_at, tz=UTC)
            .isoformat()
            .replace("+00:00", "Z")
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.course_id,
            "title": self.title,
            "description": self.description,
            "author": self.author,
            "price": self.price.display,
            "priceWei": str(self.price.wei),
            "createdAt": self.created_at_iso,
        }


@dataclass(frozen=True)
class CourseEvent:
    """A decoded CourseCreated / CoursePurchased log."""

    kind: EventKind
    course_id: int
    actor: str
    price: TokenAmount
    tx_hash: str
    block_number: int
    log_index: int = 0
    title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "courseId": str(self.course_id),
            "price": self.price.display,
            "priceWei": str(self.price.wei),
            "txHash": self.tx_hash,
            "blockNumber": self.block_number,
        }
        if self.kind is EventKind.COURSE_CREATED:
            data["title"] = self.title
            data["author"] = self.actor
        else:
            data["buyer"] = self.actor
        return data


class TxState(StrEnum):
    """Transaction lifecycle states."""

    REJECTED = "rejected"  # Input validation failed, nothing was sent
    BUILDING = "building"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"
    NETWORK_FAILURE = "network_failure"


TERMINAL_STATES = frozenset(
    {TxState.REJECTED, TxState.CONFIRMED, TxState.REVERTED, TxState.NETWORK_FAILURE}
)


@dataclass
class TransactionOutcome:
    """Normalized result of a submitted state-changing call."""

    success: bool
    state: TxState
    tx_hash: str | None = None
    block_number: int | None = None
    gas_used: int | None = None
    course_id: int | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    def __post_init__(self) -> None:
        if self.state not in TERMINAL_STATES:
            raise ValueError(f"Outcome state must be terminal, got {self.state}")
        if self.success and not self.tx_hash:
            raise ValueError("Successful transaction outcome requires a tx hash")

    @classmethod
    def failed(
        cls,
        state: TxState,
        error: str,
        error_kind: ErrorKind,
        tx_hash: str | None = None,
        block_number: int | None = None,
        gas_used: int | None = None,
    ) -> "TransactionOutcome":
        return cls(
            success=False,
            state=state,
            tx_hash=tx_hash,
            block_number=block_number,
            gas_used=gas_used,
            error=error,
            error_kind=error_kind,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success, "state": self.state.value}
        if self.tx_hash:
            data["txHash"] = self.tx_hash
        if self.block_number is not None:
            data["blockNumber"] = self.block_number
        if self.gas_used is not None:
            data["gasUsed"] = str(self.gas_used)
        if self.course_id is not None:
            data["courseId"] = str(self.course_id)
        if not self.success:
            data["error"] = self.error
            data["errorKind"] = self.error_kind.value if self.error_kind else None
        return data


@dataclass
class ServiceResult:
    """
    Standard service result container.

    Used to return structured results from read-side service methods.
    """
    success: bool
    data: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @classmethod
    def ok(cls, data: Any) -> "ServiceResult":
        return cls(success=True, data=data)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ServiceResult":
        return cls(success=False, error=str(exc) or exc.__class__.__name__,
                   error_kind=classify_error(exc))


@dataclass
class AccountBalance:
    """Native balance of an account."""

    address: str
    balance: TokenAmount

    def to_dict(self) -> dict[str, Any]:
        return {
            "balance": self.balance.display,
            "balanceWei": str(self.balance.wei),
            "address": self.address,
        }


@dataclass
class CoursePage:
    """One page of courses plus pagination metadata."""

    courses: list[CourseRecord]
    page: int
    limit: int
    total_courses: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
    missing_ids: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "courses": [course.to_dict() for course in self.courses],
            "pagination": {
                "currentPage": self.page,
                "limit": self.limit,
                "totalCourses": self.total_courses,
                "totalPages": self.total_pages,
                "hasNextPage": self.has_next_page,
                "hasPrevPage": self.has_prev_page,
            },
        }
