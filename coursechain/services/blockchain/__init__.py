"""
Course contract client.

Provides unified access to the course contract through a modular architecture.
All contract functionality is organized into specialized managers and utilities.
"""

from .core_constants import COURSE_ABI, EVENT_SIGNATURES, EventKind
from .results import (
    AccountBalance,
    CourseEvent,
    CoursePage,
    CourseRecord,
    ServiceResult,
    TokenAmount,
    TransactionOutcome,
    TxState,
)
from .service_facade import CourseContractService
from .singleton import get_course_service, init_course_service, reset_course_service
from .subscription_manager import Subscription
from .units import format_amount, to_decimal, to_smallest_unit


__all__ = [
    "CourseContractService",
    "get_course_service",
    "init_course_service",
    "reset_course_service",
    "COURSE_ABI",
    "EVENT_SIGNATURES",
    "EventKind",
    "AccountBalance",
    "CourseEvent",
    "CoursePage",
    "CourseRecord",
    "ServiceResult",
    "Subscription",
    "TokenAmount",
    "TransactionOutcome",
    "TxState",
    "format_amount",
    "to_decimal",
    "to_smallest_unit",
]
