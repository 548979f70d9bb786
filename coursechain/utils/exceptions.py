"""
Exception handling utilities.

Defines the error taxonomy of the contract client and maps third-party
failures (web3, aiohttp, sockets) onto it.
"""

import asyncio
from enum import StrEnum

from aiohttp import ClientError
from eth_abi.exceptions import DecodingError
from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    InvalidAddress,
    ProviderConnectionError,
    TimeExhausted,
    Web3RPCError,
    Web3ValidationError,
)


class ErrorKind(StrEnum):
    """Failure categories surfaced to callers of the service."""

    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    NETWORK_FAILURE = "network_failure"
    REVERTED = "reverted"


class CourseContractError(Exception):
    """Base exception for contract client failures."""

    kind: ErrorKind = ErrorKind.NETWORK_FAILURE


class InvalidArgumentError(CourseContractError, ValueError):
    """Raised for malformed ids, accounts or amounts, before any RPC."""

    kind = ErrorKind.INVALID_ARGUMENT


class InvalidAmountError(InvalidArgumentError):
    """Raised when an amount cannot be represented in wei."""


class NotFoundError(CourseContractError):
    """Raised when a query targets a course that does not exist."""

    kind = ErrorKind.NOT_FOUND


# Exception categories based on handling strategy

# Plausibly retryable - transport or node availability problems
NETWORK_ERRORS = (
    ProviderConnectionError,
    TimeExhausted,
    ClientError,
    ConnectionError,
    asyncio.TimeoutError,
    TimeoutError,
    OSError,
)

# Never retryable - the chain rejected the call's effects
REVERT_ERRORS = (
    ContractLogicError,
)

# Rejected before reaching the chain
INVALID_ARGUMENT_ERRORS = (
    InvalidAddress,
    Web3ValidationError,
    DecodingError,
    TypeError,
    ValueError,
)


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Map an exception onto the client's error taxonomy.

    Args:
        exc: Exception raised by a service operation

    Returns:
        ErrorKind for the failure
    """
    if isinstance(exc, CourseContractError):
        return exc.kind

    if isinstance(exc, REVERT_ERRORS):
        return ErrorKind.REVERTED

    if isinstance(exc, NETWORK_ERRORS):
        return ErrorKind.NETWORK_FAILURE

    if isinstance(exc, Web3RPCError):
        # Nodes report eth_call/eth_estimateGas reverts as plain RPC errors
        if "revert" in str(exc).lower():
            return ErrorKind.REVERTED
        return ErrorKind.NETWORK_FAILURE

    if isinstance(exc, BadFunctionCallOutput):
        # Empty return data: no contract at the address or wrong ABI
        return ErrorKind.NETWORK_FAILURE

    if isinstance(exc, INVALID_ARGUMENT_ERRORS):
        return ErrorKind.INVALID_ARGUMENT

    return ErrorKind.NETWORK_FAILURE


def is_retryable(exc: BaseException) -> bool:
    """
    Check if a failure is plausibly retryable.

    Args:
        exc: Exception to check

    Returns:
        True for network failures, False for reverts and bad input
    """
    return classify_error(exc) is ErrorKind.NETWORK_FAILURE
