"""Input validation for values crossing into the contract client."""

import re

from web3 import Web3

from coursechain.config.constants import MAX_UINT256
from coursechain.utils.exceptions import InvalidArgumentError


ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


def validate_wallet_address(address: str) -> tuple[bool, str | None]:
    """
    Validate wallet address format.

    Args:
        address: Wallet address to validate

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_wallet_address("0x1234567890123456789012345678901234567890")
        (True, None)
        >>> validate_wallet_address("invalid")
        (False, 'Address must start with 0x')
    """
    if not address or not isinstance(address, str):
        return False, "Address is empty"

    address = address.strip()

    if not address.startswith("0x"):
        return False, "Address must start with 0x"

    if len(address) != 42:
        return False, "Address must be 42 characters"

    if not ADDRESS_PATTERN.match(address):
        return False, "Invalid address format"

    return True, None


def normalize_address(address: str) -> str:
    """
    Validate and checksum an account address.

    Raises:
        InvalidArgumentError: If the address is malformed
    """
    is_valid, error = validate_wallet_address(address)
    if not is_valid:
        raise InvalidArgumentError(f"Invalid address {address!r}: {error}")
    return Web3.to_checksum_address(address.strip())


def validate_course_id(course_id: object) -> int:
    """
    Validate a course id.

    Ids are chain-assigned non-negative integers. Numeric strings are
    accepted because ids often arrive from URL paths.

    Raises:
        InvalidArgumentError: If the id is not an integer in the uint256 range
    """
    if isinstance(course_id, bool):
        raise InvalidArgumentError(f"Invalid course id: {course_id!r}")

    if isinstance(course_id, str):
        stripped = course_id.strip()
        if not stripped.isdigit():
            raise InvalidArgumentError(f"Invalid course id: {course_id!r}")
        try:
            course_id = int(stripped)
        except ValueError as e:
            # Non-ASCII digits, or more digits than int() will convert
            raise InvalidArgumentError(f"Invalid course id: {stripped[:20]!r}...") from e

    if not isinstance(course_id, int) or course_id < 0:
        raise InvalidArgumentError(f"Invalid course id: {course_id!r}")

    if course_id > MAX_UINT256:
        raise InvalidArgumentError("Course id exceeds the uint256 range")

    return course_id


def validate_text(value: object, field: str) -> str:
    """
    Validate a required text field.

    Raises:
        InvalidArgumentError: If the value is not a non-empty string
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{field} must be a non-empty string")
    return value
