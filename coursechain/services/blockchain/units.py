"""
Unit conversion between wei and decimal amounts.

Pure functions; all arithmetic is done with Decimal so that conversions are
exact within the chain's 18-digit fixed-point precision.
"""

from decimal import Context, Decimal, InvalidOperation

from coursechain.config.constants import MAX_UINT256, NATIVE_DECIMALS
from coursechain.utils.exceptions import InvalidAmountError


# Wide enough for any uint256 wei value, so scaling never rounds
_EXACT = Context(prec=96)

# Index of the leading digit of MAX_UINT256 (it has 78 digits)
_MAX_WEI_DIGITS = len(str(MAX_UINT256)) - 1


def _to_decimal_input(amount: Decimal | int | float | str) -> Decimal:
    """Coerce user input into a finite Decimal."""
    if isinstance(amount, bool):
        raise InvalidAmountError(f"Invalid amount: {amount!r}")

    try:
        if isinstance(amount, Decimal):
            value = amount
        elif isinstance(amount, int):
            value = Decimal(amount)
        elif isinstance(amount, float):
            # str() gives the shortest repr, so 0.1 stays 0.1
            value = Decimal(str(amount))
        elif isinstance(amount, str):
            value = Decimal(amount.strip())
        else:
            raise InvalidAmountError(f"Unsupported amount type: {type(amount).__name__}")
    except InvalidOperation as e:
        raise InvalidAmountError(f"Invalid amount: {amount!r}") from e

    if not value.is_finite():
        raise InvalidAmountError(f"Amount must be finite: {amount!r}")

    return value


def _fraction_digits(value: Decimal) -> int:
    """Count significant fractional digits, ignoring trailing zeros."""
    if not value:
        return 0
    _, digits, exponent = value.as_tuple()
    trailing_zeros = 0
    for digit in reversed(digits):
        if digit != 0:
            break
        trailing_zeros += 1
    return max(0, -(exponent + trailing_zeros))


def to_smallest_unit(amount: Decimal | int | float | str) -> str:
    """
    Convert a decimal amount to wei.

    Args:
        amount: Amount in whole units (e.g. Decimal("0.1"), "0.1", 0.1)

    Returns:
        Amount in wei as a base-10 integer string

    Raises:
        InvalidAmountError: If the amount is negative, not a number, has
            more than 18 fractional digits or exceeds the uint256 range
    """
    value = _to_decimal_input(amount)

    if value < 0:
        raise InvalidAmountError(f"Amount cannot be negative: {amount!r}")

    # Bound the magnitude first so huge exponents never reach the context
    if value and value.adjusted() + NATIVE_DECIMALS > _MAX_WEI_DIGITS:
        raise InvalidAmountError(f"Amount {amount!r} exceeds the uint256 range")

    if _fraction_digits(value) > NATIVE_DECIMALS:
        raise InvalidAmountError(
            f"Amount {amount!r} has more than {NATIVE_DECIMALS} fractional digits"
        )

    try:
        wei = int(value.scaleb(NATIVE_DECIMALS, context=_EXACT))
    except ArithmeticError as e:
        raise InvalidAmountError(f"Amount {amount!r} is out of range") from e

    # Exact by construction: the fractional part was checked above
    if wei > MAX_UINT256:
        raise InvalidAmountError(f"Amount {amount!r} exceeds the uint256 range")
    return str(wei)


def to_decimal(wei: int | str) -> Decimal:
    """
    Convert wei to a decimal amount.

    Args:
        wei: Amount in wei (integer or base-10 integer string)

    Returns:
        Amount in whole units, without trailing zeros

    Raises:
        InvalidAmountError: If the input is not an integer in the uint256 range
    """
    if isinstance(wei, bool):
        raise InvalidAmountError(f"Invalid wei amount: {wei!r}")

    if isinstance(wei, str):
        stripped = wei.strip()
        if not stripped.isdigit():
            raise InvalidAmountError(f"Invalid wei amount: {wei!r}")
        try:
            wei = int(stripped)
        except ValueError as e:
            # Non-ASCII digits, or more digits than int() will convert
            raise InvalidAmountError(f"Invalid wei amount: {stripped[:20]!r}...") from e

    if not isinstance(wei, int) or wei < 0:
        raise InvalidAmountError(f"Invalid wei amount: {wei!r}")

    if wei > MAX_UINT256:
        raise InvalidAmountError("Wei amount exceeds the uint256 range")

    value = Decimal(wei).scaleb(-NATIVE_DECIMALS, context=_EXACT)
    if value == 0:
        return Decimal(0)
    return value.normalize(context=_EXACT)


def format_amount(value: Decimal) -> str:
    """
    Render a decimal amount in plain notation.

    Examples:
        >>> format_amount(Decimal("0.10"))
        '0.1'
        >>> format_amount(Decimal("100"))
        '100'
    """
    if value == 0:
        return "0"
    return f"{value.normalize(context=_EXACT):f}"
