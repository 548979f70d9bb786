"""Unit tests for wei/decimal conversion."""

from decimal import Decimal

import pytest

from coursechain.services.blockchain.results import TokenAmount
from coursechain.services.blockchain.units import (
    format_amount,
    to_decimal,
    to_smallest_unit,
)
from coursechain.utils.exceptions import ErrorKind, InvalidAmountError


class TestToSmallestUnit:
    """Tests for decimal -> wei conversion."""

    def test_one_unit(self):
        assert to_smallest_unit("1") == "1000000000000000000"

    def test_fraction(self):
        assert to_smallest_unit("0.1") == "100000000000000000"

    def test_float_uses_shortest_repr(self):
        """0.1 as a float must not pick up binary noise."""
        assert to_smallest_unit(0.1) == "100000000000000000"

    def test_zero(self):
        assert to_smallest_unit(0) == "0"

    def test_smallest_fraction(self):
        assert to_smallest_unit("0.000000000000000001") == "1"

    def test_large_amount_is_exact(self):
        """Amounts beyond the default Decimal precision stay exact."""
        amount = "123456789012345678901234567890.123456789012345678"
        assert to_smallest_unit(amount) == "123456789012345678901234567890123456789012345678"

    def test_trailing_zeros_beyond_precision_allowed(self):
        assert to_smallest_unit("1.0000000000000000000000") == "1000000000000000000"

    def test_negative_rejected(self):
        with pytest.raises(InvalidAmountError):
            to_smallest_unit("-1")

    def test_too_many_fraction_digits_rejected(self):
        with pytest.raises(InvalidAmountError):
            to_smallest_unit("0.0000000000000000001")

    @pytest.mark.parametrize("amount", ["abc", "", "NaN", "Infinity", True, None, [1]])
    def test_invalid_input_rejected(self, amount):
        with pytest.raises(InvalidAmountError):
            to_smallest_unit(amount)

    def test_error_is_invalid_argument(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            to_smallest_unit("-0.5")
        assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENT

    @pytest.mark.parametrize(
        "amount", ["1e999999", Decimal("1e999999"), Decimal("1E+9999999"), 1e308]
    )
    def test_huge_exponent_rejected(self, amount):
        """Finite but enormous amounts are rejected instead of overflowing."""
        with pytest.raises(InvalidAmountError):
            to_smallest_unit(amount)

    def test_above_uint256_rejected(self):
        digits = tuple(int(d) for d in str(2**256))
        with pytest.raises(InvalidAmountError, match="uint256"):
            to_smallest_unit(Decimal((0, digits, -18)))

    def test_zero_with_negative_exponent(self):
        assert to_smallest_unit("0E-30") == "0"

    def test_long_fraction_not_rounded_away(self):
        """A 19th-or-later fractional digit is rejected even past 96 digits."""
        with pytest.raises(InvalidAmountError):
            to_smallest_unit("0.1" + "0" * 100 + "1")


class TestToDecimal:
    """Tests for wei -> decimal conversion."""

    def test_one_unit(self):
        assert to_decimal(10**18) == Decimal("1")

    def test_string_input(self):
        assert to_decimal("100000000000000000") == Decimal("0.1")

    def test_zero(self):
        assert to_decimal(0) == Decimal(0)

    def test_one_wei(self):
        assert to_decimal(1) == Decimal("0.000000000000000001")

    @pytest.mark.parametrize(
        "wei", [-1, "-1", "1.5", "0x10", True, 2**256, str(2**256), "9" * 5000, "²"]
    )
    def test_invalid_wei_rejected(self, wei):
        with pytest.raises(InvalidAmountError):
            to_decimal(wei)

    @pytest.mark.parametrize(
        "amount",
        ["0", "0.1", "1", "2.5", "0.000000000000000001", "1000000.123456789012345678"],
    )
    def test_round_trip(self, amount):
        """to_decimal(to_smallest_unit(x)) == x for representable amounts."""
        assert to_decimal(to_smallest_unit(amount)) == Decimal(amount)

    def test_max_uint256_round_trip(self):
        wei = 2**256 - 1
        assert to_smallest_unit(to_decimal(wei)) == str(wei)


class TestFormatAmount:
    """Tests for plain-notation rendering."""

    def test_strips_trailing_zeros(self):
        assert format_amount(Decimal("0.100")) == "0.1"

    def test_no_exponent_for_integers(self):
        assert format_amount(Decimal("100")) == "100"

    def test_no_exponent_for_tiny_amounts(self):
        assert format_amount(Decimal("0.000000000000000001")) == "0.000000000000000001"

    def test_zero(self):
        assert format_amount(Decimal("0.000")) == "0"


class TestTokenAmount:
    """Tests for the dual-form amount container."""

    def test_from_decimal(self):
        amount = TokenAmount.from_decimal("0.25")
        assert amount.wei == 250000000000000000
        assert amount.decimal == Decimal("0.25")

    def test_to_dict(self):
        assert TokenAmount(10**18).to_dict() == {"decimal": "1", "wei": "1000000000000000000"}
