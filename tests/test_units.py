"""
Unit tests for unit conversion and usage input edits.
"""

import math

import pytest

from ai_cost_estimator.core.units import CONVERSION_RATES, UnitMode, normalize, rate
from ai_cost_estimator.core.usage import (
    DEFAULT_USAGE,
    UsageInput,
    apply_edit,
    parse_quantity,
    with_unit_mode,
)


class TestNormalize:
    """Test quantity normalization."""

    @pytest.mark.parametrize("mode,expected_rate", [
        (UnitMode.TOKENS, 1.0),
        (UnitMode.WORDS, 1.33),
        (UnitMode.CHARACTERS, 0.25),
    ])
    def test_rates(self, mode, expected_rate):
        """Verify the fixed conversion rates."""
        assert rate(mode) == expected_rate
        assert normalize(1000, mode) == pytest.approx(expected_rate)

    @pytest.mark.parametrize("quantity", [0, 1, 99.5, 250_000, 1_000_000])
    def test_formula(self, quantity):
        """Verify normalize(q, mode) == q * rate / 1000 for every mode."""
        for mode in UnitMode:
            assert normalize(quantity, mode) == quantity * CONVERSION_RATES[mode] / 1000

    @pytest.mark.parametrize("quantity", [-1, -0.001, math.inf, -math.inf, math.nan])
    def test_invalid_quantities_count_as_zero(self, quantity):
        """Verify negative and non-finite quantities normalize to zero."""
        assert normalize(quantity, UnitMode.TOKENS) == 0.0


class TestUnitModeParse:
    """Test unit mode parsing."""

    def test_parse_names(self):
        """Verify case-insensitive parsing."""
        assert UnitMode.parse("Words") == UnitMode.WORDS
        assert UnitMode.parse(" characters ") == UnitMode.CHARACTERS
        assert UnitMode.parse(UnitMode.TOKENS) == UnitMode.TOKENS

    def test_unknown_mode(self):
        """Verify unknown modes are rejected."""
        with pytest.raises(ValueError, match="Unknown unit mode"):
            UnitMode.parse("sentences")


class TestUsageInput:
    """Test UsageInput validation."""

    def test_defaults(self):
        """Verify default form values."""
        assert DEFAULT_USAGE == UsageInput(100, 100, 1, UnitMode.TOKENS)

    def test_zero_call_count_becomes_one(self):
        """Verify a zero call count defaults to one."""
        assert UsageInput(call_count=0).call_count == 1

    def test_string_unit_mode_is_parsed(self):
        """Verify unit mode strings are converted to the enum."""
        assert UsageInput(unit_mode="words").unit_mode == UnitMode.WORDS

    @pytest.mark.parametrize("kwargs", [
        {"input_quantity": -1},
        {"output_quantity": 1_000_001},
        {"input_quantity": math.nan},
        {"output_quantity": math.inf},
        {"input_quantity": 10 ** 400},
        {"input_quantity": "100"},
        {"call_count": 1.5},
        {"call_count": -2},
    ])
    def test_invalid_values_rejected(self, kwargs):
        """Verify out-of-range and mistyped values are rejected."""
        with pytest.raises(ValueError):
            UsageInput(**kwargs)


class TestApplyEdit:
    """Test edit-boundary validation."""

    def test_valid_edit(self):
        """Verify a valid edit replaces the value."""
        usage = apply_edit(DEFAULT_USAGE, "input_quantity", "2500")
        assert usage.input_quantity == 2500.0
        assert usage.output_quantity == 100.0

    def test_decimal_edit(self):
        """Verify decimal quantities are accepted."""
        assert apply_edit(DEFAULT_USAGE, "output_quantity", "12.75").output_quantity == 12.75

    def test_empty_edit_means_zero(self):
        """Verify clearing a field sets it to zero."""
        assert apply_edit(DEFAULT_USAGE, "input_quantity", "").input_quantity == 0.0

    @pytest.mark.parametrize("raw", ["-5", "1e3", "2E2", "1000001", "abc", "nan", "inf", None])
    def test_invalid_edit_keeps_prior_value(self, raw):
        """Verify invalid edits leave the usage untouched."""
        assert apply_edit(DEFAULT_USAGE, "input_quantity", raw) is DEFAULT_USAGE

    def test_upper_bound_inclusive(self):
        """Verify exactly 1,000,000 is accepted."""
        assert apply_edit(DEFAULT_USAGE, "input_quantity", "1000000").input_quantity == 1_000_000

    def test_call_count_must_be_integral(self):
        """Verify fractional call counts are rejected."""
        assert apply_edit(DEFAULT_USAGE, "call_count", "2.5") is DEFAULT_USAGE
        assert apply_edit(DEFAULT_USAGE, "call_count", "3").call_count == 3
        assert apply_edit(DEFAULT_USAGE, "call_count", "4.0").call_count == 4

    def test_call_count_zero_becomes_one(self):
        """Verify clearing the call count means a single call."""
        assert apply_edit(UsageInput(call_count=5), "call_count", "").call_count == 1

    def test_numeric_edit(self):
        """Verify numbers are accepted as well as strings."""
        assert apply_edit(DEFAULT_USAGE, "output_quantity", 42).output_quantity == 42.0

    def test_unknown_field(self):
        """Verify unknown fields raise."""
        with pytest.raises(ValueError, match="Unknown usage field"):
            apply_edit(DEFAULT_USAGE, "unit_mode", "words")

    def test_parse_quantity(self):
        """Verify raw parsing results."""
        assert parse_quantity(" 7 ") == 7.0
        assert parse_quantity("-0") is None
        assert parse_quantity(True) is None

    def test_with_unit_mode_keeps_quantities(self):
        """Verify switching unit mode keeps quantities as typed."""
        usage = with_unit_mode(DEFAULT_USAGE, "characters")
        assert usage.unit_mode == UnitMode.CHARACTERS
        assert usage.input_quantity == DEFAULT_USAGE.input_quantity
