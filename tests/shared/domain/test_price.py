"""Tests for the Price value object and money helpers."""

import pytest
from orderease.shared.errors import ValidationFailed
from orderease.shared.price import Price, round2, to_decimal


class TestParse:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (10, 10.0),
            (10.5, 10.5),
            ("10", 10.0),
            ("10.50", 10.5),
            (b"3.25", 3.25),
            (bytearray(b"7"), 7.0),
            ("0", 0.0),
        ],
    )
    def test_accepts_numbers_strings_and_bytes(self, raw, expected):
        assert Price.parse(raw).amount == expected

    def test_rounds_to_cents(self):
        assert Price.parse("2.345").amount == 2.35
        assert Price.parse(2.344).amount == 2.34

    @pytest.mark.parametrize("raw", ["-1", -0.01, "abc", "", None, True, "NaN", "Infinity"])
    def test_rejects_invalid_amounts(self, raw):
        with pytest.raises(ValidationFailed):
            Price.parse(raw)


class TestArithmetic:
    def test_add(self):
        assert Price.of("0.1").add(Price.of("0.2")).amount == 0.3

    def test_multiply(self):
        assert Price.of("11.50").multiply(2).amount == 23.0

    def test_multiply_rounds_half_up(self):
        assert Price.of("0.15").multiply(3).amount == 0.45


class TestHelpers:
    def test_to_decimal_avoids_binary_expansion(self):
        assert str(to_decimal(0.1)) == "0.1"

    def test_round2_half_up(self):
        assert round2("0.005") == 0.01
        assert round2("1.994") == 1.99
