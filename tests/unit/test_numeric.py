"""Unit tests for numeric guards and formatting"""

import math

import pytest

from credit_committee.domain.numeric import (
    finite_number,
    format_fixed,
    format_number,
    guarded_number,
    has_value,
    ratio,
    round_half_up,
    round_to,
)


@pytest.mark.parametrize(
    "raw,expected",
    [(12, 12.0), ("3.5", 3.5), (" 7 ", 7.0), (-2.5, -2.5), (0, 0.0)],
)
def test_finite_number_accepts_numbers(raw, expected):
    assert finite_number(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "  ", "abc", True, math.nan, math.inf, -math.inf, [], {}])
def test_finite_number_rejects_non_finite(raw):
    assert finite_number(raw) is None


def test_guarded_number_requires_positive():
    assert guarded_number(10) == 10.0
    assert guarded_number(0) is None
    assert guarded_number(-1) is None
    assert guarded_number(math.nan) is None


def test_ratio_absent_on_zero_denominator():
    assert ratio(50, 200) == 0.25
    assert ratio(50, 0) is None
    assert ratio(None, 200) is None


def test_has_value_treats_zero_as_absent():
    assert not has_value(None)
    assert not has_value("")
    assert not has_value(0)
    assert not has_value(math.nan)
    assert has_value(0.1)
    assert has_value("neuf")


def test_round_half_up_goes_toward_positive_infinity():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(-2.5) == -2
    assert round_half_up(2.49) == 2


def test_round_to_decimals():
    assert round_to(0.125, 2) == 0.13
    assert round_to(0.3333333, 4) == 0.3333
    assert round_to(1.08, 2) == 1.08


def test_format_number_drops_integer_fraction():
    assert format_number(65.0) == "65"
    assert format_number(65.5) == "65.5"
    assert format_number(-3) == "-3"


@pytest.mark.parametrize(
    "value,expected",
    [(1e16, "10000000000000000"), (1234567.25, "1234567.25"), (0.00001, "0.00001"), (-0.0005, "-0.0005")],
)
def test_format_number_never_uses_exponent(value, expected):
    assert format_number(value) == expected


def test_format_fixed_rounds_half_away_from_zero():
    assert format_fixed(1.6, 2) == "1.60"
    assert format_fixed(72.25, 1) == "72.3"
    assert format_fixed(0.5, 0) == "1"
    assert format_fixed(7.0, 1) == "7.0"
