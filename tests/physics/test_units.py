import pytest

from mdrelax.contracts import ConfigurationError
from mdrelax.physics.units import TIME_FACTORS, parse_time_tokens, time_factor, to_picoseconds

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("unit, factor", [
    ("s", 1.0e12), ("ms", 1.0e9), ("us", 1.0e6), ("ns", 1.0e3), ("ps", 1.0),
])
def test_time_factors_exact(unit, factor):
    assert time_factor(unit) == factor


@pytest.mark.parametrize("unit", ["fs", "NS", "", "sec"])
def test_unknown_unit_rejected(unit):
    with pytest.raises(ConfigurationError, match="Unrecognized time unit"):
        time_factor(unit)


def test_no_unit_means_picoseconds():
    assert to_picoseconds(250) == 250.0


def test_to_picoseconds_applies_factor():
    assert to_picoseconds(3.9, "ns") == pytest.approx(3900.0)


def test_parse_time_tokens_value_and_unit():
    assert parse_time_tokens(["10", "ns"]) == 10000.0
    assert parse_time_tokens(["250"]) == 250.0


def test_parse_time_tokens_rejects_extra_tokens():
    with pytest.raises(ConfigurationError):
        parse_time_tokens(["1", "ns", "extra"])


def test_parse_time_tokens_rejects_non_numeric_value():
    with pytest.raises(ConfigurationError, match="not a number"):
        parse_time_tokens(["ten", "ns"])


def test_factor_table_covers_only_known_units():
    assert set(TIME_FACTORS) == {"s", "ms", "us", "ns", "ps"}
