"""Time-unit conversion.

The pipeline works internally in picoseconds, following GROMACS conventions.
"""

from typing import Optional, Sequence

from mdrelax.contracts.failure import ConfigurationError

TIME_FACTORS = {
    "s": 1.0e12,
    "ms": 1.0e9,
    "us": 1.0e6,
    "ns": 1.0e3,
    "ps": 1.0,
}


def time_factor(unit: str) -> float:
    """Multiplicative factor converting ``unit`` to picoseconds.

    Raises
    ------
    ConfigurationError
        If the unit token is not one of s, ms, us, ns, ps.
    """
    try:
        return TIME_FACTORS[unit]
    except KeyError:
        raise ConfigurationError(
            f"Unrecognized time unit '{unit}' (expected one of {', '.join(TIME_FACTORS)})"
        ) from None


def to_picoseconds(value: float, unit: Optional[str] = None) -> float:
    """Convert ``value`` given in ``unit`` to picoseconds. No unit means ps."""
    factor = 1.0 if unit is None else time_factor(unit)
    return float(value) * factor


def parse_time_tokens(tokens: Sequence[str]) -> float:
    """Parse a command-line time argument ``[value]`` or ``[value, unit]``.

    Examples
    --------
    >>> parse_time_tokens(["10", "ns"])
    10000.0
    >>> parse_time_tokens(["250"])
    250.0
    """
    if len(tokens) not in (1, 2):
        raise ConfigurationError(
            f"A time argument takes a value and an optional unit, got: {' '.join(tokens)}"
        )
    try:
        value = float(tokens[0])
    except ValueError:
        raise ConfigurationError(f"Time value '{tokens[0]}' is not a number") from None
    unit = tokens[1] if len(tokens) == 2 else None
    return to_picoseconds(value, unit)
