"""
Money -- integer minor-unit amounts and their decimal boundary.

Responsibility:
    Converts user-supplied major-unit amounts (e.g. ``Decimal("6.00")``) into
    integer minor units (600) at the edge of the system, and back into a
    decimal for display.  Every stored or allocated amount is an ``int``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Minor units are plain ``int`` (BigInteger in the database).
    - ``to_minor`` rounds half-up to the nearest minor unit:
      ``round(major * 100)``.
    - ``from_minor`` is a lossless division by 100 on ``Decimal``.
    - Floats never take part in arithmetic: a float input is converted via
      its ``str`` form before scaling.

Failure modes:
    - ValueError for non-numeric, NaN or infinite inputs, and for amounts
      too large for decimal arithmetic.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MINOR_UNIT_SCALE = 2

# Largest amount a BIGINT column holds.
MAX_MINOR = 2**63 - 1

_FACTOR = Decimal(10) ** MINOR_UNIT_SCALE
_DISPLAY_QUANTUM = Decimal(1).scaleb(-MINOR_UNIT_SCALE)


def _as_decimal(amount: Decimal | int | float | str) -> Decimal:
    if isinstance(amount, bool):
        raise ValueError(f"Not a monetary amount: {amount!r}")
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, float, str)):
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation:
            raise ValueError(f"Not a monetary amount: {amount!r}") from None
    else:
        raise ValueError(f"Not a monetary amount: {amount!r}")
    if not value.is_finite():
        raise ValueError(f"Monetary amount must be finite: {amount!r}")
    return value


def to_minor(amount: Decimal | int | float | str) -> int:
    """
    Convert a major-unit amount into integer minor units.

    >>> to_minor("6.00")
    600
    >>> to_minor(Decimal("0.005"))
    1
    """
    value = _as_decimal(amount)
    try:
        return int((value * _FACTOR).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise ValueError(f"Monetary amount out of range: {amount!r}") from None


def from_minor(minor: int) -> Decimal:
    """Convert minor units into a major-unit ``Decimal`` for display only."""
    return (Decimal(minor) / _FACTOR).quantize(_DISPLAY_QUANTUM)


def format_minor(minor: int) -> str:
    """Render minor units as a grouped major-unit string, e.g. ``1,234.50``."""
    return f"{from_minor(minor):,}"
