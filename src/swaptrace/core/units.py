from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from swaptrace.core.constants import LAMPORTS_PER_SOL_DEC


def to_lamports(amount: Decimal) -> int:
    return int((amount * LAMPORTS_PER_SOL_DEC).to_integral_value(rounding=ROUND_HALF_UP))


def lamports_to_sol(lamports: int) -> Decimal:
    return Decimal(int(lamports)) / LAMPORTS_PER_SOL_DEC


def to_decimal(val: Any) -> Optional[Decimal]:
    if val is None or isinstance(val, bool):
        return None
    try:
        d = Decimal(str(val))
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def dec_to_str(x: Decimal) -> str:
    # plain notation, no exponent, no trailing zeros
    s = format(x, "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return "0" if s in ("", "-0") else s
