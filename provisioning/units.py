"""Decimal-string to smallest-unit conversion for token amounts."""

from decimal import Decimal, InvalidOperation, localcontext

_UINT256_MAX = 2**256 - 1


def parse_units(value: str, decimals: int = 18) -> int:
    """Scale a human-readable amount such as ``"10000"`` or ``"0.5"`` by ``10**decimals``."""
    if decimals < 0:
        raise ValueError("decimals must be non-negative.")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid token amount: {value!r}")
    if amount < 0:
        raise ValueError("Token amount must be non-negative.")

    with localcontext() as ctx:
        ctx.prec = 100
        scaled = amount.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"{value} has more than {decimals} decimal places.")
        result = int(scaled)
    if result > _UINT256_MAX:
        raise ValueError("Token amount exceeds uint256.")
    return result
