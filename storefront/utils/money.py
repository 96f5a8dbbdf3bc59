# storefront/utils/money.py

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

Money = Decimal

CENTS = Decimal("0.01")
ZERO = Decimal("0")

def D(x) -> Money:
    if isinstance(x, Decimal):
        return x
    if isinstance(x, bool):
        raise TypeError("bool is not a money value")
    try:
        return Decimal(str(x if x is not None else "0"))
    except InvalidOperation:
        raise ValueError(f"not a money value: {x!r}")

def round_money(x) -> Money:
    return D(x).quantize(CENTS, rounding=ROUND_HALF_UP)

def money_float(x) -> float:
    # JSON payloads carry money as plain numbers
    return float(round_money(x))

def format_zar(x) -> str:
    return f"R{round_money(x):,.2f}"
