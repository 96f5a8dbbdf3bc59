# storefront/services/pricing.py
"""
Order pricing: subtotal, shipping, VAT and grand total.

All functions are pure. Items can be LineItem objects or raw stored cart
entries ({"quantity": .., "product": {"price": ..}}); anything that does not
look like a billable line is left out of the sums instead of raising, so a
partially corrupt cart still prices.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..utils.money import D, Money, ZERO, round_money


@dataclass(frozen=True)
class PricingRules:
    free_shipping_threshold: Money = Decimal("500")
    shipping_fee: Money = Decimal("99")
    vat_rate: Decimal = Decimal("0.15")

    @classmethod
    def from_config(cls, config) -> "PricingRules":
        return cls(
            free_shipping_threshold=D(config.get("FREE_SHIPPING_THRESHOLD", 500)),
            shipping_fee=D(config.get("SHIPPING_FEE", 99)),
            vat_rate=D(config.get("VAT_RATE", "0.15")),
        )


DEFAULT_RULES = PricingRules()


@dataclass(frozen=True)
class OrderSummary:
    subtotal: Money
    shipping: Money
    tax: Money
    total: Money
    items: tuple = ()

    def as_api(self):
        return {
            "subtotal": float(self.subtotal),
            "shipping": float(self.shipping),
            "tax": float(self.tax),
            "total": float(self.total),
            "item_count": len(self.items),
        }


# ---- item accessors --------------------------------------------------------
def _quantity(item):
    q = item.get("quantity") if isinstance(item, dict) else getattr(item, "quantity", None)
    if isinstance(q, bool) or not isinstance(q, int):
        return None
    return q

def _unit_price(item):
    if isinstance(item, dict):
        product = item.get("product")
        price = product.get("price") if isinstance(product, dict) else None
    else:
        price = getattr(item, "unit_price", None)
    if price is None or isinstance(price, bool):
        return None
    try:
        price = D(price)
    except (TypeError, ValueError, ArithmeticError):
        return None
    return price if price.is_finite() else None

def is_billable(item) -> bool:
    if item is None:
        return False
    qty = _quantity(item)
    price = _unit_price(item)
    return qty is not None and qty > 0 and price is not None and price > 0


# ---- totals ----------------------------------------------------------------
def subtotal(items) -> Money:
    total = ZERO
    for item in items:
        if not is_billable(item):
            continue
        total += _unit_price(item) * _quantity(item)
    return round_money(total)

def shipping(sub: Money, *, empty: bool = False, rules: PricingRules = DEFAULT_RULES) -> Money:
    # an empty cart never owes a shipping fee
    if empty:
        return round_money(ZERO)
    if D(sub) >= rules.free_shipping_threshold:
        return round_money(ZERO)
    return round_money(rules.shipping_fee)

def tax(sub: Money, rules: PricingRules = DEFAULT_RULES) -> Money:
    return round_money(D(sub) * rules.vat_rate)

def total(items, rules: PricingRules = DEFAULT_RULES) -> Money:
    items = list(items)
    if not items:
        return round_money(ZERO)
    sub = subtotal(items)
    return round_money(sub + shipping(sub, rules=rules) + tax(sub, rules))

def free_shipping_remaining(sub: Money, rules: PricingRules = DEFAULT_RULES) -> Money:
    left = rules.free_shipping_threshold - D(sub)
    return round_money(left if left > 0 else ZERO)

def summarize(items, rules: PricingRules = DEFAULT_RULES) -> OrderSummary:
    items = tuple(items)
    sub = subtotal(items)
    if not items:
        return OrderSummary(sub, round_money(ZERO), tax(sub, rules), round_money(ZERO), items)
    ship = shipping(sub, rules=rules)
    vat = tax(sub, rules)
    return OrderSummary(sub, ship, vat, round_money(sub + ship + vat), items)
