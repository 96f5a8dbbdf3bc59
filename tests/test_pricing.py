from decimal import Decimal

import pytest

from storefront.services import pricing
from storefront.services.pricing import PricingRules


def entry(price, quantity=1):
    return {"quantity": quantity, "product": {"price": price}}


@pytest.mark.parametrize("sub, expected", [
    ("499.99", Decimal("99.00")),
    ("500.00", Decimal("0.00")),
    ("500.01", Decimal("0.00")),
    ("0.01", Decimal("99.00")),
])
def test_shipping_threshold(sub, expected):
    assert pricing.shipping(Decimal(sub)) == expected


def test_empty_cart_owes_nothing():
    assert pricing.subtotal([]) == Decimal("0.00")
    assert pricing.total([]) == Decimal("0.00")
    summary = pricing.summarize([])
    assert summary.shipping == Decimal("0.00")
    assert summary.total == Decimal("0.00")


def test_two_units_at_250_ship_free():
    summary = pricing.summarize([entry(250, 2)])
    assert summary.subtotal == Decimal("500.00")
    assert summary.shipping == Decimal("0.00")
    assert summary.tax == Decimal("75.00")
    assert summary.total == Decimal("575.00")


def test_small_order_pays_shipping_and_vat():
    summary = pricing.summarize([entry("100.00")])
    assert summary.shipping == Decimal("99.00")
    assert summary.tax == Decimal("15.00")
    assert summary.total == Decimal("214.00")


def test_vat_is_on_subtotal_only():
    # 15% of 199.99 = 29.9985 -> 30.00
    assert pricing.tax(Decimal("199.99")) == Decimal("30.00")


def test_unbillable_entries_are_left_out():
    items = [
        entry(100, 1),
        entry(None, 3),
        entry(-5, 1),
        entry(50, 0),
        entry(50, True),
        {"quantity": 2},
        None,
    ]
    assert pricing.subtotal(items) == Decimal("100.00")


def test_total_adds_up():
    items = [entry("199.99", 2), entry("49.50", 1)]
    sub = pricing.subtotal(items)
    assert pricing.total(items) == sub + pricing.shipping(sub) + pricing.tax(sub)


def test_free_shipping_remaining():
    assert pricing.free_shipping_remaining(Decimal("450")) == Decimal("50.00")
    assert pricing.free_shipping_remaining(Decimal("650")) == Decimal("0.00")


def test_rules_from_config():
    rules = PricingRules.from_config({"FREE_SHIPPING_THRESHOLD": "1000", "SHIPPING_FEE": "60", "VAT_RATE": "0.1"})
    assert pricing.shipping(Decimal("999.99"), rules=rules) == Decimal("60.00")
    assert pricing.tax(Decimal("100"), rules) == Decimal("10.00")


@pytest.mark.parametrize("price", ["NaN", "Infinity", float("nan"), float("inf"), "-Infinity"])
def test_non_finite_prices_are_left_out(price):
    items = [entry(price, 1), entry(100, 1)]
    assert not pricing.is_billable(entry(price, 1))
    assert pricing.subtotal(items) == Decimal("100.00")
    assert pricing.total(items) == Decimal("214.00")
