import json
from decimal import Decimal

import pytest

from storefront.errors import StorageError
from storefront.services.cart_store import (
    DEFAULT_CART_KEY, CartStore, discard_invalid, normalize_options,
)
from storefront.services.storage import MemoryStorage


class BrokenStorage(MemoryStorage):
    def write(self, key, value):
        raise StorageError("disk full")


def stored(*entries):
    return MemoryStorage({DEFAULT_CART_KEY: json.dumps(list(entries))})


def good_entry(item_id="whey-1", price=250.0, quantity=1):
    return {
        "id": item_id,
        "product_id": item_id.split("-")[0],
        "quantity": quantity,
        "product": {"id": item_id.split("-")[0], "name": "Whey Protein", "price": price},
    }


class TestMutations:
    def test_add_merges_same_product_and_options(self, cart, whey):
        first = cart.add_item(whey, 1, {"flavor": "Chocolate"})
        again = cart.add_item(whey, 2, {"flavor": "Chocolate"})
        assert len(cart) == 1
        assert again.id == first.id
        assert cart.items[0].quantity == 3

    def test_different_options_get_their_own_line(self, cart, whey):
        cart.add_item(whey, 1, {"flavor": "Chocolate"})
        cart.add_item(whey, 1, {"flavor": "Vanilla"})
        assert len(cart) == 2
        assert cart.total_items == 2

    def test_item_id_is_prefixed_with_product_id(self, cart, whey):
        item = cart.add_item(whey, 1)
        assert item.id.startswith("whey-")

    @pytest.mark.parametrize("qty", [0, -1, 1.5, "2", True])
    def test_add_rejects_bad_quantity(self, cart, whey, qty):
        assert cart.add_item(whey, qty) is None
        assert len(cart) == 0

    def test_add_rejects_product_without_price(self, cart):
        assert cart.add_item({"id": "x", "name": "Mystery"}, 1) is None
        assert cart.add_item({"id": "x", "name": "Free", "price": 0}, 1) is None
        assert len(cart) == 0

    def test_add_rejects_non_finite_price(self, cart):
        assert cart.add_item({"id": "x", "name": "Glitch", "price": "NaN"}, 1) is None
        assert cart.add_item({"id": "x", "name": "Glitch", "price": float("inf")}, 1) is None
        assert len(cart) == 0

    def test_remove_is_idempotent(self, cart, whey):
        item = cart.add_item(whey, 1)
        cart.remove_item(item.id)
        cart.remove_item(item.id)
        cart.remove_item("never-existed")
        assert len(cart) == 0

    def test_update_to_zero_removes_line(self, cart, whey, creatine):
        item = cart.add_item(whey, 2)
        cart.add_item(creatine, 1)
        assert cart.update_quantity(item.id, 0) is None
        assert [i.product_id for i in cart.items] == ["creatine"]

    def test_update_quantity(self, cart, whey):
        item = cart.add_item(whey, 1)
        updated = cart.update_quantity(item.id, 4)
        assert updated.quantity == 4
        assert cart.subtotal == Decimal("1000.00")

    def test_update_quantity_needs_an_int(self, cart, whey):
        item = cart.add_item(whey, 1)
        with pytest.raises(ValueError):
            cart.update_quantity(item.id, "3")

    def test_clear_wipes_storage(self, cart, storage, whey):
        cart.add_item(whey, 1)
        assert DEFAULT_CART_KEY in storage
        cart.clear()
        assert len(cart) == 0
        assert DEFAULT_CART_KEY not in storage

    def test_items_cannot_be_mutated_in_place(self, cart, whey):
        item = cart.add_item(whey, 1)
        with pytest.raises(AttributeError):
            item.quantity = 50
        assert cart.items[0].quantity == 1


class TestTotals:
    def test_empty_cart(self, cart):
        assert cart.total == Decimal("0.00")
        assert cart.shipping == Decimal("0.00")

    def test_totals_follow_items(self, cart, whey):
        cart.add_item(whey, 2)
        assert cart.subtotal == Decimal("500.00")
        assert cart.shipping == Decimal("0.00")
        assert cart.tax == Decimal("75.00")
        assert cart.total == Decimal("575.00")

    def test_as_api_reports_free_shipping_remaining(self, cart, creatine):
        cart.add_item(creatine, 1)
        totals = cart.as_api()["totals"]
        assert totals["shipping"] == 99.0
        assert totals["free_shipping_remaining"] == 300.01


class TestPersistence:
    def test_mutations_are_written_through(self, storage, cart, whey):
        cart.add_item(whey, 2, {"size": "1kg"})
        saved = json.loads(storage.read(DEFAULT_CART_KEY))
        assert saved[0]["quantity"] == 2
        assert saved[0]["selected_options"] == {"size": "1kg"}

        reopened = CartStore(storage)
        reopened.load()
        assert reopened.items == cart.items

    def test_one_bad_entry_discards_the_whole_cart(self):
        storage = stored(good_entry("whey-1"), good_entry("creatine-1", price=-10))
        cart = CartStore(storage)
        cart.load()
        assert len(cart) == 0
        assert DEFAULT_CART_KEY not in storage

    @pytest.mark.parametrize("bad", [
        {**good_entry(), "quantity": 0},
        {**good_entry(), "quantity": "2"},
        {**good_entry(), "product": {"name": "Whey", "price": None}},
        {**good_entry(), "product": {"name": "", "price": 10}},
        {**good_entry(), "id": ""},
        "not-an-object",
    ])
    def test_invalid_entries_fail_closed(self, bad):
        storage = stored(good_entry(), bad)
        cart = CartStore(storage)
        cart.load()
        assert cart.items == ()

    @pytest.mark.parametrize("price", [float("nan"), float("inf")])
    def test_non_finite_price_fails_closed(self, price):
        storage = stored(good_entry("whey-1"), good_entry("creatine-1", price=price))
        cart = CartStore(storage)
        cart.load()
        assert cart.items == ()
        assert DEFAULT_CART_KEY not in storage
        assert cart.as_api()["totals"]["total"] == 0.0

    def test_unparseable_json_is_cleared(self):
        storage = MemoryStorage({DEFAULT_CART_KEY: "{not json"})
        cart = CartStore(storage)
        cart.load()
        assert len(cart) == 0
        assert DEFAULT_CART_KEY not in storage

    def test_non_list_payload_is_cleared(self):
        storage = MemoryStorage({DEFAULT_CART_KEY: json.dumps({"items": []})})
        CartStore(storage).load()
        assert DEFAULT_CART_KEY not in storage

    def test_discard_invalid_policy_keeps_good_entries(self):
        storage = stored(good_entry("whey-1"), good_entry("creatine-1", price=0))
        cart = CartStore(storage, restore_policy=discard_invalid)
        cart.load()
        assert [i.id for i in cart.items] == ["whey-1"]

    def test_save_failure_keeps_in_memory_cart(self, whey):
        cart = CartStore(BrokenStorage())
        cart.load()
        item = cart.add_item(whey, 1)
        assert item is not None
        assert cart.subtotal == Decimal("250.00")

    def test_read_failure_starts_empty(self):
        class Unreadable(MemoryStorage):
            def read(self, key):
                raise StorageError("locked")

        cart = CartStore(Unreadable())
        assert cart.load() == ()
        assert cart.is_loading is False


class TestSubscriptions:
    def test_subscribers_see_every_change(self, cart, whey):
        seen = []
        unsubscribe = cart.subscribe(lambda store: seen.append(store.total_items))
        item = cart.add_item(whey, 1)
        cart.update_quantity(item.id, 3)
        unsubscribe()
        cart.clear()
        assert seen == [1, 3]

    def test_failing_listener_does_not_break_the_cart(self, cart, whey):
        def boom(store):
            raise RuntimeError("listener bug")

        cart.subscribe(boom)
        assert cart.add_item(whey, 1) is not None
        assert len(cart) == 1


def test_normalize_options_drops_unknown_and_empty():
    assert normalize_options({"flavor": "Vanilla", "size": "", "colour": "red"}) == {"flavor": "Vanilla"}
    assert normalize_options({}) is None
    assert normalize_options(None) is None


@pytest.mark.parametrize("options", ["vanilla", ["flavor", "Vanilla"], 3])
def test_normalize_options_rejects_non_objects(options):
    with pytest.raises(ValueError):
        normalize_options(options)
