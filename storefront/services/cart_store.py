# storefront/services/cart_store.py
"""
The shopping cart working set for one session.

CartStore owns the in-memory list of LineItems and is the only writer of the
durable copy kept in a CartStorage. Every mutation replaces the list (items
are frozen), writes the full list back to storage and then notifies
subscribers. Storage failures on save are logged and swallowed: the in-memory
cart stays authoritative for the rest of the session.

Restoring from storage goes through a restore policy. The default,
`fail_closed`, discards the whole stored cart if any entry is invalid.
"""
from __future__ import annotations

import json
import logging
import math
import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Callable, Iterable

from ..errors import CorruptCartError, StorageError
from ..utils.money import D, money_float
from ..utils.observers import Observable
from . import pricing
from .pricing import DEFAULT_RULES, PricingRules

log = logging.getLogger(__name__)

DEFAULT_CART_KEY = "apex-cart"
OPTION_KEYS = ("flavor", "size")


def normalize_options(options) -> dict | None:
    if not options:
        return None
    if not isinstance(options, dict):
        raise ValueError("options must be an object")
    cleaned = {k: str(options[k]) for k in OPTION_KEYS if options.get(k) not in (None, "")}
    return cleaned or None

def _field(product, name):
    if isinstance(product, dict):
        return product.get(name)
    return getattr(product, name, None)


@dataclass(frozen=True)
class ProductSnapshot:
    """The product fields a cart line carries around with it."""

    id: str
    name: str
    price: Decimal
    extra: dict = field(default_factory=dict)

    @classmethod
    def of(cls, product) -> "ProductSnapshot | None":
        if isinstance(product, ProductSnapshot):
            return product
        get = lambda k: _field(product, k)
        pid, name, price = get("id"), get("name"), get("price")
        if not pid or not name or price is None or isinstance(price, bool):
            return None
        try:
            price = D(price)
        except (TypeError, ValueError, ArithmeticError):
            return None
        if not price.is_finite():
            return None
        extra = {}
        for k in ("image_url", "category"):
            if get(k) is not None:
                extra[k] = get(k)
        return cls(id=str(pid), name=str(name), price=price, extra=extra)

    def to_payload(self):
        return {"id": self.id, "name": self.name, "price": money_float(self.price), **self.extra}


@dataclass(frozen=True)
class LineItem:
    id: str
    product_id: str
    quantity: int
    product: ProductSnapshot
    selected_options: dict | None = None

    @property
    def unit_price(self) -> Decimal:
        return self.product.price

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def key(self):
        return self.product_id, tuple(sorted((self.selected_options or {}).items()))

    def to_payload(self):
        entry = {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "product": self.product.to_payload(),
        }
        if self.selected_options:
            entry["selected_options"] = dict(self.selected_options)
        return entry

    @classmethod
    def from_payload(cls, entry) -> "LineItem":
        product = dict(entry["product"])
        snapshot = ProductSnapshot(
            id=str(product.pop("id", entry["product_id"])),
            name=product.pop("name"),
            price=D(product.pop("price")),
            extra=product,
        )
        return cls(
            id=entry["id"],
            product_id=entry["product_id"],
            quantity=entry["quantity"],
            product=snapshot,
            selected_options=normalize_options(entry.get("selected_options")),
        )


def new_item_id(product_id: str) -> str:
    return f"{product_id}-{uuid.uuid4().hex[:12]}"


# ---- restore policies ------------------------------------------------------

def _is_positive_int(v) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and v > 0

def validate_entry(entry) -> list[str]:
    """Return the problems found in one stored cart entry (empty list = valid)."""
    if not isinstance(entry, dict):
        return ["entry is not an object"]
    problems = []
    if not isinstance(entry.get("id"), str) or not entry["id"]:
        problems.append("missing id")
    if not isinstance(entry.get("product_id"), str) or not entry["product_id"]:
        problems.append("missing product_id")
    if not _is_positive_int(entry.get("quantity")):
        problems.append("quantity must be a positive integer")
    product = entry.get("product")
    if not isinstance(product, dict):
        problems.append("missing product")
    else:
        if not isinstance(product.get("name"), str) or not product["name"].strip():
            problems.append("product has no name")
        price = product.get("price")
        if (isinstance(price, bool) or not isinstance(price, (int, float))
                or not math.isfinite(price) or price <= 0):
            problems.append("product price must be a positive number")
    options = entry.get("selected_options")
    if options is not None and not isinstance(options, dict):
        problems.append("selected_options must be an object")
    return problems

def fail_closed(entries) -> list[LineItem]:
    """Trust all entries or none: raise CorruptCartError on the first bad one."""
    for index, entry in enumerate(entries):
        problems = validate_entry(entry)
        if problems:
            raise CorruptCartError(index, problems)
    return [LineItem.from_payload(e) for e in entries]

def discard_invalid(entries) -> list[LineItem]:
    """Keep the valid entries and drop the rest."""
    kept = []
    for index, entry in enumerate(entries):
        problems = validate_entry(entry)
        if problems:
            log.warning("dropping stored cart entry %d: %s", index, ", ".join(problems))
            continue
        kept.append(LineItem.from_payload(entry))
    return kept


# ---- store -----------------------------------------------------------------

class CartStore(Observable):
    def __init__(
        self,
        storage,
        *,
        key: str = DEFAULT_CART_KEY,
        rules: PricingRules = DEFAULT_RULES,
        restore_policy: Callable[[list], list[LineItem]] = fail_closed,
    ) -> None:
        super().__init__()
        self.storage = storage
        self.key = key
        self.rules = rules
        self.restore_policy = restore_policy
        self.is_loading = False
        self._items: list[LineItem] = []

    # ---- read side ----
    @property
    def items(self) -> tuple[LineItem, ...]:
        return tuple(self._items)

    def __len__(self):
        return len(self._items)

    def get_item(self, item_id: str) -> LineItem | None:
        return next((i for i in self._items if i.id == item_id), None)

    @property
    def total_items(self) -> int:
        return sum(i.quantity for i in self._items if _is_positive_int(i.quantity))

    @property
    def subtotal(self) -> Decimal:
        return pricing.subtotal(self._items)

    @property
    def shipping(self) -> Decimal:
        return pricing.shipping(self.subtotal, empty=not self._items, rules=self.rules)

    @property
    def tax(self) -> Decimal:
        return pricing.tax(self.subtotal, self.rules)

    @property
    def total(self) -> Decimal:
        return pricing.total(self._items, self.rules)

    @property
    def summary(self) -> pricing.OrderSummary:
        return pricing.summarize(self._items, self.rules)

    def to_payload(self) -> list[dict]:
        return [i.to_payload() for i in self._items]

    def as_api(self):
        return {
            "items": [
                {**i.to_payload(), "line_total": money_float(i.line_total)} for i in self._items
            ],
            "total_items": self.total_items,
            "totals": {
                **self.summary.as_api(),
                "free_shipping_remaining": money_float(
                    pricing.free_shipping_remaining(self.subtotal, self.rules)
                ),
            },
        }

    # ---- mutations ----
    def add_item(self, product, quantity: int, options=None) -> LineItem | None:
        snapshot = ProductSnapshot.of(product)
        if snapshot is None or snapshot.price <= 0:
            log.warning("add_item rejected: product without id/name/price: %r", product)
            return None
        if not _is_positive_int(quantity):
            log.warning("add_item rejected: invalid quantity %r for product %s", quantity, snapshot.id)
            return None

        options = normalize_options(options)
        probe = LineItem(id="", product_id=snapshot.id, quantity=quantity,
                         product=snapshot, selected_options=options)
        items = list(self._items)
        for index, existing in enumerate(items):
            if existing.key == probe.key:
                items[index] = replace(existing, quantity=existing.quantity + quantity)
                self._commit(items)
                return items[index]

        added = replace(probe, id=new_item_id(snapshot.id))
        items.append(added)
        self._commit(items)
        return added

    def remove_item(self, item_id: str) -> None:
        self._commit([i for i in self._items if i.id != item_id])

    def update_quantity(self, item_id: str, quantity: int) -> LineItem | None:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValueError("quantity must be an integer")
        if quantity <= 0:
            self.remove_item(item_id)
            return None
        items = [replace(i, quantity=quantity) if i.id == item_id else i for i in self._items]
        self._commit(items)
        return self.get_item(item_id)

    def clear(self) -> None:
        self._items = []
        self._wipe()
        self._notify()

    # ---- persistence ----
    def load(self) -> tuple[LineItem, ...]:
        self.is_loading = True
        try:
            raw = self.storage.read(self.key)
        except StorageError:
            log.exception("could not read stored cart %s; starting empty", self.key)
            self._items = []
        else:
            self._items = self._restore(raw)
        finally:
            self.is_loading = False
        log.debug("cart %s loaded: %s", self.key, [(i.product.name, i.quantity) for i in self._items])
        self._notify()
        return self.items

    def _restore(self, raw) -> list[LineItem]:
        if raw is None:
            return []
        try:
            entries = json.loads(raw)
        except ValueError:
            log.warning("stored cart %s is not valid JSON; clearing it", self.key)
            self._wipe()
            return []
        if not isinstance(entries, list):
            log.warning("stored cart %s is not a list; clearing it", self.key)
            self._wipe()
            return []
        try:
            return self.restore_policy(entries)
        except CorruptCartError as e:
            log.warning("clearing corrupted cart %s: %s", self.key, e)
            self._wipe()
            return []

    def _commit(self, items: Iterable[LineItem]) -> None:
        self._items = list(items)
        self._save()
        self._notify()

    def _save(self) -> None:
        try:
            self.storage.write(self.key, json.dumps(self.to_payload()))
        except StorageError:
            log.exception("could not save cart %s; keeping in-memory copy", self.key)

    def _wipe(self) -> None:
        try:
            self.storage.delete(self.key)
        except StorageError:
            log.exception("could not clear stored cart %s", self.key)

    # ---- server mirror (one-way, best effort) ----
    def sync_to_server(self, mirror, user_id) -> bool:
        valid = [i for i in self._items if pricing.is_billable(i)]
        try:
            mirror.push(user_id, valid)
        except StorageError:
            log.exception("cart sync for user %s failed", user_id)
            return False
        log.info("synced %d cart lines for user %s", len(valid), user_id)
        return True

    def load_from_server(self, mirror, user_id) -> bool:
        try:
            items = mirror.pull(user_id)
        except StorageError:
            log.exception("loading server cart for user %s failed", user_id)
            return False
        self._commit(items)
        return True
