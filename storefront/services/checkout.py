# storefront/services/checkout.py
"""
Three-step checkout: Shipping -> Billing -> Payment -> Submitted.

Forward moves are gated on the current step's validator; backward moves are
never blocked. Billing can alias Shipping ("use same address"): enabling the
flag copies the shipping address, and while it stays on every shipping edit
is copied again. Turning it off keeps the last copied values as an
independent billing address.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, replace
from enum import IntEnum

from ..errors import CheckoutError
from ..utils.observers import Observable
from .pricing import OrderSummary
from .validation import validate_address, validate_payment

log = logging.getLogger(__name__)

DEFAULT_COUNTRY = "South Africa"
PAYMENT_TYPES = ("card", "paypal", "eft")


class CheckoutStep(IntEnum):
    SHIPPING = 1
    BILLING = 2
    PAYMENT = 3
    SUBMITTED = 4


@dataclass(frozen=True)
class Identity:
    id: int
    email: str = ""


@dataclass(frozen=True)
class Address:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address_line_1: str = ""
    address_line_2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = DEFAULT_COUNTRY

    @classmethod
    def field_names(cls):
        return tuple(f.name for f in fields(cls))

    def merged(self, values: dict) -> "Address":
        unknown = set(values) - set(self.field_names())
        if unknown:
            raise ValueError(f"unknown address field(s): {', '.join(sorted(unknown))}")
        return replace(self, **{k: ("" if v is None else str(v)) for k, v in values.items()})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def as_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class PaymentMethod:
    type: str = "card"
    card_holder: str | None = None
    card_number: str | None = None
    card_expiry: str | None = None
    card_cvc: str | None = None
    paypal_email: str | None = None
    bank_account: str | None = None

    def merged(self, values: dict) -> "PaymentMethod":
        known = {f.name for f in fields(self)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"unknown payment field(s): {', '.join(sorted(unknown))}")
        if "type" in values and values["type"] not in PAYMENT_TYPES:
            raise ValueError(f"payment type must be one of {', '.join(PAYMENT_TYPES)}")
        return replace(self, **{k: (None if v is None else str(v)) for k, v in values.items()})

    def describe(self) -> dict:
        """What may be stored with an order: never the full card number or the CVC."""
        if self.type == "card":
            digits = "".join(ch for ch in (self.card_number or "") if ch.isdigit())
            return {"type": "card", "card_holder": self.card_holder, "last4": digits[-4:] or None}
        if self.type == "paypal":
            return {"type": "paypal", "paypal_email": self.paypal_email}
        account = self.bank_account or ""
        return {"type": self.type, "bank_account": ("*" * max(len(account) - 4, 0)) + account[-4:]}


@dataclass(frozen=True)
class CheckoutSnapshot:
    shipping_address: Address
    billing_address: Address
    use_same_address: bool
    payment_method: PaymentMethod
    summary: OrderSummary


class CheckoutStateMachine(Observable):
    def __init__(self, cart, *, default_country: str = DEFAULT_COUNTRY) -> None:
        super().__init__()
        self.cart = cart
        self.default_country = default_country
        self.shipping_address = Address(country=default_country)
        self.billing_address = Address(country=default_country)
        self.payment_method = PaymentMethod()
        self.use_same_address = True
        self.current_step = CheckoutStep.SHIPPING
        self.errors: dict[str, dict[str, str]] = {}
        self.is_busy = False
        self.order_id: str | None = None

    # ---- derived ----
    @property
    def summary(self) -> OrderSummary:
        return self.cart.summary

    @property
    def is_submitted(self) -> bool:
        return self.current_step == CheckoutStep.SUBMITTED

    @property
    def resolved_billing(self) -> Address:
        return self.shipping_address if self.use_same_address else self.billing_address

    def snapshot(self) -> CheckoutSnapshot:
        return CheckoutSnapshot(
            shipping_address=self.shipping_address,
            billing_address=self.resolved_billing,
            use_same_address=self.use_same_address,
            payment_method=self.payment_method,
            summary=self.cart.summary,
        )

    # ---- form edits ----
    def update_shipping(self, **values) -> None:
        self._require_open()
        self.shipping_address = self.shipping_address.merged(values)
        self._clear_field_errors("shipping", values)
        if self.use_same_address:
            self.billing_address = self.shipping_address
            self._clear_field_errors("billing", values)
        self._notify()

    def update_billing(self, **values) -> None:
        self._require_open()
        self.billing_address = self.billing_address.merged(values)
        self._clear_field_errors("billing", values)
        self._notify()

    def update_payment(self, **values) -> None:
        self._require_open()
        previous_type = self.payment_method.type
        self.payment_method = self.payment_method.merged(values)
        if self.payment_method.type != previous_type:
            self.errors.pop("payment", None)
        else:
            self._clear_field_errors("payment", values)
        self._notify()

    def set_use_same_address(self, enabled: bool) -> None:
        self._require_open()
        self.use_same_address = bool(enabled)
        if self.use_same_address:
            self.billing_address = self.shipping_address
            self.errors.pop("billing", None)
        self._notify()

    def prefill(self, identity: Identity, profile: dict | None) -> bool:
        """Fill both addresses from the customer's saved profile."""
        if identity is None or not profile:
            return False
        self._require_open()
        address = Address(
            first_name=profile.get("first_name") or "",
            last_name=profile.get("last_name") or "",
            email=identity.email or "",
            phone=profile.get("phone") or "",
            address_line_1=profile.get("address_line_1") or "",
            address_line_2=profile.get("address_line_2") or "",
            city=profile.get("city") or "",
            state=profile.get("state") or "",
            postal_code=profile.get("postal_code") or "",
            country=profile.get("country") or self.default_country,
        )
        self.shipping_address = address
        self.billing_address = address
        self._notify()
        return True

    def clear_errors(self) -> None:
        self.errors = {}
        self._notify()

    # ---- step transitions ----
    def validate_current_step(self) -> bool:
        group, step_errors = self._validate(self.current_step)
        self.errors = {group: step_errors} if step_errors else {}
        self._notify()
        return not step_errors

    def advance(self) -> bool:
        """Validate the current step and move forward on success. Returns whether it validated."""
        if self.is_submitted:
            return False
        if not self.validate_current_step():
            log.debug("checkout step %s blocked: %s", self.current_step.name, self.errors)
            return False
        self.current_step = CheckoutStep(min(self.current_step + 1, CheckoutStep.PAYMENT))
        self._notify()
        return True

    def retreat(self) -> bool:
        if self.current_step not in (CheckoutStep.BILLING, CheckoutStep.PAYMENT):
            return False
        self.current_step = CheckoutStep(self.current_step - 1)
        self.errors = {}
        self._notify()
        return True

    def mark_submitted(self, order_id: str) -> None:
        if self.current_step != CheckoutStep.PAYMENT:
            raise CheckoutError("not_at_payment", "Checkout is not at the payment step")
        self.current_step = CheckoutStep.SUBMITTED
        self.order_id = order_id
        self.errors = {}
        self._notify()

    def _validate(self, step):
        if step == CheckoutStep.SHIPPING:
            return "shipping", validate_address(self.shipping_address)
        if step == CheckoutStep.BILLING:
            # shipping validation already covered the aliased values
            if self.use_same_address:
                return "billing", {}
            return "billing", validate_address(self.billing_address)
        if step == CheckoutStep.PAYMENT:
            return "payment", validate_payment(self.payment_method)
        return "general", {}

    # ---- helpers ----
    def _require_open(self):
        if self.is_submitted:
            raise CheckoutError("checkout_closed", "Order already submitted")

    def _clear_field_errors(self, group: str, edited) -> None:
        group_errors = self.errors.get(group)
        if not group_errors:
            return
        for name in edited:
            group_errors.pop(name, None)
        if not group_errors:
            del self.errors[group]

    # ---- session (de)serialisation; card details are never included ----
    def to_state(self) -> dict:
        return {
            "current_step": int(self.current_step),
            "use_same_address": self.use_same_address,
            "shipping_address": self.shipping_address.as_dict(),
            "billing_address": self.billing_address.as_dict(),
            "payment_type": self.payment_method.type,
            "errors": self.errors,
            "order_id": self.order_id,
        }

    @classmethod
    def from_state(cls, cart, state: dict | None, *, default_country: str = DEFAULT_COUNTRY):
        machine = cls(cart, default_country=default_country)
        if not state:
            return machine
        machine.current_step = CheckoutStep(state.get("current_step", CheckoutStep.SHIPPING))
        machine.use_same_address = bool(state.get("use_same_address", True))
        machine.shipping_address = machine.shipping_address.merged(state.get("shipping_address") or {})
        machine.billing_address = machine.billing_address.merged(state.get("billing_address") or {})
        machine.payment_method = PaymentMethod(type=state.get("payment_type") or "card")
        machine.errors = {g: dict(e) for g, e in (state.get("errors") or {}).items()}
        machine.order_id = state.get("order_id")
        return machine

    def as_api(self):
        return {
            "current_step": int(self.current_step),
            "step": self.current_step.name.lower(),
            "use_same_address": self.use_same_address,
            "shipping_address": self.shipping_address.as_dict(),
            "billing_address": self.resolved_billing.as_dict(),
            "payment_method": self.payment_method.describe(),
            "errors": self.errors,
            "is_busy": self.is_busy,
            "order_id": self.order_id,
            "summary": self.summary.as_api(),
        }
