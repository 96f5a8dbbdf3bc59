# storefront/services/validation.py
"""Field-level checks for the checkout forms. Each validator returns {field: message}."""
import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PHONE_DIGITS = 10

# field -> label used in "<label> is required"
REQUIRED_ADDRESS_FIELDS = {
    "first_name": "First name",
    "last_name": "Last name",
    "address_line_1": "Address",
    "city": "City",
    "state": "Province",
    "postal_code": "Postal code",
}

PAYMENT_REQUIRED_FIELDS = {
    "card": {
        "card_number": "Card number is required",
        "card_expiry": "Expiry date is required",
        "card_cvc": "CVC is required",
        "card_holder": "Card holder name is required",
    },
    "paypal": {"paypal_email": "PayPal email is required"},
    "eft": {"bank_account": "Bank account is required"},
}


def _get(obj, name):
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)

def _blank(value) -> bool:
    return value is None or not str(value).strip()


def validate_required(value, label):
    if _blank(value):
        return f"{label} is required"
    return None

def validate_email(email):
    if _blank(email):
        return "Email is required"
    if not EMAIL_RE.match(str(email)):
        return "Please enter a valid email address"
    return None

def validate_phone(phone):
    if _blank(phone):
        return "Phone number is required"
    if len(re.sub(r"\D", "", str(phone))) < MIN_PHONE_DIGITS:
        return "Please enter a valid phone number"
    return None


def validate_address(address) -> dict:
    errors = {}
    for name, label in REQUIRED_ADDRESS_FIELDS.items():
        msg = validate_required(_get(address, name), label)
        if msg:
            errors[name] = msg
    msg = validate_email(_get(address, "email"))
    if msg:
        errors["email"] = msg
    msg = validate_phone(_get(address, "phone"))
    if msg:
        errors["phone"] = msg
    return errors


def validate_payment(payment) -> dict:
    """Only the fields of the selected payment type are checked."""
    required = PAYMENT_REQUIRED_FIELDS.get(_get(payment, "type"))
    if required is None:
        return {"type": "Unsupported payment method"}
    return {name: msg for name, msg in required.items() if _blank(_get(payment, name))}
