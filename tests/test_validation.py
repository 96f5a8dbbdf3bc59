import pytest

from storefront.services.validation import (
    validate_address, validate_email, validate_payment, validate_phone,
)

from .conftest import CARD, SHIPPING


@pytest.mark.parametrize("email, message", [
    ("", "Email is required"),
    ("not-an-email", "Please enter a valid email address"),
    ("a@b", "Please enter a valid email address"),
    ("someone@example.co.za", None),
])
def test_validate_email(email, message):
    assert validate_email(email) == message


@pytest.mark.parametrize("phone, message", [
    (None, "Phone number is required"),
    ("082 555", "Please enter a valid phone number"),
    ("+27 82 555 0199", None),
    ("(082) 555-0199", None),
])
def test_validate_phone(phone, message):
    assert validate_phone(phone) == message


def test_complete_address_passes():
    assert validate_address(SHIPPING) == {}


def test_missing_fields_are_reported_with_labels():
    errors = validate_address({**SHIPPING, "first_name": "  ", "state": None, "email": "nope"})
    assert errors == {
        "first_name": "First name is required",
        "state": "Province is required",
        "email": "Please enter a valid email address",
    }


def test_address_line_2_is_optional():
    assert "address_line_2" not in validate_address(SHIPPING)


def test_card_requires_all_card_fields():
    errors = validate_payment({"type": "card", "card_number": "4242"})
    assert set(errors) == {"card_expiry", "card_cvc", "card_holder"}
    assert validate_payment(CARD) == {}


def test_only_selected_type_is_checked():
    assert validate_payment({"type": "paypal", "paypal_email": "me@example.com"}) == {}
    assert validate_payment({"type": "eft"}) == {"bank_account": "Bank account is required"}


def test_unknown_payment_type():
    assert validate_payment({"type": "crypto"}) == {"type": "Unsupported payment method"}
