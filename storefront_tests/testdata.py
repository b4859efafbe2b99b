"""Canonical fixture data for the storefront suites.

Every suite imports its users, products and payment details from here so there
is exactly one definition of each. Registered-user credentials are taken from
configuration (``UI_REGISTERED_EMAIL`` / ``UI_REGISTERED_PASSWORD``) rather
than hardcoded, since they depend on which account exists on the target store.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from storefront_tests.config import settings


@dataclass(frozen=True)
class UserProfile:
    first_name: str
    last_name: str
    email: str = ""
    password: str = ""
    country: str = ""
    city: str = ""
    address1: str = ""
    zip: str = ""
    phone: str = ""
    state: str = ""
    gender: str = ""

    @property
    def login_email(self) -> str:
        return self.email

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class Product:
    name: str
    expected_price: float
    category: str


@dataclass(frozen=True)
class PaymentData:
    credit_card: str = "Visa"
    card_holder: str = "John Doe"
    card_number: str = "4242424242424242"
    expiry_month: str = "12"
    expiry_year: str = "2030"
    card_code: str = "123"
    purchase_order_number: str = "PO12345"


@dataclass(frozen=True)
class PasswordChange:
    current: str
    new: str
    confirm: str


TEST_PRODUCTS: List[Product] = [
    Product(name="book", expected_price=10, category="books"),
    Product(name="laptop", expected_price=1590, category="computers"),
    Product(name="shirt", expected_price=15, category="apparel-shoes"),
]

DISCOUNT_CODES: Dict[str, object] = {
    "valid": ["SAVE10", "WELCOME5", "DISCOUNT20"],
    "invalid": ["EXPIRED123", "INVALID456"],
    "percentage": {"code": "SAVE10", "discount": 10},
    "fixed": {"code": "SAVE5", "discount": 5},
}

QUANTITIES: List[int] = [1, 2, 5, 10]

LOCATIONS: Dict[str, str] = {
    "domestic": "United States",
    "international": "Nigeria",
}

# Values of the payment method radios on the checkout page.
PAYMENT_METHODS: List[str] = [
    "Payments.CashOnDelivery",
    "Payments.CheckMoneyOrder",
    "Payments.Manual",
    "Payments.PurchaseOrder",
]

# Values of the shipping option radios on the checkout page.
SHIPPING_METHODS: List[str] = [
    "Ground___Shipping.FixedRate",
    "Next Day Air___Shipping.FixedRate",
    "2nd Day Air___Shipping.FixedRate",
]

PAYMENT_DATA = PaymentData()

GUEST_USER = UserProfile(
    first_name="Guest",
    last_name="User",
    email="guest@user.com",
    country="Nigeria",
    city="Lagos",
    address1="123 Main St",
    zip="12345",
    phone="123-456-7890",
)

# Address used by the shipping-label checks.
ADDRESS_CHECK_USER = UserProfile(
    first_name="Test",
    last_name="User",
    email="test.user@example.com",
    country="Nigeria",
    city="Lagos",
    address1="123 Test St",
    zip="12345",
    phone="123-456-7890",
)

NEW_PASSWORD = PasswordChange(current="aaaaaa", new="bbbbbb", confirm="bbbbbb")

WEAK_PASSWORDS: List[str] = ["123", "abc", "pass", "12345"]

INVALID_EMAILS: List[str] = [
    "notanemail",
    "missing@",
    "@domain.com",
    "spaces in@email.com",
    "double@@domain.com",
]

SQL_INJECTION_PAYLOADS: List[str] = [
    "' OR '1'='1",
    "'; DROP TABLE users; --",
    "' UNION SELECT * FROM users --",
    "admin'--",
    "' OR 1=1 --",
]

XSS_PAYLOADS: List[str] = [
    '<script>alert("XSS")</script>',
    '<img src="x" onerror="alert(1)">',
    "<svg/onload=alert(1)>",
    '<iframe src="javascript:alert(1)"></iframe>',
]


def registered_user() -> UserProfile:
    """The registered account for the active profile."""
    return UserProfile(
        first_name="Test",
        last_name="User",
        email=settings.registered_email,
        password=settings.registered_password,
        country="Nicaragua",
        city="Lagos",
        address1="114 Aba Road",
        zip="12345",
        phone="123-456-7890",
    )


def generate_new_user(prefix: str = "new", password: str = "janesmith123") -> UserProfile:
    """A unique, not yet registered user."""
    suffix = secrets.token_hex(4)
    return UserProfile(
        first_name="Jane",
        last_name="Smith",
        email=f"{prefix}_{suffix}@example.com",
        password=password,
        gender="Female",
    )


def updated_profile(base: Optional[UserProfile] = None) -> UserProfile:
    """Profile edits applied by the account-management suite."""
    return replace(
        base or registered_user(),
        first_name="Jane",
        last_name="Smith",
        email=f"test{secrets.token_hex(4)}@test.com",
        gender="Female",
    )
