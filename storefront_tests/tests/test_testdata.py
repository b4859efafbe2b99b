"""Tests for the canonical fixture data."""
import dataclasses

import pytest

from storefront_tests.config import settings
from storefront_tests.testdata import (
    ADDRESS_CHECK_USER,
    DISCOUNT_CODES,
    GUEST_USER,
    NEW_PASSWORD,
    PAYMENT_DATA,
    PAYMENT_METHODS,
    TEST_PRODUCTS,
    generate_new_user,
    registered_user,
    updated_profile,
)


def test_registered_user_credentials_come_from_settings():
    user = registered_user()
    assert user.email == settings.registered_email
    assert user.login_email == settings.registered_email
    assert user.password == settings.registered_password


def test_registered_user_follows_active_profile():
    profile = dataclasses.replace(settings.profiles()[0], registered_email="other@example.com")
    with settings.use_profile(profile):
        assert registered_user().email == "other@example.com"


def test_fixture_users_are_read_only():
    with pytest.raises(dataclasses.FrozenInstanceError):
        GUEST_USER.first_name = "Changed"


def test_address_check_user_matches_shipping_label_fixture():
    assert ADDRESS_CHECK_USER.full_name == "Test User"
    assert (ADDRESS_CHECK_USER.address1, ADDRESS_CHECK_USER.city, ADDRESS_CHECK_USER.country) == (
        "123 Test St",
        "Lagos",
        "Nigeria",
    )


def test_generated_users_are_unique():
    first, second = generate_new_user(), generate_new_user()
    assert first.email != second.email
    assert first.email.endswith("@example.com")
    assert len(first.password) >= 6


def test_updated_profile_changes_identity_fields():
    base = registered_user()
    profile = updated_profile(base)
    assert (profile.first_name, profile.last_name, profile.gender) == ("Jane", "Smith", "Female")
    assert profile.email != base.email
    assert profile.password == base.password


def test_payment_data_defaults():
    assert PAYMENT_DATA.credit_card == "Visa"
    assert PAYMENT_DATA.card_number == "4242424242424242"
    assert len(PAYMENT_METHODS) == 4
    assert {product.name for product in TEST_PRODUCTS} == {"book", "laptop", "shirt"}


def test_registered_user_for_each_configured_profile(active_profile):
    user = registered_user()
    assert settings.base_url == active_profile.base_url
    assert (user.email, user.password) == (active_profile.registered_email, active_profile.registered_password)
    assert user.country == "Nicaragua"


def test_discount_fixtures_name_one_percentage_and_one_fixed_code():
    assert DISCOUNT_CODES["percentage"]["code"] in DISCOUNT_CODES["valid"]
    assert not set(DISCOUNT_CODES["invalid"]) & set(DISCOUNT_CODES["valid"])
    assert NEW_PASSWORD.new == NEW_PASSWORD.confirm
