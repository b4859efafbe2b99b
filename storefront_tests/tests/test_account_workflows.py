"""Login, registration, password recovery and account management against the mock storefront."""
import dataclasses
import re

import pytest
from playwright.async_api import expect

from storefront_tests import workflows
from storefront_tests.testdata import (
    INVALID_EMAILS,
    NEW_PASSWORD,
    WEAK_PASSWORDS,
    generate_new_user,
    registered_user,
    updated_profile,
)

pytestmark = pytest.mark.asyncio


async def test_login_and_logout(page):
    user = registered_user()

    await workflows.login(page, user)
    await expect(page.locator("a[href='/logout']")).to_be_visible()

    await workflows.logout(page)
    await expect(page.locator(".header-links .account")).to_have_count(0)


async def test_login_with_wrong_password_shows_error(page):
    await page.goto("/login")
    await page.get_by_label(re.compile(r"email", re.I)).fill(registered_user().email)
    await page.get_by_label(re.compile(r"password", re.I)).fill("wrong-password")
    await page.get_by_role("button", name=re.compile(r"log in", re.I)).click()
    await page.wait_for_load_state("networkidle")

    assert "The credentials provided are incorrect" in await workflows.get_validation_errors(page)


async def test_register_new_user(page):
    user = generate_new_user()

    assert await workflows.register_user(page, user) is True
    await expect(page.locator(".header-links li .account")).to_have_text(user.email)


async def test_register_existing_email_is_rejected(page):
    user = generate_new_user()
    assert await workflows.register_user(page, user)
    await workflows.logout(page)

    assert await workflows.register_user(page, user) is False
    assert "The specified email already exists" in await workflows.get_validation_errors(page)


@pytest.mark.parametrize("password", WEAK_PASSWORDS)
async def test_register_rejects_weak_passwords(page, password):
    user = generate_new_user(password=password)

    assert await workflows.register_user(page, user) is False
    assert "The password should have at least 6 characters." in await workflows.get_validation_errors(page)


@pytest.mark.parametrize("email", INVALID_EMAILS)
async def test_register_rejects_invalid_emails(page, email):
    user = dataclasses.replace(generate_new_user(), email=email)

    assert await workflows.register_user(page, user) is False
    assert "Wrong email" in await workflows.get_validation_errors(page)


async def test_recover_password(page):
    assert await workflows.recover_password(page, registered_user().email) == (
        "Email with instructions has been sent to you."
    )
    assert await workflows.recover_password(page, "nobody@example.com") == "Email not found."
    assert await workflows.recover_password(page, "notanemail") == "Wrong email"


async def test_update_customer_info(page):
    user = registered_user()
    await workflows.login(page, user)
    profile = updated_profile(user)

    await workflows.update_customer_info(page, profile)

    await page.goto("/customer/info")
    assert await page.locator("#FirstName").input_value() == "Jane"
    assert await page.locator("#LastName").input_value() == "Smith"
    await expect(page.locator("#gender-female")).to_be_checked()

    await workflows.logout(page)
    await workflows.login(page, profile)


async def test_change_password(page):
    user = registered_user()
    await workflows.login(page, user)

    result = await workflows.change_password(page, dataclasses.replace(NEW_PASSWORD, current=user.password))
    assert result == "Password was changed"

    await workflows.logout(page)
    await workflows.login(page, dataclasses.replace(user, password=NEW_PASSWORD.new))


async def test_change_password_with_wrong_current_password(page):
    await workflows.login(page, registered_user())

    assert NEW_PASSWORD.current != registered_user().password
    result = await workflows.change_password(page, NEW_PASSWORD)

    assert result == "Old password doesn't match"


async def test_order_history_requires_login(page):
    await page.goto("/customer/orders")
    await expect(page).to_have_url(re.compile(r"/login\?returnUrl="))
