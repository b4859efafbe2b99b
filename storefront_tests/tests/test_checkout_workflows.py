"""Checkout pipeline against the mock storefront."""
import re

import pytest
from playwright.async_api import expect

from storefront_tests import workflows
from storefront_tests.checkout import CheckoutFlavor, PaymentInfoKind
from storefront_tests.errors import FixtureError, UnexpectedPaymentMethodError
from storefront_tests.mock_storefront import enable_payment_method, set_pickup_in_store
from storefront_tests.testdata import (
    ADDRESS_CHECK_USER,
    GUEST_USER,
    PAYMENT_DATA,
    UserProfile,
    registered_user,
)

pytestmark = [pytest.mark.asyncio, pytest.mark.checkout]


async def _start_guest_checkout(page, product: str = "book") -> CheckoutFlavor:
    await workflows.add_product_to_cart(page, product)
    await workflows.proceed_to_checkout(page)
    return await workflows.checkout_as_guest(page)


@pytest.mark.parametrize(
    "payment_method,label,fee,kind",
    [
        ("Payments.CashOnDelivery", "Cash On Delivery (COD)", 7.0, PaymentInfoKind.INFORMATIONAL),
        ("Payments.CheckMoneyOrder", "Check / Money Order", 5.0, PaymentInfoKind.INFORMATIONAL),
        ("Payments.Manual", "Credit Card", 0.0, PaymentInfoKind.CREDIT_CARD),
        ("Payments.PurchaseOrder", "Purchase Order", 0.0, PaymentInfoKind.PURCHASE_ORDER),
    ],
)
async def test_guest_checkout_charges_fee_per_payment_method(page, payment_method, label, fee, kind):
    await workflows.add_product_to_cart(page, "book")

    session = await workflows.complete_checkout(page, GUEST_USER, "Ground", payment_method, PAYMENT_DATA)

    assert session.flavor is CheckoutFlavor.GUEST
    assert session.payment_method_label == label
    assert session.payment_info_kind is kind
    assert session.fee == pytest.approx(fee)
    assert session.subtotal == pytest.approx(10.0)
    assert session.cart_total == pytest.approx(10.0)
    assert session.total == pytest.approx(10.0 + fee)

    assert await workflows.get_order_number(page) == "1001"
    await workflows.confirmation_message(page)
    assert await workflows.get_all_cart_item_qty(page) == 0


async def test_billing_address_becomes_shipping_label(page):
    flavor = await _start_guest_checkout(page)
    assert flavor is CheckoutFlavor.GUEST

    billed = await workflows.fill_billing_address(page, ADDRESS_CHECK_USER)

    assert billed is ADDRESS_CHECK_USER
    option = page.locator("#shipping-address-select option").first
    await expect(option).to_contain_text("Test User, 123 Test St, Lagos")
    await workflows.validate_shipping_address(page, billed)
    await expect(page).to_have_url(re.compile(r"/checkout/shippingmethod$"))


async def test_validate_shipping_address_rejects_other_user(page):
    await _start_guest_checkout(page)
    await workflows.fill_billing_address(page, ADDRESS_CHECK_USER)

    with pytest.raises(AssertionError, match="Guest"):
        await workflows.validate_shipping_address(page, GUEST_USER)


async def test_billing_country_change_waits_for_state_reload(page):
    await _start_guest_checkout(page)
    user = UserProfile(
        first_name="Sam",
        last_name="Buyer",
        email="sam.buyer@example.com",
        country="United States",
        state="California",
        city="Sacramento",
        address1="1 Capitol Mall",
        zip="95814",
        phone="555-0100",
    )

    await workflows.fill_billing_address(page, user)

    await expect(page.locator("#shipping-address-select option").first).to_contain_text("United States")


async def test_fill_billing_address_requires_user():
    with pytest.raises(FixtureError):
        await workflows.fill_billing_address(None, None)


async def test_unknown_shipping_method_falls_back_to_first_option(page):
    await _start_guest_checkout(page)
    await workflows.fill_billing_address(page, GUEST_USER)
    await workflows.validate_shipping_address(page, GUEST_USER)

    chosen = await workflows.select_shipping_method(page, "Teleportation")

    assert chosen == "Ground___Shipping.FixedRate"
    await expect(page).to_have_url(re.compile(r"/checkout/paymentmethod$"))


async def test_shipping_method_substring_match(page):
    await _start_guest_checkout(page)
    await workflows.fill_billing_address(page, GUEST_USER)
    await workflows.validate_shipping_address(page, GUEST_USER)

    assert await workflows.select_shipping_method(page, "next day") == "Next Day Air___Shipping.FixedRate"


async def test_unoffered_payment_method_keeps_store_default(page):
    await _start_guest_checkout(page)
    await workflows.fill_billing_address(page, GUEST_USER)
    await workflows.validate_shipping_address(page, GUEST_USER)
    await workflows.select_shipping_method(page, "Ground")

    assert await workflows.fill_payment_method(page, "Payments.Bitcoin") is None
    assert await workflows.resolve_payment_info(page) is PaymentInfoKind.INFORMATIONAL


async def test_in_store_pickup_skips_shipping_method(page):
    await workflows.add_product_to_cart(page, "laptop")

    session = await workflows.complete_checkout(
        page, GUEST_USER, "Ground", "Payments.PurchaseOrder", PAYMENT_DATA, in_store_pickup=True
    )

    assert session.shipping == 0
    assert session.total == pytest.approx(1590.0)
    assert await workflows.get_order_number(page) == "1001"


async def test_pickup_request_on_store_without_pickup_ships_instead(page, mock_storefront):
    set_pickup_in_store(False)
    await _start_guest_checkout(page)
    await workflows.fill_billing_address(page, GUEST_USER)

    assert await workflows.validate_shipping_address(page, GUEST_USER, in_store_pickup=True) is False
    await expect(page).to_have_url(re.compile(r"/checkout/shippingmethod$"))


async def test_complete_checkout_with_pickup_unavailable_still_places_order(page, mock_storefront):
    set_pickup_in_store(False)
    await workflows.add_product_to_cart(page, "laptop")

    session = await workflows.complete_checkout(
        page, GUEST_USER, "Next Day Air", "Payments.PurchaseOrder", PAYMENT_DATA, in_store_pickup=True
    )

    assert session.total == pytest.approx(1590.0)
    assert await workflows.get_order_number(page) == "1001"


async def test_discount_is_part_of_the_total(page):
    await workflows.add_product_to_cart(page, "Fiction")
    await workflows.apply_discount_code(page, "SAVE5")

    session = await workflows.complete_checkout(page, GUEST_USER, "Ground", "Payments.CashOnDelivery", PAYMENT_DATA)

    assert session.discount == pytest.approx(5.0)
    assert session.total == pytest.approx(24.0 - 5.0 + 7.0)


async def test_unexpected_payment_method_is_fatal(page, mock_storefront):
    enable_payment_method("Payments.Bitcoin", "Bitcoin", fee=1.0, info="Pay with crypto")
    await workflows.add_product_to_cart(page, "book")

    with pytest.raises(UnexpectedPaymentMethodError) as excinfo:
        await workflows.complete_checkout(page, GUEST_USER, "Ground", "Payments.Bitcoin", PAYMENT_DATA)

    assert excinfo.value.label == "Bitcoin"
    # The order was never confirmed.
    await expect(page).to_have_url(re.compile(r"/checkout/confirm$"))


async def test_get_order_number_is_none_without_details(page):
    await page.set_content("<ul class='details'><li></li></ul>")
    assert await workflows.get_order_number(page) is None

    await page.set_content("<div>Thank you</div>")
    assert await workflows.get_order_number(page) is None


async def test_registered_checkout_shows_up_in_order_history(page):
    user = registered_user()
    await workflows.login(page, user)
    await workflows.add_product_to_cart(page, "shirt")

    session = await workflows.complete_checkout(
        page, user, "Next Day Air", "Payments.CheckMoneyOrder", PAYMENT_DATA
    )
    order_number = await workflows.get_order_number(page)

    assert session.flavor is CheckoutFlavor.REGISTERED
    assert session.total == pytest.approx(15.0 + 5.0)
    assert order_number is not None
    assert await workflows.get_latest_order_number(page) == order_number


async def test_proceed_to_checkout_requires_terms_checkbox(page):
    await page.goto("/cart")
    with pytest.raises(AssertionError):
        await workflows.proceed_to_checkout(page)
