"""Reusable storefront workflows.

Each helper drives one Playwright page through one logical step of the Demo
Web Shop and returns whatever later steps or assertions need. Helpers keep no
state of their own; the cart and checkout live in the store's session, so the
same functions can drive several independent pages at once.

An element that is not visible is a branch (guest vs. registered, one payment
method vs. another), not an error. Hard assertions are reserved for the
correctness checkpoints: empty cart after clearing, payment fee, order
confirmation.
"""
from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import List, Optional
from urllib.parse import urlencode

from playwright.async_api import Locator, Page, TimeoutError as PlaywrightTimeout, expect

from storefront_tests.browser import safe_is_visible, wait_until
from storefront_tests.checkout import (
    CheckoutFlavor,
    CheckoutSession,
    PaymentInfoKind,
    resolve_checkout_flavor,
    resolve_payment_info_kind,
)
from storefront_tests.errors import FixtureError, ProductNotFoundError
from storefront_tests.parsing import (
    extract_order_number,
    match_product_index,
    parse_price,
    parse_quantity,
    payment_method_index,
    shipping_option_index,
)
from storefront_tests.testdata import PasswordChange, PaymentData, UserProfile

logger = logging.getLogger(__name__)

CART_ADDED_MESSAGE = re.compile(r"The product has been added to your shopping cart", re.I)
WISHLIST_ADDED_MESSAGE = re.compile(r"The product has been added to your wishlist", re.I)
EMPTY_CART_MESSAGE = re.compile(r"your shopping cart is empty", re.I)
ORDER_PROCESSED_MESSAGE = re.compile(r"Your order has been successfully processed!", re.I)
NO_PRODUCTS_MESSAGE = "No products were found that matched your criteria."

PRODUCT_TITLE_LINKS = ".product-grid .item-box .product-item .details .product-title a"
CART_TOTAL_PRICE = ".cart-total-right .nobr .product-price"

GIFT_CARD_FIELDS = {
    "#giftcard_2_RecipientName": "Test Recipient",
    "#giftcard_2_RecipientEmail": "test@example.com",
    "#giftcard_2_SenderName": "Test Sender",
    "#giftcard_2_SenderEmail": "test@example.com",
}

STATE_RELOAD_TIMEOUT = 10.0


def _continue_button(page: Page) -> Locator:
    return page.get_by_role("button", name=re.compile(r"continue|next", re.I))


async def _click_and_settle(page: Page, locator: Locator) -> None:
    await locator.click()
    await page.wait_for_load_state("networkidle")


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

async def wait_for_products_to_load(page: Page) -> None:
    """Wait for the first product card or the "no products" message."""
    products = page.locator(".product-grid .item-box .product-item")
    no_products = page.get_by_text(NO_PRODUCTS_MESSAGE)
    await expect(products.first.or_(no_products)).to_be_visible()


async def get_product_price(product: Locator) -> float:
    price_text = await product.locator(".details .add-info .prices .actual-price").text_content()
    return parse_price(price_text)


async def get_listed_product_prices(page: Page) -> List[float]:
    """Actual prices of every product card on the current listing, in page order."""
    await wait_for_products_to_load(page)
    cards = page.locator(".product-grid .item-box .product-item")
    return [await get_product_price(cards.nth(i)) for i in range(await cards.count())]


async def _submit_search(page: Page, term: str) -> None:
    search_input = page.locator("#small-searchterms").or_(page.get_by_placeholder(re.compile("search", re.I)))
    if await search_input.first.is_visible():
        await search_input.first.fill(term)
        # The previous results URL can already contain the new query.
        async with page.expect_navigation():
            await search_input.first.press("Enter")
    else:
        await page.goto(f"/search?{urlencode({'q': term})}")
    await page.wait_for_load_state("networkidle")


async def search_products(page: Page, term: str) -> List[str]:
    """Run a store search and return the titles of the results."""
    await _submit_search(page, term)
    await wait_for_products_to_load(page)
    return [title.strip() for title in await page.locator(PRODUCT_TITLE_LINKS).all_inner_texts()]


async def sort_products(page: Page, order_label: str) -> None:
    """Pick an entry of the "Sort by" dropdown, e.g. "Price: Low to High"."""
    order_by = page.locator("#products-orderby")
    await expect(order_by).to_be_visible()
    current_url = page.url
    await order_by.select_option(label=order_label)
    await page.wait_for_url(lambda url: url != current_url)
    await page.wait_for_load_state("networkidle")
    await wait_for_products_to_load(page)


async def _open_product(page: Page, product_query: str) -> None:
    """Search for ``product_query`` and open the first matching product page."""
    await _submit_search(page, product_query)

    product_cards = page.locator(PRODUCT_TITLE_LINKS)
    titles = await product_cards.all_inner_texts()
    matched_index = match_product_index(titles, product_query)
    if matched_index is None:
        raise ProductNotFoundError(product_query)

    logger.debug("Query %r matched product %r", product_query, titles[matched_index].strip())
    await _click_and_settle(page, product_cards.nth(matched_index))
    await _fill_gift_card_fields(page)


async def _fill_gift_card_fields(page: Page) -> None:
    for selector, value in GIFT_CARD_FIELDS.items():
        field = page.locator(selector)
        if await field.is_visible():
            await field.fill(value)


# ---------------------------------------------------------------------------
# Cart and wishlist
# ---------------------------------------------------------------------------

async def add_product_to_cart(page: Page, product_query: str) -> None:
    """Add the first product matching ``product_query`` to the cart.

    Raises:
        ProductNotFoundError: no product title equals or contains the query.
    """
    await _open_product(page, product_query)

    add_to_cart = page.locator("input.button-1.add-to-cart-button")
    if await add_to_cart.first.is_visible():
        await add_to_cart.first.click()
        await expect(page.locator(".bar-notification")).to_contain_text(CART_ADDED_MESSAGE)
    else:
        logger.warning("Product %r has no add-to-cart button", product_query)


async def add_product_to_wishlist(page: Page, product_query: str) -> None:
    """Add the first product matching ``product_query`` to the wishlist."""
    await _open_product(page, product_query)

    add_to_wishlist = page.locator("input.add-to-wishlist-button")
    if await add_to_wishlist.first.is_visible():
        await add_to_wishlist.first.click()
        await expect(page.locator(".bar-notification")).to_contain_text(WISHLIST_ADDED_MESSAGE)
    else:
        logger.warning("Product %r has no add-to-wishlist button", product_query)


def get_cart_item_rows(page: Page) -> Locator:
    return page.locator(".cart-item-row")


async def get_all_cart_item_qty(page: Page) -> int:
    """Item count from the header cart link; 0 when the counter is missing."""
    counter = page.locator(".cart-qty").first
    if await counter.count() == 0:
        return 0
    try:
        return parse_quantity(await counter.inner_text(timeout=2000))
    except PlaywrightTimeout:
        return 0


async def get_first_cart_item_qty(page: Page) -> int:
    await page.goto("/cart")
    await page.wait_for_load_state("networkidle")
    qty_text = await get_cart_item_rows(page).first.locator(".qty .qty-input").input_value()
    return parse_quantity(qty_text.replace('"', ""))


async def get_cart_total(page: Page) -> float:
    """Order total shown on the current page; 0 when there is none."""
    total = page.locator(CART_TOTAL_PRICE).last
    if await total.is_visible():
        return parse_price(await total.text_content())
    return 0.0


async def wait_for_cart_update(page: Page, previous_qty: Optional[int] = None, timeout: float = 5.0) -> int:
    """Wait for the network to settle and, when ``previous_qty`` is given, for the header count to change."""
    await page.wait_for_load_state("networkidle")
    if previous_qty is None:
        return await get_all_cart_item_qty(page)

    async def _changed() -> Optional[int]:
        qty = await get_all_cart_item_qty(page)
        return qty if qty != previous_qty else None

    return await wait_until(_changed, timeout=timeout, message=f"cart quantity to change from {previous_qty}")


async def update_cart_item_quantity(page: Page, row_index: int, quantity: int) -> None:
    """Set the quantity of one cart row and submit the cart form."""
    await page.goto("/cart")
    await page.wait_for_load_state("networkidle")
    qty_input = get_cart_item_rows(page).nth(row_index).locator(".qty .qty-input")
    await qty_input.fill(str(quantity))
    await _click_and_settle(page, page.locator('input[name="updatecart"]'))


async def clear_cart(page: Page) -> None:
    """Empty the cart. Safe to call on an empty cart."""
    await page.goto("/cart")
    await page.wait_for_load_state("domcontentloaded")

    empty_cart_message = page.get_by_text(EMPTY_CART_MESSAGE)
    if await empty_cart_message.is_visible():
        return

    remove_checkboxes = page.locator('input[name="removefromcart"]')
    for i in range(await remove_checkboxes.count()):
        await remove_checkboxes.nth(i).check()

    update_cart = page.locator('input[name="updatecart"]')
    if await update_cart.is_visible():
        async with page.expect_response(lambda res: "/cart" in res.url and res.status == 200):
            await update_cart.click()

    await expect(empty_cart_message).to_be_visible()


async def apply_discount_code(page: Page, code: str) -> str:
    """Apply a coupon on the cart page and return the store's response message."""
    await page.goto("/cart")
    await page.wait_for_load_state("networkidle")
    coupon = page.locator("input[name='discountcouponcode']")
    apply_button = page.locator("input[value='Apply coupon']")
    if not (await coupon.is_visible() and await apply_button.is_visible()):
        logger.info("Coupon box not available on the cart page")
        return ""
    await coupon.fill(code)
    await _click_and_settle(page, apply_button)
    message = page.locator(".coupon-box .message")
    return (await message.text_content() or "").strip() if await message.count() else ""


async def estimated_shipping(page: Page, country: str, zip_code: str = "") -> List[str]:
    """Use the cart's "Estimate shipping" box; returns the listed shipping options."""
    shipping_section = page.locator(".estimate-shipping")
    if not await shipping_section.is_visible():
        return []

    select_country = page.locator("#CountryId")
    await select_country.wait_for(state="visible")
    await select_country.select_option(country)

    zip_field = page.locator("#ZipPostalCode")
    if zip_code and await zip_field.is_visible():
        await zip_field.fill(zip_code)

    estimate_button = page.locator("input[value='Estimate shipping']")
    if not await estimate_button.is_visible():
        return []
    await _click_and_settle(page, estimate_button)
    return [text.strip() for text in await page.locator(".shipping-results .shipping-option-item").all_inner_texts()]


# ---------------------------------------------------------------------------
# Authentication and account
# ---------------------------------------------------------------------------

async def login(page: Page, user: UserProfile) -> None:
    """Log in through /login and assert the header shows the account email."""
    if not user.login_email or not user.password:
        raise FixtureError("Login requires an email and a password")
    await page.goto("/login")
    await page.get_by_label(re.compile(r"email|username", re.I)).fill(user.login_email)
    await page.get_by_label(re.compile(r"password", re.I)).fill(user.password)
    await page.get_by_role("button", name=re.compile(r"login|log in|sign in", re.I)).click()
    await page.wait_for_load_state("networkidle")
    await expect(page.locator(".header-links li .account")).to_have_text(user.login_email)


async def logout(page: Page) -> None:
    logout_link = page.locator("a[href='/logout']")
    if await logout_link.is_visible():
        await _click_and_settle(page, logout_link)
    await expect(page.locator("a[href='/login']").first).to_be_visible()


async def register_user(page: Page, user: UserProfile) -> bool:
    """Fill the registration form; True when the store confirms the registration."""
    await page.goto("/register")
    if user.gender:
        gender = page.locator(f"#gender-{user.gender.lower()}")
        if await gender.is_visible():
            await gender.check()
    await page.fill("#FirstName", user.first_name)
    await page.fill("#LastName", user.last_name)
    await page.fill("#Email", user.email)
    await page.fill("#Password", user.password)

    confirm_password = page.locator("#ConfirmPassword")
    if await confirm_password.is_visible():
        await confirm_password.fill(user.password)

    await _click_and_settle(page, page.locator("#register-button"))
    return await safe_is_visible(page.locator(".result", has_text="Your registration completed"))


async def get_validation_errors(page: Page) -> List[str]:
    """Messages of the form validation summary and field errors."""
    errors = page.locator(".validation-summary-errors li, .field-validation-error")
    return [text.strip() for text in await errors.all_inner_texts() if text.strip()]


async def recover_password(page: Page, email: str) -> str:
    """Submit the password recovery form and return the store's answer."""
    await page.goto("/passwordrecovery")
    await page.get_by_label("Your email address").fill(email)
    await _click_and_settle(page, page.locator("input[value='Recover']"))
    result = page.locator(".result")
    if await result.is_visible():
        return (await result.text_content() or "").strip()
    return " ".join(await get_validation_errors(page))


async def open_account_section(page: Page, section: str) -> None:
    """Open an entry of the account sidebar ("Customer info", "Orders", "Change password")."""
    await _click_and_settle(page, page.locator(".header-links .account"))
    await _click_and_settle(page, page.locator(".listbox .list li a", has_text=re.compile(section, re.I)))


async def update_customer_info(page: Page, profile: UserProfile) -> None:
    """Save new name, email and gender on the customer info page."""
    await open_account_section(page, "Customer info")
    for selector, value in (
        ("#FirstName", profile.first_name),
        ("#LastName", profile.last_name),
        ("#Email", profile.email),
    ):
        field = page.locator(selector)
        if value and await field.is_visible():
            await field.fill(value)

    if profile.gender:
        label = re.compile(rf"^\s*{re.escape(profile.gender)}\s*$", re.I)
        gender = page.locator(".gender .forcheckbox", has_text=label)
        if await gender.is_visible():
            await gender.click()

    save_button = page.get_by_role("button", name=re.compile(r"save|update", re.I))
    await expect(save_button).to_be_visible()
    await _click_and_settle(page, save_button)
    await expect(page.locator(".header-links li .account")).to_have_text(profile.email)


async def change_password(page: Page, change: PasswordChange) -> str:
    """Submit the change-password form; returns the result or validation text."""
    await open_account_section(page, "Change password")
    await page.fill("#OldPassword", change.current)
    await page.fill("#NewPassword", change.new)
    await page.fill("#ConfirmNewPassword", change.confirm)
    await _click_and_settle(page, page.get_by_role("button", name=re.compile(r"change password", re.I)))

    result = page.locator(".result")
    if await result.is_visible():
        return (await result.text_content() or "").strip()
    return " ".join(await get_validation_errors(page))


async def get_latest_order_number(page: Page) -> Optional[str]:
    """Number of the newest order in the customer's order history."""
    await page.goto("/customer/orders")
    await page.wait_for_load_state("networkidle")
    first_order = page.locator(".order-item .title strong").first
    if await first_order.count() == 0:
        return None
    return extract_order_number(await first_order.text_content())


# ---------------------------------------------------------------------------
# Checkout pipeline
# ---------------------------------------------------------------------------

async def proceed_to_checkout(page: Page) -> None:
    """Accept the terms of service on /cart and start checkout."""
    await page.goto("/cart")
    await page.wait_for_load_state("networkidle")

    terms = page.locator("#termsofservice")
    await expect(terms).to_be_visible()
    await terms.check()

    checkout_button = page.get_by_role("button", name=re.compile(r"checkout|proceed", re.I))
    await expect(checkout_button).to_be_visible()
    await checkout_button.click()
    await page.wait_for_url(re.compile(r"/(onepagecheckout|checkout|login)"))
    await page.wait_for_load_state("networkidle")


async def checkout_as_guest(page: Page) -> CheckoutFlavor:
    """Choose "Checkout as Guest" when offered; registered sessions skip straight through."""
    guest_button = page.locator("input[value='Checkout as Guest']")
    flavor = resolve_checkout_flavor(await guest_button.is_visible())
    if flavor is CheckoutFlavor.GUEST:
        await _click_and_settle(page, guest_button)
    logger.info("Checkout flavor: %s", flavor.value)
    return flavor


async def _wait_for_state_reload(page: Page) -> None:
    progress = page.locator("#states-loading-progress")
    state = page.locator("#BillingNewAddress_StateProvinceId")

    async def _states_ready() -> bool:
        if await progress.is_visible():
            return False
        if await state.count() == 0:
            return True
        return await state.get_attribute("data-loading") is None and await state.locator("option").count() > 0

    await wait_until(_states_ready, timeout=STATE_RELOAD_TIMEOUT, message="state/province list to reload")


async def fill_billing_address(page: Page, user: Optional[UserProfile]) -> UserProfile:
    """Fill the billing step and continue; returns ``user`` for the shipping check.

    Only fields that are visible and have a value in ``user`` are filled, so a
    registered user's prefilled address is left as it is.
    """
    if user is None:
        raise FixtureError("User data is required for billing address")

    fields = [
        ("#BillingNewAddress_FirstName", user.first_name),
        ("#BillingNewAddress_LastName", user.last_name),
        ("#BillingNewAddress_Email", user.email),
        ("#BillingNewAddress_City", user.city),
        ("#BillingNewAddress_Address1", user.address1),
        ("#BillingNewAddress_ZipPostalCode", user.zip),
        ("#BillingNewAddress_PhoneNumber", user.phone),
    ]
    for selector, value in fields:
        element = page.locator(selector)
        if value and await element.is_visible():
            await element.fill(value)

    country = page.locator("#BillingNewAddress_CountryId")
    if user.country and await country.is_visible():
        await country.select_option(user.country)
        await _wait_for_state_reload(page)

    state = page.locator("#BillingNewAddress_StateProvinceId")
    if user.state and await state.is_visible():
        await state.select_option(user.state)

    continue_button = page.locator("input[onclick='Billing.save()']")
    await expect(continue_button).to_be_visible()
    await _click_and_settle(page, continue_button)
    return user


async def validate_shipping_address(page: Page, user: UserProfile, in_store_pickup: bool = False) -> bool:
    """Check the shipping step against ``user`` (or pick up in store) and continue.

    Returns True only when in-store pickup was selected. A store that does not
    offer pickup gets the address check instead, and the caller still has to
    choose a shipping method.
    """
    pickup = page.locator("#PickUpInStore")

    picked_up = in_store_pickup and await pickup.is_visible()
    if picked_up:
        await pickup.check()
        await expect(pickup).to_be_checked()
    else:
        if in_store_pickup:
            logger.info("In-store pickup not offered, shipping to the billing address")
        address_select = page.locator("#shipping-address-select")
        if await address_select.is_visible():
            first_option = address_select.locator("option").first
            if await first_option.count():
                option_text = (await first_option.text_content() or "").strip()
                for part in (user.first_name, user.last_name, user.address1, user.city):
                    assert part in option_text, f"'{part}' missing from shipping address '{option_text}'"

    continue_button = page.locator("#shipping-buttons-container input")
    await expect(continue_button.first).to_be_visible()
    await _click_and_settle(page, continue_button.first)
    return picked_up


async def select_shipping_method(page: Page, method: str) -> str:
    """Pick the shipping option whose value contains ``method``, else the first one.

    Returns the value of the option that was checked.
    """
    await page.wait_for_selector(".method-name label", timeout=10000)

    options = page.locator("input[name='shippingoption']")
    count = await options.count()
    assert count > 0, "No shipping options rendered"

    values = [await options.nth(i).get_attribute("value") for i in range(count)]
    index = shipping_option_index(values, method)
    if not values[index] or method.lower() not in values[index].lower():
        logger.info("Shipping method %r not offered, falling back to %r", method, values[index])

    chosen = options.nth(index)
    await chosen.check(force=True)
    await expect(chosen).to_be_checked()
    await page.wait_for_load_state("networkidle")

    continue_button = _continue_button(page)
    if await continue_button.is_visible():
        await _click_and_settle(page, continue_button)
    return values[index] or ""


async def fill_payment_method(page: Page, payment_method: str) -> Optional[str]:
    """Check the payment radio whose value equals ``payment_method`` and continue.

    Returns the selected value, or None when the store does not offer it (the
    store's default selection is then submitted).
    """
    await page.wait_for_selector("input[name='paymentmethod']")

    methods = page.locator("input[name='paymentmethod']")
    values = [await methods.nth(i).get_attribute("value") for i in range(await methods.count())]
    index = payment_method_index(values, payment_method)
    if index is None:
        logger.warning("Payment method %r not offered (available: %s)", payment_method, values)
    else:
        await methods.nth(index).check(force=True)
        await page.wait_for_load_state("networkidle")

    continue_button = _continue_button(page)
    if await continue_button.is_visible():
        await _click_and_settle(page, continue_button)
    return values[index] if index is not None else None


async def resolve_payment_info(page: Page) -> PaymentInfoKind:
    """Work out which payment-info form the current page shows."""
    await safe_is_visible(page.locator(".payment-info"))
    card_type = page.locator(".payment-info .info #CreditCardType")
    purchase_order = page.locator(".payment-info .info #PurchaseOrderNumber")
    info_text = page.locator(".payment-info .info p").first
    return resolve_payment_info_kind(
        await card_type.is_visible(),
        await purchase_order.is_visible(),
        await info_text.is_visible(),
    )


async def fill_payment_info(page: Page, payment_data: PaymentData) -> PaymentInfoKind:
    """Fill whichever payment-info form is shown and continue."""
    kind = await resolve_payment_info(page)

    if kind is PaymentInfoKind.CREDIT_CARD:
        logger.info("Credit card flow")
        await page.locator(".payment-info .info #CreditCardType").select_option(payment_data.credit_card)
        for selector, value in (
            ("#CardholderName", payment_data.card_holder),
            ("#CardNumber", payment_data.card_number),
            ("#CardCode", payment_data.card_code),
        ):
            field = page.locator(selector)
            if await field.is_visible():
                await field.fill(value)
        for selector, value in (
            (".payment-info .info #ExpireMonth", payment_data.expiry_month),
            (".payment-info .info #ExpireYear", payment_data.expiry_year),
        ):
            field = page.locator(selector)
            if await field.is_visible():
                await field.select_option(value)
    elif kind is PaymentInfoKind.PURCHASE_ORDER:
        logger.info("Purchase order flow")
        await page.locator(".payment-info .info #PurchaseOrderNumber").fill(payment_data.purchase_order_number)
    elif kind is PaymentInfoKind.INFORMATIONAL:
        info = await page.locator(".payment-info .info p").first.text_content()
        logger.info("Other payment info shown: %s", (info or "").strip())
    else:
        logger.info("No payment info form visible")

    continue_button = page.locator("#payment-info-buttons-container input")
    if await safe_is_visible(continue_button):
        await _click_and_settle(page, continue_button.first)
    return kind


def _total_row_price(page: Page, label: str) -> Locator:
    return page.locator(".cart-total tbody tr", has_text=label).locator(".product-price")


async def _optional_row_price(page: Page, label: str) -> Optional[float]:
    price = _total_row_price(page, label)
    if await price.count() == 0:
        return None
    await price.first.wait_for(state="visible")
    return parse_price(await price.first.text_content())


async def read_checkout_session(page: Page, cart_total_price: Optional[float] = None) -> CheckoutSession:
    """Read the payment method and order totals from the confirm step."""
    payment_method = page.locator("li.payment-method")
    await expect(payment_method).to_be_visible()
    label = (await payment_method.text_content() or "").strip()
    label = re.sub(r"^payment method:\s*", "", label, flags=re.I)

    subtotal = _total_row_price(page, "Sub-Total:")
    await expect(subtotal).to_be_visible()

    total = page.locator(CART_TOTAL_PRICE).last
    await expect(total).to_be_visible()

    return CheckoutSession(
        payment_method_label=label,
        subtotal=parse_price(await subtotal.text_content()),
        total=parse_price(await total.text_content()),
        fee=await _optional_row_price(page, "Payment method additional fee:"),
        shipping=await _optional_row_price(page, "Shipping:") or 0.0,
        tax=await _optional_row_price(page, "Tax:") or 0.0,
        discount=abs(await _optional_row_price(page, "Discount:") or 0.0),
        cart_total=cart_total_price,
    )


async def confirm_order(page: Page, cart_total_price: Optional[float] = None) -> CheckoutSession:
    """Verify the payment fee and totals on the confirm step, then confirm the order.

    Raises:
        UnexpectedPaymentMethodError: a fee row is shown for an unknown payment method.
    """
    session = await read_checkout_session(page, cart_total_price)
    session.verify_fee()
    session.verify_total()
    if cart_total_price is not None and abs(cart_total_price - session.subtotal) > 0.005:
        logger.warning("Cart total %.2f differs from checkout sub-total %.2f", cart_total_price, session.subtotal)

    confirm_button = page.get_by_role("button", name=re.compile(r"confirm", re.I))
    await expect(confirm_button).to_be_visible()
    await _click_and_settle(page, confirm_button)
    return session


async def get_order_number(page: Page) -> Optional[str]:
    """Order number from the completed page; None when it is not shown."""
    order = page.locator("ul.details li").first
    if await order.count() == 0 or not await order.is_visible():
        return None
    order_number = extract_order_number(await order.text_content())
    logger.info("Order number: %s", order_number)
    return order_number


async def confirmation_message(page: Page) -> None:
    """Assert the success banner, then continue back to the home page."""
    message = await page.locator("div.title strong").first.text_content()
    assert message and ORDER_PROCESSED_MESSAGE.search(message), f"Unexpected confirmation message: {message!r}"

    continue_button = page.get_by_role("button", name=re.compile(r"continue", re.I))
    if await continue_button.is_visible():
        await continue_button.click()

    await expect(page).to_have_url(re.compile(r"/$"))


async def complete_checkout(
    page: Page,
    user: UserProfile,
    shipping_method: str,
    payment_method: str,
    payment_data: PaymentData,
    in_store_pickup: bool = False,
) -> CheckoutSession:
    """Run checkout from the cart through the confirm step.

    The cart must already hold the products. The page is left on the
    order-completed page so the caller can read the order number.
    """
    await page.goto("/cart")
    await page.wait_for_load_state("networkidle")
    cart_total = await get_cart_total(page)

    await proceed_to_checkout(page)
    flavor = await checkout_as_guest(page)
    billed_user = await fill_billing_address(page, user)
    picked_up = await validate_shipping_address(page, billed_user, in_store_pickup=in_store_pickup)
    if not picked_up:
        await select_shipping_method(page, shipping_method)
    await fill_payment_method(page, payment_method)
    kind = await fill_payment_info(page, payment_data)
    session = await confirm_order(page, cart_total or None)
    return replace(session, flavor=flavor, payment_info_kind=kind)
