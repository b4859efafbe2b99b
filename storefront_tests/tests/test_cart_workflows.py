"""Catalog, cart and wishlist workflows against the mock storefront."""
import pytest

from storefront_tests import workflows
from storefront_tests.errors import NotFoundError, ProductNotFoundError
from storefront_tests.parsing import is_sorted_asc, is_sorted_desc
from storefront_tests.testdata import DISCOUNT_CODES, LOCATIONS, QUANTITIES

pytestmark = pytest.mark.asyncio


async def test_add_product_to_cart_matches_title_substring(page):
    await workflows.add_product_to_cart(page, "book")

    assert await workflows.get_all_cart_item_qty(page) == 1
    await page.goto("/cart")
    rows = workflows.get_cart_item_rows(page)
    assert await rows.count() == 1
    assert (await rows.first.locator(".product-name").text_content()).strip() == "Health Book"


async def test_add_product_to_cart_raises_when_nothing_matches(page):
    with pytest.raises(ProductNotFoundError) as excinfo:
        await workflows.add_product_to_cart(page, "spaceship")

    assert isinstance(excinfo.value, NotFoundError)
    assert str(excinfo.value) == 'No product matched query: "spaceship"'
    assert await workflows.get_all_cart_item_qty(page) == 0


async def test_gift_card_fields_are_filled_before_adding(page):
    await workflows.add_product_to_cart(page, "Virtual Gift Card")

    assert await page.locator("#giftcard_2_RecipientName").input_value() == "Test Recipient"
    assert await workflows.get_all_cart_item_qty(page) == 1


async def test_wait_for_cart_update_sees_new_quantity(page):
    await page.goto("/")
    before = await workflows.get_all_cart_item_qty(page)

    await workflows.add_product_to_cart(page, "shirt")

    assert await workflows.wait_for_cart_update(page, previous_qty=before) == before + 1


async def test_clear_cart_is_idempotent(page):
    await workflows.add_product_to_cart(page, "book")
    await workflows.add_product_to_cart(page, "laptop")

    await workflows.clear_cart(page)
    assert await workflows.get_cart_item_rows(page).count() == 0
    assert await workflows.get_all_cart_item_qty(page) == 0

    await workflows.clear_cart(page)
    assert await workflows.get_cart_item_rows(page).count() == 0


async def test_clear_cart_on_fresh_session(page):
    await workflows.clear_cart(page)
    assert await page.get_by_text(workflows.EMPTY_CART_MESSAGE).is_visible()


async def test_readers_return_zero_when_elements_are_absent(page):
    await page.set_content("<html><body><p>No cart here</p></body></html>")

    assert await workflows.get_cart_total(page) == 0
    assert await workflows.get_all_cart_item_qty(page) == 0


@pytest.mark.parametrize("quantity", QUANTITIES)
async def test_update_quantity_and_total(page, quantity):
    await workflows.add_product_to_cart(page, "book")

    await workflows.update_cart_item_quantity(page, 0, quantity)

    assert await workflows.get_first_cart_item_qty(page) == quantity
    assert await workflows.get_all_cart_item_qty(page) == quantity
    assert await workflows.get_cart_total(page) == pytest.approx(10.0 * quantity)


@pytest.mark.parametrize("code", DISCOUNT_CODES["invalid"])
async def test_invalid_discount_code_is_rejected(page, code):
    await workflows.add_product_to_cart(page, "Fiction")

    message = await workflows.apply_discount_code(page, code)

    assert "couldn't be applied" in message
    assert await workflows.get_cart_total(page) == pytest.approx(24.0)


@pytest.mark.parametrize("code", DISCOUNT_CODES["valid"])
async def test_valid_discount_code_is_applied(page, code):
    await workflows.add_product_to_cart(page, "Fiction")

    assert await workflows.apply_discount_code(page, code) == "The coupon code was applied"
    assert await workflows.get_cart_total(page) < 24.0


async def test_percentage_and_fixed_discounts(page):
    percentage, fixed = DISCOUNT_CODES["percentage"], DISCOUNT_CODES["fixed"]
    await workflows.add_product_to_cart(page, "Fiction")

    await workflows.apply_discount_code(page, percentage["code"])
    assert await workflows.get_cart_total(page) == pytest.approx(24.0 * (100 - percentage["discount"]) / 100)

    await workflows.apply_discount_code(page, fixed["code"])
    assert await workflows.get_cart_total(page) == pytest.approx(24.0 - fixed["discount"])


@pytest.mark.parametrize("country", list(LOCATIONS.values()), ids=list(LOCATIONS))
async def test_estimated_shipping_lists_options(page, country):
    await workflows.add_product_to_cart(page, "book")
    await page.goto("/cart")

    options = await workflows.estimated_shipping(page, country, "12345")

    assert len(options) == 3
    assert options[0].startswith("Ground")


async def test_estimated_shipping_without_cart_is_empty(page):
    await page.goto("/cart")
    assert await workflows.estimated_shipping(page, "United States") == []


async def test_search_products(page):
    await page.goto("/")
    assert await workflows.search_products(page, "book") == ["Health Book"]
    assert await workflows.search_products(page, "spaceship") == []
    assert await page.get_by_text(workflows.NO_PRODUCTS_MESSAGE).is_visible()


async def test_search_from_results_of_a_longer_term(page):
    await page.goto("/")
    assert await workflows.search_products(page, "jeansx") == []

    assert await workflows.search_products(page, "jeans") == ["Blue Jeans"]


async def test_search_term_with_reserved_characters(page):
    await page.goto("/")
    assert await workflows.search_products(page, "gift*") == []
    assert "q=gift*" in page.url


async def test_sort_products_by_price_and_name(page):
    await page.goto("/books")

    await workflows.sort_products(page, "Price: High to Low")
    prices = await workflows.get_listed_product_prices(page)
    assert prices == [24.0, 10.0, 10.0]
    assert is_sorted_desc(prices)

    await workflows.sort_products(page, "Name: A to Z")
    titles = [title.strip() for title in await page.locator(workflows.PRODUCT_TITLE_LINKS).all_inner_texts()]
    assert is_sorted_asc([title.lower() for title in titles])
    assert "orderby=5" in page.url


async def test_add_product_to_wishlist(page):
    await workflows.add_product_to_wishlist(page, "laptop")

    assert await page.locator(".wishlist-qty").inner_text() == "(1)"
    await page.goto("/wishlist")
    assert await page.locator(".wishlist-content .product-name").inner_text() == "14.1-inch Laptop"
    assert await workflows.get_all_cart_item_qty(page) == 0
