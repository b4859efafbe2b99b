"""Mock Demo Web Shop storefront for offline E2E testing.

This mock server reproduces the parts of the storefront DOM that the workflow
helpers depend on:
- catalog: home page, category pages with sorting, search, product pages
- cart and wishlist (AJAX add-to-cart with bar notification)
- coupon codes and shipping estimation on the cart page
- login, logout, registration, password recovery, customer info, order history
- one-page checkout: billing, shipping address, shipping method,
  payment method, payment info, confirm, completed

Shopper state (cart, login, checkout progress) lives in module-level dicts
keyed by a per-browser session id, so separate browser contexts get separate
carts exactly like the real store.
"""
from __future__ import annotations

import re
import secrets
import threading
from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, abort, jsonify, redirect, render_template_string, request, session

# Mock data storage
SHOPPERS: Dict[str, Dict[str, Any]] = {}  # session id -> {cart, wishlist, email, guest_checkout, ...}
USERS: Dict[str, Dict[str, Any]] = {}  # email -> {first_name, last_name, password, gender}
ORDERS: Dict[str, List[Dict[str, Any]]] = {}  # email (or session id for guests) -> orders, newest first
EXTRA_PAYMENT_METHODS: List[Dict[str, Any]] = []
STORE_SETTINGS: Dict[str, Any] = {}  # admin toggles, see reset_mock_state()

# Default registered customer
MOCK_CUSTOMER_EMAIL = "e.e@e.com"
MOCK_CUSTOMER_PASSWORD = "eeeeee"

FIRST_ORDER_NUMBER = 1001

_order_lock = threading.Lock()
_next_order_number = FIRST_ORDER_NUMBER

CATEGORIES: Dict[str, str] = {
    "books": "Books",
    "computers": "Computers",
    "apparel-shoes": "Apparel & Shoes",
    "gift-cards": "Gift Cards",
}

# Catalog order is the "Position" sort order.
PRODUCTS: List[Dict[str, Any]] = [
    {"id": 13, "name": "Computing and Internet", "slug": "computing-and-internet", "price": 10.0, "category": "books"},
    {"id": 22, "name": "Health Book", "slug": "health", "price": 10.0, "category": "books"},
    {"id": 45, "name": "Fiction", "slug": "fiction", "price": 24.0, "category": "books"},
    {"id": 31, "name": "14.1-inch Laptop", "slug": "141-inch-laptop", "price": 1590.0, "category": "computers"},
    {"id": 5, "name": "Casual Golf Shirt", "slug": "casual-golf-shirt", "price": 15.0, "category": "apparel-shoes"},
    {"id": 36, "name": "Blue Jeans", "slug": "blue-jeans", "price": 1.0, "category": "apparel-shoes"},
    {"id": 2, "name": "$25 Virtual Gift Card", "slug": "25-virtual-gift-card", "price": 25.0,
     "category": "gift-cards", "gift_card": True},
]
PRODUCTS_BY_ID: Dict[int, Dict[str, Any]] = {p["id"]: p for p in PRODUCTS}
PRODUCTS_BY_SLUG: Dict[str, Dict[str, Any]] = {p["slug"]: p for p in PRODUCTS}

SORT_OPTIONS: List[Tuple[int, str]] = [
    (0, "Position"),
    (5, "Name: A to Z"),
    (6, "Name: Z to A"),
    (10, "Price: Low to High"),
    (11, "Price: High to Low"),
]

COUNTRIES: List[Tuple[int, str]] = [
    (1, "United States"),
    (2, "Nigeria"),
    (3, "Nicaragua"),
    (4, "Germany"),
]
US_STATES: List[Tuple[int, str]] = [(40, "Alabama"), (41, "California"), (42, "New York")]

SHIPPING_METHODS: List[Dict[str, Any]] = [
    {"name": "Ground", "rate": 0.0, "description": "Compared to other shipping methods, like by flight or over seas, ground shipping is carried out closer to the earth"},
    {"name": "Next Day Air", "rate": 0.0, "description": "The one day air shipping"},
    {"name": "2nd Day Air", "rate": 0.0, "description": "The two day air shipping"},
]
PICKUP_SHIPPING_NAME = "In-Store Pickup"

# info: "card", "purchase_order" or the informational text shown on the payment info step.
PAYMENT_METHODS: List[Dict[str, Any]] = [
    {"value": "Payments.CashOnDelivery", "label": "Cash On Delivery (COD)", "fee": 7.0,
     "info": "You will pay by COD"},
    {"value": "Payments.CheckMoneyOrder", "label": "Check / Money Order", "fee": 5.0,
     "info": "Mail Personal or Business Check, Cashier's Check or money order to: Tricentis GmbH"},
    {"value": "Payments.Manual", "label": "Credit Card", "fee": 0.0, "info": "card"},
    {"value": "Payments.PurchaseOrder", "label": "Purchase Order", "fee": 0.0, "info": "purchase_order"},
]

# code -> (kind, amount)
DISCOUNTS: Dict[str, Tuple[str, float]] = {
    "SAVE10": ("percent", 10.0),
    "SAVE5": ("fixed", 5.0),
    "WELCOME5": ("fixed", 5.0),
    "DISCOUNT20": ("percent", 20.0),
}

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
MIN_SEARCH_LENGTH = 3

CART_ADDED_HTML = 'The product has been added to your <a href="/cart">shopping cart</a>'
WISHLIST_ADDED_HTML = 'The product has been added to your <a href="/wishlist">wishlist</a>'


_LAYOUT = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Demo Web Shop. {{ title }}</title>
<script>
function setLocation(url) { window.location.href = url; }
function displayBarNotification(message, type) {
  var bar = document.getElementById('bar-notification');
  bar.className = 'bar-notification ' + type;
  bar.querySelector('.content').innerHTML = message;
  bar.style.display = 'block';
}
var AjaxCart = {
  send: function (url) {
    var form = document.getElementById('product-details-form');
    var body = form ? new FormData(form) : new FormData();
    return fetch(url, { method: 'POST', body: body, credentials: 'same-origin' })
      .then(function (response) { return response.json(); })
      .then(function (data) {
        if (data.updatetopcartsectionhtml) {
          document.querySelector('.cart-qty').textContent = data.updatetopcartsectionhtml;
        }
        if (data.updatetopwishlistsectionhtml) {
          document.querySelector('.wishlist-qty').textContent = data.updatetopwishlistsectionhtml;
        }
        displayBarNotification(data.message, data.success ? 'success' : 'error');
      });
  }
};
</script>
</head>
<body>
<div id="bar-notification" class="bar-notification" style="display: none;">
  <p class="content"></p>
  <span class="close" title="Close" onclick="this.parentNode.style.display='none'">x</span>
</div>
<div class="master-wrapper-page">
<div class="header">
  <div class="header-logo"><a href="/">Demo Web Shop</a></div>
  <div class="header-links-wrapper">
    <div class="header-links">
      <ul>
        {% if shopper.email %}
        <li><a href="/customer/info" class="account">{{ shopper.email }}</a></li>
        <li><a href="/logout" class="ico-logout">Log out</a></li>
        {% else %}
        <li><a href="/register" class="ico-register">Register</a></li>
        <li><a href="/login" class="ico-login">Log in</a></li>
        {% endif %}
        <li id="topcartlink"><a href="/cart" class="ico-cart"><span class="cart-label">Shopping cart</span> <span class="cart-qty">({{ cart_qty }})</span></a></li>
        <li><a href="/wishlist" class="ico-wishlist"><span class="cart-label">Wishlist</span> <span class="wishlist-qty">({{ wishlist_qty }})</span></a></li>
      </ul>
    </div>
  </div>
  <div class="search-box">
    <form action="/search" method="get">
      <input type="text" class="search-box-text" id="small-searchterms" autocomplete="off" name="q" placeholder="Search store">
      <input type="submit" class="button-1 search-box-button" value="Search">
    </form>
  </div>
</div>
<div class="header-menu">
  <ul class="top-menu">
    {% for slug, name in categories.items() %}<li><a href="/{{ slug }}">{{ name }}</a></li>{% endfor %}
  </ul>
</div>
<div class="master-wrapper-content">
{{ content|safe }}
</div>
</div>
</body>
</html>
"""

_PRODUCT_GRID = """
<div class="product-grid">
  {% for product in products %}
  <div class="item-box">
    <div class="product-item" data-productid="{{ product.id }}">
      <div class="picture"><a href="/{{ product.slug }}" title="Show details for {{ product.name }}"></a></div>
      <div class="details">
        <h2 class="product-title"><a href="/{{ product.slug }}">{{ product.name }}</a></h2>
        <div class="add-info">
          <div class="prices"><span class="price actual-price">{{ '%.2f'|format(product.price) }}</span></div>
        </div>
      </div>
    </div>
  </div>
  {% endfor %}
</div>
"""

_HOME = """
<div class="page home-page">
  <div class="page-body">
    <div class="product-grid-title"><strong>Featured products</strong></div>
""" + _PRODUCT_GRID + """
  </div>
</div>
"""

_CATEGORY = """
<div class="page category-page">
  <div class="page-title"><h1>{{ category_name }}</h1></div>
  <div class="page-body">
    <div class="product-selectors">
      <div class="product-sorting">
        <span>Sort by</span>
        <select id="products-orderby" name="products-orderby" onchange="setLocation(this.value)">
          {% for value, label in sort_options %}
          <option value="/{{ slug }}?orderby={{ value }}"{% if value == orderby %} selected="selected"{% endif %}>{{ label }}</option>
          {% endfor %}
        </select>
      </div>
    </div>
""" + _PRODUCT_GRID + """
  </div>
</div>
"""

_SEARCH = """
<div class="page search-page">
  <div class="page-title"><h1>Search</h1></div>
  <div class="page-body">
    <div class="search-input">
      <form action="/search" method="get">
        <label for="Q">Search keyword:</label>
        <input class="search-text" id="Q" name="q" type="text" value="{{ q }}">
      </form>
    </div>
    <div class="search-results">
      {% if warning %}
      <strong class="warning">{{ warning }}</strong>
      {% elif q and not products %}
      <strong class="result">No products were found that matched your criteria.</strong>
      {% else %}
""" + _PRODUCT_GRID + """
      {% endif %}
    </div>
  </div>
</div>
"""

_PRODUCT = """
<div class="page product-details-page">
  <div class="page-body">
    <form id="product-details-form" method="post" onsubmit="return false;">
      <div class="product-essential">
        <div class="overview">
          <div class="product-name"><h1 itemprop="name">{{ product.name }}</h1></div>
          {% if product.gift_card %}
          <div class="giftcard">
            <div><label for="giftcard_{{ product.id }}_RecipientName">Recipient's Name:</label>
              <input id="giftcard_{{ product.id }}_RecipientName" name="giftcard_{{ product.id }}.RecipientName" class="recipient-name" type="text"></div>
            <div><label for="giftcard_{{ product.id }}_RecipientEmail">Recipient's Email:</label>
              <input id="giftcard_{{ product.id }}_RecipientEmail" name="giftcard_{{ product.id }}.RecipientEmail" class="recipient-email" type="text"></div>
            <div><label for="giftcard_{{ product.id }}_SenderName">Your Name:</label>
              <input id="giftcard_{{ product.id }}_SenderName" name="giftcard_{{ product.id }}.SenderName" class="sender-name" type="text"></div>
            <div><label for="giftcard_{{ product.id }}_SenderEmail">Your Email:</label>
              <input id="giftcard_{{ product.id }}_SenderEmail" name="giftcard_{{ product.id }}.SenderEmail" class="sender-email" type="text"></div>
          </div>
          {% endif %}
          <div class="prices"><div class="product-price"><span itemprop="price">{{ '%.2f'|format(product.price) }}</span></div></div>
          <div class="add-to-cart">
            <div class="add-to-cart-panel">
              <label class="qty-label" for="addtocart_{{ product.id }}_EnteredQuantity">Qty:</label>
              <input class="qty-input" id="addtocart_{{ product.id }}_EnteredQuantity" name="addtocart_{{ product.id }}.EnteredQuantity" type="text" value="1">
              <input type="button" id="add-to-cart-button-{{ product.id }}" class="button-1 add-to-cart-button" value="Add to cart"
                     onclick="AjaxCart.send('/addproducttocart/details/{{ product.id }}/1'); return false;">
            </div>
          </div>
          <div class="overview-buttons">
            <div class="add-to-wishlist">
              <input type="button" id="add-to-wishlist-button-{{ product.id }}" class="button-2 add-to-wishlist-button" value="Add to wishlist"
                     onclick="AjaxCart.send('/addproducttocart/details/{{ product.id }}/2'); return false;">
            </div>
          </div>
        </div>
      </div>
    </form>
  </div>
</div>
"""

_TOTALS = """
<div class="total-info">
  <table class="cart-total">
    <tbody>
      <tr>
        <td class="cart-total-left"><span class="nobr">Sub-Total:</span></td>
        <td class="cart-total-right"><span class="nobr"><span class="product-price">{{ totals.subtotal|money }}</span></span></td>
      </tr>
      {% if totals.discount %}
      <tr>
        <td class="cart-total-left"><span class="nobr">Discount:</span></td>
        <td class="cart-total-right"><span class="nobr"><span class="product-price">-{{ totals.discount|money }}</span></span></td>
      </tr>
      {% endif %}
      <tr>
        <td class="cart-total-left"><span class="nobr">Shipping:</span></td>
        <td class="cart-total-right"><span class="nobr"><span class="product-price">{{ totals.shipping|money }}</span></span></td>
      </tr>
      {% if totals.fee is not none %}
      <tr>
        <td class="cart-total-left"><span class="nobr">Payment method additional fee:</span></td>
        <td class="cart-total-right"><span class="nobr"><span class="product-price">{{ totals.fee|money }}</span></span></td>
      </tr>
      {% endif %}
      <tr>
        <td class="cart-total-left"><span class="nobr">Tax:</span></td>
        <td class="cart-total-right"><span class="nobr"><span class="product-price">{{ totals.tax|money }}</span></span></td>
      </tr>
      <tr>
        <td class="cart-total-left"><span class="nobr"><strong>Total:</strong></span></td>
        <td class="cart-total-right"><span class="nobr"><span class="product-price order-total"><strong>{{ totals.total|money }}</strong></span></span></td>
      </tr>
    </tbody>
  </table>
</div>
"""

_CART = """
<div class="page shopping-cart-page">
  <div class="page-title"><h1>Shopping cart</h1></div>
  <div class="page-body">
    {% if not items %}
    <div class="order-summary-content">Your Shopping Cart is empty!</div>
    {% else %}
    <div class="order-summary-content">
      <form action="/cart" method="post">
        <table class="cart">
          <thead>
            <tr><th>Remove</th><th>Product(s)</th><th>Price</th><th>Qty.</th><th>Total</th></tr>
          </thead>
          <tbody>
            {% for item in items %}
            <tr class="cart-item-row">
              <td class="remove-from-cart"><input type="checkbox" name="removefromcart" value="{{ item.product.id }}"></td>
              <td class="product"><a class="product-name" href="/{{ item.product.slug }}">{{ item.product.name }}</a></td>
              <td class="unit-price nobr"><span class="product-unit-price">{{ '%.2f'|format(item.product.price) }}</span></td>
              <td class="qty nobr"><input name="itemquantity{{ item.product.id }}" type="text" value="{{ item.quantity }}" class="qty-input"></td>
              <td class="subtotal nobr end"><span class="product-subtotal">{{ '%.2f'|format(item.line_total) }}</span></td>
            </tr>
            {% endfor %}
          </tbody>
        </table>
        <div class="buttons">
          <div class="common-buttons">
            <input type="submit" name="updatecart" value="Update shopping cart" class="button-2 update-cart-button">
            <input type="submit" name="continueshopping" value="Continue shopping" class="button-2 continue-shopping-button">
          </div>
        </div>
        <div class="cart-collaterals">
          <div class="deals">
            <div class="coupon-box">
              <div class="title"><strong>Discount Code</strong></div>
              <div class="hint">Enter your coupon here</div>
              <div class="coupon-code">
                <input name="discountcouponcode" type="text" class="discount-coupon-code">
                <input type="submit" name="applydiscountcouponcode" value="Apply coupon" class="button-2 apply-discount-coupon-code-button">
              </div>
              {% if coupon_message %}<div class="message">{{ coupon_message }}</div>{% endif %}
            </div>
          </div>
          <div class="shipping">
            <div class="estimate-shipping">
              <div class="title"><strong>Estimate shipping</strong></div>
              <div class="shipping-options">
                <div class="inputs">
                  <label for="CountryId">Country:</label>
                  <select id="CountryId" name="CountryId">
                    <option value="0">Select country</option>
                    {% for country_id, name in countries %}
                    <option value="{{ country_id }}"{% if country_id == estimate_country %} selected="selected"{% endif %}>{{ name }}</option>
                    {% endfor %}
                  </select>
                </div>
                <div class="inputs">
                  <label for="ZipPostalCode">Zip / postal code:</label>
                  <input class="zip-input" id="ZipPostalCode" name="ZipPostalCode" type="text" value="{{ estimate_zip }}">
                </div>
                <div class="buttons">
                  <input type="submit" name="estimateshipping" value="Estimate shipping" class="button-2 estimate-shipping-button">
                </div>
              </div>
              {% if estimate_error %}<div class="message-error">{{ estimate_error }}</div>{% endif %}
              {% if estimates %}
              <ul class="shipping-results">
                {% for option in estimates %}
                <li class="shipping-option-item">
                  <strong class="option-name">{{ option.name }} ({{ option.rate|money }})</strong>
                  <span class="option-description">{{ option.description }}</span>
                </li>
                {% endfor %}
              </ul>
              {% endif %}
            </div>
          </div>
        </div>
        <div class="totals">
""" + _TOTALS + """
          <div class="terms-of-service">
            <input id="termsofservice" type="checkbox" name="termsofservice">
            <label for="termsofservice">I agree with the terms of service and I adhere to them unconditionally</label>
            {% if terms_warning %}<div class="terms-of-service-warning">{{ terms_warning }}</div>{% endif %}
          </div>
          <div class="checkout-buttons">
            <button type="submit" id="checkout" name="checkout" value="checkout" class="button-1 checkout-button">Checkout</button>
          </div>
        </div>
      </form>
    </div>
    {% endif %}
  </div>
</div>
"""

_WISHLIST = """
<div class="page wishlist-page">
  <div class="page-title"><h1>Wishlist</h1></div>
  <div class="page-body">
    {% if not items %}
    <div class="wishlist-content">The wishlist is empty!</div>
    {% else %}
    <div class="wishlist-content">
      <table class="cart">
        <tbody>
          {% for product in items %}
          <tr class="cart-item-row">
            <td class="product"><a class="product-name" href="/{{ product.slug }}">{{ product.name }}</a></td>
            <td class="unit-price nobr"><span class="product-unit-price">{{ '%.2f'|format(product.price) }}</span></td>
          </tr>
          {% endfor %}
        </tbody>
      </table>
    </div>
    {% endif %}
  </div>
</div>
"""

_SUMMARY_ERRORS = """
{% if errors %}
<div class="message-error">
  <div class="validation-summary-errors">
    <span>{{ summary or 'Please correct the errors and try again.' }}</span>
    <ul>{% for error in errors %}<li>{{ error }}</li>{% endfor %}</ul>
  </div>
</div>
{% endif %}
"""

_LOGIN = """
<div class="page login-page">
  <div class="page-title"><h1>Welcome, Please Sign In!</h1></div>
  <div class="page-body">
    <div class="customer-blocks">
      {% if checkout_as_guest %}
      <div class="new-wrapper checkout-as-guest-or-register-block">
        <div class="title"><strong>Checkout as a guest or register</strong></div>
        <div class="text">Register with us for future convenience.</div>
        <div class="buttons">
          <form action="/login/checkoutasguest" method="post">
            <input type="submit" class="button-1 checkout-as-guest-button" value="Checkout as Guest">
          </form>
          <input type="button" class="button-1 register-button" onclick="setLocation('/register')" value="Register">
        </div>
      </div>
      {% endif %}
      <div class="returning-wrapper">
        <div class="title"><strong>Returning Customer</strong></div>
        <form action="/login{% if return_url %}?returnUrl={{ return_url|urlencode }}{% endif %}" method="post">
""" + _SUMMARY_ERRORS + """
          <div class="form-fields">
            <div class="inputs">
              <label for="Email">Email:</label>
              <input autofocus="autofocus" class="email" id="Email" name="Email" type="text" value="{{ email }}">
            </div>
            <div class="inputs">
              <label for="Password">Password:</label>
              <input class="password" id="Password" name="Password" type="password">
            </div>
            <div class="inputs reversed">
              <input id="RememberMe" name="RememberMe" type="checkbox" value="true">
              <label for="RememberMe">Remember me?</label>
              <span class="forgot-password"><a href="/passwordrecovery">Forgot password?</a></span>
            </div>
          </div>
          <div class="buttons">
            <input class="button-1 login-button" type="submit" value="Log in">
          </div>
        </form>
      </div>
    </div>
  </div>
</div>
"""

_FIELD_ERROR = """{% macro field_error(name) %}{% if field_errors.get(name) %}<span class="field-validation-error">{{ field_errors[name] }}</span>{% endif %}{% endmacro %}"""

_GENDER = """
<div class="inputs">
  <label>Gender:</label>
  <div class="gender">
    <input id="gender-male" name="Gender" type="radio" value="M"{% if values.gender == 'M' %} checked="checked"{% endif %}>
    <label class="forcheckbox" for="gender-male">Male</label>
    <input id="gender-female" name="Gender" type="radio" value="F"{% if values.gender == 'F' %} checked="checked"{% endif %}>
    <label class="forcheckbox" for="gender-female">Female</label>
  </div>
</div>
"""

_REGISTER = _FIELD_ERROR + """
<div class="page registration-page">
  <div class="page-title"><h1>Register</h1></div>
  <div class="page-body">
    <form action="/register" method="post">
""" + _SUMMARY_ERRORS + """
      <div class="fieldset">
        <div class="title"><strong>Your Personal Details</strong></div>
        <div class="form-fields">
""" + _GENDER + """
          <div class="inputs">
            <label for="FirstName">First name:</label>
            <input class="text-box single-line" id="FirstName" name="FirstName" type="text" value="{{ values.first_name }}">
            {{ field_error('FirstName') }}
          </div>
          <div class="inputs">
            <label for="LastName">Last name:</label>
            <input class="text-box single-line" id="LastName" name="LastName" type="text" value="{{ values.last_name }}">
            {{ field_error('LastName') }}
          </div>
          <div class="inputs">
            <label for="Email">Email:</label>
            <input class="text-box single-line" id="Email" name="Email" type="text" value="{{ values.email }}">
            {{ field_error('Email') }}
          </div>
        </div>
      </div>
      <div class="fieldset">
        <div class="title"><strong>Your Password</strong></div>
        <div class="form-fields">
          <div class="inputs">
            <label for="Password">Password:</label>
            <input class="text-box single-line password" id="Password" name="Password" type="password">
            {{ field_error('Password') }}
          </div>
          <div class="inputs">
            <label for="ConfirmPassword">Confirm password:</label>
            <input class="text-box single-line password" id="ConfirmPassword" name="ConfirmPassword" type="password">
            {{ field_error('ConfirmPassword') }}
          </div>
        </div>
      </div>
      <div class="buttons">
        <input type="submit" id="register-button" class="button-1 register-next-step-button" value="Register" name="register-button">
      </div>
    </form>
  </div>
</div>
"""

_REGISTER_RESULT = """
<div class="page registration-result-page">
  <div class="page-title"><h1>Register</h1></div>
  <div class="page-body">
    <div class="result">Your registration completed</div>
    <div class="buttons">
      <input type="button" class="button-1 register-continue-button" onclick="setLocation('/')" value="Continue">
    </div>
  </div>
</div>
"""

_PASSWORD_RECOVERY = _FIELD_ERROR + """
<div class="page password-recovery-page">
  <div class="page-title"><h1>Password recovery</h1></div>
  <div class="page-body">
    {% if result %}<div class="result">{{ result }}</div>{% endif %}
    <form action="/passwordrecovery" method="post">
      <div class="form-fields">
        <div class="inputs">
          <label for="Email">Your email address:</label>
          <input class="email" id="Email" name="Email" type="text" value="{{ email }}">
          {{ field_error('Email') }}
        </div>
      </div>
      <div class="buttons">
        <input type="submit" name="send-email" class="button-1 password-recovery-button" value="Recover">
      </div>
    </form>
  </div>
</div>
"""

_ACCOUNT_NAVIGATION = """
<div class="block block-account-navigation">
  <div class="listbox">
    <ul class="list">
      <li><a href="/customer/info">Customer info</a></li>
      <li><a href="/customer/orders">Orders</a></li>
      <li><a href="/customer/changepassword">Change password</a></li>
    </ul>
  </div>
</div>
"""

_CUSTOMER_INFO = _FIELD_ERROR + _ACCOUNT_NAVIGATION + """
<div class="page account-page customer-info-page">
  <div class="page-title"><h1>My account - Customer info</h1></div>
  <div class="page-body">
    {% if result %}<div class="result">{{ result }}</div>{% endif %}
    <form action="/customer/info" method="post">
""" + _SUMMARY_ERRORS + """
      <div class="form-fields">
""" + _GENDER + """
        <div class="inputs">
          <label for="FirstName">First name:</label>
          <input class="text-box single-line" id="FirstName" name="FirstName" type="text" value="{{ values.first_name }}">
          {{ field_error('FirstName') }}
        </div>
        <div class="inputs">
          <label for="LastName">Last name:</label>
          <input class="text-box single-line" id="LastName" name="LastName" type="text" value="{{ values.last_name }}">
          {{ field_error('LastName') }}
        </div>
        <div class="inputs">
          <label for="Email">Email:</label>
          <input class="text-box single-line" id="Email" name="Email" type="text" value="{{ values.email }}">
          {{ field_error('Email') }}
        </div>
      </div>
      <div class="buttons">
        <input type="submit" value="Save" name="save-info-button" class="button-1 save-customer-info-button">
      </div>
    </form>
  </div>
</div>
"""

_CHANGE_PASSWORD = _FIELD_ERROR + _ACCOUNT_NAVIGATION + """
<div class="page account-page change-password-page">
  <div class="page-title"><h1>My account - Change password</h1></div>
  <div class="page-body">
    {% if result %}<div class="result">{{ result }}</div>{% endif %}
    <form action="/customer/changepassword" method="post">
""" + _SUMMARY_ERRORS + """
      <div class="form-fields">
        <div class="inputs">
          <label for="OldPassword">Old password:</label>
          <input class="text-box single-line password" id="OldPassword" name="OldPassword" type="password">
        </div>
        <div class="inputs">
          <label for="NewPassword">New password:</label>
          <input class="text-box single-line password" id="NewPassword" name="NewPassword" type="password">
          {{ field_error('NewPassword') }}
        </div>
        <div class="inputs">
          <label for="ConfirmNewPassword">Confirm password:</label>
          <input class="text-box single-line password" id="ConfirmNewPassword" name="ConfirmNewPassword" type="password">
          {{ field_error('ConfirmNewPassword') }}
        </div>
      </div>
      <div class="buttons">
        <input type="submit" class="button-1 change-password-button" value="Change password">
      </div>
    </form>
  </div>
</div>
"""

_ORDERS = _ACCOUNT_NAVIGATION + """
<div class="page account-page order-list-page">
  <div class="page-title"><h1>My account - Orders</h1></div>
  <div class="page-body">
    {% if not orders %}
    <div class="no-data">No orders</div>
    {% else %}
    <div class="order-list">
      {% for order in orders %}
      <div class="section order-item">
        <div class="title"><strong>Order Number: {{ order.id }}</strong></div>
        <ul class="info">
          <li>Order status: <span class="order-status">{{ order.status }}</span></li>
          <li>Order Date: <span class="order-date">{{ order.created }}</span></li>
          <li>Order Total: <span class="order-total">{{ order.total|money }}</span></li>
        </ul>
      </div>
      {% endfor %}
    </div>
    {% endif %}
  </div>
</div>
"""

_CHECKOUT_STEPS = """
<ol class="opc" id="checkout-steps">
  {% for key, label in [('billing', 'Billing address'), ('shipping', 'Shipping address'), ('shipping_method', 'Shipping method'),
                        ('payment_method', 'Payment method'), ('payment_info', 'Payment information'), ('confirm', 'Confirm order')] %}
  <li id="opc-{{ key }}" class="tab-section{% if key == step %} allow active{% endif %}"><div class="step-title"><h2>{{ label }}</h2></div></li>
  {% endfor %}
</ol>
"""

_BILLING = _FIELD_ERROR + """
<div class="page checkout-page">
  <div class="page-title"><h1>Checkout</h1></div>
  <div class="page-body checkout-data">
""" + _CHECKOUT_STEPS + """
    <div id="checkout-step-billing" class="step a-item">
      <form id="co-billing-form" action="/onepagecheckout" method="post">
        <div class="enter-address">
          <div class="edit-address">
            {% for field, label in text_fields[:3] %}
            <div class="inputs">
              <label for="BillingNewAddress_{{ field }}">{{ label }}:</label>
              <input class="text-box single-line" id="BillingNewAddress_{{ field }}" name="BillingNewAddress.{{ field }}" type="text" value="{{ values.get(field, '') }}">
              {{ field_error(field) }}
            </div>
            {% endfor %}
            <div class="inputs">
              <label for="BillingNewAddress_CountryId">Country:</label>
              <select id="BillingNewAddress_CountryId" name="BillingNewAddress.CountryId" onchange="reloadStates(this)">
                <option value="0">Select country</option>
                {% for country_id, name in countries %}
                <option value="{{ country_id }}"{% if country_id == values.get('CountryId') %} selected="selected"{% endif %}>{{ name }}</option>
                {% endfor %}
              </select>
              {{ field_error('CountryId') }}
            </div>
            <div class="inputs">
              <label for="BillingNewAddress_StateProvinceId">State / province:</label>
              <select id="BillingNewAddress_StateProvinceId" name="BillingNewAddress.StateProvinceId">
                {% for state_id, name in states %}<option value="{{ state_id }}">{{ name }}</option>{% endfor %}
              </select>
              <span id="states-loading-progress" style="display: none;" class="please-wait">Wait...</span>
            </div>
            {% for field, label in text_fields[3:] %}
            <div class="inputs">
              <label for="BillingNewAddress_{{ field }}">{{ label }}:</label>
              <input class="text-box single-line" id="BillingNewAddress_{{ field }}" name="BillingNewAddress.{{ field }}" type="text" value="{{ values.get(field, '') }}">
              {{ field_error(field) }}
            </div>
            {% endfor %}
          </div>
        </div>
      </form>
      <div class="buttons" id="billing-buttons-container">
        <input type="button" title="Continue" class="button-1 new-address-next-step-button" onclick="Billing.save()" value="Continue">
      </div>
    </div>
  </div>
</div>
<script>
var Billing = {
  save: function () { document.getElementById('co-billing-form').submit(); }
};
function reloadStates(countrySelect) {
  var states = document.getElementById('BillingNewAddress_StateProvinceId');
  var progress = document.getElementById('states-loading-progress');
  states.setAttribute('data-loading', 'true');
  progress.style.display = 'inline';
  fetch('/country/getstatesbycountryid?countryId=' + encodeURIComponent(countrySelect.value))
    .then(function (response) { return response.json(); })
    .then(function (data) {
      states.innerHTML = '';
      data.forEach(function (state) {
        var option = document.createElement('option');
        option.value = state.id;
        option.textContent = state.name;
        states.appendChild(option);
      });
      states.removeAttribute('data-loading');
      progress.style.display = 'none';
    });
}
</script>
"""

_SHIPPING_ADDRESS = """
<div class="page checkout-page">
  <div class="page-title"><h1>Checkout</h1></div>
  <div class="page-body checkout-data">
""" + _CHECKOUT_STEPS + """
    <div id="checkout-step-shipping" class="step a-item">
      <form id="co-shipping-form" action="/checkout/shippingaddress" method="post">
        {% if pickup_enabled %}
        <div class="section pickup-in-store">
          <div class="selector">
            <input id="PickUpInStore" name="PickUpInStore" type="checkbox" value="true">
            <label for="PickUpInStore">In-Store Pickup</label>
          </div>
          <div class="description">Pick up your items at the store (put your store address here)</div>
        </div>
        {% endif %}
        <div class="section select-shipping-address">
          <label for="shipping-address-select">Select a shipping address from your address book or enter a new address.</label>
          <div>
            <select name="shipping_address_id" id="shipping-address-select" class="address-select">
              <option value="1">{{ address_label }}</option>
              <option value="">New Address</option>
            </select>
          </div>
        </div>
        <div class="buttons" id="shipping-buttons-container">
          <input type="submit" title="Continue" class="button-1 new-address-next-step-button" value="Continue">
        </div>
      </form>
    </div>
  </div>
</div>
"""

_SHIPPING_METHOD = """
<div class="page checkout-page">
  <div class="page-title"><h1>Checkout</h1></div>
  <div class="page-body checkout-data">
""" + _CHECKOUT_STEPS + """
    <div id="checkout-step-shipping-method" class="step a-item">
      <form id="co-shipping-method-form" action="/checkout/shippingmethod" method="post">
        <div class="shipping-method">
          <ul class="method-list">
            {% for method in methods %}
            <li>
              <div class="method-name">
                <input id="shippingoption_{{ loop.index0 }}" type="radio" name="shippingoption" value="{{ method.name }}___Shipping.FixedRate"{% if loop.first %} checked="checked"{% endif %}>
                <label for="shippingoption_{{ loop.index0 }}">{{ method.name }} ({{ method.rate|money }})</label>
              </div>
              <div class="method-description">{{ method.description }}</div>
            </li>
            {% endfor %}
          </ul>
        </div>
        <div class="buttons" id="shipping-method-buttons-container">
          <input type="submit" class="button-1 shipping-method-next-step-button" value="Continue">
        </div>
      </form>
    </div>
  </div>
</div>
"""

_PAYMENT_METHOD = """
<div class="page checkout-page">
  <div class="page-title"><h1>Checkout</h1></div>
  <div class="page-body checkout-data">
""" + _CHECKOUT_STEPS + """
    <div id="checkout-step-payment-method" class="step a-item">
      <form id="co-payment-method-form" action="/checkout/paymentmethod" method="post">
        <div class="payment-method">
          <ul class="method-list">
            {% for method in methods %}
            <li>
              <div class="method-name">
                <input id="paymentmethod_{{ loop.index0 }}" type="radio" name="paymentmethod" value="{{ method.value }}"{% if loop.first %} checked="checked"{% endif %}>
                <label for="paymentmethod_{{ loop.index0 }}">{{ method.label }}{% if method.fee %} ({{ method.fee|money }}){% endif %}</label>
              </div>
            </li>
            {% endfor %}
          </ul>
        </div>
        <div class="buttons" id="payment-method-buttons-container">
          <input type="submit" class="button-1 payment-method-next-step-button" value="Continue">
        </div>
      </form>
    </div>
  </div>
</div>
"""

_PAYMENT_INFO = """
<div class="page checkout-page">
  <div class="page-title"><h1>Checkout</h1></div>
  <div class="page-body checkout-data">
""" + _CHECKOUT_STEPS + """
    <div id="checkout-step-payment-info" class="step a-item">
      <form id="co-payment-info-form" action="/checkout/paymentinfo" method="post">
""" + _SUMMARY_ERRORS + """
        <div class="payment-info">
          <div class="info">
            {% if method.info == 'card' %}
            <table>
              <tr>
                <td><label for="CreditCardType">Select credit card:</label></td>
                <td><select id="CreditCardType" name="CreditCardType">
                  {% for value, label in card_types %}<option value="{{ value }}">{{ label }}</option>{% endfor %}
                </select></td>
              </tr>
              <tr>
                <td><label for="CardholderName">Cardholder name:</label></td>
                <td><input id="CardholderName" name="CardholderName" type="text" autocomplete="off"></td>
              </tr>
              <tr>
                <td><label for="CardNumber">Card number:</label></td>
                <td><input id="CardNumber" name="CardNumber" type="text" autocomplete="off" maxlength="22"></td>
              </tr>
              <tr>
                <td><label for="ExpireMonth">Expiration date:</label></td>
                <td>
                  <select id="ExpireMonth" name="ExpireMonth">
                    {% for month in range(1, 13) %}<option value="{{ month }}">{{ '%02d'|format(month) }}</option>{% endfor %}
                  </select>
                  <select id="ExpireYear" name="ExpireYear">
                    {% for year in years %}<option value="{{ year }}">{{ year }}</option>{% endfor %}
                  </select>
                </td>
              </tr>
              <tr>
                <td><label for="CardCode">Card code:</label></td>
                <td><input id="CardCode" name="CardCode" type="text" autocomplete="off" maxlength="4"></td>
              </tr>
            </table>
            {% elif method.info == 'purchase_order' %}
            <table>
              <tr>
                <td><label for="PurchaseOrderNumber">PO Number:</label></td>
                <td><input id="PurchaseOrderNumber" name="PurchaseOrderNumber" type="text"></td>
              </tr>
            </table>
            {% elif method.info %}
            <p>{{ method.info }}</p>
            {% endif %}
          </div>
        </div>
        <div class="buttons" id="payment-info-buttons-container">
          <input type="submit" class="button-1 payment-info-next-step-button" value="Continue">
        </div>
      </form>
    </div>
  </div>
</div>
"""

_CONFIRM = """
<div class="page checkout-page">
  <div class="page-title"><h1>Checkout</h1></div>
  <div class="page-body checkout-data">
""" + _CHECKOUT_STEPS + """
    <div id="checkout-step-confirm-order" class="step a-item">
      <div class="order-summary-body">
        <div class="order-review-data">
          <ul class="billing-info">
            <li class="title"><strong>Billing Address</strong></li>
            <li class="name">{{ billing.FirstName }} {{ billing.LastName }}</li>
            <li class="email">Email: {{ billing.Email }}</li>
            <li class="address1">{{ billing.Address1 }}</li>
            <li class="city-state-zip">{{ billing.City }} , {{ billing.ZipPostalCode }}</li>
            <li class="country">{{ billing.CountryName }}</li>
            <li class="payment-method">Payment Method: {{ method.label }}</li>
          </ul>
          <ul class="shipping-info">
            <li class="shipping-method">Shipping Method: {{ shipping_method }}</li>
          </ul>
        </div>
        <table class="cart">
          <tbody>
            {% for item in items %}
            <tr class="cart-item-row">
              <td class="product"><span class="product-name">{{ item.product.name }}</span></td>
              <td class="unit-price nobr"><span class="product-unit-price">{{ '%.2f'|format(item.product.price) }}</span></td>
              <td class="qty nobr"><span>{{ item.quantity }}</span></td>
              <td class="subtotal nobr end"><span class="product-subtotal">{{ '%.2f'|format(item.line_total) }}</span></td>
            </tr>
            {% endfor %}
          </tbody>
        </table>
        <div class="totals">
""" + _TOTALS + """
        </div>
      </div>
      <form action="/checkout/confirm" method="post">
        <div class="buttons" id="confirm-order-buttons-container">
          <input type="submit" class="button-1 confirm-order-next-step-button" value="Confirm">
        </div>
      </form>
    </div>
  </div>
</div>
"""

_COMPLETED = """
<div class="page checkout-page">
  <div class="page-title"><h1>Thank you</h1></div>
  <div class="page-body checkout-data">
    <div class="section order-completed">
      <div class="title"><strong>Your order has been successfully processed!</strong></div>
      <ul class="details">
        <li>Order number: {{ order.id }}</li>
        <li><a href="/customer/orders">Click here for order details.</a></li>
      </ul>
      <div class="buttons">
        <input type="button" value="Continue" class="button-2 order-completed-continue-button" onclick="setLocation('/')">
      </div>
    </div>
  </div>
</div>
"""

_NOT_FOUND = """
<div class="page page-not-found">
  <div class="page-title"><h1>Page not found</h1></div>
  <div class="page-body">The page you requested was not found, and we have a fine guess why.</div>
</div>
"""

BILLING_TEXT_FIELDS: List[Tuple[str, str]] = [
    ("FirstName", "First name"),
    ("LastName", "Last name"),
    ("Email", "Email"),
    ("City", "City"),
    ("Address1", "Address 1"),
    ("ZipPostalCode", "Zip / postal code"),
    ("PhoneNumber", "Phone number"),
]

BILLING_REQUIRED: Dict[str, str] = {
    "FirstName": "First name is required.",
    "LastName": "Last name is required.",
    "Email": "Email is required.",
    "City": "City is required",
    "Address1": "Street address is required",
    "ZipPostalCode": "Zip / postal code is required",
    "PhoneNumber": "Phone is required",
}

CARD_TYPES: List[Tuple[str, str]] = [
    ("Visa", "Visa"),
    ("MasterCard", "Master card"),
    ("Discover", "Discover"),
    ("Amex", "Amex"),
]


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _new_shopper() -> Dict[str, Any]:
    return {
        "cart": OrderedDict(),
        "wishlist": OrderedDict(),
        "email": None,
        "guest_checkout": False,
        "discount_code": None,
        "checkout": {},
    }


def _shopper() -> Dict[str, Any]:
    """State of the shopper behind the current request's session cookie."""
    sid = session.get("sid")
    if sid is None or sid not in SHOPPERS:
        sid = secrets.token_hex(8)
        session["sid"] = sid
        SHOPPERS[sid] = _new_shopper()
    return SHOPPERS[sid]


def _order_owner(shopper: Dict[str, Any]) -> str:
    return shopper["email"] or session["sid"]


def _all_payment_methods() -> List[Dict[str, Any]]:
    return PAYMENT_METHODS + EXTRA_PAYMENT_METHODS


def _payment_method(value: Optional[str]) -> Optional[Dict[str, Any]]:
    for method in _all_payment_methods():
        if method["value"] == value:
            return method
    return None


def _country_name(country_id: int) -> str:
    return dict(COUNTRIES).get(country_id, "")


def _states_for(country_id: int) -> List[Tuple[int, str]]:
    if country_id == 1:
        return US_STATES
    return [(0, "Other (Non US)")]


def _int_arg(value: Optional[str], default: int = 0) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _cart_items(shopper: Dict[str, Any]) -> List[Dict[str, Any]]:
    items = []
    for product_id, quantity in shopper["cart"].items():
        product = PRODUCTS_BY_ID[product_id]
        items.append({"product": product, "quantity": quantity, "line_total": product["price"] * quantity})
    return items


def _discount_amount(code: Optional[str], subtotal: float) -> float:
    if not code or code not in DISCOUNTS:
        return 0.0
    kind, amount = DISCOUNTS[code]
    if kind == "percent":
        return round(subtotal * amount / 100, 2)
    return min(amount, subtotal)


def _totals(shopper: Dict[str, Any], fee: Optional[float] = None) -> Dict[str, Any]:
    """Order totals; ``total = subtotal - discount + shipping + tax + fee``."""
    subtotal = sum(item["line_total"] for item in _cart_items(shopper))
    discount = _discount_amount(shopper["discount_code"], subtotal)
    shipping = shopper["checkout"].get("shipping_rate", 0.0)
    tax = 0.0
    total = round(subtotal - discount + shipping + tax + (fee or 0.0), 2)
    return {"subtotal": subtotal, "discount": discount, "shipping": shipping, "tax": tax, "fee": fee, "total": total}


def _address_label(billing: Dict[str, Any]) -> str:
    return (
        f"{billing['FirstName']} {billing['LastName']}, {billing['Address1']}, "
        f"{billing['City']} {billing['ZipPostalCode']}, {billing['CountryName']}"
    )


def _sorted_products(products: List[Dict[str, Any]], orderby: int) -> List[Dict[str, Any]]:
    if orderby == 5:
        return sorted(products, key=lambda p: p["name"].lower())
    if orderby == 6:
        return sorted(products, key=lambda p: p["name"].lower(), reverse=True)
    if orderby == 10:
        return sorted(products, key=lambda p: p["price"])
    if orderby == 11:
        return sorted(products, key=lambda p: p["price"], reverse=True)
    return list(products)


def _next_order_id() -> int:
    global _next_order_number
    with _order_lock:
        order_id = _next_order_number
        _next_order_number += 1
    return order_id


def create_storefront_app() -> Flask:
    """Create and configure the mock storefront Flask app."""
    app = Flask(__name__)
    app.config['TESTING'] = True
    app.secret_key = secrets.token_hex(16)
    app.jinja_env.filters['money'] = _money

    def render_page(body: str, title: str, status: int = 200, **context: Any):
        shopper = _shopper()
        context.setdefault("errors", [])
        context.setdefault("field_errors", {})
        content = render_template_string(body, **context)
        html = render_template_string(
            _LAYOUT,
            title=title,
            content=content,
            shopper=shopper,
            categories=CATEGORIES,
            cart_qty=sum(shopper["cart"].values()),
            wishlist_qty=sum(shopper["wishlist"].values()),
        )
        return html, status

    def login_required_redirect():
        return redirect(f"/login?returnUrl={request.path}")

    def checkout_guard(shopper: Dict[str, Any], *required: str):
        """Redirect to the right place when a checkout step is opened out of order."""
        if not shopper["cart"]:
            return redirect("/cart")
        if not shopper["email"] and not shopper["guest_checkout"]:
            return redirect("/login/checkoutasguest?returnUrl=%2Fcart")
        for key in required:
            if key not in shopper["checkout"]:
                return redirect("/onepagecheckout")
        return None

    # ------------------------------------------------------------------ catalog

    @app.route('/')
    def home():
        return render_page(_HOME, "Home", products=PRODUCTS)

    @app.route('/search')
    def search():
        q = (request.args.get('q') or "").strip()
        warning = None
        products: List[Dict[str, Any]] = []
        if q and len(q) < MIN_SEARCH_LENGTH:
            warning = f"Search term minimum length is {MIN_SEARCH_LENGTH} characters"
        elif q:
            products = [p for p in PRODUCTS if q.lower() in p["name"].lower()]
        return render_page(_SEARCH, "Search", q=q, products=products, warning=warning)

    @app.route('/<slug>')
    def catalog_entry(slug: str):
        if slug in CATEGORIES:
            orderby = _int_arg(request.args.get('orderby'))
            products = _sorted_products([p for p in PRODUCTS if p["category"] == slug], orderby)
            return render_page(
                _CATEGORY,
                CATEGORIES[slug],
                slug=slug,
                category_name=CATEGORIES[slug],
                products=products,
                sort_options=SORT_OPTIONS,
                orderby=orderby,
            )
        product = PRODUCTS_BY_SLUG.get(slug)
        if product is None:
            return render_page(_NOT_FOUND, "Page not found", status=404)
        return render_page(_PRODUCT, product["name"], product=product)

    @app.route('/addproducttocart/details/<int:product_id>/<int:cart_type>', methods=['POST'])
    def add_product(product_id: int, cart_type: int):
        """AJAX add-to-cart (cart_type 1) and add-to-wishlist (cart_type 2)."""
        product = PRODUCTS_BY_ID.get(product_id)
        if product is None or cart_type not in (1, 2):
            abort(404)
        shopper = _shopper()

        if product.get("gift_card"):
            errors = []
            for field, message in (
                ("RecipientName", "Enter valid recipient name"),
                ("RecipientEmail", "Enter valid recipient email"),
                ("SenderName", "Enter valid sender name"),
                ("SenderEmail", "Enter valid sender email"),
            ):
                if not (request.form.get(f"giftcard_{product_id}.{field}") or "").strip():
                    errors.append(message)
            if errors:
                return jsonify({"success": False, "message": "<br>".join(errors)})

        quantity = _int_arg(request.form.get(f"addtocart_{product_id}.EnteredQuantity"), 1)
        if quantity <= 0:
            return jsonify({"success": False, "message": "Quantity should be positive"})

        target = shopper["cart"] if cart_type == 1 else shopper["wishlist"]
        target[product_id] = target.get(product_id, 0) + quantity
        if cart_type == 1:
            return jsonify({
                "success": True,
                "message": CART_ADDED_HTML,
                "updatetopcartsectionhtml": f"({sum(shopper['cart'].values())})",
            })
        return jsonify({
            "success": True,
            "message": WISHLIST_ADDED_HTML,
            "updatetopwishlistsectionhtml": f"({sum(shopper['wishlist'].values())})",
        })

    # ---------------------------------------------------------------- cart

    @app.route('/cart', methods=['GET', 'POST'])
    def cart():
        shopper = _shopper()
        context: Dict[str, Any] = {
            "coupon_message": None,
            "estimates": [],
            "estimate_error": None,
            "estimate_country": 0,
            "estimate_zip": "",
            "terms_warning": None,
        }

        if request.method == 'POST':
            form = request.form
            if 'continueshopping' in form:
                return redirect('/')
            if 'updatecart' in form:
                removed = {_int_arg(value) for value in form.getlist('removefromcart')}
                for product_id in list(shopper["cart"].keys()):
                    quantity = _int_arg(form.get(f"itemquantity{product_id}"), shopper["cart"][product_id])
                    if product_id in removed or quantity <= 0:
                        del shopper["cart"][product_id]
                    else:
                        shopper["cart"][product_id] = quantity
                if not shopper["cart"]:
                    shopper["discount_code"] = None
            elif 'applydiscountcouponcode' in form:
                code = (form.get('discountcouponcode') or "").strip().upper()
                if code in DISCOUNTS:
                    shopper["discount_code"] = code
                    context["coupon_message"] = "The coupon code was applied"
                else:
                    context["coupon_message"] = "The coupon code you entered couldn't be applied to your order"
            elif 'estimateshipping' in form:
                country_id = _int_arg(form.get('CountryId'))
                context["estimate_country"] = country_id
                context["estimate_zip"] = form.get('ZipPostalCode') or ""
                if country_id == 0:
                    context["estimate_error"] = "Country is required"
                else:
                    context["estimates"] = SHIPPING_METHODS
            elif 'checkout' in form:
                if not form.get('termsofservice'):
                    context["terms_warning"] = "Please accept the terms of service before the next step."
                elif shopper["cart"]:
                    shopper["checkout"] = {}
                    if shopper["email"] or shopper["guest_checkout"]:
                        return redirect('/onepagecheckout')
                    return redirect('/login/checkoutasguest?returnUrl=%2Fcart')

        return render_page(
            _CART,
            "Shopping Cart",
            items=_cart_items(shopper),
            totals=_totals(shopper),
            countries=COUNTRIES,
            **context,
        )

    @app.route('/wishlist')
    def wishlist():
        shopper = _shopper()
        items = [PRODUCTS_BY_ID[product_id] for product_id in shopper["wishlist"]]
        return render_page(_WISHLIST, "Wishlist", items=items)

    @app.route('/country/getstatesbycountryid')
    def states_by_country():
        country_id = _int_arg(request.args.get('countryId'))
        return jsonify([{"id": state_id, "name": name} for state_id, name in _states_for(country_id)])

    # ------------------------------------------------------------ customer

    @app.route('/login', methods=['GET', 'POST'])
    def login():
        shopper = _shopper()
        return_url = request.args.get('returnUrl') or ""
        if request.method == 'GET':
            return render_page(_LOGIN, "Login", return_url=return_url, email="", checkout_as_guest=False)

        email = (request.form.get('Email') or "").strip()
        password = request.form.get('Password') or ""
        user = USERS.get(email)
        if user is None:
            errors = ["No customer account found"]
        elif user["password"] != password:
            errors = ["The credentials provided are incorrect"]
        else:
            shopper["email"] = email
            shopper["guest_checkout"] = False
            return redirect(return_url or '/')
        return render_page(
            _LOGIN,
            "Login",
            return_url=return_url,
            email=email,
            checkout_as_guest=False,
            errors=errors,
            summary="Login was unsuccessful. Please correct the errors and try again.",
        )

    @app.route('/login/checkoutasguest', methods=['GET', 'POST'])
    def checkout_as_guest():
        shopper = _shopper()
        if request.method == 'POST':
            shopper["guest_checkout"] = True
            return redirect('/onepagecheckout')
        return render_page(
            _LOGIN,
            "Login",
            return_url=request.args.get('returnUrl') or "/cart",
            email="",
            checkout_as_guest=True,
        )

    @app.route('/logout')
    def logout():
        shopper = _shopper()
        shopper["email"] = None
        shopper["guest_checkout"] = False
        return redirect('/')

    @app.route('/register', methods=['GET', 'POST'])
    def register():
        shopper = _shopper()
        if request.method == 'GET':
            return render_page(_REGISTER, "Register", values={})

        form = request.form
        values = {
            "gender": form.get('Gender') or "",
            "first_name": (form.get('FirstName') or "").strip(),
            "last_name": (form.get('LastName') or "").strip(),
            "email": (form.get('Email') or "").strip(),
        }
        password = form.get('Password') or ""
        field_errors: Dict[str, str] = {}
        errors: List[str] = []

        if not values["first_name"]:
            field_errors["FirstName"] = "First name is required."
        if not values["last_name"]:
            field_errors["LastName"] = "Last name is required."
        if not values["email"]:
            field_errors["Email"] = "Email is required."
        elif not EMAIL_RE.match(values["email"]):
            field_errors["Email"] = "Wrong email"
        if not password:
            field_errors["Password"] = "Password is required."
        elif len(password) < MIN_PASSWORD_LENGTH:
            field_errors["Password"] = f"The password should have at least {MIN_PASSWORD_LENGTH} characters."
        if password != (form.get('ConfirmPassword') or ""):
            field_errors["ConfirmPassword"] = "The password and confirmation password do not match."
        if not field_errors and values["email"] in USERS:
            errors.append("The specified email already exists")

        if field_errors or errors:
            return render_page(_REGISTER, "Register", values=values, field_errors=field_errors, errors=errors)

        USERS[values["email"]] = {
            "first_name": values["first_name"],
            "last_name": values["last_name"],
            "password": password,
            "gender": values["gender"],
        }
        shopper["email"] = values["email"]
        shopper["guest_checkout"] = False
        return redirect('/registerresult/1')

    @app.route('/registerresult/<int:result_id>')
    def register_result(result_id: int):
        return render_page(_REGISTER_RESULT, "Register")

    @app.route('/passwordrecovery', methods=['GET', 'POST'])
    def password_recovery():
        if request.method == 'GET':
            return render_page(_PASSWORD_RECOVERY, "Password Recovery", email="", result=None)

        email = (request.form.get('Email') or "").strip()
        field_errors: Dict[str, str] = {}
        result = None
        if not email:
            field_errors["Email"] = "Enter your email"
        elif not EMAIL_RE.match(email):
            field_errors["Email"] = "Wrong email"
        elif email in USERS:
            result = "Email with instructions has been sent to you."
        else:
            result = "Email not found."
        return render_page(
            _PASSWORD_RECOVERY, "Password Recovery", email=email, result=result, field_errors=field_errors
        )

    @app.route('/customer/info', methods=['GET', 'POST'])
    def customer_info():
        shopper = _shopper()
        email = shopper["email"]
        if not email:
            return login_required_redirect()
        user = USERS[email]

        if request.method == 'GET':
            values = {
                "gender": user["gender"],
                "first_name": user["first_name"],
                "last_name": user["last_name"],
                "email": email,
            }
            return render_page(_CUSTOMER_INFO, "Customer info", values=values, result=None)

        form = request.form
        values = {
            "gender": form.get('Gender') or user["gender"],
            "first_name": (form.get('FirstName') or "").strip(),
            "last_name": (form.get('LastName') or "").strip(),
            "email": (form.get('Email') or "").strip(),
        }
        field_errors: Dict[str, str] = {}
        errors: List[str] = []
        if not values["first_name"]:
            field_errors["FirstName"] = "First name is required."
        if not values["last_name"]:
            field_errors["LastName"] = "Last name is required."
        if not EMAIL_RE.match(values["email"]):
            field_errors["Email"] = "Wrong email"
        elif values["email"] != email and values["email"] in USERS:
            errors.append("The e-mail address is already in use")
        if field_errors or errors:
            return render_page(
                _CUSTOMER_INFO, "Customer info", values=values, field_errors=field_errors, errors=errors, result=None
            )

        user.update(first_name=values["first_name"], last_name=values["last_name"], gender=values["gender"])
        if values["email"] != email:
            USERS[values["email"]] = USERS.pop(email)
            if email in ORDERS:
                ORDERS[values["email"]] = ORDERS.pop(email)
            shopper["email"] = values["email"]
        return render_page(_CUSTOMER_INFO, "Customer info", values=values, result=None)

    @app.route('/customer/changepassword', methods=['GET', 'POST'])
    def change_password():
        shopper = _shopper()
        email = shopper["email"]
        if not email:
            return login_required_redirect()
        if request.method == 'GET':
            return render_page(_CHANGE_PASSWORD, "Change password", result=None)

        form = request.form
        new_password = form.get('NewPassword') or ""
        field_errors: Dict[str, str] = {}
        errors: List[str] = []
        if len(new_password) < MIN_PASSWORD_LENGTH:
            field_errors["NewPassword"] = f"The password should have at least {MIN_PASSWORD_LENGTH} characters."
        if new_password != (form.get('ConfirmNewPassword') or ""):
            field_errors["ConfirmNewPassword"] = "The new password and confirmation password do not match."
        if not field_errors and USERS[email]["password"] != (form.get('OldPassword') or ""):
            errors.append("Old password doesn't match")
        if field_errors or errors:
            return render_page(
                _CHANGE_PASSWORD, "Change password", field_errors=field_errors, errors=errors, result=None
            )

        USERS[email]["password"] = new_password
        return render_page(_CHANGE_PASSWORD, "Change password", result="Password was changed")

    @app.route('/customer/orders')
    def customer_orders():
        shopper = _shopper()
        if not shopper["email"]:
            return login_required_redirect()
        return render_page(_ORDERS, "Orders", orders=ORDERS.get(shopper["email"], []))

    # ------------------------------------------------------------ checkout

    @app.route('/onepagecheckout', methods=['GET', 'POST'])
    def billing():
        shopper = _shopper()
        guard = checkout_guard(shopper)
        if guard is not None:
            return guard

        values: Dict[str, Any] = {}
        if shopper["email"]:
            user = USERS[shopper["email"]]
            values.update(FirstName=user["first_name"], LastName=user["last_name"], Email=shopper["email"])
        states = _states_for(0)

        if request.method == 'POST':
            form = request.form
            values = {field: (form.get(f"BillingNewAddress.{field}") or "").strip() for field, _ in BILLING_TEXT_FIELDS}
            values["CountryId"] = _int_arg(form.get('BillingNewAddress.CountryId'))
            values["StateProvinceId"] = _int_arg(form.get('BillingNewAddress.StateProvinceId'))
            states = _states_for(values["CountryId"])

            field_errors = {field: message for field, message in BILLING_REQUIRED.items() if not values[field]}
            if values["Email"] and not EMAIL_RE.match(values["Email"]):
                field_errors["Email"] = "Wrong email"
            if values["CountryId"] == 0:
                field_errors["CountryId"] = "Country is required."
            if not field_errors:
                values["CountryName"] = _country_name(values["CountryId"])
                shopper["checkout"] = {"billing": values}
                return redirect('/checkout/shippingaddress')
            return render_page(
                _BILLING,
                "Checkout",
                step="billing",
                values=values,
                field_errors=field_errors,
                countries=COUNTRIES,
                states=states,
                text_fields=BILLING_TEXT_FIELDS,
            )

        return render_page(
            _BILLING,
            "Checkout",
            step="billing",
            values=values,
            countries=COUNTRIES,
            states=states,
            text_fields=BILLING_TEXT_FIELDS,
        )

    @app.route('/checkout/shippingaddress', methods=['GET', 'POST'])
    def shipping_address():
        shopper = _shopper()
        guard = checkout_guard(shopper, "billing")
        if guard is not None:
            return guard
        checkout = shopper["checkout"]

        if request.method == 'POST':
            if STORE_SETTINGS["pickup_in_store"] and request.form.get('PickUpInStore'):
                checkout.update(shipping_method=PICKUP_SHIPPING_NAME, shipping_rate=0.0, pickup=True)
                return redirect('/checkout/paymentmethod')
            checkout.update(pickup=False)
            checkout.pop("shipping_method", None)
            return redirect('/checkout/shippingmethod')

        return render_page(
            _SHIPPING_ADDRESS,
            "Checkout",
            step="shipping",
            address_label=_address_label(checkout["billing"]),
            pickup_enabled=STORE_SETTINGS["pickup_in_store"],
        )

    @app.route('/checkout/shippingmethod', methods=['GET', 'POST'])
    def shipping_method():
        shopper = _shopper()
        guard = checkout_guard(shopper, "billing")
        if guard is not None:
            return guard

        if request.method == 'POST':
            selected = (request.form.get('shippingoption') or "").split("___")[0]
            method = next((m for m in SHIPPING_METHODS if m["name"] == selected), SHIPPING_METHODS[0])
            shopper["checkout"].update(shipping_method=method["name"], shipping_rate=method["rate"])
            return redirect('/checkout/paymentmethod')

        return render_page(_SHIPPING_METHOD, "Checkout", step="shipping_method", methods=SHIPPING_METHODS)

    @app.route('/checkout/paymentmethod', methods=['GET', 'POST'])
    def payment_method():
        shopper = _shopper()
        guard = checkout_guard(shopper, "billing", "shipping_method")
        if guard is not None:
            return guard

        if request.method == 'POST':
            method = _payment_method(request.form.get('paymentmethod')) or _all_payment_methods()[0]
            shopper["checkout"]["payment_method"] = method["value"]
            return redirect('/checkout/paymentinfo')

        return render_page(_PAYMENT_METHOD, "Checkout", step="payment_method", methods=_all_payment_methods())

    @app.route('/checkout/paymentinfo', methods=['GET', 'POST'])
    def payment_info():
        shopper = _shopper()
        guard = checkout_guard(shopper, "billing", "shipping_method", "payment_method")
        if guard is not None:
            return guard
        method = _payment_method(shopper["checkout"]["payment_method"])
        years = list(range(datetime.now().year, datetime.now().year + 15))

        if request.method == 'POST':
            form = request.form
            errors: List[str] = []
            if method["info"] == "card":
                card_number = re.sub(r"\D", "", form.get('CardNumber') or "")
                if not (form.get('CardholderName') or "").strip():
                    errors.append("Enter cardholder name")
                if not 13 <= len(card_number) <= 19:
                    errors.append("Wrong card number")
                if not re.fullmatch(r"\d{3,4}", form.get('CardCode') or ""):
                    errors.append("Wrong card code")
            elif method["info"] == "purchase_order":
                if not (form.get('PurchaseOrderNumber') or "").strip():
                    errors.append("Purchase order number is required")
            if errors:
                return render_page(
                    _PAYMENT_INFO,
                    "Checkout",
                    step="payment_info",
                    method=method,
                    card_types=CARD_TYPES,
                    years=years,
                    errors=errors,
                    summary="Please correct the errors and try again.",
                )
            shopper["checkout"]["payment_info"] = True
            return redirect('/checkout/confirm')

        return render_page(
            _PAYMENT_INFO, "Checkout", step="payment_info", method=method, card_types=CARD_TYPES, years=years
        )

    @app.route('/checkout/confirm', methods=['GET', 'POST'])
    def confirm():
        shopper = _shopper()
        guard = checkout_guard(shopper, "billing", "shipping_method", "payment_method", "payment_info")
        if guard is not None:
            return guard
        checkout = shopper["checkout"]
        method = _payment_method(checkout["payment_method"])
        totals = _totals(shopper, fee=method["fee"])

        if request.method == 'POST':
            order = {
                "id": _next_order_id(),
                "status": "Pending",
                "created": datetime.now().strftime("%A, %B %d, %Y"),
                "total": totals["total"],
                "payment_method": method["label"],
                "shipping_method": checkout["shipping_method"],
                "items": [(item["product"]["name"], item["quantity"]) for item in _cart_items(shopper)],
            }
            ORDERS.setdefault(_order_owner(shopper), []).insert(0, order)
            shopper["cart"].clear()
            shopper["discount_code"] = None
            shopper["checkout"] = {}
            shopper["guest_checkout"] = False
            return redirect(f"/checkout/completed/{order['id']}")

        return render_page(
            _CONFIRM,
            "Checkout",
            step="confirm",
            billing=checkout["billing"],
            method=method,
            shipping_method=checkout["shipping_method"],
            items=_cart_items(shopper),
            totals=totals,
        )

    @app.route('/checkout/completed/<int:order_id>')
    def completed(order_id: int):
        shopper = _shopper()
        orders = ORDERS.get(_order_owner(shopper), [])
        order = next((o for o in orders if o["id"] == order_id), None)
        if order is None:
            return render_page(_NOT_FOUND, "Page not found", status=404)
        return render_page(_COMPLETED, "Checkout", order=order)

    @app.route('/favicon.ico')
    def favicon():
        return '', 204

    @app.errorhandler(404)
    def not_found(error):
        return render_page(_NOT_FOUND, "Page not found", status=404)

    return app


def reset_mock_state():
    """Reset all mock state to the seeded defaults."""
    global _next_order_number
    SHOPPERS.clear()
    USERS.clear()
    ORDERS.clear()
    EXTRA_PAYMENT_METHODS.clear()
    STORE_SETTINGS.clear()
    STORE_SETTINGS.update(pickup_in_store=True)
    with _order_lock:
        _next_order_number = FIRST_ORDER_NUMBER
    seed_customer(MOCK_CUSTOMER_EMAIL, MOCK_CUSTOMER_PASSWORD)


def seed_customer(
    email: str,
    password: str,
    first_name: str = "Test",
    last_name: str = "User",
    gender: str = "M",
) -> None:
    """Register a customer account so it can log in immediately."""
    USERS[email] = {
        "first_name": first_name,
        "last_name": last_name,
        "password": password,
        "gender": gender,
    }


def enable_payment_method(value: str, label: str, fee: float = 0.0, info: str = "") -> None:
    """Offer an extra payment method at checkout (e.g. one the fee table does not know)."""
    EXTRA_PAYMENT_METHODS.append({"value": value, "label": label, "fee": fee, "info": info})


def set_pickup_in_store(enabled: bool) -> None:
    """Turn the "In-Store Pickup" option of the shipping step on or off."""
    STORE_SETTINGS["pickup_in_store"] = enabled


reset_mock_state()


def main():
    app = create_storefront_app()
    print("Mock storefront running on http://localhost:5556")
    print(f"Test customer: email={MOCK_CUSTOMER_EMAIL}, password={MOCK_CUSTOMER_PASSWORD}")
    app.run(host='0.0.0.0', port=5556, debug=True)


if __name__ == '__main__':
    main()
