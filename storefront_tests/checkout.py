"""Checkout domain model.

The storefront's one-page checkout changes shape depending on who is buying
and how they pay. Instead of probing the DOM ad hoc at every step, the
workflows resolve each variant once into the enums below and report the
outcome of the confirm step as a :class:`CheckoutSession`.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Dict, Optional

from storefront_tests.errors import UnexpectedPaymentMethodError


class CheckoutFlavor(enum.Enum):
    GUEST = "guest"
    REGISTERED = "registered"


class PaymentInfoKind(enum.Enum):
    """Which payment-info form the storefront rendered."""

    CREDIT_CARD = "credit_card"
    PURCHASE_ORDER = "purchase_order"
    INFORMATIONAL = "informational"
    NONE = "none"


# Payment method label on the confirm page -> additional fee charged by the store.
PAYMENT_METHOD_FEES: Dict[str, float] = {
    "Cash On Delivery (COD)": 7.0,
    "Check / Money Order": 5.0,
    "Credit Card": 0.0,
    "Purchase Order": 0.0,
}


def expected_fee(payment_method_label: str) -> float:
    """Fee the store must charge for ``payment_method_label``.

    Raises:
        UnexpectedPaymentMethodError: the label is not one the harness knows.
    """
    label = payment_method_label.strip()
    try:
        return PAYMENT_METHOD_FEES[label]
    except KeyError:
        raise UnexpectedPaymentMethodError(label) from None


def resolve_checkout_flavor(guest_button_visible: bool) -> CheckoutFlavor:
    return CheckoutFlavor.GUEST if guest_button_visible else CheckoutFlavor.REGISTERED


def resolve_payment_info_kind(
    card_form_visible: bool,
    purchase_order_visible: bool,
    info_text_visible: bool,
) -> PaymentInfoKind:
    """Pick the payment-info variant; the credit card form wins over the others."""
    if card_form_visible:
        return PaymentInfoKind.CREDIT_CARD
    if purchase_order_visible:
        return PaymentInfoKind.PURCHASE_ORDER
    if info_text_visible:
        return PaymentInfoKind.INFORMATIONAL
    return PaymentInfoKind.NONE


@dataclass(frozen=True)
class CheckoutSession:
    """Totals read from the confirm-order page.

    ``fee`` is None when the page has no "Payment method additional fee" row.
    ``shipping``, ``tax`` and ``discount`` are 0 when their rows are absent.
    """

    payment_method_label: str
    subtotal: float
    total: float
    fee: Optional[float] = None
    shipping: float = 0.0
    discount: float = 0.0
    tax: float = 0.0
    cart_total: Optional[float] = None
    flavor: Optional[CheckoutFlavor] = None
    payment_info_kind: Optional[PaymentInfoKind] = None

    @property
    def has_fee_row(self) -> bool:
        return self.fee is not None

    @property
    def expected_total(self) -> float:
        return self.subtotal - self.discount + self.shipping + self.tax + (self.fee or 0.0)

    def verify_fee(self) -> float:
        """Assert the fee row matches the fee table; returns the expected fee.

        Pages without a fee row pass unchecked. An unknown payment method label
        raises :class:`UnexpectedPaymentMethodError` only when a fee row exists.
        """
        if self.fee is None:
            return 0.0
        fee = expected_fee(self.payment_method_label)
        assert math.isclose(self.fee, fee), (
            f"Payment method '{self.payment_method_label}' charged fee {self.fee}, expected {fee}"
        )
        return fee

    def verify_total(self) -> None:
        assert math.isclose(self.total, self.expected_total, abs_tol=0.005), (
            f"Order total {self.total} != subtotal {self.subtotal} - discount {self.discount} + shipping {self.shipping}"
            f" + tax {self.tax} + fee {self.fee or 0.0}"
        )
