"""Error taxonomy for the storefront harness.

Hard test failures are plain ``AssertionError``s raised by ``expect``/``assert``.
The classes here cover programmer-facing contract violations.
"""
from __future__ import annotations


class HarnessError(Exception):
    """Base class for errors raised by the helper library."""


class NotFoundError(HarnessError):
    """Raised when an expected storefront entity cannot be located."""


class ProductNotFoundError(NotFoundError):
    """No rendered product card matched the query."""

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f'No product matched query: "{query}"')


class UnexpectedPaymentMethodError(HarnessError):
    """The confirm page shows a payment method without a known fee."""

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(f"Unexpected payment method: {label}")


class FixtureError(HarnessError):
    """Fixture data required by a workflow step is missing or inconsistent."""
