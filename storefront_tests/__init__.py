"""Playwright harness for the Demo Web Shop storefront."""

__version__ = "1.0.0"
