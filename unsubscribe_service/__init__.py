"""Signed unsubscribe links for marketing email."""

__version__ = "0.1.0"
