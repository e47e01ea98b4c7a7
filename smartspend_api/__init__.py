"""HTTP surface for the SmartSpend services."""

from .app import create_app

__all__ = ["create_app"]
