"""Observability utilities for the Nestbox CLI."""

from nestbox.observability.logging import setup_logging

__all__ = ["setup_logging"]
