"""Nestbox CLI.

Command-line client for the Nestbox administrative API.
"""

__all__ = ["__version__"]

__version__ = "1.0.0"
