"""Nestbox command line interface."""
