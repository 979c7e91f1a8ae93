# backend/kabufolio/__init__.py
"""Kabufolio: Japan / US portfolio valuation and rebalance advice."""

__version__ = "0.1.0"
