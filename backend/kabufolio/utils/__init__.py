# backend/kabufolio/utils/__init__.py
"""
Cross-cutting utilities.

- logging: Logging setup with correlation IDs on every record
- context: Per-request correlation ID storage
"""

from kabufolio.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from kabufolio.utils.logging import setup_logging

__all__ = [
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
