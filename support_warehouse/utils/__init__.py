"""
Utilities package for the support warehouse helper.

Exports shared logging helpers. Keep this package free of domain-specific logic.
"""

from support_warehouse.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
