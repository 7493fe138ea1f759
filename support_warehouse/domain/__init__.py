"""
Domain package for the support warehouse.

Exports the value union, the per-table record shapes and the table registry.
Keep this package focused on data definitions and validation concerns.
"""

from support_warehouse.domain.models import (
    ChatMessage,
    Person,
    RowModel,
    Ticket,
    Value,
    normalize_value,
    utc_now,
)
from support_warehouse.domain.tables import (
    CHAT,
    PESSOAS,
    TABLES,
    TICKET,
    TableSpec,
    check_values,
    get_table_spec,
)

__all__ = [
    "ChatMessage",
    "Person",
    "RowModel",
    "Ticket",
    "Value",
    "normalize_value",
    "utc_now",
    "CHAT",
    "PESSOAS",
    "TABLES",
    "TICKET",
    "TableSpec",
    "check_values",
    "get_table_spec",
]
