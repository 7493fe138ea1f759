"""
Table definitions for the support warehouse.

A TableSpec ties a warehouse table name to its identifier column and record
shape, and turns caller values into a validated, normalized row.
"""
from __future__ import annotations

import typing
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ValidationError

from support_warehouse.domain.models import (
    SCALAR_TYPES,
    ChatMessage,
    Person,
    RowModel,
    Ticket,
    Value,
    normalize_value,
)
from support_warehouse.errors import SchemaMismatch


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        column = ".".join(str(loc) for loc in error["loc"])
        parts.append(f"{column}: {error['msg']}")
    return "; ".join(parts)


def _unwrap_optional(annotation: Any) -> Tuple[type, bool]:
    if typing.get_origin(annotation) is Union:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        return args[0], True
    return annotation, False


def check_values(table: str, values: Mapping[str, Any]) -> Dict[str, Value]:
    """
    Validate an ad hoc mapping for a table without a registered shape.

    Only membership in the scalar value union is checked; column names are
    left to the service.
    """
    row: Dict[str, Value] = {}
    for column, value in values.items():
        if not isinstance(column, str) or not column:
            raise SchemaMismatch(f"{table}: column names must be non-empty strings")
        if value is not None and not isinstance(value, SCALAR_TYPES):
            raise SchemaMismatch(
                f"{table}.{column}: unsupported value type {type(value).__name__}"
            )
        row[column] = normalize_value(value)
    return row


@dataclass(frozen=True)
class TableSpec:
    """
    Static description of one warehouse table.

    Attributes
    ----------
    name : str
        Table name inside the dataset/schema.
    id_column : str
        Integer surrogate key column, allocated by the inserter.
    model : type[RowModel]
        Record shape for every other column.
    """

    name: str
    id_column: str
    model: Type[RowModel]

    @property
    def value_columns(self) -> Tuple[str, ...]:
        return tuple(field.alias or name for name, field in self.model.model_fields.items())

    @property
    def columns(self) -> Tuple[str, ...]:
        return (self.id_column,) + self.value_columns

    def column_types(self) -> Dict[str, Tuple[type, bool]]:
        """Map each column to its Python scalar type and nullability."""
        types: Dict[str, Tuple[type, bool]] = {self.id_column: (int, False)}
        for name, field in self.model.model_fields.items():
            types[field.alias or name] = _unwrap_optional(field.annotation)
        return types

    def build_row(self, values: Union[Mapping[str, Any], BaseModel]) -> Dict[str, Value]:
        """
        Validate caller values against the record shape and return the row to insert.

        Raises
        ------
        ValueError
            If the identifier column is supplied.
        SchemaMismatch
            If a column is unknown, missing, or carries the wrong type.
        """
        if isinstance(values, BaseModel):
            values = values.model_dump(by_alias=True)
        if self.id_column in values:
            raise ValueError(
                f"{self.name}.{self.id_column} is allocated automatically and must not be supplied"
            )
        try:
            record = self.model.model_validate(dict(values))
        except ValidationError as exc:
            raise SchemaMismatch(f"{self.name}: {_describe(exc)}") from exc
        return {
            column: normalize_value(value)
            for column, value in record.model_dump(by_alias=True).items()
        }


CHAT = TableSpec(name="Chat", id_column="id_mensagem", model=ChatMessage)
PESSOAS = TableSpec(name="Pessoas", id_column="ID_Pessoa", model=Person)
TICKET = TableSpec(name="Ticket", id_column="id_ticket", model=Ticket)

TABLES: Dict[str, TableSpec] = {spec.name: spec for spec in (CHAT, PESSOAS, TICKET)}


def get_table_spec(name: str) -> Optional[TableSpec]:
    """Return the registered spec for a table name (case-sensitive), if any."""
    return TABLES.get(name)


__all__ = [
    "TableSpec",
    "CHAT",
    "PESSOAS",
    "TICKET",
    "TABLES",
    "check_values",
    "get_table_spec",
]
