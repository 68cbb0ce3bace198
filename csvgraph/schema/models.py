from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    declared_type: str = ""
    is_primary_key: bool = False


@dataclass(frozen=True)
class TableInfo:
    name: str
    columns: tuple[ColumnInfo, ...] = ()

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def primary_key(self) -> list[str]:
        return [column.name for column in self.columns if column.is_primary_key]

    def column(self, name: str) -> ColumnInfo | None:
        """Find a column by name, ignoring case."""
        lowered = name.lower()
        for column in self.columns:
            if column.name.lower() == lowered:
                return column
        return None


@dataclass(frozen=True)
class ForeignKeyInfo:
    """A raw ``REFERENCES`` declaration as written in the schema.

    ``references_column`` is None when the schema names only the target
    table, meaning its primary key.
    """
    table: str
    column: str
    references_table: str
    references_column: str | None = None


@dataclass(frozen=True)
class Relationship:
    from_table: str
    from_column: str
    to_table: str
    to_column: str
    weight: int = 1

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.from_table, self.from_column, self.to_table, self.to_column)

    @property
    def is_self_reference(self) -> bool:
        return self.from_table == self.to_table

    def touches(self, table: str) -> bool:
        return table in (self.from_table, self.to_table)

    def __str__(self) -> str:
        return f"{self.from_table}.{self.from_column} -> {self.to_table}.{self.to_column}"


@dataclass(frozen=True)
class SchemaGraph:
    """Tables keyed by name plus the relationships between them.

    Relationships refer to tables by name only. Every endpoint must be a key
    of ``tables``; construction fails otherwise.
    """
    tables: Mapping[str, TableInfo] = field(default_factory=dict, hash=False)
    relationships: tuple[Relationship, ...] = ()

    def __post_init__(self) -> None:
        tables = dict(self.tables)
        for key, table in tables.items():
            if key != table.name:
                raise ValueError(f"Table keyed as '{key}' is named '{table.name}'")
        for rel in self.relationships:
            for endpoint in (rel.from_table, rel.to_table):
                if endpoint not in tables:
                    raise ValueError(f"Relationship {rel} references unknown table '{endpoint}'")
            if rel.weight < 1:
                raise ValueError(f"Relationship {rel} has non-positive weight {rel.weight}")
        object.__setattr__(self, "tables", MappingProxyType(tables))
        object.__setattr__(self, "relationships", tuple(self.relationships))

    @classmethod
    def from_parts(cls, tables: Iterable[TableInfo], relationships: Iterable[Relationship]) -> "SchemaGraph":
        return cls(tables={table.name: table for table in tables}, relationships=tuple(relationships))

    def table_keys(self) -> list[str]:
        return sorted(self.tables.keys())

    def table_info(self, key: str) -> TableInfo | None:
        return self.tables.get(key)

    def relationships_for(self, table: str) -> list[Relationship]:
        return [rel for rel in self.relationships if rel.touches(table)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SchemaGraph):
            return NotImplemented
        return dict(self.tables) == dict(other.tables) and self.relationships == other.relationships
