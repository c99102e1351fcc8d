from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

Row = Dict[str, str]

JUNCTION_SEPARATOR = "_"
ID_COLUMN = "id"


def junction_table_name(source_table: str, target_table: str) -> str:
    return f"{source_table}{JUNCTION_SEPARATOR}{target_table}"


def junction_columns(source_table: str, target_table: str) -> List[str]:
    """Column pair for an edge table; a self-link keeps both ends distinct."""

    if source_table == target_table:
        return [source_table, f"{target_table}2"]
    return [source_table, target_table]


@dataclass
class Table:
    """A relational table under construction.

    ``columns`` is an insertion-ordered set (dict keys) so the CSV header
    follows discovery order.
    """

    name: str
    rows: List[Row] = field(default_factory=list)
    columns: Dict[str, None] = field(default_factory=dict)
    synthesized_ids: int = 0

    @property
    def column_list(self) -> List[str]:
        return list(self.columns)

    def add_columns(self, columns: Iterable[str]) -> None:
        for column in columns:
            self.columns.setdefault(column, None)

    def add_row(self, row: Row) -> None:
        self.add_columns(row)
        self.rows.append(row)

    def next_synthesized_id(self) -> str:
        """Issue ``@<name><n>@`` from a per-table running count."""

        identifier = f"@{self.name}{self.synthesized_ids}@"
        self.synthesized_ids += 1
        return identifier


class TableRegistry:
    """Run-scoped collection of tables keyed by name."""

    def __init__(self) -> None:
        self._tables: Dict[str, Table] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __getitem__(self, name: str) -> Table:
        return self._tables[name]

    def __iter__(self) -> Iterator[Table]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    def names(self) -> List[str]:
        return list(self._tables)

    def get(self, name: str) -> Optional[Table]:
        return self._tables.get(name)

    def ensure_table(self, name: str, initial_columns: Iterable[str] = ()) -> Table:
        table = self._tables.get(name)
        if table is None:
            table = Table(name=name)
            table.add_columns(initial_columns)
            self._tables[name] = table
        return table

    def add_row(self, table_name: str, row: Row) -> None:
        self.ensure_table(table_name).add_row(row)

    def add_junction_row(self, source_table: str, source_id: str, target_table: str, target_id: str) -> None:
        columns = junction_columns(source_table, target_table)
        table = self.ensure_table(junction_table_name(source_table, target_table), columns)
        table.add_row(dict(zip(columns, (source_id, target_id))))

    def merge_table(self, incoming: Table) -> None:
        existing = self._tables.get(incoming.name)
        if existing is None:
            self._tables[incoming.name] = incoming
            return
        existing.add_columns(incoming.columns)
        existing.rows.extend(incoming.rows)

    def row_counts(self) -> Dict[str, int]:
        return {name: len(table.rows) for name, table in self._tables.items()}


class PromotedValueTable:
    """Value-keyed table: identical raw values share one synthesized row."""

    def __init__(self, name: str, id_prefix: str) -> None:
        self.name = name
        self.id_prefix = id_prefix
        self._rows: Dict[Optional[str], Row] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def id_for(self, value: Optional[str]) -> str:
        row = self._rows.get(value)
        if row is None:
            row = {ID_COLUMN: f"@{self.id_prefix}{self.name}{len(self._rows)}@"}
            if value is not None:
                row[self.name] = value
            self._rows[value] = row
        return row[ID_COLUMN]

    def to_table(self) -> Table:
        table = Table(name=self.name)
        table.add_columns([ID_COLUMN, self.name])
        for row in self._rows.values():
            table.add_row(row)
        return table
