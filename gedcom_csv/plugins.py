from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from .config import ConversionConfig
from .reader import Node
from .tables import Row


class ExtraTablePlugin(ABC):
    """Derives extra rows from a finished top-level row and its raw node.

    Plugins only return rows; the flattener appends them to ``table_name``.
    """

    table_name: str = ""
    initial_columns: Sequence[str] = ()

    @abstractmethod
    def produce_rows(self, row: Row, tag: str, row_id: str, children: Sequence[Node]) -> List[Row]:
        raise NotImplementedError


class ParentsTablePlugin(ExtraTablePlugin):
    """Child -> parent edges taken from each family's resolved WIFE/HUSB columns."""

    table_name = "PARENTS"
    initial_columns = ("child", "parent")

    family_tag = "FAM"
    child_tag = "CHIL"
    parent_columns = ("WIFE", "HUSB")

    def produce_rows(self, row: Row, tag: str, row_id: str, children: Sequence[Node]) -> List[Row]:
        results: List[Row] = []
        if tag != self.family_tag:
            return results
        for child in children:
            if child.tag != self.child_tag:
                continue
            for column in self.parent_columns:
                if row.get(column):
                    results.append({"child": child.value, "parent": row[column]})
        return results


def build_plugins(config: ConversionConfig) -> List[ExtraTablePlugin]:
    plugins: List[ExtraTablePlugin] = []
    if config.generate_parents_table:
        plugins.append(ParentsTablePlugin())
    return plugins
