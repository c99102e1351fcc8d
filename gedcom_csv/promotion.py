"""Per-child dispatch for the flattening engine.

Each child of a record is handled by the first rule that matches, checked in
this order:

1. ``LINK``            cross-reference tag (``CHIL``, ``FAMC``, ``FAMS``) -> junction row
2. ``SIBLING_TABLE``   tag names another top-level record type -> junction row
3. ``PROMOTED_VALUE``  tag promoted for the current table -> shared value row + junction row
4. ``PROMOTED_RECORD`` child has children -> own row in ``<tag>`` table + junction row
5. ``NULL_VALUE``      leaf without a value -> skipped
6. ``PLAIN_COLUMN``    formatted value stored on the current row

Rule 2 wins over rule 3 when a tag is both a record type and promoted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional

from .config import ConversionConfig
from .dates import ValueFormatter
from .reader import Node
from .tables import ID_COLUMN, PromotedValueTable, Row, TableRegistry

LOGGER = logging.getLogger(__name__)


class ChildRule(Enum):
    LINK = "link"
    SIBLING_TABLE = "sibling_table"
    PROMOTED_VALUE = "promoted_value"
    PROMOTED_RECORD = "promoted_record"
    NULL_VALUE = "null_value"
    PLAIN_COLUMN = "plain_column"


@dataclass
class ConversionContext:
    """Mutable state shared by every (recursive) flattening call of one run."""

    config: ConversionConfig
    formatter: ValueFormatter
    base_table_names: FrozenSet[str]
    tables: TableRegistry = field(default_factory=TableRegistry)
    promoted_values: Dict[str, PromotedValueTable] = field(default_factory=dict)

    @classmethod
    def create(cls, config: ConversionConfig, base_table_names: FrozenSet[str]) -> "ConversionContext":
        formatter = ValueFormatter(config.force_date_delimiters, config.date_tags)
        return cls(config=config, formatter=formatter, base_table_names=frozenset(base_table_names))

    def promoted_value_table(self, name: str) -> PromotedValueTable:
        table = self.promoted_values.get(name)
        if table is None:
            table = PromotedValueTable(name, self.config.generated_id_prefix)
            self.promoted_values[name] = table
        return table


def classify_child(context: ConversionContext, table_name: str, child: Node) -> ChildRule:
    if context.config.link_target(child.tag) is not None:
        return ChildRule.LINK
    if child.tag in context.base_table_names:
        return ChildRule.SIBLING_TABLE
    if context.config.promotes(table_name, child.tag):
        return ChildRule.PROMOTED_VALUE
    if child.children:
        return ChildRule.PROMOTED_RECORD
    if child.value is None:
        return ChildRule.NULL_VALUE
    return ChildRule.PLAIN_COLUMN


def free_column(row: Row, tag: str) -> str:
    """First unused column for ``tag``: ``TAG``, then ``TAG2``, ``TAG3``..."""

    column = tag
    suffix = 2
    while column in row:
        column = f"{tag}{suffix}"
        suffix += 1
    return column


def apply_child(context: ConversionContext, table_name: str, row_id: str, row: Row, child: Node) -> ChildRule:
    """Dispatch ``child`` of the record ``row`` (in ``table_name``) and return the rule used."""

    rule = classify_child(context, table_name, child)
    tables = context.tables

    if rule is ChildRule.LINK:
        tables.add_junction_row(table_name, row_id, context.config.link_target(child.tag), child.value)
    elif rule is ChildRule.SIBLING_TABLE:
        tables.add_junction_row(table_name, row_id, child.tag, child.value)
    elif rule is ChildRule.PROMOTED_VALUE:
        value_id = context.promoted_value_table(child.tag).id_for(child.value)
        tables.add_junction_row(table_name, row_id, child.tag, value_id)
    elif rule is ChildRule.PROMOTED_RECORD:
        promote_record(context, table_name, row_id, child)
    elif rule is ChildRule.NULL_VALUE:
        LOGGER.debug(
            f"Skipping null child value when parsing {table_name}",
            extra={"table": table_name, "row_id": row_id, "tag": child.tag},
        )
    else:
        value = context.formatter.format(child.tag, child.value)
        if value is not None:
            column = free_column(row, child.tag)
            row[column] = value
            tables.ensure_table(table_name).add_columns([column])
    return rule


def build_row(
    context: ConversionContext,
    node: Node,
    row_id: str,
    row: Row,
    after_child: Optional[Callable[[Node], None]] = None,
) -> Row:
    """Run every child of ``node`` through the rule chain, filling ``row`` in place.

    ``after_child`` is called with each child once its rule has been applied.
    """

    for child in node.children:
        apply_child(context, node.tag, row_id, row, child)
        if after_child is not None:
            after_child(child)
    return row


def promote_record(context: ConversionContext, source_table: str, source_id: str, node: Node) -> str:
    """Flatten a nested record into its own ``<tag>`` table and link it to its parent."""

    table = context.tables.ensure_table(node.tag, [ID_COLUMN, node.tag])
    row_id = node.pointer or table.next_synthesized_id()
    context.tables.add_junction_row(source_table, source_id, node.tag, row_id)

    row: Row = {ID_COLUMN: row_id}
    value = context.formatter.format(node.tag, node.value)
    if value is not None:
        row[node.tag] = value
    build_row(context, node, row_id, row)
    table.add_row(row)
    return row_id
