from __future__ import annotations

import logging
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence

from .config import INDIVIDUAL_TABLE, NAME_TAG, ConversionConfig
from .plugins import ExtraTablePlugin, build_plugins
from .promotion import ConversionContext, build_row
from .reader import Node
from .tables import ID_COLUMN, PromotedValueTable, Row, TableRegistry

LOGGER = logging.getLogger(__name__)


def discover_table_names(records: Iterable[Node]) -> FrozenSet[str]:
    """Top-level tags form the table namespace."""

    return frozenset(record.tag for record in records)


def flatten_record(
    context: ConversionContext,
    record: Node,
    plugins: Sequence[ExtraTablePlugin] = (),
) -> Row:
    table = context.tables.ensure_table(record.tag, [ID_COLUMN])
    row_id = record.pointer or table.next_synthesized_id()
    row: Row = {ID_COLUMN: row_id}

    after_child: Optional[Callable[[Node], None]] = None
    if context.config.copy_individual_name and record.tag == INDIVIDUAL_TABLE:
        copied = []

        def after_child(child: Node) -> None:
            if copied or child.tag != NAME_TAG:
                return
            table.add_columns([NAME_TAG])
            if child.value is not None:
                row[NAME_TAG] = child.value
            copied.append(child)

    build_row(context, record, row_id, row, after_child)
    table.add_row(row)

    for plugin in plugins:
        extra_table = context.tables.ensure_table(plugin.table_name, plugin.initial_columns)
        for extra_row in plugin.produce_rows(row, record.tag, row_id, record.children):
            extra_table.add_row(extra_row)
    return row


def integrate_promoted_values(tables: TableRegistry, promoted: Iterable[PromotedValueTable]) -> None:
    for promoted_table in promoted:
        tables.merge_table(promoted_table.to_table())


def convert_records(
    records: Sequence[Node],
    config: Optional[ConversionConfig] = None,
    plugins: Optional[Sequence[ExtraTablePlugin]] = None,
) -> TableRegistry:
    """Flatten parsed top-level records into relational tables."""

    config = config or ConversionConfig()
    if plugins is None:
        plugins = build_plugins(config)

    LOGGER.info("Identifying available data tables...")
    context = ConversionContext.create(config, discover_table_names(records))
    for plugin in plugins:
        context.tables.ensure_table(plugin.table_name, plugin.initial_columns)

    LOGGER.info(
        f"Parsing {len(records)} records...",
        extra={"tables": sorted(context.base_table_names), "plugins": [p.table_name for p in plugins]},
    )
    for record in records:
        flatten_record(context, record, plugins)

    LOGGER.info(
        "Integrating promoted value tables...",
        extra={"promoted_tables": sorted(context.promoted_values)},
    )
    integrate_promoted_values(context.tables, context.promoted_values.values())
    return context.tables


def summarize_tables(tables: TableRegistry) -> List[str]:
    return [f"{name}: {count} rows" for name, count in tables.row_counts().items()]
