from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable

import pandas as pd

from .tables import Table

LOGGER = logging.getLogger(__name__)


@dataclass
class WriteReport:
    written: Dict[str, Path] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def table_to_frame(table: Table) -> pd.DataFrame:
    return pd.DataFrame(table.rows, columns=table.column_list)


def write_csv_tables(tables: Iterable[Table], output_dir: Path) -> WriteReport:
    """Write one ``<TableName>.csv`` per table; failures are collected, not raised."""

    output_dir.mkdir(parents=True, exist_ok=True)
    report = WriteReport()

    LOGGER.info("Writing tables to disk...", extra={"output_dir": str(output_dir)})
    for table in tables:
        csv_path = output_dir / f"{table.name}.csv"
        try:
            table_to_frame(table).to_csv(csv_path, index=False)
        except OSError as exc:
            LOGGER.error(
                f"Failed to write table {table.name} to {csv_path}: {exc}",
                extra={"table": table.name, "path": str(csv_path)},
            )
            report.failed[table.name] = str(exc)
            continue
        report.written[table.name] = csv_path
        LOGGER.debug(
            f"Wrote {len(table.rows)} rows to {csv_path}",
            extra={"table": table.name, "rows": len(table.rows), "columns": table.column_list},
        )

    LOGGER.info(
        f"Wrote {len(report.written)} tables ({len(report.failed)} failed) to {output_dir}",
        extra={"written": sorted(report.written), "failed": sorted(report.failed)},
    )
    return report
