"""Convert a GEDCOM file into relational CSV tables.

Every top-level record type (INDI, FAM, SOUR, ...) becomes a table; nested
records and shared values get their own tables joined through
``<SOURCE>_<TARGET>`` junction tables.

Example:
    python gedcom_to_csv.py -i family.ged -c out/ -d abt. - -p
"""

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from gedcom_csv.config import ConversionConfig, load_conversion_config
from gedcom_csv.flatten import convert_records, summarize_tables
from gedcom_csv.reader import read_gedcom
from gedcom_csv.tables import TableRegistry
from gedcom_csv.writer import write_csv_tables


def configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Converts a gedcom file into relational CSVs",
    )
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        required=True,
        help="Input gedcom file.",
    )
    parser.add_argument(
        "-c",
        "--csv",
        type=Path,
        help="Output relational CSV directory.",
    )
    parser.add_argument(
        "-r",
        "--rdf",
        type=Path,
        help="Output RDF file (not yet supported).",
    )
    parser.add_argument(
        "-d",
        "--force-date-parsing",
        nargs="+",
        metavar="DELIMITER",
        help=(
            "When date parsing fails, a list of delimiters to split by "
            '(e.g. "Abt. 1780 - 1790" is parsed with "-d abt. -"). '
            "With this option, date values are omitted when parsing is unsuccessful."
        ),
    )
    parser.add_argument(
        "-p",
        "--parents-table",
        action="store_true",
        help="Generate an additional PARENTS table, directly connecting children to parents.",
    )
    parser.add_argument(
        "-n",
        "--copy-individual-names",
        action="store_true",
        help="Store a copy of the main NAME for each INDI entry.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON or YAML conversion config (link attributes, promoted values, ...).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (repeatable).",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ConversionConfig:
    config = load_conversion_config(args.config)
    return config.with_overrides(
        force_date_delimiters=args.force_date_parsing,
        generate_parents_table=args.parents_table or None,
        copy_individual_name=args.copy_individual_names or None,
    )


def run_pipeline(args: argparse.Namespace, config: ConversionConfig) -> int:
    try:
        records = read_gedcom(args.input)
    except (FileNotFoundError, RuntimeError) as exc:
        logging.error(f"Failed to read input: {exc}")
        return 1

    tables: TableRegistry = convert_records(records, config)

    for line in summarize_tables(tables):
        logging.debug(line)
    logging.info(
        f"Built {len(tables)} tables from {len(records)} records",
        extra={"row_counts": tables.row_counts()},
    )

    exit_code = 0
    if args.csv:
        report = write_csv_tables(tables, args.csv)
        if not report.ok:
            logging.error(f"Failed to write {len(report.failed)} tables: {sorted(report.failed)}")
            exit_code = 1

    if args.rdf:
        logging.error("RDF output not yet supported")

    return exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    if not args.input.exists():
        logging.error(f"Input file does not exist: {args.input}")
        return 1

    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as exc:
        logging.error(f"Invalid conversion config: {exc}")
        return 1

    return run_pipeline(args, config)


if __name__ == "__main__":
    raise SystemExit(main())
