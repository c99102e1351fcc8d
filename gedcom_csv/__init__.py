"""
Tree-to-relational flattening of GEDCOM records, shared by the CLI and tests.
"""

from .config import (  # noqa: F401
    DEFAULT_LINK_ATTRIBUTES,
    DEFAULT_PROMOTED_VALUE_TAGS,
    ConversionConfig,
    load_conversion_config,
)
from .dates import ValueFormatter  # noqa: F401
from .flatten import (  # noqa: F401
    convert_records,
    discover_table_names,
    flatten_record,
    integrate_promoted_values,
)
from .plugins import ExtraTablePlugin, ParentsTablePlugin  # noqa: F401
from .promotion import ChildRule, ConversionContext, classify_child  # noqa: F401
from .reader import Node, read_gedcom  # noqa: F401
from .tables import PromotedValueTable, Table, TableRegistry  # noqa: F401
from .writer import WriteReport, write_csv_tables  # noqa: F401

__all__ = [
    "DEFAULT_LINK_ATTRIBUTES",
    "DEFAULT_PROMOTED_VALUE_TAGS",
    "ConversionConfig",
    "load_conversion_config",
    "ValueFormatter",
    "convert_records",
    "discover_table_names",
    "flatten_record",
    "integrate_promoted_values",
    "ExtraTablePlugin",
    "ParentsTablePlugin",
    "ChildRule",
    "ConversionContext",
    "classify_child",
    "Node",
    "read_gedcom",
    "PromotedValueTable",
    "Table",
    "TableRegistry",
    "WriteReport",
    "write_csv_tables",
]
