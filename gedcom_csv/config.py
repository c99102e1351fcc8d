from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

import yaml

LOGGER = logging.getLogger(__name__)


########################
# DEFAULTS
########################

# Cross-reference tags that always point at another record type.
DEFAULT_LINK_ATTRIBUTES: Mapping[str, str] = {
    "CHIL": "INDI",
    "FAMC": "FAM",
    "FAMS": "FAM",
}

# Leaf values shared by many individuals are stored once and linked.
DEFAULT_PROMOTED_VALUE_TAGS: Mapping[str, FrozenSet[str]] = {
    "INDI": frozenset(
        {
            "TITL",
            "RELI",
            "_EMPLOY",
            "BLES",
            "_DCAUSE",
            "DEAT",
            "OCCU",
            "EDUC",
            "_MDCL",
        }
    ),
}

DEFAULT_DATE_TAGS: FrozenSet[str] = frozenset({"DATE"})
DEFAULT_GENERATED_ID_PREFIX = "gedcom-to-csv_generated_"

INDIVIDUAL_TABLE = "INDI"
NAME_TAG = "NAME"


def _require_name(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{what} must be a non-empty string, received: {value!r}")
    return value


def _freeze_tags(table: str, tags: Any) -> FrozenSet[str]:
    if isinstance(tags, str) or not isinstance(tags, Iterable):
        raise ValueError(f"Tags for '{table}' must be a list of tags, received: {tags!r}")
    return frozenset(_require_name(tag, f"Tag for '{table}'") for tag in tags)


@dataclass(frozen=True)
class ConversionConfig:
    """Static parameters consumed by the flattening engine.

    Values are normalized and validated on construction so a bad mapping is
    reported before any record is read.
    """

    force_date_delimiters: Optional[Tuple[str, ...]] = None
    generate_parents_table: bool = False
    copy_individual_name: bool = False
    link_attributes: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_LINK_ATTRIBUTES))
    promoted_value_tags: Mapping[str, FrozenSet[str]] = field(
        default_factory=lambda: dict(DEFAULT_PROMOTED_VALUE_TAGS)
    )
    date_tags: FrozenSet[str] = DEFAULT_DATE_TAGS
    generated_id_prefix: str = DEFAULT_GENERATED_ID_PREFIX

    def __post_init__(self) -> None:
        if self.force_date_delimiters is not None:
            if isinstance(self.force_date_delimiters, str):
                raise ValueError("force_date_delimiters must be a list of delimiters, not a single string")
            delimiters = tuple(self.force_date_delimiters)
            for delimiter in delimiters:
                _require_name(delimiter, "Date delimiter")
            object.__setattr__(self, "force_date_delimiters", delimiters or None)

        if not isinstance(self.link_attributes, Mapping):
            raise ValueError("link_attributes must map a tag to a target table")
        links = {
            _require_name(tag, "Link attribute tag"): _require_name(target, f"Link target for '{tag}'")
            for tag, target in self.link_attributes.items()
        }
        object.__setattr__(self, "link_attributes", MappingProxyType(links))

        if not isinstance(self.promoted_value_tags, Mapping):
            raise ValueError("promoted_value_tags must map a table name to a list of tags")
        promoted = {
            _require_name(table, "Promoted value table"): _freeze_tags(table, tags)
            for table, tags in self.promoted_value_tags.items()
        }
        object.__setattr__(self, "promoted_value_tags", MappingProxyType(promoted))

        object.__setattr__(self, "date_tags", _freeze_tags("date_tags", self.date_tags))
        _require_name(self.generated_id_prefix, "generated_id_prefix")

    def __hash__(self) -> int:
        return hash(
            (
                self.force_date_delimiters,
                self.generate_parents_table,
                self.copy_individual_name,
                frozenset(self.link_attributes.items()),
                frozenset(self.promoted_value_tags.items()),
                self.date_tags,
                self.generated_id_prefix,
            )
        )

    def promotes(self, table: str, tag: str) -> bool:
        return tag in self.promoted_value_tags.get(table, ())

    def link_target(self, tag: str) -> Optional[str]:
        return self.link_attributes.get(tag)

    def with_overrides(self, **overrides: Any) -> "ConversionConfig":
        """Return a copy where every non-None override replaces the stored value."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self


CONFIG_KEYS = {
    "force_date_delimiters",
    "generate_parents_table",
    "copy_individual_name",
    "link_attributes",
    "promoted_value_tags",
    "date_tags",
    "generated_id_prefix",
}


def config_from_dict(data: Mapping[str, Any]) -> ConversionConfig:
    if not isinstance(data, Mapping):
        raise ValueError("Conversion config root must be a mapping")

    unknown = set(data) - CONFIG_KEYS
    if unknown:
        raise ValueError(f"Unknown conversion config keys: {sorted(unknown)}")

    kwargs: Dict[str, Any] = dict(data)
    for flag in ("generate_parents_table", "copy_individual_name"):
        if flag in kwargs and not isinstance(kwargs[flag], bool):
            raise ValueError(f"{flag} must be true or false, received: {kwargs[flag]!r}")
    if kwargs.get("force_date_delimiters") is not None:
        delimiters = kwargs["force_date_delimiters"]
        if isinstance(delimiters, str):
            delimiters = [delimiters]
        kwargs["force_date_delimiters"] = tuple(delimiters)
    if "date_tags" in kwargs:
        kwargs["date_tags"] = _freeze_tags("date_tags", kwargs["date_tags"])
    return ConversionConfig(**kwargs)


def load_conversion_config(config_path: Optional[Path]) -> ConversionConfig:
    """Load a JSON or YAML conversion config, or the defaults when no path is given."""

    if config_path is None:
        return ConversionConfig()

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    content = config_path.read_text(encoding="utf-8")
    if not content.strip():
        raise ValueError(f"Config file is empty: {config_path}")

    if config_path.suffix.lower() in {".json", ""}:
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Failed to parse JSON config at {config_path}") from exc
    else:
        try:
            parsed = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ValueError(f"Failed to parse YAML config at {config_path}") from exc

    if parsed is None:
        return ConversionConfig()

    config = config_from_dict(parsed)
    LOGGER.info(
        "Loaded conversion config",
        extra={
            "config_path": str(config_path),
            "link_attributes": sorted(config.link_attributes),
            "promoted_tables": sorted(config.promoted_value_tags),
        },
    )
    return config
