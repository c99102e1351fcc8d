"""Adapter between ``python-gedcom`` elements and the engine's ``Node`` tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from gedcom.element.element import Element
from gedcom.parser import Parser

LOGGER = logging.getLogger(__name__)

CONCATENATION_TAG = "CONC"
CONTINUATION_TAG = "CONT"


@dataclass(frozen=True)
class Node:
    tag: str
    pointer: Optional[str] = None
    value: Optional[str] = None
    children: Tuple["Node", ...] = ()


def node_from_element(element: Element) -> Node:
    """Convert one element (recursively), folding CONC/CONT lines into its value."""

    value = element.get_value() or ""
    children: List[Node] = []
    for child in element.get_child_elements():
        tag = child.get_tag()
        if tag == CONCATENATION_TAG:
            value += child.get_value() or ""
        elif tag == CONTINUATION_TAG:
            value += "\n" + (child.get_value() or "")
        else:
            children.append(node_from_element(child))

    return Node(
        tag=element.get_tag(),
        pointer=element.get_pointer() or None,
        value=value or None,
        children=tuple(children),
    )


def read_gedcom(path: Union[str, Path]) -> List[Node]:
    """Parse a GEDCOM file into its top-level records."""

    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Input file does not exist: {source_path}")

    parser = Parser()
    try:
        parser.parse_file(str(source_path), strict=False)
    except (OSError, UnicodeDecodeError) as exc:
        raise RuntimeError(f"Failed to read GEDCOM file at {source_path}") from exc

    records = [node_from_element(element) for element in parser.get_root_child_elements()]
    LOGGER.info(
        f"Read {len(records)} top-level records from {source_path}",
        extra={"path": str(source_path), "records": len(records)},
    )
    return records
