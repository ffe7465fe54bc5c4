"""
Designator flattening and quantity-ambiguity detection.

One BOM row often lists several placements ("R1, R2, R3"). Flattening turns
such a row into one component record per designator. When the row also
carries a quantity greater than one, the intent is unclear (three parts each
of quantity three, or three parts total?) and the row is routed to the
ambiguous channel for a human decision instead of being flattened.

Ambiguous rows are returned as AmbiguousComponent values, never as
component dictionaries with marker keys, so a finalized record cannot carry
stale ambiguity state.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .designators import ComponentIdGenerator, split_designators
from .schema import (
    DESIGNATOR_ALIAS_FIELDS,
    DESIGNATOR_FIELD,
    ID_FIELD,
    PROJECT_FIELD,
    QUANTITY_COLUMN_NAMES,
)

logger = logging.getLogger(__name__)

_QUANTITY_HEADER = re.compile(
    r'^(' + '|'.join(re.escape(name) for name in QUANTITY_COLUMN_NAMES) + r')$',
    re.IGNORECASE
)

Component = Dict[str, Any]


@dataclass
class AmbiguousComponent:
    """A row whose quantity conflicts with its designator list.

    Attributes:
        base: The component record as listed (single entry, full designator string)
        candidates: Individual designators found in the designator cell
        original_quantity: Quantity cell as listed
        quantity_column: Header of the quantity column that triggered the flag
        designator_column: Header the designators were read from
    """
    base: Component
    candidates: List[str] = field(default_factory=list)
    original_quantity: str = ""
    quantity_column: Optional[str] = None
    designator_column: Optional[str] = None

    @property
    def id(self) -> str:
        return self.base[ID_FIELD]


@dataclass
class FlattenResult:
    """Output of flatten_bom: finished records plus rows awaiting a decision."""
    flattened: List[Component] = field(default_factory=list)
    ambiguous: List[AmbiguousComponent] = field(default_factory=list)


def find_quantity_column(
    headers: Sequence[str],
    extra_columns: Optional[Sequence[str]] = None
) -> Optional[str]:
    """Return the first header recognized as a quantity column, if any.

    Args:
        headers: Header names of the parsed file
        extra_columns: Additional exact header names to accept, such as
                       configured aliases of the Quantity field
    """
    extra = set(extra_columns or ())
    for header in headers:
        if not header:
            continue
        if _QUANTITY_HEADER.match(header.strip()) or header in extra:
            return header
    return None


def parse_quantity(value: Any) -> Optional[int]:
    """Parse a quantity cell the way spreadsheets list it ("3", " 3 ", "3.0").

    Returns:
        Integer quantity, or None if the cell is empty or not numeric
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return None


def expand_designators(
    base: Component,
    designators: List[str],
    project_name: str,
    id_generator: ComponentIdGenerator,
    designator_column: Optional[str] = None,
    quantity_column: Optional[str] = None
) -> List[Component]:
    """Emit one shallow copy of `base` per designator.

    Each copy gets a fresh id, `Designator` set to its token (mirrored into
    the designator column and any alias designator fields present), and the
    quantity column, if given, set to "1".
    """
    records = []
    for designator in designators:
        record = dict(base)
        record[ID_FIELD] = id_generator.next_id(project_name, designator)
        record[DESIGNATOR_FIELD] = designator
        if designator_column:
            record[designator_column] = designator
        for alias in DESIGNATOR_ALIAS_FIELDS:
            if alias in base:
                record[alias] = designator
        if quantity_column:
            record[quantity_column] = "1"
        records.append(record)
    return records


def flatten_bom(
    rows: Optional[List[Dict[str, str]]],
    headers: Optional[Sequence[str]],
    project_name: Optional[str],
    designator_column: Optional[str],
    id_generator: Optional[ComponentIdGenerator] = None,
    quantity_columns: Optional[Sequence[str]] = None
) -> FlattenResult:
    """Expand multi-designator rows into per-designator component records.

    Rows are processed in input order and records follow token order within
    a row. Rows with an empty designator cell are skipped.

    A row is ambiguous when it lists more than one designator, the headers
    include a quantity column, and that quantity parses to more than 1.
    Quantity columns are recognized by name (qty, quantity, qnt, count,
    amount; any case) or by exact match against `quantity_columns`.
    Ambiguous rows are not flattened; they are returned as a single listed
    record plus the candidate designators for resolve_ambiguous().

    Args:
        rows: Parsed rows (header -> value)
        headers: Header names shared by all rows
        project_name: Project tag written to every record
        designator_column: Header holding the designators
        id_generator: Source of unique component ids (optional)
        quantity_columns: Extra headers to treat as quantity columns,
                          e.g. configured aliases of Quantity

    Returns:
        FlattenResult; both lists are empty if any argument is missing
    """
    result = FlattenResult()
    if not rows or not headers or not project_name or not designator_column:
        return result

    ids = id_generator or ComponentIdGenerator()
    quantity_column = find_quantity_column(headers, quantity_columns)

    for row_index, row in enumerate(rows):
        if not row:
            continue

        designator_cell = str(row.get(designator_column) or '').strip()
        if not designator_cell:
            logger.debug(f"Row {row_index}: empty designator, skipped")
            continue

        tokens = split_designators(designator_cell)

        base: Component = {PROJECT_FIELD: project_name}
        for header in headers:
            base[header] = row.get(header) or ''

        quantity = parse_quantity(row.get(quantity_column)) if quantity_column else None

        if len(tokens) > 1 and quantity is not None and quantity > 1:
            base[ID_FIELD] = ids.next_id(project_name, designator_cell)
            result.ambiguous.append(AmbiguousComponent(
                base=base,
                candidates=tokens,
                original_quantity=row.get(quantity_column) or '',
                quantity_column=quantity_column,
                designator_column=designator_column,
            ))
            logger.info(
                f"Row {row_index}: {len(tokens)} designators with "
                f"{quantity_column}={quantity}, flagged as ambiguous"
            )
            continue

        result.flattened.extend(expand_designators(
            base,
            tokens,
            project_name,
            ids,
            designator_column=designator_column,
            quantity_column=quantity_column if len(tokens) > 1 else None,
        ))

    logger.debug(
        f"Flattened {len(rows)} rows into {len(result.flattened)} records, "
        f"{len(result.ambiguous)} ambiguous"
    )
    return result
