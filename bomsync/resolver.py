"""Apply a user's decision to each ambiguous BOM row."""

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .designators import ComponentIdGenerator
from .flatten import AmbiguousComponent, expand_designators
from .schema import PROJECT_FIELD, QUANTITY_FIELD

logger = logging.getLogger(__name__)


class Resolution(Enum):
    """How an ambiguous row becomes final records."""
    FLATTEN = "flatten"  # One record per designator, quantity 1 each
    KEEP = "keep"        # One record exactly as listed
    SKIP = "skip"        # Dropped


def _coerce_resolution(value: Union[Resolution, str, None]) -> Resolution:
    if isinstance(value, Resolution):
        return value
    if value is None:
        return Resolution.SKIP
    try:
        return Resolution(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Unknown resolution {value!r}, treating as skip")
        return Resolution.SKIP


def resolve_ambiguous(
    ambiguous: List[AmbiguousComponent],
    resolutions: Mapping[str, Union[Resolution, str]],
    id_generator: Optional[ComponentIdGenerator] = None
) -> List[Dict[str, Any]]:
    """Turn ambiguous rows into final component records.

    Args:
        ambiguous: Rows flagged by flatten_bom, in their original order
        resolutions: Component id -> Resolution (or its string value).
                     A row with no entry is skipped.
        id_generator: Source of unique ids for flattened records (optional)

    Returns:
        Final records in input order, flatten expansions in token order
    """
    ids = id_generator or ComponentIdGenerator()
    resolved = []

    for item in ambiguous:
        resolution = _coerce_resolution(resolutions.get(item.id))

        if resolution is Resolution.FLATTEN:
            project_name = item.base.get(PROJECT_FIELD) or ''
            resolved.extend(expand_designators(
                item.base,
                item.candidates,
                project_name,
                ids,
                designator_column=item.designator_column,
                quantity_column=item.quantity_column or QUANTITY_FIELD,
            ))
        elif resolution is Resolution.KEEP:
            resolved.append(dict(item.base))
        else:
            logger.debug(f"Ambiguous component {item.id} skipped")

    return resolved
