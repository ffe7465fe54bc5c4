from typing import Any, Dict, List, Optional, Sequence
import logging

from .config import BomConfig
from .schema import DESIGNATOR_FIELD

logger = logging.getLogger(__name__)


def find_designator_column(headers: Optional[Sequence[str]], config: Any) -> Optional[str]:
    """Find the column holding reference designators.

    The primary `designator_column` wins when present; otherwise the first
    alternate (in configured order) found in `headers` is used.

    Args:
        headers: Header names of the parsed file
        config: BomConfig or stored config document

    Returns:
        A member of `headers`, or None when the caller must choose manually
    """
    if not headers:
        return None
    bom_config = BomConfig.coerce(config)
    if bom_config is None:
        return None

    if bom_config.designator_column in headers:
        return bom_config.designator_column

    alternates = bom_config.alternate_designator_columns
    if not isinstance(alternates, (list, tuple)):
        return None
    for alternate in alternates:
        if alternate in headers:
            return alternate
    return None


def normalize_component(
    component: Dict[str, Any],
    config: Any,
    designator_column: Optional[str] = None
) -> Dict[str, Any]:
    """Rewrite a record's keys onto canonical field names.

    - The designator column's value is copied to `Designator` unless a
      `Designator` value is already present.
    - Each alias mapping copies its source value to the canonical field only
      when that field is still empty (first writer wins; a direct canonical
      column is never clobbered by an alias).
    - Unmapped fields pass through unchanged.

    An absent or invalid config degrades to pass-through plus the
    designator copy.

    Args:
        component: Row or record to normalize (not modified)
        config: BomConfig or stored config document
        designator_column: Column discovered by find_designator_column

    Returns:
        New dictionary with canonical fields populated
    """
    if component is None:
        return component

    normalized = dict(component)

    if designator_column and not normalized.get(DESIGNATOR_FIELD):
        value = component.get(designator_column)
        if value:
            normalized[DESIGNATOR_FIELD] = value

    bom_config = BomConfig.coerce(config)
    if bom_config is None:
        return normalized

    for source, target in bom_config.field_mappings:
        value = component.get(source)
        if value and not normalized.get(target):
            normalized[target] = value

    return normalized


class BomNormalizer:
    """Applies one BomConfig to rows of a parsed BOM."""

    def __init__(self, config: Optional[BomConfig] = None):
        """Initialize the normalizer.

        Args:
            config: Mapping configuration (defaults to BomConfig())
        """
        self.config = config if config is not None else BomConfig()

    def find_designator_column(self, headers: Sequence[str]) -> Optional[str]:
        return find_designator_column(headers, self.config)

    def normalize_row(
        self,
        row: Dict[str, Any],
        designator_column: Optional[str] = None
    ) -> Dict[str, Any]:
        return normalize_component(row, self.config, designator_column)

    def normalize(
        self,
        rows: List[Dict[str, Any]],
        designator_column: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Normalize a list of rows or records."""
        return [self.normalize_row(row, designator_column) for row in rows]

    def get_mapping_report(self, headers: Sequence[str]) -> Dict[str, Any]:
        """Report how the headers of a file map onto canonical fields.

        Args:
            headers: Header names of the parsed file

        Returns:
            Dictionary with the designator column, canonical field -> source
            headers, and headers that pass through unmapped
        """
        mappings: Dict[str, str] = {}
        for source, target in self.config.field_mappings:
            mappings.setdefault(source, target)

        mapped: Dict[str, List[str]] = {}
        unmapped = []
        for header in headers:
            if header in mappings:
                mapped.setdefault(mappings[header], []).append(header)
            else:
                unmapped.append(header)

        designator_column = self.find_designator_column(headers)
        if designator_column is None:
            logger.warning(
                f"No designator column among headers; expected one of "
                f"{self.config.expected_designator_columns()}"
            )

        return {
            "designator_column": designator_column,
            "mapped": mapped,
            "unmapped": unmapped,
        }
