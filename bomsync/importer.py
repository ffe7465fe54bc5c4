"""
BOM import pipeline.

    file/text -> parse -> find designator column -> flatten -> normalize
                                                      |
                                                      +-> ambiguous -> resolve -> normalize

Records that need no decision come back normalized in `valid`. Ambiguous
rows come back untouched in `ambiguous` until resolve() applies the user's
choice to them.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import BomConfig
from .designators import ComponentIdGenerator
from .errors import DesignatorColumnNotFoundError
from .flatten import AmbiguousComponent, flatten_bom
from .lpn.identifiers import extract_mpn
from .normalizer import BomNormalizer
from .parser import BomParser, ParsedTable
from .resolver import Resolution, resolve_ambiguous
from .schema import ID_FIELD, PROJECT_FIELD, QUANTITY_FIELD

logger = logging.getLogger(__name__)


@dataclass
class ProcessedBom:
    """Result of importing one BOM source."""
    valid: List[Dict[str, Any]] = field(default_factory=list)
    ambiguous: List[AmbiguousComponent] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    count: int = 0
    designator_column: Optional[str] = None

    @property
    def needs_resolution(self) -> bool:
        return bool(self.ambiguous)


@dataclass
class Duplicate:
    """A new component whose MPN already exists in the library."""
    mpn: str
    new_component: Dict[str, Any]
    existing_component: Dict[str, Any]


def collect_headers(records: List[Dict[str, Any]]) -> List[str]:
    """ProjectName followed by the sorted union of all other record keys (id excluded)."""
    keys = set()
    for record in records:
        keys.update(key for key in record if key not in (ID_FIELD, PROJECT_FIELD))
    return [PROJECT_FIELD] + sorted(keys)


def detect_duplicates(
    new_components: List[Dict[str, Any]],
    existing_components: List[Dict[str, Any]]
) -> List[Duplicate]:
    """Pair each new component with the first existing one sharing its MPN."""
    existing_by_mpn: Dict[str, Dict[str, Any]] = {}
    for component in existing_components:
        mpn = extract_mpn(component)
        if mpn and mpn not in existing_by_mpn:
            existing_by_mpn[mpn] = component

    duplicates = []
    for component in new_components:
        mpn = extract_mpn(component)
        if mpn and mpn in existing_by_mpn:
            duplicates.append(Duplicate(
                mpn=mpn,
                new_component=component,
                existing_component=existing_by_mpn[mpn],
            ))
    return duplicates


class BomImporter:
    """Turns BOM files into component records for one configuration."""

    def __init__(
        self,
        config: Optional[BomConfig] = None,
        parser: Optional[BomParser] = None,
        id_generator: Optional[ComponentIdGenerator] = None
    ):
        self.config = config if config is not None else BomConfig()
        self.parser = parser or BomParser()
        self.normalizer = BomNormalizer(self.config)
        self.id_generator = id_generator or ComponentIdGenerator()

    def process(self, file_path: str, project_name: str) -> ProcessedBom:
        """Import a BOM file.

        Args:
            file_path: Path to a .csv, .tsv or .xlsx file
            project_name: Project tag for every record

        Returns:
            ProcessedBom with normalized valid records and ambiguous rows

        Raises:
            ValueError: If the project name is blank
            ParseError: If the file cannot be parsed
            DesignatorColumnNotFoundError: If no designator column is present
        """
        self._require_project(project_name)
        table = self.parser.parse(file_path)
        return self._process_table(table, project_name, source=str(file_path))

    def process_text(
        self,
        text: str,
        project_name: str,
        delimiter: str = ",",
        source: str = "<text>"
    ) -> ProcessedBom:
        """Import already-decoded delimited text. See process()."""
        self._require_project(project_name)
        table = self.parser.parse_text(text, delimiter=delimiter)
        return self._process_table(table, project_name, source=source)

    def resolve(
        self,
        ambiguous: Union[ProcessedBom, List[AmbiguousComponent]],
        resolutions: Mapping[str, Union[Resolution, str]]
    ) -> List[Dict[str, Any]]:
        """Apply resolutions to ambiguous rows and normalize the results."""
        if isinstance(ambiguous, ProcessedBom):
            designator_column = ambiguous.designator_column
            ambiguous = ambiguous.ambiguous
        else:
            designator_column = None

        resolved = resolve_ambiguous(ambiguous, resolutions, id_generator=self.id_generator)
        return self.normalizer.normalize(resolved, designator_column)

    def _require_project(self, project_name: str) -> None:
        if not project_name or not project_name.strip():
            raise ValueError("Project name is required")

    def _quantity_aliases(self) -> List[str]:
        """Source headers the config maps onto the Quantity field."""
        return [source for source, target in self.config.field_mappings if target == QUANTITY_FIELD]

    def _process_table(
        self,
        table: ParsedTable,
        project_name: str,
        source: str
    ) -> ProcessedBom:
        designator_column = self.normalizer.find_designator_column(table.headers)
        if designator_column is None:
            raise DesignatorColumnNotFoundError(
                source, self.config.expected_designator_columns()
            )

        result = flatten_bom(
            table.rows,
            table.headers,
            project_name.strip(),
            designator_column,
            id_generator=self.id_generator,
            quantity_columns=self._quantity_aliases(),
        )

        valid = self.normalizer.normalize(result.flattened, designator_column)
        headers = collect_headers(valid + [item.base for item in result.ambiguous])

        logger.info(
            f"Imported {source}: {len(table.rows)} rows -> {len(valid)} components, "
            f"{len(result.ambiguous)} ambiguous (designator column {designator_column!r})"
        )

        return ProcessedBom(
            valid=valid,
            ambiguous=result.ambiguous,
            headers=headers,
            count=len(table.rows),
            designator_column=designator_column,
        )
