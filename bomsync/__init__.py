from .errors import (
    BomSyncError,
    ParseError,
    EmptyInputError,
    NoHeadersError,
    UnsupportedFileError,
    DesignatorColumnNotFoundError,
    LpnError,
    MissingMPNError,
    AlreadyAssignedError,
    InvalidSequenceError,
    SequenceExhaustedError,
    MissingComponentIdError,
    StoreError,
    DocumentNotFoundError,
    AtomicUpdateConflictError,
)
from .config import BomConfig, Settings, load_config, load_settings
from .parser import BomParser, ParsedTable, parse_text, split_line
from .normalizer import BomNormalizer, find_designator_column, normalize_component
from .designators import ComponentIdGenerator, get_component_type, split_designators
from .flatten import AmbiguousComponent, FlattenResult, flatten_bom
from .resolver import Resolution, resolve_ambiguous
from .importer import BomImporter, Duplicate, ProcessedBom, detect_duplicates
from .store import ComponentRepository, DocumentStore, MemoryDocumentStore
from .lpn.identifiers import (
    assemble_lpn,
    extract_mpn,
    format_sequence,
    generate_mpn_hash,
    has_lpn,
    is_field_locked,
)
from .lpn.service import LpnAssignmentService, AssignmentResult, BatchAssignmentResult

__all__ = [
    "BomSyncError", "ParseError", "EmptyInputError", "NoHeadersError",
    "UnsupportedFileError", "DesignatorColumnNotFoundError", "LpnError",
    "MissingMPNError", "AlreadyAssignedError", "InvalidSequenceError",
    "SequenceExhaustedError", "MissingComponentIdError", "StoreError",
    "DocumentNotFoundError", "AtomicUpdateConflictError",
    "BomConfig", "Settings", "load_config", "load_settings",
    "BomParser", "ParsedTable", "parse_text", "split_line",
    "BomNormalizer", "find_designator_column", "normalize_component",
    "ComponentIdGenerator", "get_component_type", "split_designators",
    "AmbiguousComponent", "FlattenResult", "flatten_bom",
    "Resolution", "resolve_ambiguous",
    "BomImporter", "Duplicate", "ProcessedBom", "detect_duplicates",
    "ComponentRepository", "DocumentStore", "MemoryDocumentStore",
    "assemble_lpn", "extract_mpn", "format_sequence", "generate_mpn_hash",
    "has_lpn", "is_field_locked",
    "LpnAssignmentService", "AssignmentResult", "BatchAssignmentResult",
]
