"""Local Part Number identifiers and assignment.

The assignment service lives in bomsync.lpn.service; it is not re-exported
here because it depends on bomsync.store, which itself uses these helpers.
"""

from .identifiers import (
    LpnInfo,
    assemble_lpn,
    can_edit_field,
    extract_mpn,
    format_sequence,
    generate_mpn_hash,
    has_lpn,
    is_field_locked,
    normalize_mpn,
    parse_lpn,
    validate_component_for_lpn,
    validate_lpn_format,
)

__all__ = [
    "LpnInfo",
    "assemble_lpn",
    "can_edit_field",
    "extract_mpn",
    "format_sequence",
    "generate_mpn_hash",
    "has_lpn",
    "is_field_locked",
    "normalize_mpn",
    "parse_lpn",
    "validate_component_for_lpn",
    "validate_lpn_format",
]
