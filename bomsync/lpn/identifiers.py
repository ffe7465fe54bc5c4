"""
Local Part Number (LPN) helpers.

Format: PREFIX-SSSSS-HHHHHH, e.g. KL-00123-A3F142

- SSSSS is the zero-padded sequence reserved from the shared counter.
- HHHHHH is a digest of the manufacturer part number (MPN) only. The MPN is
  trimmed and case-folded first, so the digest ignores case and surrounding
  whitespace.

Once a component has an LPN, its MPN fields are locked: editing them would
break the link between the LPN digest and the part it names.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..errors import InvalidSequenceError, SequenceExhaustedError
from ..schema import (
    DEFAULT_LPN_PREFIX,
    LPN_FIELD,
    LPN_HASH_LENGTH,
    LPN_SEQUENCE_DIGITS,
    MAX_LPN_SEQUENCE,
    MPN_FIELDS,
)

EMPTY_HASH = "0" * LPN_HASH_LENGTH


@dataclass
class LpnInfo:
    """Decoded view of an LPN string."""
    lpn: str
    valid: bool
    sequence: Optional[str] = None
    hash: Optional[str] = None
    mpn: Optional[str] = None


def format_sequence(sequence: Any) -> str:
    """Format a sequence number as a 5-digit string (1 -> "00001").

    Raises:
        InvalidSequenceError: If the value is not an integer >= 1
        SequenceExhaustedError: If the value exceeds 99999
    """
    try:
        number = int(str(sequence).strip())
    except (TypeError, ValueError):
        raise InvalidSequenceError(
            f"Sequence number must be between 1 and {MAX_LPN_SEQUENCE}, got {sequence!r}"
        ) from None

    if number < 1:
        raise InvalidSequenceError(
            f"Sequence number must be between 1 and {MAX_LPN_SEQUENCE}, got {number}"
        )
    if number > MAX_LPN_SEQUENCE:
        raise SequenceExhaustedError(number, MAX_LPN_SEQUENCE)

    return str(number).zfill(LPN_SEQUENCE_DIGITS)


def normalize_mpn(mpn: Optional[str]) -> str:
    """Canonical MPN form used for hashing and matching.

    The MPN is trimmed, case-folded, then upper-cased. Folding first makes
    any-case spellings agree for non-ASCII text too ("İ" vs "i̇", "ß" vs
    "SS"); for ASCII the result is plain upper case, so digests match LPNs
    minted before folding was added.
    """
    if not mpn or not isinstance(mpn, str):
        return ""
    return mpn.strip().casefold().upper()


def generate_mpn_hash(mpn: Optional[str]) -> str:
    """Digest an MPN into 6 uppercase hex characters.

    The digest is the 32-bit string hash (h = 31*h + c) of the normalized
    MPN, taken as an absolute value, rendered in hex, zero padded, keeping
    the last 6 digits. An empty MPN hashes to "000000".
    """
    normalized = normalize_mpn(mpn)
    if not normalized:
        return EMPTY_HASH

    value = 0
    for char in normalized:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000

    return format(abs(value), "X").zfill(LPN_HASH_LENGTH)[-LPN_HASH_LENGTH:]


def extract_mpn(component: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return the first populated MPN field of a component, trimmed.

    Fields are checked in MPN_FIELDS order.
    """
    if not component or not isinstance(component, dict):
        return None

    for field_name in MPN_FIELDS:
        value = component.get(field_name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def assemble_lpn(sequence: int, mpn_hash: str, prefix: str = DEFAULT_LPN_PREFIX) -> str:
    """Join prefix, formatted sequence and hash: ("KL", 123, "A3F142") -> "KL-00123-A3F142"."""
    return f"{prefix}-{format_sequence(sequence)}-{mpn_hash}"


def validate_component_for_lpn(component: Optional[Dict[str, Any]]) -> bool:
    """True if the component has an MPN to derive an LPN from."""
    return extract_mpn(component) is not None


def has_lpn(component: Optional[Dict[str, Any]]) -> bool:
    """True if the component carries a non-empty LPN."""
    if not component:
        return False
    value = component.get(LPN_FIELD)
    return isinstance(value, str) and bool(value.strip())


def is_field_locked(field_name: str, component: Optional[Dict[str, Any]]) -> bool:
    """True only for MPN fields of a component that already has an LPN."""
    if not has_lpn(component):
        return False
    return field_name in MPN_FIELDS


def can_edit_field(field_name: str, component: Optional[Dict[str, Any]]) -> bool:
    return not is_field_locked(field_name, component)


def lpn_pattern(prefix: str = DEFAULT_LPN_PREFIX) -> "re.Pattern":
    return re.compile(
        rf"^{re.escape(prefix)}-(\d{{{LPN_SEQUENCE_DIGITS}}})-([0-9A-F]{{{LPN_HASH_LENGTH}}})$"
    )


def validate_lpn_format(lpn: Any, prefix: str = DEFAULT_LPN_PREFIX) -> bool:
    if not lpn or not isinstance(lpn, str):
        return False
    return lpn_pattern(prefix).match(lpn) is not None


def parse_lpn(
    component: Optional[Dict[str, Any]],
    prefix: str = DEFAULT_LPN_PREFIX
) -> Optional[LpnInfo]:
    """Decode the LPN carried by a component.

    Returns:
        None if the component has no LPN, otherwise an LpnInfo; `valid` is
        False when the stored string does not match the LPN format
    """
    if not has_lpn(component):
        return None

    lpn = component[LPN_FIELD].strip()
    match = lpn_pattern(prefix).match(lpn)
    if not match:
        return LpnInfo(lpn=lpn, valid=False)

    return LpnInfo(
        lpn=lpn,
        valid=True,
        sequence=match.group(1),
        hash=match.group(2),
        mpn=extract_mpn(component),
    )
