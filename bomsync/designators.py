"""Designator helpers shared by flattening and ambiguity resolution."""

import itertools
import re
import threading
import uuid
from typing import Dict, List, Optional

from .schema import DEFAULT_DESIGNATOR_MEANINGS

# Any run of commas, semicolons and whitespace is one separator
DESIGNATOR_SEPARATORS = re.compile(r'[,;\s]+')

_PREFIX = re.compile(r'^[A-Z]+')
_UNSAFE_ID_CHARS = re.compile(r'[^a-zA-Z0-9_-]')

UNSPECIFIED_TYPE = "Unspecified"


def split_designators(designators: Optional[str]) -> List[str]:
    """Split a designator cell into individual tokens.

    "R1, R2 R3; R4" -> ["R1", "R2", "R3", "R4"]. Empty tokens are dropped.
    """
    if not designators:
        return []
    return [token for token in DESIGNATOR_SEPARATORS.split(str(designators)) if token]


def get_component_type(
    designator: Optional[str],
    meanings: Optional[Dict[str, str]] = None
) -> str:
    """Label a designator by its leading letters.

    Args:
        designator: Reference designator such as "R101" or "SW3"
        meanings: Custom prefix -> label map; overrides the defaults

    Returns:
        The label for the prefix, or "Unspecified" when there is none
    """
    if not designator or not isinstance(designator, str):
        return UNSPECIFIED_TYPE

    combined = {**DEFAULT_DESIGNATOR_MEANINGS, **(meanings or {})}
    match = _PREFIX.match(designator.strip().upper())
    if match:
        return combined.get(match.group(0), UNSPECIFIED_TYPE)
    return UNSPECIFIED_TYPE


class ComponentIdGenerator:
    """Generates component ids that stay unique within and across calls.

    Ids combine the project, a sanitized designator, a process-wide
    monotonic counter and a random suffix.
    """

    _counter = itertools.count(1)
    _lock = threading.Lock()

    def next_id(self, project_name: str, designator: str) -> str:
        with self._lock:
            sequence = next(self._counter)
        safe_designator = _UNSAFE_ID_CHARS.sub('_', designator.strip())
        return f"{project_name}-{safe_designator}-{sequence}-{uuid.uuid4().hex[:8]}"
