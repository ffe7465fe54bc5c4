"""Exception hierarchy for bomsync.

Parser errors are fatal to the file being parsed. LPN errors are per-record:
the batch assignment path collects them instead of aborting. Ambiguous rows
are never an error; they come back on their own output channel.
"""

from typing import Iterable, Optional


class BomSyncError(Exception):
    """Base exception for all bomsync errors."""


# =============================================================================
# PARSING
# =============================================================================

class ParseError(BomSyncError, ValueError):
    """A BOM source could not be turned into headers and rows."""


class EmptyInputError(ParseError):
    """Input is empty or holds only whitespace/delimiters."""


class NoHeadersError(ParseError):
    """The header line produced no usable column names."""


class UnsupportedFileError(ParseError):
    """No adapter can read the given file."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        super().__init__(
            f"Unsupported file format for {file_path}. "
            "Please upload a .csv, .tsv or .xlsx file."
        )


class DesignatorColumnNotFoundError(BomSyncError, ValueError):
    """None of the configured designator columns is present in the headers."""

    def __init__(self, source: str, expected: Iterable[str]) -> None:
        self.source = source
        self.expected = list(expected)
        super().__init__(
            f"Could not find designator column in {source!r}. "
            f"Expected one of: {', '.join(self.expected)}"
        )


# =============================================================================
# LPN ASSIGNMENT
# =============================================================================

class LpnError(BomSyncError):
    """Per-record failure while assigning a Local Part Number."""


class MissingMPNError(LpnError, ValueError):
    """The component has no manufacturer part number to derive an LPN from."""

    def __init__(self, component_id: Optional[str] = None) -> None:
        self.component_id = component_id
        super().__init__(
            "Component must have a Manufacturer Part Number (MPN) to generate LPN"
        )


class AlreadyAssignedError(LpnError):
    """The component already carries a non-empty LPN."""

    def __init__(self, lpn: str) -> None:
        self.lpn = lpn
        super().__init__(f"Component already has an LPN assigned: {lpn}")


class InvalidSequenceError(LpnError, ValueError):
    """A sequence value is not a positive integer."""


class SequenceExhaustedError(LpnError):
    """The shared LPN counter has no sequence numbers left."""

    def __init__(self, sequence: int, maximum: int) -> None:
        self.sequence = sequence
        self.maximum = maximum
        super().__init__(
            f"LPN sequence exhausted: {sequence} exceeds maximum {maximum}"
        )


class MissingComponentIdError(LpnError, ValueError):
    """The component has no id, so the LPN cannot be persisted."""


# =============================================================================
# STORE
# =============================================================================

class StoreError(BomSyncError):
    """The document store failed. The message carries the backend's error."""


class DocumentNotFoundError(StoreError):
    """An update targeted a document the store does not hold."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No document at {key!r}")


class AtomicUpdateConflictError(StoreError):
    """Compare-and-swap emulation gave up after repeated conflicts."""

    def __init__(self, key: str, attempts: int) -> None:
        self.key = key
        self.attempts = attempts
        super().__init__(
            f"Atomic update of {key!r} still conflicting after {attempts} attempts"
        )
