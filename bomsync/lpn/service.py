"""
LPN assignment service.

Each assignment attempt walks a fixed state machine:

    IDLE -> VALIDATING -> SEARCHING -> RESERVING -> PERSISTING -> DONE
                 \\            \\           \\             \\
                  +------------+-----------+-------------+--> FAILED

- VALIDATING: the component needs an MPN and must not already have an LPN.
- SEARCHING: an existing component with the same normalized MPN and an LPN
  means that LPN is reused and RESERVING is skipped.
- RESERVING: one atomic read-increment-write on the shared counter.
- PERSISTING: the LPN and an update timestamp are merged into the stored
  component, then written onto the caller's record. A component the store
  does not hold fails here with DocumentNotFoundError.

A sequence number reserved before a failed persist stays spent. The counter
never goes backwards, so a failure can lose a slot but never duplicate one.

The search step reads without a lock. Two callers assigning the same brand
new MPN at the same moment can both miss each other and mint two LPNs for
it; guarding against that needs a uniqueness constraint in the store.
"""

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional

from ..errors import (
    AlreadyAssignedError,
    BomSyncError,
    MissingComponentIdError,
    MissingMPNError,
    SequenceExhaustedError,
    StoreError,
)
from ..schema import (
    DEFAULT_LPN_COUNTER_KEY,
    DEFAULT_LPN_PREFIX,
    ID_FIELD,
    LPN_FIELD,
    MAX_LPN_SEQUENCE,
    UPDATED_AT_FIELD,
)
from ..store.base import DocumentStore
from ..store.components import ComponentRepository
from .identifiers import (
    assemble_lpn,
    extract_mpn,
    generate_mpn_hash,
    has_lpn,
    is_field_locked,
    normalize_mpn,
)

logger = logging.getLogger(__name__)

COUNTER_VALUE_FIELD = "current"


class AssignmentState(Enum):
    IDLE = auto()
    VALIDATING = auto()
    SEARCHING = auto()
    RESERVING = auto()
    PERSISTING = auto()
    DONE = auto()
    FAILED = auto()


@dataclass
class AssignmentResult:
    """A successful assignment."""
    component_id: str
    lpn: str
    hash: str
    sequence: Optional[int] = None  # None when an existing LPN was reused
    reused: bool = False


@dataclass
class AssignmentFailure:
    """A failed assignment and the state it failed in."""
    component_id: Optional[str]
    state: AssignmentState
    error: str
    error_type: str
    exception: Optional[BomSyncError] = field(default=None, repr=False)


@dataclass
class BatchAssignmentResult:
    """Aggregate outcome of assign_batch()."""
    total: int
    succeeded: Dict[str, str] = field(default_factory=dict)  # component id -> LPN
    results: List[AssignmentResult] = field(default_factory=list)
    failed: List[AssignmentFailure] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.results)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def success(self) -> bool:
        return not self.failed


class _Attempt:
    """One pass through the state machine for one component."""

    def __init__(self, component: Dict[str, Any]):
        self.component = component
        self.component_id = component.get(ID_FIELD) if isinstance(component, dict) else None
        self.state = AssignmentState.IDLE
        self.result: Optional[AssignmentResult] = None
        self.error: Optional[BomSyncError] = None

    def transition(self, state: AssignmentState) -> None:
        logger.debug(f"LPN {self.component_id}: {self.state.name} -> {state.name}")
        self.state = state

    def failure(self) -> AssignmentFailure:
        return AssignmentFailure(
            component_id=self.component_id,
            state=self.state,
            error=str(self.error),
            error_type=type(self.error).__name__,
            exception=self.error,
        )


class LpnAssignmentService:
    """Mints and assigns Local Part Numbers for one user's components."""

    def __init__(
        self,
        store: DocumentStore,
        user_id: str,
        prefix: str = DEFAULT_LPN_PREFIX,
        counter_key: str = DEFAULT_LPN_COUNTER_KEY,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Args:
            store: Document store holding components and the shared counter
            user_id: Current user id from the identity provider
            prefix: LPN prefix (e.g. "KL")
            counter_key: Key of the process-wide sequence counter document
            clock: Returns the current time (defaults to UTC now)
        """
        self.store = store
        self.components = ComponentRepository(store, user_id)
        self.prefix = prefix
        self.counter_key = counter_key
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(cls, store: DocumentStore, user_id: str, settings) -> "LpnAssignmentService":
        return cls(
            store,
            user_id,
            prefix=settings.lpn_prefix,
            counter_key=settings.lpn_counter_key,
        )

    # ------------------------------------------------------------------
    # Store boundary
    # ------------------------------------------------------------------

    def _call_store(self, operation: str, fn: Callable, *args, **kwargs):
        """Run a store call, surfacing backend failures as StoreError."""
        try:
            return fn(*args, **kwargs)
        except BomSyncError:
            raise
        except Exception as e:
            logger.error(f"Store {operation} failed: {e}", exc_info=True)
            raise StoreError(f"{operation} failed: {e}") from e

    def reserve_sequence(self) -> int:
        """Atomically take the next sequence number from the shared counter.

        Returns:
            The reserved sequence (1 for a counter that does not exist yet)

        Raises:
            SequenceExhaustedError: If the next value would exceed 99999;
                                    the counter is left unchanged
            StoreError: If the store fails
        """
        def increment(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            previous = int((current or {}).get(COUNTER_VALUE_FIELD) or 0)
            next_sequence = previous + 1
            if next_sequence > MAX_LPN_SEQUENCE:
                raise SequenceExhaustedError(next_sequence, MAX_LPN_SEQUENCE)
            return {
                COUNTER_VALUE_FIELD: next_sequence,
                UPDATED_AT_FIELD: self._timestamp(),
            }

        counter = self._call_store(
            "sequence reservation", self.store.run_atomic, self.counter_key, increment
        )
        return counter[COUNTER_VALUE_FIELD]

    def find_existing_lpn(self, mpn: str) -> Optional[str]:
        """LPN of a stored component with the same normalized MPN, if any."""
        matches = self._call_store("MPN search", self.components.find_by_mpn, mpn)
        for match in matches:
            if has_lpn(match):
                return match[LPN_FIELD].strip()
        return None

    def _timestamp(self) -> str:
        return self._clock().isoformat()

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _run(
        self,
        component: Dict[str, Any],
        batch_lpns: Optional[Dict[str, str]] = None
    ) -> _Attempt:
        attempt = _Attempt(component)
        sequence = None
        try:
            attempt.transition(AssignmentState.VALIDATING)
            mpn = extract_mpn(component)
            if mpn is None:
                raise MissingMPNError(attempt.component_id)
            if has_lpn(component):
                raise AlreadyAssignedError(component[LPN_FIELD])
            if not attempt.component_id:
                raise MissingComponentIdError("Component has no id")

            key = normalize_mpn(mpn)
            mpn_hash = generate_mpn_hash(mpn)

            attempt.transition(AssignmentState.SEARCHING)
            lpn = batch_lpns.get(key) if batch_lpns is not None else None
            if lpn is None:
                lpn = self.find_existing_lpn(mpn)

            if lpn is not None:
                logger.info(f"Reusing LPN {lpn} for MPN {mpn!r}")
            else:
                attempt.transition(AssignmentState.RESERVING)
                sequence = self.reserve_sequence()
                lpn = assemble_lpn(sequence, mpn_hash, self.prefix)
                logger.info(f"Reserved sequence {sequence} for MPN {mpn!r}: {lpn}")

            if batch_lpns is not None:
                batch_lpns[key] = lpn

            attempt.transition(AssignmentState.PERSISTING)
            timestamp = self._timestamp()
            self._call_store(
                "component update",
                self.components.update,
                attempt.component_id,
                {LPN_FIELD: lpn, UPDATED_AT_FIELD: timestamp},
            )
            component[LPN_FIELD] = lpn
            component[UPDATED_AT_FIELD] = timestamp

            attempt.result = AssignmentResult(
                component_id=attempt.component_id,
                lpn=lpn,
                hash=mpn_hash,
                sequence=sequence,
                reused=sequence is None,
            )
            attempt.transition(AssignmentState.DONE)

        except BomSyncError as e:
            attempt.error = e
            if attempt.state is AssignmentState.PERSISTING and sequence is not None:
                logger.warning(
                    f"Sequence {sequence} spent without persisting for component "
                    f"{attempt.component_id}"
                )
            logger.info(f"LPN assignment for {attempt.component_id} failed in "
                        f"{attempt.state.name}: {e}")

        return attempt

    def assign(self, component: Dict[str, Any]) -> AssignmentResult:
        """Assign an LPN to one component, updating it in place.

        Raises:
            MissingMPNError, AlreadyAssignedError, MissingComponentIdError,
            SequenceExhaustedError, StoreError
        """
        attempt = self._run(component)
        if attempt.error is not None:
            raise attempt.error
        return attempt.result

    def assign_batch(
        self,
        components: List[Dict[str, Any]],
        max_workers: int = 1
    ) -> BatchAssignmentResult:
        """Assign LPNs to many components without stopping on failures.

        Components sharing an MPN are processed in order within one group, so
        later members reuse the LPN minted for the first one. Distinct MPN
        groups may run concurrently when `max_workers` > 1.

        Args:
            components: Components to process (updated in place on success)
            max_workers: Number of MPN groups processed at once

        Returns:
            BatchAssignmentResult in input order
        """
        # Groups never share an MPN key, so concurrent groups write disjoint keys
        batch_lpns: Dict[str, str] = {}

        groups: "OrderedDict[Any, List[int]]" = OrderedDict()
        for index, component in enumerate(components):
            key = normalize_mpn(extract_mpn(component)) or ("no-mpn", index)
            groups.setdefault(key, []).append(index)

        attempts: List[Optional[_Attempt]] = [None] * len(components)

        def run_group(indexes: List[int]) -> None:
            for index in indexes:
                attempts[index] = self._run(components[index], batch_lpns)

        if max_workers > 1 and len(groups) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                list(executor.map(run_group, groups.values()))
        else:
            for indexes in groups.values():
                run_group(indexes)

        result = BatchAssignmentResult(total=len(components))
        for attempt in attempts:
            if attempt.error is None:
                result.results.append(attempt.result)
                result.succeeded[attempt.component_id] = attempt.result.lpn
            else:
                result.failed.append(attempt.failure())

        logger.info(
            f"LPN batch: {result.success_count} assigned, "
            f"{result.failure_count} failed of {result.total}"
        )
        return result

    @staticmethod
    def is_locked(field_name: str, component: Dict[str, Any]) -> bool:
        """True if `field_name` is an MPN field of a component that has an LPN."""
        return is_field_locked(field_name, component)
