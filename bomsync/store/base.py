"""
Abstract document store consumed by the component repository and the LPN
service.

Keys are hierarchical paths ("users/u1/components/c1", "counters/lpn"). A
document's collection is its key without the last segment.

The only operation with a strong consistency requirement is run_atomic():
a read-compute-write against one key that no other caller can interleave
with. Stores with a native transaction primitive override it; stores that
only offer compare_and_set() get a bounded compare-and-swap retry loop.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..errors import AtomicUpdateConflictError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

DEFAULT_ATOMIC_RETRIES = 5


def collection_of(key: str) -> str:
    """Collection path of a document key ("a/b/c" -> "a/b")."""
    return key.rsplit("/", 1)[0] if "/" in key else ""


def join_key(*parts: str) -> str:
    return "/".join(str(part).strip("/") for part in parts)


class DocumentStore:
    """
    Abstract transactional document store.

    Implement this interface with your actual backend. Transport failures
    must surface as StoreError (with the backend exception chained); the
    store never retries them on its own.
    """

    max_atomic_retries: int = DEFAULT_ATOMIC_RETRIES

    def get(self, key: str) -> Optional[Document]:
        """
        Read one document.

        Args:
            key: Document key

        Returns:
            The document, or None if absent
        """
        raise NotImplementedError

    def set(self, key: str, value: Document, merge: bool = False) -> None:
        """
        Write one document.

        Args:
            key: Document key
            value: Document body
            merge: If True, update the given fields of an existing document
                   instead of replacing it
        """
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Delete one document. Deleting an absent key is not an error."""
        raise NotImplementedError

    def query_items(
        self,
        collection: str,
        predicate: Optional[Callable[[Document], bool]] = None
    ) -> List[Tuple[str, Document]]:
        """
        List (key, document) pairs directly inside a collection, ordered by key.

        Args:
            collection: Collection path (e.g. "users/u1/components")
            predicate: Optional filter applied to each document

        Returns:
            Matching pairs (documents are copies; mutating them does not
            change the store)
        """
        raise NotImplementedError

    def query(
        self,
        collection: str,
        predicate: Optional[Callable[[Document], bool]] = None
    ) -> List[Document]:
        """List documents directly inside a collection. See query_items()."""
        return [document for _, document in self.query_items(collection, predicate)]

    def compare_and_set(
        self,
        key: str,
        expected: Optional[Document],
        value: Document
    ) -> bool:
        """
        Write `value` only if the document still equals `expected`.

        Returns:
            True if the write happened, False on a conflicting concurrent write
        """
        raise NotImplementedError

    def run_atomic(
        self,
        key: str,
        fn: Callable[[Optional[Document]], Document]
    ) -> Document:
        """
        Atomically replace the document at `key` with fn(current).

        `fn` may raise to abort; nothing is written in that case. This default
        emulates the transaction with compare_and_set() and gives up after
        `max_atomic_retries` conflicts.

        Returns:
            The document written

        Raises:
            AtomicUpdateConflictError: If every attempt hit a conflict
        """
        for attempt in range(1, self.max_atomic_retries + 1):
            current = self.get(key)
            new_value = fn(current)
            if self.compare_and_set(key, current, new_value):
                return new_value
            logger.debug(f"Atomic update of {key!r} conflicted (attempt {attempt})")

        raise AtomicUpdateConflictError(key, self.max_atomic_retries)

    def close(self) -> None:
        """Release backend resources."""
