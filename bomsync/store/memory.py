"""In-memory document store: dict-backed, thread-safe, for tests and local runs."""

import copy
import threading
from typing import Callable, Dict, List, Optional, Tuple

from .base import Document, DocumentStore, collection_of


class MemoryDocumentStore(DocumentStore):
    """Dict-backed DocumentStore.

    All operations hold one lock, so run_atomic() is a true transaction
    here. compare_and_set() is implemented too, for exercising the
    compare-and-swap path of the base class.
    """

    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(key)
            return copy.deepcopy(document) if document is not None else None

    def set(self, key: str, value: Document, merge: bool = False) -> None:
        with self._lock:
            if merge and key in self._documents:
                self._documents[key].update(copy.deepcopy(value))
            else:
                self._documents[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._documents.pop(key, None)

    def query_items(
        self,
        collection: str,
        predicate: Optional[Callable[[Document], bool]] = None
    ) -> List[Tuple[str, Document]]:
        with self._lock:
            items = [
                (key, copy.deepcopy(document))
                for key, document in sorted(self._documents.items())
                if collection_of(key) == collection
            ]
        if predicate is None:
            return items
        return [(key, document) for key, document in items if predicate(document)]

    def compare_and_set(
        self,
        key: str,
        expected: Optional[Document],
        value: Document
    ) -> bool:
        with self._lock:
            if self._documents.get(key) != expected:
                return False
            self._documents[key] = copy.deepcopy(value)
            return True

    def run_atomic(
        self,
        key: str,
        fn: Callable[[Optional[Document]], Document]
    ) -> Document:
        with self._lock:
            current = self._documents.get(key)
            new_value = fn(copy.deepcopy(current) if current is not None else None)
            self._documents[key] = copy.deepcopy(new_value)
            return new_value


class CompareAndSwapDocumentStore(MemoryDocumentStore):
    """Memory store without a native transaction.

    run_atomic() falls back to the compare-and-swap loop of DocumentStore.
    """

    run_atomic = DocumentStore.run_atomic
