"""Per-user component collection on top of a DocumentStore."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..errors import DocumentNotFoundError, MissingComponentIdError
from ..lpn.identifiers import extract_mpn, normalize_mpn
from ..schema import ID_FIELD, PROJECT_FIELD
from .base import Document, DocumentStore, join_key

logger = logging.getLogger(__name__)


class ComponentRepository:
    """
    Component records of one user.

    Documents live under users/{user_id}/components/{component_id}. The user
    id comes from the identity provider and is not interpreted here.
    """

    def __init__(self, store: DocumentStore, user_id: str):
        if not user_id:
            raise ValueError("User ID is required")
        self.store = store
        self.user_id = user_id

    @property
    def collection(self) -> str:
        return join_key("users", self.user_id, "components")

    def key_for(self, component_id: str) -> str:
        if not component_id:
            raise MissingComponentIdError("Component has no id")
        return join_key(self.collection, component_id)

    def add(self, component: Dict[str, Any]) -> str:
        """Store one component, replacing any document with the same id."""
        key = self.key_for(component.get(ID_FIELD))
        self.store.set(key, component)
        return component[ID_FIELD]

    def add_many(self, components: List[Dict[str, Any]]) -> List[str]:
        """Store several components; returns their ids in order."""
        ids = [self.add(component) for component in components]
        logger.info(f"Stored {len(ids)} components for user {self.user_id}")
        return ids

    def update(self, component_id: str, updates: Dict[str, Any]) -> None:
        """Merge `updates` into an existing component document.

        Raises:
            DocumentNotFoundError: If the component is not stored
        """
        key = self.key_for(component_id)

        def merge(current: Optional[Document]) -> Document:
            if current is None:
                raise DocumentNotFoundError(key)
            return {**current, **updates}

        self.store.run_atomic(key, merge)

    def get(self, component_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get(self.key_for(component_id))

    def _items(self, predicate=None) -> List[Tuple[str, Dict[str, Any]]]:
        """(key id, document) pairs, where key id is the last key segment."""
        return [
            (key.rsplit("/", 1)[-1], document)
            for key, document in self.store.query_items(self.collection, predicate)
        ]

    def list(self, project_name: Optional[str] = None) -> List[Dict[str, Any]]:
        """All components, or those tagged with `project_name`.

        A document stored without an `id` field gets one from its key.
        """
        if project_name is None:
            items = self._items()
        else:
            items = self._items(lambda doc: doc.get(PROJECT_FIELD) == project_name)
        return [
            {**document, ID_FIELD: document.get(ID_FIELD) or key_id}
            for key_id, document in items
        ]

    def delete(self, component_id: str) -> None:
        self.store.delete(self.key_for(component_id))

    def delete_project(self, project_name: str) -> int:
        """Delete every component of a project; returns how many were removed."""
        items = self._items(lambda doc: doc.get(PROJECT_FIELD) == project_name)
        for key_id, _ in items:
            self.delete(key_id)
        return len(items)

    def delete_all(self) -> int:
        items = self._items()
        for key_id, _ in items:
            self.delete(key_id)
        return len(items)

    def find_by_mpn(self, mpn: str) -> List[Dict[str, Any]]:
        """Components whose MPN matches `mpn` (case and whitespace insensitive)."""
        target = normalize_mpn(mpn)
        if not target:
            return []
        return self.store.query(
            self.collection,
            lambda doc: normalize_mpn(extract_mpn(doc)) == target
        )

    def mpn_exists(self, mpn: str) -> bool:
        return bool(self.find_by_mpn(mpn))
