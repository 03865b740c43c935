# progress_hub/adapters/base.py
"""
Persistence adapter contract.

Every backend (local JSON files, a remote web app, a relational database)
implements this interface. The store only ever talks to a
`PersistenceAdapter` and never branches on which concrete backend it has.
Adapters work with JSON-shaped dicts; validation into models is the store's
job.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from progress_hub.core.errors import StoreError
from progress_hub.schemas.common import CollectionKind

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


@dataclass
class BackendSnapshot:
    """
    Full contents of all five collections as reported by a backend.

    `revision` is set by backends that number their writes; it lets the store
    discard pushed snapshots that are older than a write it already applied.
    """

    collections: Dict[CollectionKind, List[Document]] = field(default_factory=dict)
    revision: Optional[int] = None

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any] | None,
        revision: Optional[int] = None,
    ) -> "BackendSnapshot":
        """
        Build a snapshot from a `{kind: [...]}` mapping. Missing or null
        collections become empty lists.
        """
        data = data or {}
        collections = {kind: list(data.get(kind.value) or []) for kind in CollectionKind}
        return cls(collections=collections, revision=revision)

    def get(self, kind: CollectionKind) -> List[Document]:
        return self.collections.get(kind, [])


ChangeCallback = Callable[[BackendSnapshot], None]
ErrorCallback = Callable[[StoreError], None]
Unsubscribe = Callable[[], None]


class PersistenceAdapter(ABC):
    """
    Uniform contract over a concrete backend.

    Failures must surface as `PersistenceError`, `QuotaExceededError` or
    `NotFoundError`; adapters never leak transport exceptions.
    """

    name: str = "abstract"
    supports_push: bool = False

    @abstractmethod
    async def load_all(self) -> BackendSnapshot:
        """
        Fetch the current contents of all five collections.
        """

    @abstractmethod
    async def save_collection(self, kind: CollectionKind, items: List[Document]) -> Optional[int]:
        """
        Replace one collection in full.

        Returns
        -------
        Optional[int]
            The backend revision produced by this write, when the backend
            numbers its writes; otherwise None.
        """

    def subscribe(
        self,
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """
        Register for pushed snapshots.

        `on_error` receives failures of the subscription itself, such as a
        poll that could not reach the backend. Backends without push support
        never invoke either callback; the returned handle is a no-op.
        """
        logger.debug("Adapter %s does not push changes; subscription is inert", self.name)
        return lambda: None

    async def close(self) -> None:
        """
        Release transports and background tasks. Safe to call more than once.
        """
        return None
