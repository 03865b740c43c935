# progress_hub/services/store.py
"""
Application state store.

Holds the five collections in memory, mirrors every mutation to the
configured persistence adapter, and reconciles pushed snapshots from
backends that support them.

Rules
-----
- In-memory state is replaced only after the backend acknowledged the
  write, all-or-nothing per call.
- Writes to the same collection are serialized with a per-collection lock,
  so write N+1 is always computed from the result of write N. Different
  collections proceed independently.
- Pushed snapshots replace state wholesale and are ignored when identical
  to what is already applied or older than an acknowledged revision.
- A QuotaExceededError from the backend switches the store into
  quota-exceeded mode: reads keep working, writes are rejected locally
  until `clear_quota()` is called.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import pydantic
from pydantic import BaseModel

from progress_hub.adapters.base import BackendSnapshot, PersistenceAdapter, Unsubscribe
from progress_hub.core.errors import (
    NotFoundError,
    PersistenceError,
    QuotaExceededError,
    StoreError,
    ValidationError,
)
from progress_hub.core.utils import generate_id, utc_now
from progress_hub.schemas.common import CollectionKind, EntityBase
from progress_hub.schemas.snapshot import COLLECTION_SPECS, CollectionSpec, StoreSnapshot
from progress_hub.schemas.status import StoreStatusRead

logger = logging.getLogger(__name__)

BACKUP_INTERVAL = timedelta(days=7)

Listener = Callable[[StoreSnapshot], None]
Items = Tuple[EntityBase, ...]


def to_validation_error(exc: pydantic.ValidationError, what: str) -> ValidationError:
    """
    Convert a pydantic error into the store's ValidationError with a
    JSON-safe error list.
    """
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    first = errors[0]["msg"] if errors else "invalid input"
    return ValidationError(f"Invalid {what}: {first}", errors=errors)


def _documents(items: Sequence[EntityBase]) -> List[Dict[str, Any]]:
    return [item.to_document() for item in items]


@dataclass
class _CollectionState:
    items: Items = ()
    version: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


@dataclass
class StoreStatus:
    """
    Process-wide status observable by consumers.
    """

    loaded: bool = False
    quota_exceeded: bool = False
    last_error: Optional[StoreError] = None
    backend_revision: Optional[int] = None
    last_backup_at: Optional[datetime] = None


class CollectionHandle:
    """
    Convenience view bound to one collection, e.g. ``await store.tasks.add(...)``.
    """

    def __init__(self, store: "AppStore", kind: CollectionKind) -> None:
        self._store = store
        self.kind = kind

    def all(self) -> List[Any]:
        return self._store.items(self.kind)

    def get(self, entity_id: str) -> Any:
        return self._store.get(self.kind, entity_id)

    def find(self, entity_id: str) -> Any:
        return self._store.find(self.kind, entity_id)

    async def add(self, draft: Any) -> Any:
        return await self._store.add(self.kind, draft)

    async def update(self, entity_id: str, patch: Any) -> Any:
        return await self._store.update(self.kind, entity_id, patch)

    async def delete(self, entity_id: str) -> bool:
        return await self._store.delete(self.kind, entity_id)

    def __len__(self) -> int:
        return len(self._store.items(self.kind))


class AppStore:
    """
    Single in-memory source of truth for staff, tasks, meetings, reports and
    shifts. Construct once at process start and pass it to every consumer.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = generate_id,
    ) -> None:
        self._adapter = adapter
        self._clock = clock
        self._id_factory = id_factory
        self._collections: Dict[CollectionKind, _CollectionState] = {
            kind: _CollectionState() for kind in CollectionKind
        }
        self._listeners: List[Listener] = []
        self._unsubscribe: Optional[Unsubscribe] = None
        self.status = StoreStatus()

        self.staff = CollectionHandle(self, CollectionKind.STAFF)
        self.tasks = CollectionHandle(self, CollectionKind.TASKS)
        self.meetings = CollectionHandle(self, CollectionKind.MEETINGS)
        self.reports = CollectionHandle(self, CollectionKind.REPORTS)
        self.shifts = CollectionHandle(self, CollectionKind.SHIFTS)

    @property
    def adapter(self) -> PersistenceAdapter:
        return self._adapter

    def collection(self, kind: CollectionKind) -> CollectionHandle:
        return getattr(self, kind.value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> StoreSnapshot:
        """
        Load the initial snapshot and subscribe to pushed changes. Failures
        of the subscription itself are recorded in `status.last_error`.
        """
        snapshot = await self.load()
        if self._unsubscribe is None:
            self._unsubscribe = self._adapter.subscribe(
                self.apply_pushed_snapshot, on_error=self._record_error
            )
        return snapshot

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self._adapter.close()

    async def load(self) -> StoreSnapshot:
        """
        Replace every collection with the backend's current contents.
        """
        async with self._all_locks():
            try:
                snapshot = await self._adapter.load_all()
                collections = self._validate_backend_snapshot(snapshot)
            except StoreError as exc:
                self._record_error(exc)
                raise

            for kind, items in collections.items():
                self._apply(kind, items)
            self._note_revision(snapshot.revision)
            self.status.loaded = True
            self.status.last_error = None

        logger.info(
            "Loaded snapshot from %s backend: %s",
            self._adapter.name,
            ", ".join(f"{kind.value}={len(items)}" for kind, items in collections.items()),
        )
        self._notify()
        return self.snapshot()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def items(self, kind: CollectionKind) -> List[Any]:
        return list(self._collections[kind].items)

    def find(self, kind: CollectionKind, entity_id: str) -> Optional[Any]:
        for item in self._collections[kind].items:
            if item.id == entity_id:
                return item
        return None

    def get(self, kind: CollectionKind, entity_id: str) -> Any:
        item = self.find(kind, entity_id)
        if item is None:
            raise NotFoundError(f"{kind.value} item with id {entity_id} not found.")
        return item

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(**{kind.value: list(state.items) for kind, state in self._collections.items()})

    def versions(self) -> Dict[str, int]:
        return {kind.value: state.version for kind, state in self._collections.items()}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add(self, kind: CollectionKind, draft: Any) -> Any:
        """
        Validate `draft`, assign id and timestamps, persist, then append.
        """
        spec = COLLECTION_SPECS[kind]
        try:
            data = self._coerce(spec.draft, draft, f"{kind.value} draft").model_dump()
        except ValidationError as exc:
            self._record_error(exc)
            raise

        def mutate(current: Items) -> Tuple[Items, Any]:
            now = self._clock()
            entity = self._build(
                spec,
                {**data, "id": self._new_id(current), "created_at": now, "updated_at": now},
            )
            return current + (entity,), entity

        return await self._commit(kind, mutate)

    async def update(self, kind: CollectionKind, entity_id: str, patch: Any) -> Any:
        """
        Merge `patch` over the stored entity and persist.

        Nested objects listed in the collection spec are merged one level deep.
        Raises NotFoundError when the id is absent.
        """
        spec = COLLECTION_SPECS[kind]
        try:
            changes = self._patch_fields(spec, self._coerce(spec.patch, patch, f"{kind.value} patch"))
        except ValidationError as exc:
            self._record_error(exc)
            raise

        def mutate(current: Items) -> Tuple[Items, Any]:
            index = self._index_of(kind, current, entity_id)
            existing = current[index]

            merged = existing.model_dump()
            for name, value in changes.items():
                previous = merged.get(name)
                if name in spec.nested_fields and isinstance(value, dict) and isinstance(previous, dict):
                    merged[name] = {**previous, **value}
                else:
                    merged[name] = value
            merged["id"] = existing.id
            merged["created_at"] = existing.created_at
            merged["updated_at"] = self._clock()

            entity = self._build(spec, merged)
            if spec.on_update is not None:
                entity = spec.on_update(existing, entity)
            return current[:index] + (entity,) + current[index + 1:], entity

        return await self._commit(kind, mutate)

    async def delete(self, kind: CollectionKind, entity_id: str) -> bool:
        """
        Remove an entity and persist the remaining collection.

        Deleting an id that is not present is a no-op that returns False
        without contacting the backend. Nothing cascades to other collections.
        """

        def mutate(current: Items) -> Optional[Tuple[Items, bool]]:
            remaining = tuple(item for item in current if item.id != entity_id)
            if len(remaining) == len(current):
                return None
            return remaining, True

        removed = await self._commit(kind, mutate)
        return bool(removed)

    async def replace_all(self, collections: Mapping[CollectionKind, Sequence[EntityBase]]) -> StoreSnapshot:
        """
        Destructively replace every collection (used by import).

        Collections are written one after another; each is applied in memory
        as soon as its write is acknowledged.
        """
        applied = False
        async with self._all_locks():
            try:
                self._ensure_writable()
                for kind in CollectionKind:
                    items = tuple(collections.get(kind, ()))
                    revision = await self._adapter.save_collection(
                        kind, _documents(items)
                    )
                    self._apply(kind, items)
                    self._note_revision(revision)
                    applied = True
            except QuotaExceededError as exc:
                self._enter_quota_mode(exc)
                raise
            except StoreError as exc:
                self._record_error(exc)
                raise
            finally:
                if applied:
                    self._notify()
            self.status.last_error = None
            self.status.loaded = True

        logger.info("Replaced all collections from import")
        return self.snapshot()

    # ------------------------------------------------------------------
    # Push reconciliation
    # ------------------------------------------------------------------

    def apply_pushed_snapshot(self, snapshot: BackendSnapshot) -> bool:
        """
        Apply a snapshot delivered by the adapter's subscription.

        Returns True if any collection changed. Echoes of this process's own
        writes compare equal to the applied state and are therefore no-ops.
        """
        known = self.status.backend_revision
        if snapshot.revision is not None and known is not None and snapshot.revision < known:
            logger.debug("Ignoring pushed revision %s older than %s", snapshot.revision, known)
            return False

        try:
            collections = self._validate_backend_snapshot(snapshot)
        except ValidationError as exc:
            self._record_error(exc)
            logger.warning("Rejected pushed snapshot: %s", exc)
            return False

        changed = False
        for kind, items in collections.items():
            state = self._collections[kind]
            if state.lock.locked():
                # the in-flight write will produce a newer revision
                continue
            if _documents(items) == _documents(state.items):
                continue
            self._apply(kind, items)
            changed = True

        self._note_revision(snapshot.revision)
        if changed:
            logger.info("Applied pushed snapshot (revision=%s)", snapshot.revision)
            self._notify()
        return changed

    # ------------------------------------------------------------------
    # Observers and status
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def clear_quota(self) -> None:
        """
        Leave quota-exceeded mode once the backend limit has been lifted.
        """
        if self.status.quota_exceeded:
            logger.info("Quota-exceeded mode cleared; writes are enabled again")
        self.status.quota_exceeded = False
        if isinstance(self.status.last_error, QuotaExceededError):
            self.status.last_error = None

    def record_backup(self, at: Optional[datetime] = None) -> datetime:
        self.status.last_backup_at = at or self._clock()
        return self.status.last_backup_at

    def backup_recommended(self, now: Optional[datetime] = None) -> bool:
        last = self.status.last_backup_at
        if last is None:
            return True
        return (now or self._clock()) - last > BACKUP_INTERVAL

    def status_view(self) -> StoreStatusRead:
        error = self.status.last_error
        return StoreStatusRead(
            backend=self._adapter.name,
            loaded=self.status.loaded,
            quota_exceeded=self.status.quota_exceeded,
            last_error=str(error) if error else None,
            last_error_code=error.code if error else None,
            versions=self.versions(),
            backend_revision=self.status.backend_revision,
            last_backup_at=self.status.last_backup_at,
            backup_recommended=self.backup_recommended(),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _commit(self, kind: CollectionKind, mutate: Callable[[Items], Any]) -> Any:
        state = self._collections[kind]
        async with state.lock:
            try:
                outcome = mutate(state.items)
                if outcome is None:
                    return None
                updated, result = outcome
                if not self.status.loaded:
                    # saving now would overwrite backend data this process never saw
                    raise PersistenceError("Store has not loaded its initial snapshot; call load() first.")
                self._ensure_writable()
                revision = await self._adapter.save_collection(
                    kind, _documents(updated)
                )
            except QuotaExceededError as exc:
                self._enter_quota_mode(exc)
                raise
            except StoreError as exc:
                self._record_error(exc)
                raise

            self._apply(kind, updated)
            self._note_revision(revision)
            self.status.last_error = None

        self._notify()
        return result

    @contextlib.asynccontextmanager
    async def _all_locks(self):
        async with contextlib.AsyncExitStack() as stack:
            for kind in CollectionKind:
                await stack.enter_async_context(self._collections[kind].lock)
            yield

    def _apply(self, kind: CollectionKind, items: Sequence[EntityBase]) -> None:
        state = self._collections[kind]
        state.items = tuple(items)
        state.version += 1

    def _note_revision(self, revision: Optional[int]) -> None:
        if revision is None:
            return
        current = self.status.backend_revision
        if current is None or revision > current:
            self.status.backend_revision = revision

    def _ensure_writable(self) -> None:
        if self.status.quota_exceeded:
            raise QuotaExceededError(
                "Backend quota exceeded; writes are paused and only local state is current."
            )

    def _enter_quota_mode(self, exc: QuotaExceededError) -> None:
        if not self.status.quota_exceeded:
            logger.warning("Entering quota-exceeded mode: %s", exc)
        self.status.quota_exceeded = True
        self.status.last_error = exc

    def _record_error(self, exc: StoreError) -> None:
        logger.warning("Store operation failed (%s): %s", exc.code, exc)
        self.status.last_error = exc

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Store listener %r failed", listener)

    def _new_id(self, current: Items) -> str:
        taken = {item.id for item in current}
        entity_id = self._id_factory()
        while entity_id in taken:
            entity_id = self._id_factory()
        return entity_id

    @staticmethod
    def _index_of(kind: CollectionKind, current: Items, entity_id: str) -> int:
        for index, item in enumerate(current):
            if item.id == entity_id:
                return index
        raise NotFoundError(f"{kind.value} item with id {entity_id} not found.")

    @staticmethod
    def _coerce(model_cls: type[BaseModel], value: Any, what: str) -> BaseModel:
        if isinstance(value, model_cls):
            return value
        if isinstance(value, BaseModel):
            value = value.model_dump()
        try:
            return model_cls.model_validate(value)
        except pydantic.ValidationError as exc:
            raise to_validation_error(exc, what) from exc

    @staticmethod
    def _build(spec: CollectionSpec, data: Dict[str, Any]) -> EntityBase:
        try:
            return spec.model.model_validate(data)
        except pydantic.ValidationError as exc:
            raise to_validation_error(exc, spec.kind.value) from exc

    @staticmethod
    def _patch_fields(spec: CollectionSpec, patch: BaseModel) -> Dict[str, Any]:
        """
        Fields explicitly present in the patch. Nested mergeable objects keep
        only their own explicitly set keys.
        """
        changes: Dict[str, Any] = {}
        for name in patch.model_fields_set:
            value = getattr(patch, name)
            if name in spec.nested_fields and isinstance(value, BaseModel):
                changes[name] = value.model_dump(exclude_unset=True)
            else:
                changes[name] = patch.model_dump(include={name})[name]
        return changes

    def _validate_backend_snapshot(self, snapshot: BackendSnapshot) -> Dict[CollectionKind, Items]:
        collections: Dict[CollectionKind, Items] = {}
        for kind in CollectionKind:
            model = COLLECTION_SPECS[kind].model
            try:
                collections[kind] = tuple(model.model_validate(doc) for doc in snapshot.get(kind))
            except pydantic.ValidationError as exc:
                raise to_validation_error(exc, f"{kind.value} data from {self._adapter.name} backend") from exc
        return collections
