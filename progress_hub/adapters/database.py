# progress_hub/adapters/database.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from progress_hub.adapters.base import (
    BackendSnapshot,
    ChangeCallback,
    Document,
    ErrorCallback,
    PersistenceAdapter,
    Unsubscribe,
)
from progress_hub.core.errors import NotFoundError, PersistenceError, QuotaExceededError, StoreError
from progress_hub.core.utils import utc_now
from progress_hub.db.session import build_sessionmaker, init_schema
from progress_hub.models.app_data import APP_DATA_ROW_ID, AppData
from progress_hub.schemas.common import CollectionKind

logger = logging.getLogger(__name__)

_QUOTA_MARKERS = ("quota", "disk is full", "disk full", "storage limit", "exceeded")


def _translate(exc: SQLAlchemyError, action: str) -> PersistenceError:
    message = str(exc)
    if any(marker in message.lower() for marker in _QUOTA_MARKERS):
        return QuotaExceededError(f"Database {action} hit a storage limit: {message}")
    return PersistenceError(f"Database {action} failed: {message}")


class DatabaseAdapter(PersistenceAdapter):
    """
    Relational backend with a live subscription.

    Responsibilities
    ----------------
    - Keep all five collections in a single `app_data` row (created on first
      use) as JSON columns.
    - Bump `revision` atomically with every collection write and report it
      back to the store.
    - Deliver full snapshots to subscribers whenever the revision changes,
      whichever process made the change. The first delivery is the initial
      snapshot; this process's own writes are echoed back as well.

    Notes
    -----
    - Change detection polls the revision column every `poll_interval`
      seconds, which works the same on SQLite and PostgreSQL.
    - Each write touches only its own column, so writes to different
      collections never overwrite each other.
    """

    name = "database"
    supports_push = True

    def __init__(
        self,
        engine: AsyncEngine,
        poll_interval: float = 2.0,
        dispose_engine: bool = True,
    ) -> None:
        self._engine = engine
        self._sessionmaker = build_sessionmaker(engine)
        self._poll_interval = poll_interval
        self._dispose_engine = dispose_engine

        self._ready = False
        self._ready_lock = asyncio.Lock()
        self._listeners: list[ChangeCallback] = []
        self._error_listeners: list[ErrorCallback] = []
        self._poll_task: Optional[asyncio.Task] = None
        self._last_seen_revision: Optional[int] = None

    async def initialize(self) -> None:
        """
        Create the schema and the document row if they do not exist yet.
        """
        async with self._ready_lock:
            if self._ready:
                return
            try:
                await init_schema(self._engine)
                async with self._sessionmaker() as session:
                    async with session.begin():
                        row = await session.get(AppData, APP_DATA_ROW_ID)
                        if row is None:
                            session.add(
                                AppData(
                                    id=APP_DATA_ROW_ID,
                                    staff=[],
                                    tasks=[],
                                    meetings=[],
                                    reports=[],
                                    shifts=[],
                                    revision=0,
                                    updated_at=utc_now(),
                                )
                            )
                            logger.info("Created initial app_data row")
            except SQLAlchemyError as exc:
                raise _translate(exc, "initialize") from exc
            self._ready = True

    async def load_all(self) -> BackendSnapshot:
        await self.initialize()
        try:
            async with self._sessionmaker() as session:
                row = await session.get(AppData, APP_DATA_ROW_ID)
        except SQLAlchemyError as exc:
            raise _translate(exc, "load") from exc

        if row is None:
            raise NotFoundError("app_data row is missing")

        data = {kind.value: getattr(row, kind.value) for kind in CollectionKind}
        return BackendSnapshot.from_mapping(data, revision=row.revision)

    async def save_collection(self, kind: CollectionKind, items: List[Document]) -> Optional[int]:
        await self.initialize()
        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    result = await session.execute(
                        update(AppData)
                        .where(AppData.id == APP_DATA_ROW_ID)
                        .values(
                            {
                                kind.value: items,
                                "revision": AppData.revision + 1,
                                "updated_at": utc_now(),
                            }
                        )
                    )
                    if result.rowcount == 0:
                        raise NotFoundError("app_data row is missing")
                    revision = await session.scalar(
                        select(AppData.revision).where(AppData.id == APP_DATA_ROW_ID)
                    )
        except SQLAlchemyError as exc:
            raise _translate(exc, f"save of {kind.value}") from exc

        logger.debug("Saved %d %s item(s) at revision %s", len(items), kind.value, revision)
        return revision

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(
        self,
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """
        Register callbacks and start polling if this is the first subscriber.
        Must be called from within a running event loop.
        """
        self._listeners.append(on_change)
        if on_error is not None:
            self._error_listeners.append(on_error)
        if self._poll_task is None or self._poll_task.done():
            self._last_seen_revision = None
            self._poll_task = asyncio.get_running_loop().create_task(
                self._poll_loop(), name="progress-hub-db-subscription"
            )

        def _unsubscribe() -> None:
            if on_change in self._listeners:
                self._listeners.remove(on_change)
            if on_error in self._error_listeners:
                self._error_listeners.remove(on_error)
            if not self._listeners and self._poll_task is not None:
                self._poll_task.cancel()

        return _unsubscribe

    async def poll_once(self) -> bool:
        """
        Check the revision once and notify subscribers if it moved.

        Returns True when a snapshot was delivered.
        """
        snapshot = await self.load_all()
        if snapshot.revision == self._last_seen_revision:
            return False

        self._last_seen_revision = snapshot.revision
        for callback in list(self._listeners):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Subscriber %r failed to apply revision %s", callback, snapshot.revision)
        return True

    async def poll_and_report(self) -> bool:
        """
        One subscription cycle. Like `poll_once`, but a failed poll is handed
        to the error callbacks and the cycle returns False.
        """
        try:
            return await self.poll_once()
        except StoreError as exc:
            logger.warning("Subscription poll failed: %s", exc)
            for callback in list(self._error_listeners):
                try:
                    callback(exc)
                except Exception:
                    logger.exception("Error callback %r failed", callback)
            return False

    async def _poll_loop(self) -> None:
        while self._listeners:
            await self.poll_and_report()
            await asyncio.sleep(self._poll_interval)

    async def close(self) -> None:
        self._listeners.clear()
        self._error_listeners.clear()
        if self._poll_task is not None:
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None
        if self._dispose_engine:
            await self._engine.dispose()
