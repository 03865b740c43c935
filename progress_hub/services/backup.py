# progress_hub/services/backup.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Union

import pydantic

from progress_hub.core.errors import ValidationError
from progress_hub.schemas.common import CollectionKind
from progress_hub.schemas.snapshot import ExportDocument, StoreSnapshot
from progress_hub.services.store import AppStore, to_validation_error

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("staff", "tasks", "meetings", "reports")


def build_export_document(store: AppStore) -> ExportDocument:
    snapshot = store.snapshot()
    return ExportDocument(
        staff=snapshot.staff,
        tasks=snapshot.tasks,
        meetings=snapshot.meetings,
        reports=snapshot.reports,
        shifts=snapshot.shifts,
        exported_at=store.record_backup(),
    )


def export_document(store: AppStore) -> Dict[str, Any]:
    """
    Serialize all five collections into the backup document and remember
    the time of this backup.
    """
    document = build_export_document(store).to_document()
    logger.info(
        "Exported backup: %s",
        ", ".join(f"{key}={len(document[key])}" for key in (*REQUIRED_KEYS, "shifts")),
    )
    return document


def serialized_size(document: Mapping[str, Any]) -> int:
    """Size in bytes of `document` as written to an export file."""
    return len(json.dumps(document, ensure_ascii=False, indent=2).encode("utf-8"))


def parse_export_document(raw: Union[str, bytes, Mapping[str, Any]]) -> ExportDocument:
    """
    Validate a backup document without touching the store.

    `staff`, `tasks`, `meetings` and `reports` must be present as arrays;
    `shifts` may be missing. Every entity is validated as well.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ValidationError("Invalid data format: not a JSON document") from exc

    if not isinstance(raw, Mapping):
        raise ValidationError("Invalid data format: expected a JSON object")

    missing = [key for key in REQUIRED_KEYS if not isinstance(raw.get(key), list)]
    if missing:
        raise ValidationError(
            f"Invalid data format: missing or non-array keys {', '.join(missing)}",
            errors=[{"loc": [key], "msg": "array required", "type": "missing"} for key in missing],
        )

    try:
        return ExportDocument.model_validate(dict(raw))
    except pydantic.ValidationError as exc:
        raise to_validation_error(exc, "import document") from exc


async def import_document(store: AppStore, raw: Union[str, bytes, Mapping[str, Any]]) -> StoreSnapshot:
    """
    Destructively replace every collection with the contents of `raw`.

    The whole document is validated before any collection is written.
    """
    document = parse_export_document(raw)
    collections = {kind: getattr(document, kind.value) for kind in CollectionKind}
    snapshot = await store.replace_all(collections)
    logger.info(
        "Imported backup: %s",
        ", ".join(f"{kind.value}={len(items)}" for kind, items in collections.items()),
    )
    return snapshot
