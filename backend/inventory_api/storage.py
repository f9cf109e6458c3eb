from __future__ import annotations

import copy
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from inventory_api.errors import (
    CorruptStoreError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from inventory_api.services.atomic import dump_json, read_json, write_json
from inventory_api.services.ids import BackendIdGenerator

logger = logging.getLogger(__name__)

ITEMS_FIELD = "items"
BACKEND_ID_FIELD = "backendId"
TIMESTAMP_FIELD = "timestamp"

CORRUPT_POLICIES = ("fail", "reset")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_json(value: Any, what: str) -> None:
    if any(not isinstance(key, str) for key in value):
        raise ValidationError(f"{what} field names must be strings")
    try:
        dump_json(value)
    except (TypeError, ValueError) as err:
        raise ValidationError(f"{what} is not valid JSON: {err}") from err


class DocumentStore:
    """
    Ordered collection of inventory items backed by a single JSON file.

    Layout on disk is `{"items": [...]}`. Every public method takes the same
    lock, so operations are serialized together with their file I/O. Mutations
    build a new list, persist it, and only then swap it in: a failed write
    leaves both the file and the in-memory items as they were.
    """

    def __init__(
        self,
        path: Path,
        id_generator: Optional[BackendIdGenerator] = None,
        on_corrupt: str = "fail",
    ):
        if on_corrupt not in CORRUPT_POLICIES:
            raise ValueError(
                f"on_corrupt must be one of {CORRUPT_POLICIES}, got {on_corrupt!r}"
            )
        self.path = Path(path)
        self.on_corrupt = on_corrupt
        self._ids = id_generator or BackendIdGenerator()
        self._lock = threading.RLock()
        self._items: list[dict[str, Any]] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def load(self) -> list[dict[str, Any]]:
        with self._lock:
            if not self.path.exists():
                logger.info("No store at %s, initialising an empty one", self.path)
                self._persist([])
                self._items = []
                return []

            try:
                items, repaired = self._read_items()
            except CorruptStoreError as err:
                if self.on_corrupt != "reset":
                    logger.error("%s", err.message)
                    raise
                self._quarantine(err)
                items, repaired = [], True

            if repaired:
                self._persist(items)
            self._items = items
            logger.debug("Loaded %d items from %s", len(items), self.path)
            return self._snapshot()

    def refresh(self) -> list[dict[str, Any]]:
        """Reload from disk, picking up changes made by other writers."""
        return self.load()

    def list(self, refresh: bool = False) -> list[dict[str, Any]]:
        with self._lock:
            if refresh:
                self.load()
            return self._snapshot()

    def get(self, backend_id: str, refresh: bool = False) -> dict[str, Any]:
        with self._lock:
            if refresh:
                self.load()
            return copy.deepcopy(self._items[self._index(backend_id)])

    def append(self, item: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(item, dict):
            raise ValidationError("item must be a JSON object")
        _check_json(item, "item")
        record = copy.deepcopy(item)

        with self._lock:
            in_use = {existing[BACKEND_ID_FIELD] for existing in self._items}
            backend_id = record.get(BACKEND_ID_FIELD)
            if backend_id is None:
                backend_id = self._ids.next()
                while backend_id in in_use:
                    backend_id = self._ids.next()
                record[BACKEND_ID_FIELD] = backend_id
            elif not isinstance(backend_id, str) or not backend_id:
                raise ValidationError(f"{BACKEND_ID_FIELD} must be a non-empty string")
            elif backend_id in in_use:
                raise ValidationError(f"{BACKEND_ID_FIELD} {backend_id!r} already exists")

            if record.get(TIMESTAMP_FIELD) is None:
                record[TIMESTAMP_FIELD] = _now_iso()

            items = self._items + [record]
            self._persist(items)
            self._items = items
            logger.info("Appended item %s (item_id=%s)", backend_id, record.get("item_id"))
            return copy.deepcopy(record)

    def merge_update(self, backend_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        """
        Shallow merge of `patch` into the item addressed by `backend_id`.

        Fields absent from the patch are untouched. A `backendId` key in the
        patch is ignored: an item's identity never changes.
        """

        if not isinstance(patch, dict):
            raise ValidationError("patch must be a JSON object")
        _check_json(patch, "patch")

        with self._lock:
            index = self._index(backend_id)
            merged = dict(self._items[index])
            for key, value in patch.items():
                if key == BACKEND_ID_FIELD:
                    if value != backend_id:
                        logger.warning(
                            "Ignoring attempt to change %s of item %s", key, backend_id
                        )
                    continue
                merged[key] = copy.deepcopy(value)

            items = list(self._items)
            items[index] = merged
            self._persist(items)
            self._items = items
            logger.info("Updated item %s fields=%s", backend_id, list(patch))
            return copy.deepcopy(merged)

    def remove(self, backend_id: str) -> dict[str, Any]:
        with self._lock:
            index = self._index(backend_id)
            removed = self._items[index]
            items = [item for item in self._items if item[BACKEND_ID_FIELD] != backend_id]
            self._persist(items)
            self._items = items
            logger.info("Removed item %s", backend_id)
            return copy.deepcopy(removed)

    def _index(self, backend_id: str) -> int:
        for index, item in enumerate(self._items):
            if item[BACKEND_ID_FIELD] == backend_id:
                return index
        raise NotFoundError(backend_id)

    def _snapshot(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._items)

    def _persist(self, items: list[dict[str, Any]]) -> None:
        try:
            write_json(self.path, {ITEMS_FIELD: items})
        except (OSError, TypeError, ValueError) as err:
            logger.exception("Failed to save store to %s", self.path)
            raise PersistenceError("failed to save db") from err

    def _read_items(self) -> tuple[list[dict[str, Any]], bool]:
        try:
            document = read_json(self.path)
        except ValueError as err:
            raise CorruptStoreError(self.path, f"not valid JSON ({err})") from err
        except OSError as err:
            logger.exception("Failed to read store from %s", self.path)
            raise PersistenceError("failed to read db") from err

        if not isinstance(document, dict) or not isinstance(document.get(ITEMS_FIELD), list):
            raise CorruptStoreError(
                self.path, f"expected an object with an {ITEMS_FIELD!r} array"
            )

        raw_items = document[ITEMS_FIELD]
        for position, item in enumerate(raw_items):
            if not isinstance(item, dict):
                raise CorruptStoreError(self.path, f"item #{position} is not an object")
        on_disk = {
            item[BACKEND_ID_FIELD]
            for item in raw_items
            if isinstance(item.get(BACKEND_ID_FIELD), str)
        }

        items: list[dict[str, Any]] = []
        seen: set[str] = set()
        repaired = False
        for position, item in enumerate(raw_items):
            backend_id = item.get(BACKEND_ID_FIELD)
            if not isinstance(backend_id, str) or not backend_id:
                backend_id = self._ids.next()
                while backend_id in seen or backend_id in on_disk:
                    backend_id = self._ids.next()
                logger.warning(
                    "Item #%d in %s had no %s, assigned %s",
                    position,
                    self.path,
                    BACKEND_ID_FIELD,
                    backend_id,
                )
                item[BACKEND_ID_FIELD] = backend_id
                repaired = True
            elif backend_id in seen:
                raise CorruptStoreError(
                    self.path, f"duplicate {BACKEND_ID_FIELD} {backend_id!r}"
                )
            seen.add(backend_id)
            items.append(item)
        return items, repaired

    def _quarantine(self, err: CorruptStoreError) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        backup = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            os.replace(self.path, backup)
        except OSError as move_err:
            logger.exception("Failed to move corrupt store %s aside", self.path)
            raise PersistenceError("failed to move corrupt db aside") from move_err
        logger.error("%s; moved it to %s and starting empty", err.message, backup)
