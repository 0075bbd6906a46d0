"""Key-value snapshot store for the workspace.

WHY: The workspace must survive restarts, but it needs nothing more than
"one named key holding a JSON document, overwritten on every change and
read once at startup". A tiny localStorage-style store keeps that
contract explicit and trivially testable.

HOW: StateStore maps each key to one UTF-8 file under a root directory.
Writes go to a temporary sibling file first and are moved into place, so
a crash mid-write leaves the previous snapshot intact. The snapshot
helpers serialize/deserialize WorkspaceSnapshot under config.STORAGE_KEY.

RULES:
- get_item() returns None for a missing key (no exceptions)
- remove_item() on a missing key is a no-op
- load_snapshot() never raises on bad data: absent, unparsable, or
  non-object payloads yield the default snapshot; mistyped fields fall
  back one by one (see core/models.py)
- Keys are plain names; path separators are rejected
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from script_workspace.config import STATE_DIR, STORAGE_KEY
from script_workspace.core.models import WorkspaceSnapshot

logger = logging.getLogger(__name__)


class StateStore:
    """File-backed key-value store with localStorage semantics."""

    def __init__(self, root: Union[str, Path, None] = None) -> None:
        self.root = Path(root) if root is not None else STATE_DIR

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError("Invalid storage key: {!r}".format(key))
        return self.root / "{}.json".format(key)

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        self.root.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, path)

    def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass


# ---------------------------------------------------------------------------
# Snapshot helpers
# ---------------------------------------------------------------------------


def load_snapshot(store: StateStore, key: str = STORAGE_KEY) -> WorkspaceSnapshot:
    """Read the persisted snapshot, degrading bad data to defaults.

    WHY: Stored state may have been written by an older release, edited
    by hand, or truncated. Losing one field is better than losing the
    whole session, and a broken file must never stop the workspace from
    starting.

    HOW: Missing key → default. Undecodable bytes, a JSON decode failure,
    or a non-object payload → default. Otherwise the dict is validated
    field by field.
    """
    try:
        raw = store.get_item(key)
    except UnicodeDecodeError:
        logger.debug("Stored snapshot under %s is not valid UTF-8; using defaults", key)
        return WorkspaceSnapshot()
    if not raw:
        return WorkspaceSnapshot()

    try:
        data = json.loads(raw)
    except ValueError:
        logger.debug("Stored snapshot under %s is not valid JSON; using defaults", key)
        return WorkspaceSnapshot()

    if not isinstance(data, dict):
        logger.debug("Stored snapshot under %s is not an object; using defaults", key)
        return WorkspaceSnapshot()

    return WorkspaceSnapshot.model_validate(data)


def save_snapshot(
    store: StateStore,
    snapshot: WorkspaceSnapshot,
    key: str = STORAGE_KEY,
) -> None:
    """Overwrite the persisted snapshot with the given state."""
    store.set_item(key, json.dumps(snapshot.to_json_dict(), ensure_ascii=False))


def clear_snapshot(store: StateStore, key: str = STORAGE_KEY) -> None:
    """Remove the persisted snapshot entirely."""
    store.remove_item(key)
