"""
Snapshot-based undo/redo.

Every commit stores the complete serialized scene. Restoring rebuilds the
scene from that record, so style fields and topology come back exactly as
they were, with no diff/patch step to get wrong.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from flowcanvas.scene import Scene

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


@dataclass(frozen=True)
class Snapshot:
    """Immutable record of a scene; holds its canonical JSON text."""
    payload: str

    @classmethod
    def of(cls, scene: Scene) -> Snapshot:
        return cls(json.dumps(scene.to_dict(), separators=(",", ":")))

    def data(self) -> dict[str, Any]:
        return json.loads(self.payload)


class History:
    """Bounded stack of scene snapshots with a movable cursor."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be >= 1")
        self.capacity = capacity
        self._entries: list[Snapshot] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    @property
    def current(self) -> Optional[Snapshot]:
        if self._index < 0:
            return None
        return self._entries[self._index]

    def commit(self, scene: Scene) -> Snapshot:
        """Record the current scene, discarding any redo entries."""
        snap = Snapshot.of(scene)
        del self._entries[self._index + 1:]
        self._entries.append(snap)
        self._index += 1
        if len(self._entries) > self.capacity:
            self._entries.pop(0)
            self._index -= 1
        logger.debug("History commit -> %d/%d", self._index + 1, len(self._entries))
        return snap

    def undo(self, scene: Scene) -> bool:
        """Step back one entry and rebuild *scene*. No-op at the oldest entry."""
        if not self.can_undo:
            return False
        self._index -= 1
        self._restore(scene)
        return True

    def redo(self, scene: Scene) -> bool:
        """Step forward one entry and rebuild *scene*. No-op at the tail."""
        if not self.can_redo:
            return False
        self._index += 1
        self._restore(scene)
        return True

    def clear(self) -> None:
        self._entries = []
        self._index = -1

    def _restore(self, scene: Scene) -> None:
        logger.debug("History restore <- %d/%d", self._index + 1, len(self._entries))
        # Id counters keep running so ids are never handed out twice
        scene.load_dict(self._entries[self._index].data(), reset_counters=False)
