"""
Linear undo/redo history of scene snapshots.

The log is a list of full scene snapshots plus a cursor pointing at the
snapshot that matches the live scene. Pushing after an undo discards every
snapshot beyond the cursor, so there is never more than one redo branch.

A cursor of -1 means the log is empty.
"""

import logging
from copy import deepcopy
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

Snapshot = Dict[str, Any]


class HistoryLog:
    """
    Linear, branch-free snapshot history.

    Example:
        >>> log = HistoryLog()
        >>> for state in ("A", "B", "C"):
        ...     log.push({"state": state})
        >>> log.undo()
        {'state': 'B'}
        >>> log.push({"state": "D"})
        >>> [s["state"] for s in log.snapshots]
        ['A', 'B', 'D']
    """

    def __init__(self, limit: Optional[int] = None) -> None:
        if limit is not None and limit < 1:
            raise ValueError("limit must be >= 1")

        self.limit = limit
        self._snapshots: List[Snapshot] = []
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def snapshots(self) -> List[Snapshot]:
        return deepcopy(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def current(self) -> Optional[Snapshot]:
        if self._cursor < 0:
            return None
        return deepcopy(self._snapshots[self._cursor])

    def reset(self) -> None:
        self._snapshots = []
        self._cursor = -1
        logger.debug("History reset")

    def push(self, snapshot: Snapshot) -> None:
        """Drop snapshots after the cursor, append ``snapshot`` and move to it."""
        del self._snapshots[self._cursor + 1:]
        self._snapshots.append(deepcopy(snapshot))
        self._cursor = len(self._snapshots) - 1
        self._trim()

    def undo(self) -> Optional[Snapshot]:
        """Step back one snapshot. Returns None at the lower bound."""
        if not self.can_undo:
            return None

        self._cursor -= 1
        return deepcopy(self._snapshots[self._cursor])

    def redo(self) -> Optional[Snapshot]:
        """Step forward one snapshot. Returns None at the upper bound."""
        if not self.can_redo:
            return None

        self._cursor += 1
        return deepcopy(self._snapshots[self._cursor])

    def _trim(self) -> None:
        if self.limit is None or len(self._snapshots) <= self.limit:
            return

        overflow = len(self._snapshots) - self.limit
        self._snapshots = self._snapshots[overflow:]
        self._cursor = max(self._cursor - overflow, 0)
