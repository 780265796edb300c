"""
History store — newest-first log of generation interactions.

Two scopes decide how far a caller can see and clear:

* ``per_user`` — listing and clearing are restricted to the caller's identity.
* ``shared``   — guest deployments; every caller sees the whole log and a clear
  wipes it.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from database.json_store import JsonArrayFile
from database.models import HistoryRecord

logger = logging.getLogger(__name__)


class HistoryScope(str, Enum):
    PER_USER = "per_user"
    SHARED = "shared"


class HistoryStore:
    def __init__(self, path: str | Path, scope: HistoryScope | str = HistoryScope.PER_USER):
        self._file = JsonArrayFile(path)
        self._lock = threading.Lock()
        self.scope = HistoryScope(scope)

    @property
    def path(self) -> Path:
        return self._file.path

    def ensure_exists(self) -> bool:
        return self._file.ensure_exists()

    def append(self, record: HistoryRecord) -> bool:
        with self._lock:
            entries = self._file.read()
            entries.insert(0, record.to_json())
            ok = self._file.write(entries)
        if ok:
            logger.debug("History: stored %s (%s) for %s", record.id, record.mode.value, record.email)
        return ok

    def all(self) -> List[HistoryRecord]:
        records: List[HistoryRecord] = []
        for entry in self._file.read():
            try:
                records.append(HistoryRecord.model_validate(entry))
            except ValidationError:
                logger.warning("Skipping malformed history entry in %s", self.path)
        return records

    def list_for(self, identity: str) -> List[HistoryRecord]:
        records = self.all()
        if self.scope is HistoryScope.SHARED:
            return records
        return [r for r in records if r.email == identity]

    def clear_for(self, identity: str) -> Optional[int]:
        """
        Remove the records ``identity`` may clear.

        Returns how many went, or ``None`` when the file could not be
        rewritten (nothing was removed in that case).
        """
        with self._lock:
            entries = self._file.read()
            if self.scope is HistoryScope.SHARED:
                kept = []
            else:
                kept = [
                    e for e in entries
                    if not (isinstance(e, dict) and e.get("email") == identity)
                ]
            removed = len(entries) - len(kept)
            ok = self._file.write(kept)
        if not ok:
            logger.error("History: failed to clear records for %s in %s", identity, self.path)
            return None
        logger.info("History: cleared %d record(s) for %s (%s)", removed, identity, self.scope.value)
        return removed
