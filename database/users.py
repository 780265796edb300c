"""
Credential store — the users file as a flat collection of ``UserRecord``.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from database.json_store import JsonArrayFile
from database.models import UserRecord

logger = logging.getLogger(__name__)


class CredentialStore:
    def __init__(self, path: str | Path):
        self._file = JsonArrayFile(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._file.path

    def ensure_exists(self) -> bool:
        return self._file.ensure_exists()

    def load(self) -> List[UserRecord]:
        users: List[UserRecord] = []
        for entry in self._file.read():
            try:
                users.append(UserRecord.model_validate(entry))
            except ValidationError:
                logger.warning("Skipping malformed user entry in %s", self.path)
        return users

    def save(self, users: List[UserRecord]) -> bool:
        return self._file.write([u.to_json() for u in users])

    def find(self, email: str) -> Optional[UserRecord]:
        """Exact, case-sensitive lookup."""
        for user in self.load():
            if user.email == email:
                return user
        return None

    def add(self, record: UserRecord) -> bool:
        """
        Append ``record`` unless its email is already present.

        Returns ``False`` on a duplicate email or a failed write.
        """
        with self._lock:
            users = self.load()
            if any(u.email == record.email for u in users):
                return False
            users.append(record)
            return self.save(users)
