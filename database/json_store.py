"""
Whole-file JSON array persistence shared by the user and history stores.

Every read returns the full collection and every write replaces the file.
I/O and parse failures are logged and degrade to an empty collection (reads)
or a ``False`` return (writes); they never propagate to request handlers.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class JsonArrayFile:
    """A single JSON file holding one top-level array."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def ensure_exists(self) -> bool:
        """Create the file as ``[]`` (and its parent directory) if absent."""
        if self.path.exists():
            return True
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.exception("Could not create directory for %s", self.path)
            return False
        return self.write([])

    def read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError:
            logger.exception("Could not read %s; treating as empty", self.path)
            return []
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.exception("Corrupt JSON in %s; treating as empty", self.path)
            return []
        if not isinstance(data, list):
            logger.warning("%s does not hold a JSON array; treating as empty", self.path)
            return []
        return data

    def write(self, items: List[Dict[str, Any]]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(items, fh, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError):
            logger.exception("Could not write %s; changes lost", self.path)
            return False
        return True
