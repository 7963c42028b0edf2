import os
import json
import logging
import tempfile
from typing import Optional
from pydantic import ValidationError as PydanticValidationError
from justculture.models.session import Snapshot

logger = logging.getLogger(__name__)

class SnapshotStore:
    """Saves one "Remember" snapshot per key as a JSON file.

    Each save replaces the whole file, so a reader sees either the previous
    snapshot or the new one.
    """

    def __init__(self, base_dir: str):
        self.base_dir = base_dir
        os.makedirs(self.base_dir, exist_ok=True)

    def _path(self, key: str) -> str:
        safe_key = "".join([c if c.isalnum() or c in "-_" else "_" for c in key])
        if not safe_key:
            raise ValueError("Invalid snapshot key")
        return os.path.join(self.base_dir, f"{safe_key}.json")

    def load(self, key: str) -> Optional[Snapshot]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return Snapshot.model_validate(data)
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            logger.error(f"Error loading snapshot {path}: {e}")
            return None

    def save(self, key: str, snapshot: Snapshot):
        path = self._path(key)
        fd, tmp_path = tempfile.mkstemp(dir=self.base_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(snapshot.to_json())
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def clear(self, key: str) -> bool:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)
            return True
        return False
