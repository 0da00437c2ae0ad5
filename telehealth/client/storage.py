# telehealth/client/storage.py
import json
import os
from pathlib import Path
from typing import Optional

from telehealth.core.logger import get_module_logger

logger = get_module_logger("client.storage")


class FileStorage:
    """
    Durable client storage: one JSON document on disk.

    The token and the user snapshot live in the same document and are
    written together, so a reader never sees one without the other.
    """

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text() or "{}")
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable session file {self.path}: {str(e)}")
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data))
        os.replace(tmp, self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def get(self, key: str) -> Optional[str]:
        return self.load().get(key)
