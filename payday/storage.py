import json
import logging
import os
import tempfile
from typing import Any, Dict, Optional

from payday.errors import StorageError

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Key-value storage held in a dict; nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._items: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Optional[Any]:
        return self._items.get(key)

    def set(self, key: str, blob: Any) -> None:
        self._items[key] = blob

    def remove(self, key: str) -> None:
        self._items.pop(key, None)


class JsonKeyValueStorage:
    """
    Key-value storage backed by a single JSON file.

    The file holds an object mapping storage keys to blobs. Every write
    rewrites the whole file through a temporary file in the same directory
    followed by os.replace, so a crash never leaves a half-written file.
    An unreadable file is logged and read as empty.
    """

    def __init__(self, path: str, indent: int = 2):
        self.path = path
        self.indent = indent

    def _read_all(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.exception("Could not read storage file %s; starting empty", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s does not hold an object; starting empty", self.path)
            return {}
        return data

    def _write_all(self, data: Dict[str, Any]) -> None:
        dirpath = os.path.dirname(os.path.abspath(self.path))
        temp_name = None
        try:
            os.makedirs(dirpath, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                suffix=".tmp",
                prefix=os.path.basename(self.path) + "-",
                dir=dirpath,
                delete=False,
            ) as tf:
                temp_name = tf.name
                json.dump(data, tf, indent=self.indent, ensure_ascii=False)
                tf.flush()
                os.fsync(tf.fileno())
            os.replace(temp_name, self.path)
        except (OSError, TypeError, ValueError) as e:
            if temp_name and os.path.exists(temp_name):
                try:
                    os.unlink(temp_name)
                except OSError:
                    logger.exception("Failed to remove temporary file %s", temp_name)
            raise StorageError(f"Could not write storage file {self.path}") from e
        logger.debug("Wrote storage file %s", self.path)

    def get(self, key: str) -> Optional[Any]:
        return self._read_all().get(key)

    def set(self, key: str, blob: Any) -> None:
        data = self._read_all()
        data[key] = blob
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)
