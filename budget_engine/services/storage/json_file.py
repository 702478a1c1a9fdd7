"""
JSON File Storage

DESIGN DECISION: One file per key in a data directory
(BUDGET_STORAGE_DATA_DIR). The snapshot is small enough that rewriting the
whole file on every save is fine for personal use.

Writes go to a temporary file first and are moved into place, so a crash
mid-write never leaves a half-written snapshot. Transient OS errors are
retried with exponential backoff before giving up with StorageError.
"""

import os
from pathlib import Path
from typing import Optional, Union

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from budget_engine.config import get_settings
from budget_engine.log import get_logger
from budget_engine.services.storage.interface import StorageError
from budget_engine.services.storage.key_value import KeyValueStorage


logger = get_logger(__name__)


class JsonFileStorage(KeyValueStorage):
    """Stores each key as `<data_dir>/<key>.json`."""

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        rates_ttl_seconds: Optional[int] = None,
        write_attempts: Optional[int] = None,
    ):
        super().__init__(rates_ttl_seconds)
        settings = get_settings().storage
        self.data_dir = Path(data_dir) if data_dir is not None else settings.data_path
        self.write_attempts = write_attempts or settings.write_attempts

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def _write(self, path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)

    def _set(self, key: str, value: str) -> None:
        path = self._path(key)
        retrying = Retrying(
            stop=stop_after_attempt(self.write_attempts),
            wait=wait_exponential(multiplier=0.1, max=2),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self._write(path, value)
        except OSError as e:
            logger.error("storage_write_failed", path=str(path), error=str(e))
            raise StorageError(f"Failed to write {path}: {e}") from e

    def _remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e
