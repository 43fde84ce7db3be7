"""
Device-Local Storage Implementation

DESIGN DECISION: Every key lives in its own JSON file under one directory,
the desktop equivalent of a browser profile's localStorage:
1. A corrupt value only loses that one key
2. Writes are atomic (temp file + os.replace), so a crash mid-write
   leaves the previous value intact
3. Users can inspect their data with any text editor

TRADEOFFS:
- No cross-key transactions (callers order their writes carefully)
- Not shared between devices - this is a per-installation store
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.models.audit import AuditEvent
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")
_SUFFIX = ".json"


def _validate_key(key: str) -> str:
    """Keys become file names, so only a safe subset is allowed."""
    if not isinstance(key, str) or not _KEY_PATTERN.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise StorageError(
            f"Value for {key!r} is not JSON-serializable: {e}",
            key=key,
        ) from e


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    Key-value store backed by one JSON file per key.

    The directory is created on the first write, so merely opening
    a store never touches the disk.
    """

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{_validate_key(key)}{_SUFFIX}"

    def get(self, key: str, default: Any = None) -> Any:
        """Read a key. Missing, unreadable or corrupt values are absent."""
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return default
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("storage_read_failed", key=key, error=str(e))
            return default

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("storage_value_corrupt", key=key, error=str(e))
            return default

    def set(self, key: str, value: Any) -> None:
        """Serialize and atomically write a key."""
        path = self._path(key)
        payload = _encode(key, value)
        try:
            self._write_file(path, payload)
        except OSError as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            raise StorageError(f"Failed to write {key!r}: {e}", key=key) from e

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.05, max=1),
        reraise=True,
    )
    def _write_file(self, path: Path, payload: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._directory,
            prefix=f".{path.stem}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except Exception:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {key!r}: {e}", key=key) from e

    def keys(self) -> list[str]:
        if not self._directory.is_dir():
            return []
        return sorted(
            p.name[:-len(_SUFFIX)]
            for p in self._directory.iterdir()
            if p.is_file() and p.name.endswith(_SUFFIX) and not p.name.startswith(".")
        )


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """
    Dict-backed store for tests and ephemeral sessions.

    Values are kept in their serialized form, so callers get fresh
    copies on every read exactly as with the file store.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(_validate_key(key))
        if raw is None:
            return default
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[_validate_key(key)] = _encode(key, value)

    def delete(self, key: str) -> bool:
        return self._data.pop(_validate_key(key), None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)

    def snapshot(self) -> dict[str, str]:
        """Serialized contents, for comparing state before and after an action."""
        return dict(self._data)


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON object per line.

    Lives outside the key-value store directory.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(event.to_json_line() + "\n")
            return True
        except OSError as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning("audit_write_failed", error=str(e), path=str(self._path))
            return False

    def get_recent_events(self, limit: int = 100) -> list[dict]:
        """Get recent events, newest first."""
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}") from e

        events = []
        for line in reversed(lines):
            if not line.strip():
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError:
                continue  # Skip torn lines
            if len(events) >= limit:
                break
        return events
