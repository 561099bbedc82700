"""Persistence for salesperson records: per-tenant slots, export and import"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from .config import ScorecardConfig
from .records import SalespersonRecord, create_record, from_dict

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".seller-scorecard" / "data"


class InvalidImportError(ValueError):
    """Raised when an imported file is not a JSON array of records"""


def records_to_json(records: Sequence[SalespersonRecord], indent: Optional[int] = None) -> str:
    return json.dumps([r.to_dict() for r in records], indent=indent, ensure_ascii=False)


def parse_import(text: str, config: ScorecardConfig) -> List[SalespersonRecord]:
    """Parse a JSON array of records"""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidImportError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise InvalidImportError("Expected a JSON array of records")
    if not all(isinstance(item, dict) for item in data):
        raise InvalidImportError("Every record must be a JSON object")

    return [from_dict(item, config) for item in data]


class RecordStore:
    """Keeps one JSON file per tenant storage key"""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir else DEFAULT_DATA_DIR

    def slot_path(self, storage_key: str) -> Path:
        return self.data_dir / f"{storage_key}.json"

    def load(self, storage_key: str, config: ScorecardConfig, store_label: str = "") -> List[SalespersonRecord]:
        """Load records for a slot; missing or unreadable data yields one default record"""
        slot = self.slot_path(storage_key)
        if not slot.exists():
            logger.debug("No persisted records at %s", slot)
            return [create_record(config, store_label=store_label)]

        try:
            with open(slot, 'r', encoding='utf-8') as f:
                return parse_import(f.read(), config)
        except (OSError, UnicodeDecodeError, InvalidImportError) as e:
            logger.warning("Ignoring unreadable record slot %s: %s", slot, e)
            return [create_record(config, store_label=store_label)]

    def save(self, storage_key: str, records: Sequence[SalespersonRecord]) -> None:
        """Write records to a slot; failures are logged and ignored.

        The slot is replaced atomically, so an interrupted write never
        leaves a truncated file behind.
        """
        slot = self.slot_path(storage_key)
        tmp_path = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{storage_key}.", suffix=".tmp")
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(records_to_json(records))
            os.replace(tmp_path, slot)
            tmp_path = None
            logger.debug("Persisted %d record(s) to %s", len(records), slot)
        except OSError as e:
            logger.warning("Could not persist records to %s: %s", slot, e)
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)


def export_records(records: Sequence[SalespersonRecord], path: Path) -> Path:
    """Write a pretty-printed JSON array of records"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(records_to_json(records, indent=2))
    return path


class DebouncedWriter:
    """Trailing debounce: each schedule() replaces any pending write.

    Writes run one at a time in schedule order; flush() waits for a write
    already in progress before running the pending one.
    """

    def __init__(self, delay: float, callback: Callable[[Any], None]):
        self.delay = delay
        self.callback = callback
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._payload: Any = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def schedule(self, payload: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._payload = payload
            self._timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()
        logger.debug("Write scheduled in %.2fs", self.delay)

    def flush(self) -> None:
        """Run the pending write now, if any, after any write in progress"""
        self._fire()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._payload = None

    def _fire(self, generation: Optional[int] = None) -> None:
        with self._write_lock:
            with self._lock:
                if self._timer is None:
                    return
                # A timer that was replaced after it started firing
                if generation is not None and generation != self._generation:
                    return
                self._timer.cancel()
                self._timer = None
                payload, self._payload = self._payload, None
            self.callback(payload)
