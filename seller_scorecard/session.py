"""In-memory record collection for one tenant"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from .config import ScorecardConfig
from .records import SalespersonRecord, create_record, with_field
from .scoring_system import ScoreResult, ScoringSystem
from .store import DebouncedWriter, InvalidImportError, RecordStore, export_records, parse_import
from .tenants import Tenant

logger = logging.getLogger(__name__)


class ReadOnlyError(PermissionError):
    """Raised when a mutation is attempted in read-only mode"""


class RecordNotFoundError(KeyError):
    """Raised when no record has the given id"""


class ScorecardSession:
    """Owns the tenant's records; every change is persisted after a short delay"""

    def __init__(self, tenant: Tenant, config: ScorecardConfig, store: RecordStore,
                 read_only: bool = False):
        self.tenant = tenant
        self.config = config
        self.store = store
        self.read_only = read_only
        self.scoring = ScoringSystem(config)
        self._writer = DebouncedWriter(config.persist_delay, self._persist)
        self._records: Tuple[SalespersonRecord, ...] = tuple(
            store.load(tenant.storage_key, config, store_label=tenant.label)
        )

    @property
    def records(self) -> Tuple[SalespersonRecord, ...]:
        return self._records

    def get(self, record_id: str) -> SalespersonRecord:
        for record in self._records:
            if record.id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    def add(self, name: str = "") -> SalespersonRecord:
        """Append a new record labelled with the active store"""
        self._check_writable()
        record = create_record(self.config, store_label=self.tenant.label, name=name)
        self._set_records(self._records + (record,))
        return record

    def update(self, record_id: str, path: str, value: Any) -> SalespersonRecord:
        """Replace one field of a record"""
        self._check_writable()
        updated = with_field(self.get(record_id), path, value)
        self._set_records(tuple(updated if r.id == record_id else r for r in self._records))
        return updated

    def remove(self, record_id: str) -> None:
        self._check_writable()
        self.get(record_id)
        self._set_records(tuple(r for r in self._records if r.id != record_id))

    def replace_all(self, records: Sequence[SalespersonRecord]) -> None:
        self._check_writable()
        self._set_records(tuple(records))

    def export_json(self, out_dir: Path) -> Path:
        """Write all records to <out_dir>/performance_<store>.json"""
        path = Path(out_dir) / self.tenant.export_filename
        return export_records(self._records, path)

    def import_json(self, path: Path) -> List[SalespersonRecord]:
        """Replace the collection with the records in a JSON file.

        Import stays available in read-only mode. On an unreadable or
        invalid file the collection falls back to one default record and
        InvalidImportError is raised.
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                records = parse_import(f.read(), self.config)
        except (OSError, UnicodeDecodeError, InvalidImportError) as e:
            logger.warning("Import from %s failed: %s", path, e)
            self._set_records((create_record(self.config, store_label=self.tenant.label),))
            if isinstance(e, InvalidImportError):
                raise
            raise InvalidImportError(f"Cannot read {path}: {e}") from e

        self._set_records(tuple(records))
        return records

    def score(self, record_id: str) -> ScoreResult:
        return self.scoring.calculate(self.get(record_id))

    def scores(self) -> List[Tuple[SalespersonRecord, ScoreResult]]:
        return [(record, self.scoring.calculate(record)) for record in self._records]

    def leaderboard(self) -> List[Tuple[SalespersonRecord, ScoreResult]]:
        return self.scoring.rank(self._records)

    def flush(self) -> None:
        """Write any pending change now"""
        self._writer.flush()

    def _check_writable(self) -> None:
        if self.read_only:
            raise ReadOnlyError("Read-only mode: records cannot be changed")

    def _set_records(self, records: Tuple[SalespersonRecord, ...]) -> None:
        self._records = records
        self._writer.schedule(records)

    def _persist(self, records: Optional[Tuple[SalespersonRecord, ...]]) -> None:
        self.store.save(self.tenant.storage_key, records or ())
