"""
Evidence record store.

`store` starts as None. Call `initialize()` inside the FastAPI lifespan
context manager before handling any requests. The in-memory implementation
keeps records for the life of the process; a relational backend only needs
the same methods, with `insert` running as one transaction.
"""

import logging
import threading
from typing import Dict, List, Optional

from app.schemas.attachments import DocumentType, EvidenceRecord

logger = logging.getLogger(__name__)


class SlotTakenError(Exception):
    pass


class UploadLimitError(Exception):
    pass


class InMemoryEvidenceStore:
    def __init__(self):
        self._records: Dict[str, EvidenceRecord] = {}
        self._lock = threading.Lock()

    def insert(
        self,
        record: EvidenceRecord,
        unique_slot: bool = False,
        max_total_bytes: Optional[int] = None,
    ) -> EvidenceRecord:
        """
        Store `record` unless it collides with an existing slot (when
        `unique_slot`) or pushes the application past `max_total_bytes`.
        Check and write happen under one lock acquisition.
        """
        with self._lock:
            if unique_slot and self._find_slot(record.application_id, record.document_type, record.photo_slot):
                raise SlotTakenError(record.photo_slot)
            if max_total_bytes is not None:
                total = self._total_bytes(record.application_id) + record.file_size_bytes
                if total > max_total_bytes:
                    raise UploadLimitError(total)
            self._records[record.id] = record
        return record

    def get(self, record_id: str) -> Optional[EvidenceRecord]:
        with self._lock:
            return self._records.get(record_id)

    def delete(self, record_id: str) -> Optional[EvidenceRecord]:
        with self._lock:
            return self._records.pop(record_id, None)

    def find_by_slot(
        self, application_id: str, document_type: DocumentType, photo_slot: str
    ) -> Optional[EvidenceRecord]:
        with self._lock:
            return self._find_slot(application_id, document_type, photo_slot)

    def total_bytes(self, application_id: str) -> int:
        with self._lock:
            return self._total_bytes(application_id)

    def list_for_application(self, application_id: str) -> List[EvidenceRecord]:
        with self._lock:
            records = [r for r in self._records.values() if r.application_id == application_id]
        return sorted(records, key=lambda r: r.created_at)

    # Callers hold self._lock

    def _find_slot(self, application_id, document_type, photo_slot) -> Optional[EvidenceRecord]:
        for record in self._records.values():
            if (
                record.application_id == application_id
                and record.document_type == document_type
                and record.photo_slot == photo_slot
            ):
                return record
        return None

    def _total_bytes(self, application_id: str) -> int:
        return sum(r.file_size_bytes for r in self._records.values() if r.application_id == application_id)


# Module-level reference. Set by initialize(); consumers read it at call time
# via `from app.integrations import evidence_store; evidence_store.store`.
store = None  # InMemoryEvidenceStore | None


def initialize() -> None:
    global store
    store = InMemoryEvidenceStore()
    logger.info("[STARTUP] Evidence store initialized (in-memory)")
