"""In-memory, most-recent-first collection of generated QR records."""

from __future__ import annotations

from tableqr.models import QRRecord


class CodeRegistry:
    """Holds the codes generated during this session; nothing is persisted."""

    def __init__(self) -> None:
        self._records: list[QRRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def insert(self, record: QRRecord) -> None:
        """Prepend a record. Ids must be unique within the registry."""
        if any(existing.id == record.id for existing in self._records):
            raise ValueError(f"Duplicate QR record id: {record.id}")
        self._records.insert(0, record)

    def delete_by_id(self, record_id: str) -> bool:
        """Remove the record with ``record_id``; absent ids are a no-op."""
        for idx, record in enumerate(self._records):
            if record.id == record_id:
                del self._records[idx]
                return True
        return False

    def clear(self) -> None:
        self._records.clear()

    def get(self, record_id: str) -> QRRecord | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def list(self) -> list[QRRecord]:
        """Return a copy of the records, newest first."""
        return list(self._records)
