"""
app/repositories/import_log_repository.py

Read helpers over the booking import audit log.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.import_log import ImportLog
from db.models.platform import Platform


@dataclass(frozen=True)
class ImportLogRecord:
    id: int
    source_id: str
    file_name: str
    content_hash: str
    imported_at: datetime
    record_count: int
    status: str
    message: str | None


class ImportLogRepository:
    """
    Repository for import-log lookups.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _base_query(self):
        return select(ImportLog, Platform.code).join(Platform, Platform.id == ImportLog.platform_id)

    def list_recent(self, *, limit: int = 50, source_id: str | None = None) -> list[ImportLogRecord]:
        stmt = self._base_query()
        if source_id:
            stmt = stmt.where(Platform.code == source_id.strip())
        stmt = stmt.order_by(ImportLog.imported_at.desc(), ImportLog.id.desc()).limit(max(1, limit))
        return [_to_record(log, code) for log, code in self._session.execute(stmt).all()]

    def find_by_content_hash(
        self,
        content_hash: str,
        *,
        source_id: str | None = None,
    ) -> list[ImportLogRecord]:
        """
        Earlier runs over byte-identical content, oldest first.
        """

        stmt = self._base_query().where(ImportLog.file_hash == content_hash)
        if source_id:
            stmt = stmt.where(Platform.code == source_id.strip())
        stmt = stmt.order_by(ImportLog.imported_at.asc(), ImportLog.id.asc())
        return [_to_record(log, code) for log, code in self._session.execute(stmt).all()]


def _to_record(log: ImportLog, source_id: str) -> ImportLogRecord:
    return ImportLogRecord(
        id=log.id,
        source_id=source_id,
        file_name=log.file_name,
        content_hash=log.file_hash,
        imported_at=log.imported_at,
        record_count=log.record_count,
        status=log.status,
        message=log.error_message,
    )
