"""
app/schemas/booking_import.py

Response schemas for booking import endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.booking import IngestionReport
from app.repositories.import_log_repository import ImportLogRecord


class BookingRowErrorResponse(BaseModel):
    """
    API response model for one row-level parse error.
    """

    row_number: int = Field(..., ge=1)
    message: str
    column: str | None = None
    value: str | None = None


class BookingRowWarningResponse(BaseModel):
    row_number: int = Field(..., ge=1)
    message: str


class BookingImportResponse(BaseModel):
    """
    API response model for one import run.
    """

    source_id: str
    file_name: str
    content_hash: str
    status: str
    parsed: int = Field(..., ge=0)
    inserted: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    unmapped_records: int = Field(..., ge=0)
    unmapped: list[str] = Field(default_factory=list)
    skipped_ids: list[str] = Field(default_factory=list)
    errors: list[BookingRowErrorResponse] = Field(default_factory=list)
    warnings: list[BookingRowWarningResponse] = Field(default_factory=list)
    message: str | None = None
    duplicate_file: bool = Field(
        default=False,
        description="True when byte-identical content was imported before for this source",
    )

    @classmethod
    def from_report(cls, report: IngestionReport, *, duplicate_file: bool = False) -> BookingImportResponse:
        return cls(
            source_id=report.source_id,
            file_name=report.file_name,
            content_hash=report.content_hash,
            status=report.status,
            parsed=report.parsed,
            inserted=report.inserted,
            skipped=report.skipped,
            unmapped_records=report.unmapped_records,
            unmapped=list(report.unmapped),
            skipped_ids=list(report.skipped_ids),
            errors=[
                BookingRowErrorResponse(
                    row_number=error.row_number,
                    message=error.message,
                    column=error.column,
                    value=error.value,
                )
                for error in report.errors
            ],
            warnings=[
                BookingRowWarningResponse(row_number=warning.row_number, message=warning.message)
                for warning in report.warnings
            ],
            message=report.message,
            duplicate_file=duplicate_file,
        )


class ImportLogResponse(BaseModel):
    id: int
    source_id: str
    file_name: str
    content_hash: str
    imported_at: datetime
    record_count: int = Field(..., ge=0)
    status: str
    message: str | None = None

    @classmethod
    def from_record(cls, record: ImportLogRecord) -> ImportLogResponse:
        return cls(
            id=record.id,
            source_id=record.source_id,
            file_name=record.file_name,
            content_hash=record.content_hash,
            imported_at=record.imported_at,
            record_count=record.record_count,
            status=record.status,
            message=record.message,
        )


class ImportLogListResponse(BaseModel):
    items: list[ImportLogResponse] = Field(default_factory=list)


class SourceResponse(BaseModel):
    source_id: str
    display_name: str
    supports_sub_spaces: bool


class SourceListResponse(BaseModel):
    sources: list[SourceResponse] = Field(default_factory=list)
