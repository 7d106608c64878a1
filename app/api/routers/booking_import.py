"""
app/api/routers/booking_import.py

Booking CSV import HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload, read_csv_text
from app.parsers.base import StructuralParseError
from app.parsers.registry import UnknownSourceError
from app.repositories.booking_storage import (
    BookingStorageError,
    SourceNotRegisteredError,
    SqlAlchemyBookingStorage,
)
from app.repositories.import_log_repository import ImportLogRepository
from app.schemas.booking_import import (
    BookingImportResponse,
    ImportLogListResponse,
    ImportLogResponse,
    SourceListResponse,
    SourceResponse,
)
from app.services.booking_import_service import (
    BookingImportService,
    BookingPersistenceError,
    compute_content_hash,
    get_booking_import_service,
)
from db.session import get_db

router = APIRouter(prefix="/import", tags=["booking-import"])


@router.post("/csv", response_model=BookingImportResponse)
def import_csv(
    file: UploadFile = Depends(get_csv_upload),
    source_id: str = Query(..., description="Source identifier, e.g. instabase, spacee, spacemarket, generic"),
    db: Session = Depends(get_db),
    import_service: BookingImportService = Depends(get_booking_import_service),
) -> BookingImportResponse:
    """
    Import one booking export for one source.
    """

    try:
        content = read_csv_text(file)
    finally:
        file.file.close()

    if not content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV content is required.",
        )

    try:
        source_id = import_service.registry.require(source_id).source_id
    except UnknownSourceError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc

    try:
        previous_runs = ImportLogRepository(db).find_by_content_hash(
            compute_content_hash(content),
            source_id=source_id,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": f"Import log could not be read: {exc}", "source_id": source_id},
        ) from exc

    try:
        report = import_service.ingest(
            source_id=source_id,
            file_name=file.filename or "upload.csv",
            raw_content=content,
            storage=SqlAlchemyBookingStorage(db),
        )
    except UnknownSourceError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except SourceNotRegisteredError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except BookingStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": str(exc), "source_id": source_id},
        ) from exc
    except StructuralParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except BookingPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=exc.to_dict(),
        ) from exc

    return BookingImportResponse.from_report(report, duplicate_file=bool(previous_runs))


@router.get("/logs", response_model=ImportLogListResponse)
def list_import_logs(
    limit: int = Query(default=50, ge=1, le=500),
    source_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> ImportLogListResponse:
    """
    Most recent import runs, newest first.
    """

    records = ImportLogRepository(db).list_recent(limit=limit, source_id=source_id)
    return ImportLogListResponse(items=[ImportLogResponse.from_record(record) for record in records])


@router.get("/sources", response_model=SourceListResponse)
def list_sources(
    import_service: BookingImportService = Depends(get_booking_import_service),
) -> SourceListResponse:
    registry = import_service.registry
    return SourceListResponse(
        sources=[
            SourceResponse(
                source_id=parser.source_id,
                display_name=parser.display_name,
                supports_sub_spaces=parser.supports_sub_spaces,
            )
            for parser in (registry.require(source_id) for source_id in registry.list_sources())
        ]
    )
