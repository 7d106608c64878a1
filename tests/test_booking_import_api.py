from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.routers.booking_import import router
from app.repositories.booking_storage import SqlAlchemyBookingStorage, StorageReadError
from app.services.booking_import_service import BookingImportService, get_booking_import_service
from db.base import Base
from db.models import Platform, PlatformMapping, Property
from db.session import get_db
from tests.support import build_csv

HEADERS = ["予約ID", "施設名", "利用日", "金額"]


@pytest.fixture()
def client() -> Iterator[TestClient]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    with factory() as db:
        db.add_all(
            [
                Platform(id=1, code="generic", name="Generic CSV"),
                Property(id=1, code="P001", name="神田"),
            ]
        )
        db.flush()
        db.add(PlatformMapping(property_id=1, platform_id=1, platform_property_name="ブルースペース神田"))
        db.commit()

    def override_db() -> Iterator[Session]:
        with factory() as db:
            yield db

    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_booking_import_service] = lambda: BookingImportService(chunk_size=2)

    with TestClient(app) as test_client:
        yield test_client
    engine.dispose()


def _upload(client: TestClient, content: str, *, source_id: str = "generic", name: str = "bookings.csv"):
    return client.post(
        "/import/csv",
        params={"source_id": source_id},
        files={"file": (name, content.encode("utf-8"), "text/csv")},
    )


def test_import_and_duplicate_file_flag(client: TestClient) -> None:
    content = build_csv(
        HEADERS,
        [
            ["G-1", "ブルースペース神田", "2024-01-15", "5000"],
            ["G-2", "ブルースペース新宿", "2024-01-16", "6000"],
        ],
    )

    first = _upload(client, content)
    assert first.status_code == 200
    body = first.json()
    assert body["inserted"] == 1
    assert body["unmapped"] == ["ブルースペース新宿"]
    assert body["status"] == "partial"
    assert body["duplicate_file"] is False

    second = _upload(client, content)
    assert second.status_code == 200
    assert second.json()["duplicate_file"] is True
    assert second.json()["skipped_ids"] == ["G-1"]

    logs = client.get("/import/logs").json()["items"]
    assert len(logs) == 2
    assert {item["source_id"] for item in logs} == {"generic"}
    assert logs[0]["content_hash"] == body["content_hash"]


def test_duplicate_file_flag_uses_canonical_source_id(client: TestClient) -> None:
    content = build_csv(HEADERS, [["G-1", "ブルースペース神田", "2024-01-15", "5000"]])

    first = _upload(client, content, source_id="Generic")
    second = _upload(client, content, source_id="GENERIC")

    assert first.status_code == 200
    assert first.json()["duplicate_file"] is False
    assert second.status_code == 200
    assert second.json()["duplicate_file"] is True
    assert second.json()["source_id"] == "generic"


def test_storage_read_failure_is_a_server_error(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fail(self: SqlAlchemyBookingStorage) -> set[str]:
        raise StorageReadError("Failed to load existing booking IDs: database is locked")

    monkeypatch.setattr(SqlAlchemyBookingStorage, "load_existing_external_ids", fail)

    response = _upload(client, build_csv(HEADERS, [["G-1", "ブルースペース神田", "2024-01-15", "5000"]]))

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["source_id"] == "generic"
    assert "existing booking IDs" in detail["message"]
    assert client.get("/import/logs").json()["items"] == []


def test_unknown_source_is_rejected(client: TestClient) -> None:
    response = _upload(client, build_csv(HEADERS, []), source_id="airbnb")

    assert response.status_code == 400
    assert response.json()["detail"]["source_id"] == "airbnb"
    assert client.get("/import/logs").json()["items"] == []


def test_source_without_platform_row_is_rejected(client: TestClient) -> None:
    content = build_csv(["予約ID", "スペース名", "予約ステータス", "利用開始日時"], [])

    response = _upload(client, content, source_id="spacee")

    assert response.status_code == 400
    assert "spacee" in response.json()["detail"]


def test_structural_failure_is_rejected(client: TestClient) -> None:
    response = _upload(client, build_csv(["foo", "bar"], [["1", "2"]]))

    assert response.status_code == 400
    assert response.json()["detail"]["source_id"] == "generic"


def test_empty_and_non_csv_uploads(client: TestClient) -> None:
    assert _upload(client, "").status_code == 400
    response = client.post(
        "/import/csv",
        params={"source_id": "generic"},
        files={"file": ("bookings.xlsx", b"binary", "application/octet-stream")},
    )
    assert response.status_code == 400


def test_list_sources(client: TestClient) -> None:
    sources = client.get("/import/sources").json()["sources"]

    assert [source["source_id"] for source in sources] == ["generic", "instabase", "spacee", "spacemarket"]
    assert {source["source_id"]: source["supports_sub_spaces"] for source in sources}["instabase"] is True
