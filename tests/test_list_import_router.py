"""
tests/test_list_import_router.py

API tests for list import endpoints using an in-memory store and SQLite.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.base import Base
from db.session import get_db
from listimport.config import ListImportSettings, get_list_import_settings
from listimport.domain.list_schema import ColumnKind
from listimport.errors import StoreRequestError
from listimport.main import create_app
from listimport.services.import_run_service import ListImportRunService, get_list_import_run_service
from listimport.services.list_ingestion_service import ListIngestionService
from listimport.stores.memory_store import InMemoryListStore


class BrokenStore(InMemoryListStore):
    def resolve_list(self, session, list_name):
        raise StoreRequestError("GetList: request failed after retries.")


@pytest.fixture()
def session_factory() -> Generator[sessionmaker[Session], None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture()
def store() -> InMemoryListStore:
    memory_store = InMemoryListStore()
    memory_store.add_list("Tasks", {"Due": ColumnKind.DATETIME})
    return memory_store


@pytest.fixture()
def client(session_factory, store) -> Generator[TestClient, None, None]:
    application = create_app(validate_env=False)

    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_list_import_settings] = lambda: ListImportSettings(store="memory")
    application.dependency_overrides[get_list_import_run_service] = lambda: ListImportRunService(
        ingestion_service=ListIngestionService(store=application.state.store)
    )
    application.state.store = store
    with TestClient(application) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_import_into_existing_list(client: TestClient, store: InMemoryListStore) -> None:
    response = client.post(
        "/lists/Tasks/items",
        json={"records": [{"Title": "Hello", "Due": "2024-01-02T03:04:05Z", "Extra": 1}]},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "completed"
    assert body["rows_committed"] == 1
    assert body["item_ids"] == ["1"]
    assert body["confirmations"] == [{"ID": "1", "Title": "Hello", "Due": "2024-01-02T03:04:05Z"}]
    assert body["dropped_fields"] == ["Row 0: field 'Extra' has no matching column and was dropped."]
    assert store.items("Tasks") == [{"Title": "Hello", "Due": "2024-01-02T03:04:05Z"}]


def test_auto_create_reports_created_columns(client: TestClient) -> None:
    response = client.post(
        "/lists/Contacts/items",
        json={"records": [{"Title": "Ann", "Age": 41, "Joined": "2020-05-01T00:00:00Z"}], "auto_create": True},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["list_created"] is True
    assert body["columns_created"] == [
        {"name": "Age", "kind": "Number"},
        {"name": "Joined", "kind": "DateTime"},
    ]


def test_parse_dates_off_keeps_strings_as_text(client: TestClient) -> None:
    response = client.post(
        "/lists/Notes/items",
        json={"records": [{"Title": "x", "When": "2020-05-01"}], "auto_create": True, "parse_dates": False},
    )

    assert response.json()["columns_created"] == [{"name": "When", "kind": "Text"}]


def test_failed_rows_record_partial_run(client: TestClient) -> None:
    response = client.post(
        "/lists/Tasks/items",
        json={"records": [{"Title": "x" * 300}, {"Title": "ok"}]},
    )

    body = response.json()
    assert response.status_code == 201
    assert body["status"] == "partial"
    assert body["rows_failed"] == 1
    assert len(body["errors"]) == 1

    run = client.get(f"/imports/{body['run_id']}").json()
    assert run["status"] == "partial"
    assert run["rows_total"] == 2
    assert run["rows_committed"] == 1
    assert run["options_payload"]["failed_row_policy"] == "skip"


def test_missing_list_is_404_and_recorded(client: TestClient) -> None:
    response = client.post("/lists/Nope/items", json={"records": [{"Title": "x"}]})

    assert response.status_code == 404
    run_id = response.json()["detail"]["run_id"]
    run = client.get(f"/imports/{run_id}").json()
    assert run["status"] == "failed"
    assert "was not found" in run["error_message"]


def test_strict_row_failure_is_422(client: TestClient) -> None:
    response = client.post(
        "/lists/Tasks/items",
        json={"records": [{"Title": "x" * 300}], "strict": True},
    )

    assert response.status_code == 422
    assert "Row 0 failed" in response.json()["detail"]["error"]


def test_store_outage_is_502(client: TestClient) -> None:
    client.app.state.store = BrokenStore()

    response = client.post("/lists/Tasks/items", json={"records": [{"Title": "x"}]})

    assert response.status_code == 502


def test_empty_records_rejected(client: TestClient) -> None:
    response = client.post("/lists/Tasks/items", json={"records": []})

    assert response.status_code == 400


def test_list_and_filter_runs(client: TestClient) -> None:
    client.post("/lists/Tasks/items", json={"records": [{"Title": "a"}]})
    client.post("/lists/Nope/items", json={"records": [{"Title": "b"}]})

    all_runs = client.get("/imports").json()["runs"]
    failed = client.get("/imports", params={"status": "failed"}).json()["runs"]
    tasks = client.get("/imports", params={"list_name": "Tasks"}).json()["runs"]

    assert len(all_runs) == 2
    assert [run["list_name"] for run in failed] == ["Nope"]
    assert [run["status"] for run in tasks] == ["completed"]


def test_unknown_run_is_404(client: TestClient) -> None:
    response = client.get("/imports/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404
