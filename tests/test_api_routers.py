"""
tests/test_api_routers.py

HTTP contract of the import and descent routers, with services and the
database session replaced by in-memory fakes.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.api.dependencies import get_descent_service, get_import_service
from app.api.routers import descents_router, imports_router
from app.services.descent_service import DescentService
from app.services.import_parser import KPIImportParser, OrderCatalogParser
from app.services.import_service import ImportService
from conftest import (
    FailingKpiStore,
    FakeSession,
    InMemoryBatchRepository,
    RecordingAuditLogger,
    THREE_ROW_KPI_CSV,
    build_engine,
    xlsx_bytes,
)
from db.models.order_catalog import OrderCatalog
from db.session import get_db


def _client(*, engine=None, catalog: dict[str, OrderCatalog] | None = None) -> tuple[TestClient, InMemoryBatchRepository]:
    batches = InMemoryBatchRepository()
    engine = engine or build_engine()
    import_service = ImportService(
        audit_logger=RecordingAuditLogger(),
        kpi_parser=KPIImportParser(),
        catalog_parser=OrderCatalogParser(),
        engine_factory=lambda _db, batch_size: engine,
        batch_repository_factory=batches,
    )

    entries = catalog or {}
    added: list = []

    class _Catalog:
        def get(self, order_number: str):
            return entries.get(order_number)

    class _Descents:
        def add(self, descent):
            descent.id = uuid.uuid4()
            added.append(descent)
            return descent

        def latest_for_order(self, order_number: str):
            return next((d for d in reversed(added) if d.order_number == order_number), None)

    descent_service = DescentService(
        audit_logger=RecordingAuditLogger(),
        catalog_repository_factory=lambda _db: _Catalog(),
        descent_repository_factory=lambda _db: _Descents(),
    )

    application = FastAPI()
    application.include_router(imports_router)
    application.include_router(descents_router)
    application.dependency_overrides[get_db] = FakeSession
    application.dependency_overrides[get_import_service] = lambda: import_service
    application.dependency_overrides[get_descent_service] = lambda: descent_service
    return TestClient(application), batches


class TestImportRoutes:
    def test_kpi_upload_returns_summary(self) -> None:
        client, _ = _client()

        response = client.post(
            "/imports/kpi",
            files={"file": ("kpi.csv", THREE_ROW_KPI_CSV, "text/csv")},
            headers={"X-User-Id": "u-1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["summary"] == {"processed_rows": 3, "inserted_rows": 2, "updated_rows": 0, "rejected_rows": 1}
        assert body["rejections"] == ["Line 3: work_date must be a valid date"]
        assert len(body["preview"]) == 3

    def test_stored_batch_can_be_fetched_and_listed(self) -> None:
        client, _ = _client()
        created = client.post("/imports/kpi", files={"file": ("kpi.csv", THREE_ROW_KPI_CSV, "text/csv")}).json()

        fetched = client.get(f"/imports/{created['import_id']}")
        listed = client.get("/imports", params={"limit": 5})

        assert fetched.status_code == 200
        assert fetched.json()["status"] == "success"
        assert fetched.json()["rejection_report"] == created["rejections"]
        assert [item["id"] for item in listed.json()] == [created["import_id"]]

    def test_listing_filters_by_import_type(self) -> None:
        client, _ = _client()
        kpi = client.post("/imports/kpi", files={"file": ("kpi.csv", THREE_ROW_KPI_CSV, "text/csv")}).json()
        base_content = xlsx_bytes({"Base": [["Pedido", "Lote"], ["1001", "L1"]]})
        base = client.post(
            "/imports/base", files={"file": ("base.xlsx", base_content, "application/octet-stream")}
        ).json()

        only_base = client.get("/imports", params={"import_type": "base"})
        only_kpi = client.get("/imports", params={"import_type": "kpi"})
        everything = client.get("/imports")

        assert [item["id"] for item in only_base.json()] == [base["import_id"]]
        assert [item["id"] for item in only_kpi.json()] == [kpi["import_id"]]
        assert len(everything.json()) == 2
        assert client.get("/imports", params={"import_type": "other"}).status_code == 422

    def test_explicit_sheet_name_keeps_surrounding_spaces(self) -> None:
        client, _ = _client()
        header = ["Usuario", "Data", "Pedidos", "Volume", "Peso"]
        content = xlsx_bytes(
            {
                "Externos": [header, ["Ana", "05/03/2024", 1, 1, 1]],
                "Externos ": [header, ["Bruno", "05/03/2024", 2, 2, 2]],
            }
        )

        response = client.post(
            "/imports/kpi",
            files={"file": ("kpi.xlsx", content, "application/octet-stream")},
            data={"sheet_name": "Externos "},
        )

        assert response.status_code == 201
        assert [row["Usuario"] for row in response.json()["preview"]] == ["Bruno"]

    def test_unknown_import_is_404(self) -> None:
        client, _ = _client()

        assert client.get(f"/imports/{uuid.uuid4()}").status_code == 404

    def test_unsupported_extension_is_400(self) -> None:
        client, batches = _client()

        response = client.post("/imports/kpi", files={"file": ("kpi.txt", b"x", "text/plain")})

        assert response.status_code == 400
        assert batches.batches == {}

    def test_missing_sheet_is_400(self) -> None:
        client, _ = _client()
        content = xlsx_bytes({"Externos": [["Usuario", "Data", "Pedidos", "Volume", "Peso"]]})

        response = client.post(
            "/imports/kpi",
            files={"file": ("kpi.xlsx", content, "application/octet-stream")},
            data={"sheet_name": "Missing"},
        )

        assert response.status_code == 400
        assert "Missing" in response.json()["detail"]

    def test_persistence_failure_is_generic_500(self) -> None:
        failure = OperationalError("INSERT", {}, Exception("password=secret"))
        client, batches = _client(engine=build_engine(kpi_store=FailingKpiStore(failure)))

        response = client.post("/imports/kpi", files={"file": ("kpi.csv", THREE_ROW_KPI_CSV, "text/csv")})

        assert response.status_code == 500
        assert "secret" not in response.text
        assert next(iter(batches.batches.values())).status == "failed"

    def test_base_upload_rejects_csv(self) -> None:
        client, _ = _client()

        response = client.post("/imports/base", files={"file": ("base.csv", b"Pedido,Lote\n1,L\n", "text/csv")})

        assert response.status_code == 400

    @pytest.mark.parametrize(("path", "inserted", "updated"), [("/imports/base", 1, 0), ("/imports/base/refresh", 1, 0)])
    def test_base_upload_returns_catalog_summary(self, path: str, inserted: int, updated: int) -> None:
        client, _ = _client()
        content = xlsx_bytes({"Base": [["Pedido", "Lote"], ["1001", "L1"]]})

        response = client.post(path, files={"file": ("base.xlsx", content, "application/octet-stream")})

        assert response.status_code == 201
        summary = response.json()["summary"]
        assert (summary["inserted_rows"], summary["updated_rows"]) == (inserted, updated)
        assert summary["consolidated_descents"] == 0


class TestDescentRoutes:
    CATALOG = {
        "1001": OrderCatalog(
            order_number="1001", lot="L1", volume=2, weight_kg=Decimal("3.5"), route="R9", description="Widget"
        ),
        "1002": OrderCatalog(order_number="1002", lot="L2"),
    }

    def test_requires_caller_identity(self) -> None:
        client, _ = _client(catalog=self.CATALOG)

        assert client.post("/descents", json={"order_number": "1001"}).status_code == 401

    def test_create_and_lookup(self) -> None:
        client, _ = _client(catalog=self.CATALOG)

        created = client.post(
            "/descents",
            json={"order_number": "10-01", "work_date": "2024-03-05"},
            headers={"X-User-Name": "Ana", "X-User-Pen-Color": "Green"},
        )
        looked_up = client.get("/descents/lookup/1001")

        assert created.status_code == 201
        body = created.json()
        assert body["order_number"] == "1001"
        assert body["pen_color"] == "Green"
        assert body["route"] == "R9"
        assert looked_up.status_code == 200
        assert looked_up.json()["id"] == body["id"]

    def test_incomplete_catalog_entry_is_400(self) -> None:
        client, _ = _client(catalog=self.CATALOG)

        response = client.post("/descents", json={"order_number": "1002"}, headers={"X-User-Id": "u-1"})

        assert response.status_code == 400
        assert "incomplete" in response.json()["detail"]

    def test_lookup_misses_are_404(self) -> None:
        client, _ = _client(catalog=self.CATALOG)

        assert client.get("/descents/lookup/1001").status_code == 404
        assert client.get("/descents/catalog/9999").status_code == 404
        assert client.get("/descents/catalog/1001").json()["lot"] == "L1"
