"""Report and health endpoints, invoked directly off the router."""

from __future__ import annotations

from typing import Any

import pytest
from conftest import StubImageLoader, build_record, extract_pdf_text
from fastapi import HTTPException

from ostecnico.api_models import ServiceOrderRecordModel
from ostecnico.app import RuntimeState, create_app
from ostecnico.config import default_config
from ostecnico.routes import create_router
from ostecnico.routes._helpers import content_disposition, safe_filename
from ostecnico.session import SessionContext


class _Store:
    def __init__(self, record: dict[str, Any] | None = None, fail: bool = False) -> None:
        self.record = record
        self.fail = fail

    async def insert_service_order(self, row: dict[str, Any]) -> dict[str, Any]:
        return row

    async def fetch_report_record(self, order_id: str, owner_id: str) -> dict[str, Any] | None:
        if self.fail:
            raise ConnectionError("database offline")
        return self.record


def _state(store: _Store | None = None, *, signed_in: bool = True) -> RuntimeState:
    config = default_config()
    config.report.logo_path = None
    session = SessionContext()
    if signed_in:
        session.sign_in("user-1")
    return RuntimeState(config=config, session=session, store=store, image_loader=StubImageLoader())


def _route_endpoint(router, path: str, method: str = "GET"):
    for route in router.routes:
        if getattr(route, "path", "") == path and method in getattr(route, "methods", ()):
            return route.endpoint
    raise AssertionError(f"route {method} {path} not registered")


def test_routes_registered() -> None:
    router = create_router(_state())
    routes = {(r.path, m) for r in router.routes for m in getattr(r, "methods", ())}
    assert ("/api/health", "GET") in routes
    assert ("/api/service-orders/report.pdf", "POST") in routes
    assert ("/api/service-orders/{order_id}/report.pdf", "GET") in routes


@pytest.mark.asyncio
async def test_health_endpoint() -> None:
    endpoint = _route_endpoint(create_router(_state()), "/api/health")
    result = await endpoint()
    assert result["status"] == "ok"
    assert "version" in result


@pytest.mark.asyncio
async def test_post_record_returns_pdf_attachment() -> None:
    endpoint = _route_endpoint(create_router(_state()), "/api/service-orders/report.pdf", "POST")
    record = ServiceOrderRecordModel.model_validate(build_record())
    response = await endpoint(record)
    assert response.media_type == "application/pdf"
    assert response.headers["content-disposition"] == (
        "attachment; filename=\"OS_42_Ana_Maria.pdf\"; filename*=UTF-8''OS_42_Ana_Maria.pdf"
    )
    assert "Ana Maria" in extract_pdf_text(response.body)


@pytest.mark.asyncio
async def test_get_stored_order_returns_pdf() -> None:
    state = _state(_Store(build_record(os_number=7, customers={"name": "Bruno"})))
    endpoint = _route_endpoint(create_router(state), "/api/service-orders/{order_id}/report.pdf")
    response = await endpoint("abc")
    assert 'filename="OS_7_Bruno.pdf"' in response.headers["content-disposition"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("state_kwargs", "status"),
    [
        ({"store": None}, 503),
        ({"store": _Store(None)}, 404),
        ({"store": _Store(fail=True)}, 502),
        ({"store": _Store(build_record()), "signed_in": False}, 401),
    ],
)
async def test_get_stored_order_errors(state_kwargs: dict[str, Any], status: int) -> None:
    endpoint = _route_endpoint(
        create_router(_state(**state_kwargs)), "/api/service-orders/{order_id}/report.pdf"
    )
    with pytest.raises(HTTPException) as excinfo:
        await endpoint("abc")
    assert excinfo.value.status_code == status


@pytest.mark.asyncio
async def test_build_failure_maps_to_422(monkeypatch: pytest.MonkeyPatch) -> None:
    from ostecnico.errors import OstecnicoError
    from ostecnico.routes import reports

    def _fail(*args: object, **kwargs: object) -> bytes:
        raise OstecnicoError("PDF generation failed", "REPORT_BUILD_FAILED")

    monkeypatch.setattr(reports, "build_service_order_pdf", _fail)
    endpoint = _route_endpoint(create_router(_state()), "/api/service-orders/report.pdf", "POST")
    with pytest.raises(HTTPException) as excinfo:
        await endpoint(ServiceOrderRecordModel.model_validate(build_record()))
    assert excinfo.value.status_code == 422


def test_record_model_accepts_relation_shapes() -> None:
    as_list = ServiceOrderRecordModel.model_validate(build_record(customers=[{"name": "Ana"}]))
    as_obj = ServiceOrderRecordModel.model_validate(build_record(customers={"name": "Ana"}))
    assert isinstance(as_list.customers, list)
    assert as_obj.customers.name == "Ana"


def test_safe_filename() -> None:
    assert safe_filename("OS_1_José da Silva.pdf") == "OS_1_Jos__da_Silva.pdf"
    assert safe_filename("") == "download"


def test_content_disposition_keeps_accented_name() -> None:
    header = content_disposition("OS_1_João.pdf")
    assert header.startswith('attachment; filename="OS_1_Jo_o.pdf"; ')
    assert header.endswith("filename*=UTF-8''OS_1_Jo%C3%A3o.pdf")
    header.encode("latin-1")


@pytest.mark.asyncio
async def test_post_record_with_accented_customer_sets_utf8_filename() -> None:
    endpoint = _route_endpoint(create_router(_state()), "/api/service-orders/report.pdf", "POST")
    record = ServiceOrderRecordModel.model_validate(build_record(customers={"name": "João"}))
    response = await endpoint(record)
    assert "filename*=UTF-8''OS_42_Jo%C3%A3o.pdf" in response.headers["content-disposition"]


def test_create_app_wires_runtime(tmp_path) -> None:
    app = create_app(tmp_path / "config.yaml")
    runtime = app.state.runtime
    assert isinstance(runtime, RuntimeState)
    assert runtime.store is None
    paths = {getattr(r, "path", "") for r in app.routes}
    assert "/api/service-orders/report.pdf" in paths
