"""Dashboard actions: duplicate, status, pin and delete."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest
from conftest import FakeStore

from ostecnico.errors import NotAuthenticatedError, OperationError
from ostecnico.orders import (
    DUPLICATE_DROPPED_COLUMNS,
    change_status,
    delete_service_order,
    duplicate_row,
    duplicate_service_order,
    toggle_pin,
)
from ostecnico.session import SessionContext


def _row(**overrides: Any) -> dict[str, Any]:
    row = {
        "id": "os-1",
        "user_id": "user-1",
        "os_number": 12,
        "created_at": "2024-05-01T10:00:00Z",
        "updated_at": "2024-05-02T10:00:00Z",
        "customer_id": "cust-1",
        "technician_id": "tech-1",
        "equipment": "Notebook Acer",
        "problem_description": "Não carrega a bateria",
        "physical_condition": [{"label": "Tela", "status": "ok", "observation": ""}],
        "operating_condition": None,
        "technical_tests": None,
        "photos": None,
        "signature_url": "https://storage.example/os-images/tech.png",
        "signature_token": "tok-123",
        "client_signed_at": "2024-05-01T11:00:00Z",
        "client_signature_url": "https://storage.example/os-images/client-x.png",
        "is_pinned": True,
        "pinned_at": "2024-05-01T12:00:00Z",
        "status": "concluido",
    }
    row.update(overrides)
    return row


def test_duplicate_row_resets_identity_and_signatures() -> None:
    row = duplicate_row(_row(), "user-7")
    assert DUPLICATE_DROPPED_COLUMNS.isdisjoint(row.keys() - {"user_id"})
    assert row["user_id"] == "user-7"
    assert row["status"] == "pendente"
    assert row["operating_condition"] == []
    assert row["technical_tests"] == []
    assert row["photos"] == []
    assert row["physical_condition"] == [{"label": "Tela", "status": "ok", "observation": ""}]
    assert row["equipment"] == "Notebook Acer"
    assert row["signature_url"].endswith("tech.png")


@pytest.mark.asyncio
async def test_duplicate_inserts_copy_for_current_user(session: SessionContext) -> None:
    store = FakeStore({"os-1": _row()})
    inserted = await duplicate_service_order(session, store, "os-1")
    assert inserted["id"] == "order-1"
    assert store.rows[0]["user_id"] == "user-1"
    assert "os_number" not in store.rows[0]
    assert "signature_token" not in store.rows[0]
    assert store.records["os-1"]["status"] == "concluido"


@pytest.mark.asyncio
async def test_duplicate_of_foreign_order_is_not_found(session: SessionContext) -> None:
    store = FakeStore({"os-1": _row(user_id="user-2")})
    with pytest.raises(OperationError) as excinfo:
        await duplicate_service_order(session, store, "os-1")
    assert excinfo.value.code == "NOT_FOUND"
    assert store.rows == []


@pytest.mark.asyncio
async def test_change_status(session: SessionContext) -> None:
    store = FakeStore({"os-1": _row()})
    updated = await change_status(session, store, "os-1", "em_atendimento")
    assert updated["status"] == "em_atendimento"
    assert store.updates == [("os-1", {"status": "em_atendimento"}, "user-1")]
    with pytest.raises(ValueError):
        await change_status(session, store, "os-1", "arquivado")


@pytest.mark.asyncio
async def test_toggle_pin_stamps_and_clears_pinned_at(session: SessionContext) -> None:
    store = FakeStore({"os-1": _row(is_pinned=False, pinned_at=None)})
    pinned = await toggle_pin(session, store, "os-1", currently_pinned=False)
    assert pinned["is_pinned"] is True
    assert datetime.fromisoformat(pinned["pinned_at"]).tzinfo is not None
    unpinned = await toggle_pin(session, store, "os-1", currently_pinned=True)
    assert unpinned["is_pinned"] is False
    assert unpinned["pinned_at"] is None


@pytest.mark.asyncio
async def test_delete_scoped_to_owner(session: SessionContext) -> None:
    store = FakeStore({"mine": _row(), "theirs": _row(user_id="user-2")})
    await delete_service_order(session, store, "mine")
    assert "mine" not in store.records
    with pytest.raises(OperationError) as excinfo:
        await delete_service_order(session, store, "theirs")
    assert excinfo.value.code == "NOT_FOUND"
    assert "theirs" in store.records


@pytest.mark.asyncio
async def test_backend_failure_becomes_operation_error(session: SessionContext) -> None:
    with pytest.raises(OperationError, match="database offline") as excinfo:
        await toggle_pin(session, FakeStore(fail=True), "os-1", currently_pinned=False)
    assert excinfo.value.code == "OPERATION_FAILED"


@pytest.mark.asyncio
async def test_actions_require_sign_in() -> None:
    store = FakeStore({"os-1": _row()})
    with pytest.raises(NotAuthenticatedError):
        await delete_service_order(SessionContext(), store, "os-1")
    assert "os-1" in store.records
