"""Dashboard actions on existing service orders.

Duplicate, status change, pin toggle and delete.  Every action is scoped to
the signed-in user; a row the user does not own behaves as missing.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import Any, TypeVar

from .checklists import CHECKLIST_COLUMNS
from .domain_models import ORDER_STATUS_LABELS
from .errors import OperationError, OstecnicoError
from .intake import ServiceOrderStore
from .session import SessionContext

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

# Identity, numbering, client signature and pin state belong to the original order.
DUPLICATE_DROPPED_COLUMNS: frozenset[str] = frozenset(
    {
        "id",
        "created_at",
        "updated_at",
        "user_id",
        "os_number",
        "signature_token",
        "client_signed_at",
        "client_signature_url",
        "is_pinned",
        "pinned_at",
    }
)


def _not_found(order_id: str) -> OperationError:
    return OperationError(f"Ordem de serviço {order_id} não encontrada", code="NOT_FOUND")


async def _call_store(action: str, order_id: str, call: Awaitable[T]) -> T:
    try:
        return await call
    except OstecnicoError:
        raise
    except Exception as exc:
        LOGGER.error("Error trying to %s service order %s", action, order_id, exc_info=True)
        raise OperationError(str(exc) or exc.__class__.__name__) from exc


def duplicate_row(original: dict[str, Any], owner_id: str) -> dict[str, Any]:
    """Copy of *original* ready to insert as a fresh pending order."""
    row = {k: v for k, v in original.items() if k not in DUPLICATE_DROPPED_COLUMNS}
    for key in (*CHECKLIST_COLUMNS, "photos"):
        row[key] = row.get(key) or []
    row["user_id"] = owner_id
    row["status"] = "pendente"
    return row


async def duplicate_service_order(
    session: SessionContext, store: ServiceOrderStore, order_id: str
) -> dict[str, Any]:
    user = session.require_user()
    original = await _call_store(
        "duplicate", order_id, store.fetch_service_order(order_id, user.user_id)
    )
    if original is None:
        raise _not_found(order_id)
    inserted = await _call_store(
        "duplicate", order_id, store.insert_service_order(duplicate_row(original, user.user_id))
    )
    LOGGER.info("Service order %s duplicated as %s", order_id, inserted.get("id"))
    return inserted


async def _update_owned(
    session: SessionContext,
    store: ServiceOrderStore,
    order_id: str,
    changes: dict[str, Any],
    action: str,
) -> dict[str, Any]:
    user = session.require_user()
    updated = await _call_store(
        action, order_id, store.update_service_order(order_id, changes, owner_id=user.user_id)
    )
    if updated is None:
        raise _not_found(order_id)
    return updated


async def change_status(
    session: SessionContext, store: ServiceOrderStore, order_id: str, status: str
) -> dict[str, Any]:
    if status not in ORDER_STATUS_LABELS:
        raise ValueError(f"Unknown service order status: {status!r}")
    updated = await _update_owned(session, store, order_id, {"status": status}, "change status of")
    LOGGER.info("Service order %s status set to %s", order_id, status)
    return updated


async def toggle_pin(
    session: SessionContext,
    store: ServiceOrderStore,
    order_id: str,
    *,
    currently_pinned: bool,
) -> dict[str, Any]:
    """Flip the pin; pinning stamps ``pinned_at``, unpinning clears it."""
    pinned = not currently_pinned
    changes = {
        "is_pinned": pinned,
        "pinned_at": datetime.now(UTC).isoformat() if pinned else None,
    }
    return await _update_owned(session, store, order_id, changes, "pin")


async def delete_service_order(
    session: SessionContext, store: ServiceOrderStore, order_id: str
) -> None:
    user = session.require_user()
    deleted = await _call_store(
        "delete", order_id, store.delete_service_order(order_id, user.user_id)
    )
    if not deleted:
        raise _not_found(order_id)
    LOGGER.info("Service order %s deleted", order_id)
