"""Service-order intake orchestration.

Turns a submitted intake form into a ``service_orders`` row: photos are
normalized and uploaded, the client signature is uploaded, and the row is
inserted through the data collaborator.  Edits reuse the same form and
upload only the photos added since the order was opened.  Storage and data
access are protocols; the hosted backend implements them.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Sequence
from pathlib import PurePath
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field, field_validator

from .checklists import CHECKLIST_COLUMNS
from .config import CompressionConfig
from .domain_models import Accessories, ChecklistSection, ServiceOrderReport
from .errors import OperationError, OstecnicoError
from .image_compression import ImageFile, compress_images
from .session import SessionContext

LOGGER = logging.getLogger(__name__)

PHOTO_BUCKET = "os-images"


class ObjectStorage(Protocol):
    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """Store *data* at *path* inside *bucket* and return its public URL."""
        ...


class ServiceOrderStore(Protocol):
    async def insert_service_order(self, row: dict[str, Any]) -> dict[str, Any]: ...

    async def fetch_report_record(self, order_id: str, owner_id: str) -> dict[str, Any] | None:
        """Return the joined ``service_orders`` projection, or None."""
        ...

    async def fetch_service_order(self, order_id: str, owner_id: str) -> dict[str, Any] | None:
        """Return the plain ``service_orders`` row, or None."""
        ...

    async def fetch_by_signature_token(self, token: str) -> dict[str, Any] | None:
        """Return the joined projection whose ``signature_token`` is *token*, or None."""
        ...

    async def update_service_order(
        self, order_id: str, changes: dict[str, Any], *, owner_id: str | None = None
    ) -> dict[str, Any] | None:
        """Apply *changes* to the row; None when no row matched (or is not owned)."""
        ...

    async def delete_service_order(self, order_id: str, owner_id: str) -> bool: ...


class ServiceOrderForm(BaseModel):
    os_number: str | None = None
    customer_id: str = Field(min_length=1)
    technician_id: str = Field(min_length=1)
    equipment: str = Field(min_length=3)
    serial_number: str | None = None
    problem_description: str = Field(min_length=10)
    status: Literal["pendente", "em_atendimento", "concluido"] = "pendente"
    technician_observation: str | None = None

    @field_validator("os_number")
    @classmethod
    def _numeric_os_number(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        if not value.strip().isdigit():
            raise ValueError("os_number must be an integer")
        return value.strip()

    def manual_os_number(self) -> int | None:
        return int(self.os_number) if self.os_number else None


def storage_object_name(filename: str) -> str:
    """Random object name that keeps the original extension."""
    ext = PurePath(filename).suffix.lstrip(".").lower() or "bin"
    return f"{uuid.uuid4().hex}.{ext}"


async def upload_image(storage: ObjectStorage, file: ImageFile, name: str | None = None) -> str:
    return await storage.upload(
        PHOTO_BUCKET, name or storage_object_name(file.name), file.data, file.content_type
    )


def _form_columns(
    form: ServiceOrderForm,
    checklists: dict[str, ChecklistSection],
    accessories: Accessories,
    photo_urls: Sequence[str],
) -> dict[str, Any]:
    columns: dict[str, Any] = {
        "customer_id": form.customer_id,
        "technician_id": form.technician_id,
        "equipment": form.equipment,
        "serial_number": form.serial_number,
        "problem_description": form.problem_description,
        "accessories_received": accessories.to_dict(),
        "technician_observation": form.technician_observation,
        "photos": list(photo_urls),
        "status": form.status,
    }
    for key in CHECKLIST_COLUMNS:
        columns[key] = [i.to_dict() for i in checklists.get(key, ())]
    manual_number = form.manual_os_number()
    if manual_number is not None:
        columns["os_number"] = manual_number
    return columns


def build_service_order_row(
    owner_id: str,
    form: ServiceOrderForm,
    *,
    checklists: dict[str, ChecklistSection],
    accessories: Accessories,
    photo_urls: Sequence[str],
    signature_url: str | None,
) -> dict[str, Any]:
    return {
        "user_id": owner_id,
        "signature_url": signature_url,
        **_form_columns(form, checklists, accessories, photo_urls),
    }


def build_service_order_changes(
    form: ServiceOrderForm,
    *,
    checklists: dict[str, ChecklistSection],
    accessories: Accessories,
    photo_urls: Sequence[str],
) -> dict[str, Any]:
    """Columns an edit rewrites.  A blank order number keeps the stored one."""
    return _form_columns(form, checklists, accessories, photo_urls)


async def submit_service_order(
    session: SessionContext,
    form: ServiceOrderForm,
    *,
    checklists: dict[str, ChecklistSection],
    accessories: Accessories,
    photos: Sequence[ImageFile],
    signature_png: bytes | None,
    store: ServiceOrderStore,
    storage: ObjectStorage,
    compression: CompressionConfig | None = None,
) -> dict[str, Any]:
    """Compress and upload media, then insert the service order row."""
    user = session.require_user()
    compressed = await compress_images(photos, compression)
    try:
        photo_urls = await asyncio.gather(*(upload_image(storage, f) for f in compressed))
        signature_url = None
        if signature_png:
            signature_url = await upload_image(
                storage, ImageFile("signature.png", signature_png, "image/png")
            )
        row = build_service_order_row(
            user.user_id,
            form,
            checklists=checklists,
            accessories=accessories,
            photo_urls=photo_urls,
            signature_url=signature_url,
        )
        inserted = await store.insert_service_order(row)
    except OstecnicoError:
        raise
    except Exception as exc:
        LOGGER.error("Error submitting service order", exc_info=True)
        raise OperationError(str(exc) or exc.__class__.__name__) from exc
    LOGGER.info("Service order created for user %s with %d photo(s)", user.user_id, len(photo_urls))
    return inserted


async def edit_service_order(
    session: SessionContext,
    order_id: str,
    form: ServiceOrderForm,
    *,
    checklists: dict[str, ChecklistSection],
    accessories: Accessories,
    existing_photos: Sequence[str],
    new_photos: Sequence[ImageFile],
    store: ServiceOrderStore,
    storage: ObjectStorage,
    compression: CompressionConfig | None = None,
) -> dict[str, Any]:
    """Upload only *new_photos*, then rewrite the order the signed-in user owns.

    The stored photo list becomes ``existing_photos`` followed by the new
    uploads.  Signature columns are never touched by an edit.
    """
    user = session.require_user()
    compressed = await compress_images(new_photos, compression)
    try:
        new_urls = await asyncio.gather(*(upload_image(storage, f) for f in compressed))
        changes = build_service_order_changes(
            form,
            checklists=checklists,
            accessories=accessories,
            photo_urls=[*existing_photos, *new_urls],
        )
        updated = await store.update_service_order(order_id, changes, owner_id=user.user_id)
    except OstecnicoError:
        raise
    except Exception as exc:
        LOGGER.error("Error updating service order %s", order_id, exc_info=True)
        raise OperationError(str(exc) or exc.__class__.__name__) from exc
    if updated is None:
        raise OperationError(f"Ordem de serviço {order_id} não encontrada", code="NOT_FOUND")
    LOGGER.info("Service order %s updated with %d new photo(s)", order_id, len(new_urls))
    return updated


async def load_report(
    session: SessionContext,
    store: ServiceOrderStore,
    order_id: str,
) -> ServiceOrderReport:
    """Fetch the joined record for *order_id* owned by the signed-in user."""
    user = session.require_user()
    try:
        record = await store.fetch_report_record(order_id, user.user_id)
    except Exception as exc:
        LOGGER.error("Error fetching service order %s", order_id, exc_info=True)
        raise OperationError(str(exc) or exc.__class__.__name__) from exc
    if record is None:
        raise OperationError(f"Ordem de serviço {order_id} não encontrada", code="NOT_FOUND")
    return ServiceOrderReport.from_record(record)
