"""Customer sign-off through the per-order signature link.

The link carries the order's ``signature_token``; no shop session is needed.
The customer confirms their CPF, draws a signature, and the PNG is stored
next to the order photos.  An order can be signed once.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .domain_models import ServiceOrderReport
from .errors import OperationError, OstecnicoError, failure_notice
from .image_compression import ImageFile
from .intake import ObjectStorage, ServiceOrderStore, upload_image

LOGGER = logging.getLogger(__name__)

INVALID_LINK_MESSAGE = "Ordem de serviço não encontrada ou link inválido."
_NON_DIGIT_RE = re.compile(r"\D")


@dataclass(frozen=True, slots=True)
class SignatureRequest:
    order_id: str
    order: ServiceOrderReport
    signed_at: str | None

    @property
    def already_signed(self) -> bool:
        return bool(self.signed_at)


def tax_id_digits(value: str | None) -> str:
    return _NON_DIGIT_RE.sub("", value or "")


def verify_customer_tax_id(expected: str | None, provided: str | None) -> bool:
    """CPFs match on digits only; an order without a CPF never matches."""
    digits = tax_id_digits(expected)
    return bool(digits) and digits == tax_id_digits(provided)


def signature_object_name() -> str:
    return f"client-{uuid.uuid4().hex}.png"


async def load_signature_request(store: ServiceOrderStore, token: str) -> SignatureRequest:
    token = (token or "").strip()
    record: dict[str, Any] | None = None
    if token:
        try:
            record = await store.fetch_by_signature_token(token)
        except Exception as exc:
            LOGGER.error("Error fetching order for signature link", exc_info=True)
            raise OperationError(str(exc) or exc.__class__.__name__) from exc
    if record is None:
        raise OperationError(INVALID_LINK_MESSAGE, code="NOT_FOUND")
    return SignatureRequest(
        order_id=str(record.get("id") or ""),
        order=ServiceOrderReport.from_record(record),
        signed_at=record.get("client_signed_at") or None,
    )


async def sign_service_order(
    store: ServiceOrderStore,
    storage: ObjectStorage,
    token: str,
    *,
    tax_id: str,
    signature_png: bytes,
) -> dict[str, Any]:
    """Record the customer's signature and move the order to ``em_atendimento``."""
    request = await load_signature_request(store, token)
    if request.already_signed:
        raise OperationError("Esta ordem de serviço já foi assinada.", code="ALREADY_SIGNED")
    if not verify_customer_tax_id(request.order.customer.tax_id, tax_id):
        raise OperationError("CPF não confere com o cadastro do cliente.", code="TAX_ID_MISMATCH")
    if not signature_png:
        raise OperationError("Assinatura vazia.", code="EMPTY_SIGNATURE")
    try:
        url = await upload_image(
            storage,
            ImageFile("signature.png", signature_png, "image/png"),
            name=signature_object_name(),
        )
        changes = {
            "client_signature_url": url,
            "client_signed_at": datetime.now(UTC).isoformat(),
            "status": "em_atendimento",
        }
        updated = await store.update_service_order(request.order_id, changes)
    except OstecnicoError:
        raise
    except Exception as exc:
        LOGGER.error("Error saving client signature for order %s", request.order_id, exc_info=True)
        raise OperationError(failure_notice("salvar assinatura", exc)) from exc
    if updated is None:
        raise OperationError(INVALID_LINK_MESSAGE, code="NOT_FOUND")
    LOGGER.info("Client signature recorded for order %s", request.order_id)
    return updated
