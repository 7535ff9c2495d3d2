"""Service-order PDF report endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from ..api_models import ServiceOrderRecordModel
from ..domain_models import ServiceOrderReport, report_filename
from ..errors import NotAuthenticatedError, OperationError, OstecnicoError
from ..intake import load_report
from ..report.pdf_builder import build_service_order_pdf
from ._helpers import pdf_response

if TYPE_CHECKING:
    from ..app import RuntimeState

LOGGER = logging.getLogger(__name__)


def create_report_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    async def _render(order: ServiceOrderReport) -> Response:
        try:
            pdf = await asyncio.to_thread(
                build_service_order_pdf,
                order,
                config=state.config.report,
                image_loader=state.image_loader,
            )
        except OstecnicoError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return pdf_response(pdf, report_filename(order))

    @router.post("/api/service-orders/report.pdf")
    async def render_service_order_pdf(record: ServiceOrderRecordModel) -> Response:
        order = ServiceOrderReport.from_record(record.to_record())
        return await _render(order)

    @router.get("/api/service-orders/{order_id}/report.pdf")
    async def download_service_order_pdf(order_id: str) -> Response:
        if state.store is None:
            raise HTTPException(status_code=503, detail="Service order store not configured")
        try:
            order = await load_report(state.session, state.store, order_id)
        except NotAuthenticatedError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        except OperationError as exc:
            if exc.code == "NOT_FOUND":
                raise HTTPException(status_code=404, detail=str(exc)) from exc
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return await _render(order)

    return router
