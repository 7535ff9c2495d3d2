"""HTTP routes.

One module per concern, each exposing ``create_<concern>_routes(state)``;
:func:`create_router` mounts them all on a single router for the app.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from .health import create_health_routes
from .reports import create_report_routes

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_router(state: RuntimeState) -> APIRouter:
    router = APIRouter()
    for build in (create_health_routes, create_report_routes):
        router.include_router(build(state))
    return router
