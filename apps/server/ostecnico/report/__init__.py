"""ostecnico.report – service-order PDF composition."""

from .pdf_builder import (
    ComposedReport,
    PhotoCell,
    build_service_order_pdf,
    compose_report,
    generate_report,
)

__all__ = [
    "ComposedReport",
    "PhotoCell",
    "build_service_order_pdf",
    "compose_report",
    "generate_report",
]
