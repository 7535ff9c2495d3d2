"""Shared test helpers for the ostecnico test suite."""

from __future__ import annotations

import dataclasses
from io import BytesIO
from typing import Any

import pytest
from PIL import Image

from ostecnico.config import ReportConfig, default_config
from ostecnico.domain_models import ServiceOrderReport
from ostecnico.errors import ImageLoadError
from ostecnico.report.images import LoadedImage, image_from_bytes
from ostecnico.session import SessionContext

# ---------------------------------------------------------------------------
# PDF text extraction helper
# ---------------------------------------------------------------------------


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """Extract all text from a PDF byte string using pypdf."""
    from pypdf import PdfReader

    reader = PdfReader(BytesIO(pdf_bytes))
    return "\n".join((page.extract_text() or "") for page in reader.pages)


def extract_pdf_pages(pdf_bytes: bytes) -> list[str]:
    """Text of each page, in page order."""
    from pypdf import PdfReader

    return [(page.extract_text() or "") for page in PdfReader(BytesIO(pdf_bytes)).pages]


def pdf_page_count(pdf_bytes: bytes) -> int:
    from pypdf import PdfReader

    return len(PdfReader(BytesIO(pdf_bytes)).pages)


# ---------------------------------------------------------------------------
# Image helpers
# ---------------------------------------------------------------------------


def make_image_bytes(
    size: tuple[int, int] = (64, 48),
    *,
    fmt: str = "PNG",
    color: tuple[int, int, int] = (0, 153, 255),
) -> bytes:
    out = BytesIO()
    Image.new("RGB", size, color).save(out, format=fmt)
    return out.getvalue()


class StubImageLoader:
    """Image loader that never touches the network.

    References containing ``broken`` raise :class:`ImageLoadError`; anything
    else decodes a small generated PNG.  Every call is recorded.
    """

    def __init__(self, fail_marker: str = "broken") -> None:
        self.fail_marker = fail_marker
        self.calls: list[tuple[str, float]] = []

    def __call__(self, ref: str, timeout_s: float) -> LoadedImage:
        self.calls.append((ref, timeout_s))
        if self.fail_marker in ref:
            raise ImageLoadError(f"unreachable: {ref}")
        return image_from_bytes(make_image_bytes((120, 90)))


# ---------------------------------------------------------------------------
# Record fixtures
# ---------------------------------------------------------------------------


def build_record(**overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "os_number": 42,
        "created_at": "2024-03-05T14:30:00Z",
        "customers": [{"name": "Ana Maria", "cpf": "123.456.789-00", "phone": "(11) 99999-0000"}],
        "technicians": {"name": "Carlos"},
        "equipment": "Notebook Dell Inspiron",
        "serial_number": "SN-998877",
        "problem_description": "Não liga após queda de energia.",
        "physical_condition": [
            {"label": "Tela", "status": "ok", "observation": ""},
            {"label": "Teclado", "status": "defect", "observation": "Tecla A solta"},
            {"label": "Dobradiças", "status": "na", "observation": ""},
        ],
        "operating_condition": [
            {"label": "Liga normalmente", "status": "defect", "observation": "Sem sinal"},
        ],
        "technical_tests": [],
        "accessories_received": {"fonte": True, "cabo": False, "mochila": True, "outro": ""},
        "technician_observation": "Cliente autorizou orçamento.",
        "status": "em_atendimento",
        "client_signed_at": None,
        "photos": [],
    }
    record.update(overrides)
    return record


@pytest.fixture
def sample_record() -> dict[str, Any]:
    return build_record()


@pytest.fixture
def sample_order(sample_record: dict[str, Any]) -> ServiceOrderReport:
    return ServiceOrderReport.from_record(sample_record)


@pytest.fixture
def report_config(tmp_path) -> ReportConfig:
    """Default report settings without a logo, writing into *tmp_path*."""
    return dataclasses.replace(
        default_config().report,
        logo_path=None,
        output_dir=tmp_path / "reports",
    )


@pytest.fixture
def stub_loader() -> StubImageLoader:
    return StubImageLoader()


# ---------------------------------------------------------------------------
# In-memory backend collaborators
# ---------------------------------------------------------------------------


class FakeStorage:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.buckets: list[str] = []

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise ConnectionError("storage offline")
        self.buckets.append(bucket)
        self.objects[path] = (data, content_type)
        return f"https://storage.example/{bucket}/{path}"


class FakeStore:
    """``service_orders`` keyed by id; owner scoping follows ``user_id``."""

    def __init__(
        self, records: dict[str, dict[str, Any]] | None = None, fail: bool = False
    ) -> None:
        self.rows: list[dict[str, Any]] = []
        self.records = records or {}
        self.updates: list[tuple[str, dict[str, Any], str | None]] = []
        self.fail = fail

    def _check(self) -> None:
        if self.fail:
            raise ConnectionError("database offline")

    def _owned(self, order_id: str, owner_id: str | None) -> dict[str, Any] | None:
        record = self.records.get(order_id)
        if record is None or (owner_id is not None and record.get("user_id") != owner_id):
            return None
        return record

    async def insert_service_order(self, row: dict[str, Any]) -> dict[str, Any]:
        self._check()
        self.rows.append(row)
        return {"id": f"order-{len(self.rows)}", **row}

    async def fetch_report_record(self, order_id: str, owner_id: str) -> dict[str, Any] | None:
        self._check()
        return self._owned(order_id, owner_id)

    async def fetch_service_order(self, order_id: str, owner_id: str) -> dict[str, Any] | None:
        self._check()
        record = self._owned(order_id, owner_id)
        return dict(record) if record is not None else None

    async def fetch_by_signature_token(self, token: str) -> dict[str, Any] | None:
        self._check()
        for order_id, record in self.records.items():
            if record.get("signature_token") == token:
                return {"id": order_id, **record}
        return None

    async def update_service_order(
        self, order_id: str, changes: dict[str, Any], *, owner_id: str | None = None
    ) -> dict[str, Any] | None:
        self._check()
        self.updates.append((order_id, changes, owner_id))
        record = self._owned(order_id, owner_id)
        if record is None:
            return None
        record.update(changes)
        return {"id": order_id, **record}

    async def delete_service_order(self, order_id: str, owner_id: str) -> bool:
        self._check()
        if self._owned(order_id, owner_id) is None:
            return False
        del self.records[order_id]
        return True


@pytest.fixture
def session() -> SessionContext:
    ctx = SessionContext()
    ctx.sign_in("user-1")
    return ctx
