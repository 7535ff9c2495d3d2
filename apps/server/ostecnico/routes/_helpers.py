"""Shared route helpers used across multiple route modules."""

from __future__ import annotations

import re
from urllib.parse import quote

from fastapi.responses import Response

_SAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9._-]")


def safe_filename(name: str) -> str:
    """Sanitize *name* for use in Content-Disposition headers."""
    return _SAFE_FILENAME_RE.sub("_", name)[:200] or "download"


def content_disposition(filename: str) -> str:
    """ASCII ``filename`` for old clients plus RFC 5987 ``filename*`` with the real name."""
    ascii_name = safe_filename(filename)
    utf8_name = quote(filename[:200], safe="") or ascii_name
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{utf8_name}"


def pdf_response(pdf: bytes, filename: str) -> Response:
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition(filename)},
    )
