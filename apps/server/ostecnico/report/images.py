"""Best-effort image loading for the report composer.

Remote photo URLs are fetched with ``urllib`` under a total deadline; local paths
(the brand logo) are read from disk.  Every failure surfaces as
:class:`~ostecnico.errors.ImageLoadError` so the composer can substitute a
placeholder without knowing what went wrong.
"""

from __future__ import annotations

import http.client
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from urllib.request import Request, urlopen

from PIL import Image, ImageOps
from reportlab.lib.utils import ImageReader

from ..errors import ImageLoadError

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 5.0
MAX_IMAGE_BYTES = 25 * 1024 * 1024
_USER_AGENT = "ostecnico-report/1"
_READ_CHUNK = 16 * 1024


@dataclass(frozen=True, slots=True)
class LoadedImage:
    width: int
    height: int
    reader: ImageReader


ImageLoader = Callable[[str, float], LoadedImage]


def _read_remote(url: str, timeout_s: float) -> bytes:
    # The socket timeout only bounds each recv; the deadline bounds the whole body.
    deadline = time.monotonic() + timeout_s
    req = Request(url, headers={"User-Agent": _USER_AGENT})
    body = bytearray()
    with urlopen(req, timeout=timeout_s) as resp:  # noqa: S310 - scheme checked by caller
        while True:
            if time.monotonic() >= deadline:
                raise ImageLoadError(f"Timed out after {timeout_s:g}s fetching {url}")
            chunk = resp.read1(_READ_CHUNK)
            if not chunk:
                break
            body += chunk
            if len(body) > MAX_IMAGE_BYTES:
                raise ImageLoadError(f"Image exceeds {MAX_IMAGE_BYTES} bytes: {url}")
    return bytes(body)


def _read_local(path_text: str) -> bytes:
    path = Path(path_text)
    if not path.is_file():
        raise ImageLoadError(f"Image file not found: {path}")
    return path.read_bytes()


def image_from_bytes(data: bytes) -> LoadedImage:
    with Image.open(BytesIO(data)) as src:
        src.load()
        image = ImageOps.exif_transpose(src)
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        else:
            image = image.copy()
    return LoadedImage(width=image.width, height=image.height, reader=ImageReader(image))


def load_image(ref: str, timeout_s: float = DEFAULT_TIMEOUT_S) -> LoadedImage:
    """Fetch and decode *ref* (http(s) URL or local path)."""
    ref = str(ref or "").strip()
    if not ref:
        raise ImageLoadError("Empty image reference")
    try:
        if ref.startswith(("http://", "https://")):
            data = _read_remote(ref, timeout_s)
        else:
            data = _read_local(ref)
        return image_from_bytes(data)
    except ImageLoadError:
        raise
    except (OSError, ValueError, http.client.HTTPException, Image.DecompressionBombError) as exc:
        # URLError, socket timeouts and UnidentifiedImageError are all OSError.
        raise ImageLoadError(f"Could not load image {ref!r}: {exc}") from exc
