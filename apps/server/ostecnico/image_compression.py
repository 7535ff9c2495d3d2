"""Pre-upload image normalization.

Photos are re-encoded to JPEG so each upload lands in a bounded size window
(200–350 KB by default) at no more than 1280 px on the longer side.  A first
pass targets 0.3 MB at quality 0.8; an undershoot is retried once at quality
0.9, an overshoot once at 0.25 MB / quality 0.7.  If anything goes wrong the
original file is returned untouched so the upload can still proceed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from io import BytesIO
from pathlib import PurePath

from PIL import Image, ImageOps

from .config import CompressionConfig, default_config

LOGGER = logging.getLogger(__name__)

QUALITY_STEP = 0.1
MIN_QUALITY = 0.1


@dataclass(frozen=True, slots=True)
class ImageFile:
    name: str
    data: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class CompressionPass:
    max_size_mb: float
    quality: float

    @property
    def max_bytes(self) -> int:
        return int(self.max_size_mb * 1024 * 1024)


def _prepare(data: bytes, max_dimension: int) -> Image.Image:
    with Image.open(BytesIO(data)) as src:
        src.load()
        image = ImageOps.exif_transpose(src)
        if image.mode != "RGB":
            image = image.convert("RGB")
        else:
            image = image.copy()
    if max(image.size) > max_dimension:
        image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
    return image


def _encode(image: Image.Image, quality: float) -> bytes:
    out = BytesIO()
    image.save(out, format="JPEG", quality=max(1, min(95, round(quality * 100))), optimize=True)
    return out.getvalue()


def _run_pass(data: bytes, opts: CompressionPass, max_dimension: int) -> bytes:
    """Encode once, then step quality down until the pass target is met."""
    image = _prepare(data, max_dimension)
    quality = opts.quality
    encoded = _encode(image, quality)
    while len(encoded) > opts.max_bytes and quality - QUALITY_STEP >= MIN_QUALITY - 1e-9:
        quality = round(quality - QUALITY_STEP, 2)
        encoded = _encode(image, quality)
    return encoded


def _jpeg_name(name: str) -> str:
    stem = PurePath(name).stem or "image"
    return f"{stem}.jpg"


def compress_image(file: ImageFile, config: CompressionConfig | None = None) -> ImageFile:
    """Re-encode *file* into the configured size window; return it unchanged on failure."""
    cfg = config or default_config().compression
    try:
        encoded = _run_pass(
            file.data,
            CompressionPass(cfg.target_mb, cfg.initial_quality),
            cfg.max_dimension,
        )
        if len(encoded) < cfg.min_bytes:
            encoded = _run_pass(
                file.data,
                CompressionPass(cfg.target_mb, cfg.undershoot_quality),
                cfg.max_dimension,
            )
        if len(encoded) > cfg.max_bytes:
            encoded = _run_pass(
                file.data,
                CompressionPass(cfg.overshoot_target_mb, cfg.overshoot_quality),
                cfg.max_dimension,
            )
    except Exception:
        LOGGER.warning("Error compressing image %s; using original", file.name, exc_info=True)
        return file

    LOGGER.info(
        "Image compressed: %.2fKB → %.2fKB",
        file.size / 1024,
        len(encoded) / 1024,
    )
    return ImageFile(name=_jpeg_name(file.name), data=encoded, content_type="image/jpeg")


async def compress_images(
    files: Sequence[ImageFile],
    config: CompressionConfig | None = None,
) -> list[ImageFile]:
    """Compress all *files* concurrently; results keep the input order."""
    cfg = config or default_config().compression
    return list(await asyncio.gather(*(asyncio.to_thread(compress_image, f, cfg) for f in files)))
