"""Labels for the printed service order.

The catalog lives in ``ostecnico/data/report_i18n.json`` as
``{KEY: {"pt": ..., "en": ...}}``.  Portuguese is the shop's working
language and the fallback for every lookup.
"""

from __future__ import annotations

import json
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any

_DATA_FILE = Path(__file__).resolve().parent / "data" / "report_i18n.json"

DEFAULT_LANG = "pt"
SUPPORTED_LANGS: tuple[str, ...] = ("pt", "en")


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


@lru_cache(maxsize=1)
def _catalog() -> dict[str, dict[str, str]]:
    try:
        raw = _DATA_FILE.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RuntimeError(f"Missing translation file: {_DATA_FILE}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Invalid translation file: {_DATA_FILE}") from exc
    if not isinstance(data, dict):
        raise RuntimeError(f"Invalid translation file: {_DATA_FILE}")
    return data


def normalize_lang(lang: object) -> str:
    """``"en-US"`` -> ``"en"``; anything unsupported -> ``"pt"``."""
    if not isinstance(lang, str):
        return DEFAULT_LANG
    base = lang.strip().lower().replace("_", "-").split("-", 1)[0]
    return base if base in SUPPORTED_LANGS else DEFAULT_LANG


def tr(lang: object, key: str, **kwargs: Any) -> str:
    entry = _catalog().get(key) or {}
    template = entry.get(normalize_lang(lang)) or entry.get(DEFAULT_LANG) or key
    if not kwargs:
        return template
    return template.format_map(_KeepMissing(kwargs))


def format_date(lang: object, value: datetime | None, fallback: str = "") -> str:
    if value is None:
        return fallback
    return value.strftime(tr(lang, "DATE_FORMAT"))
