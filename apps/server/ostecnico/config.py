from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

SERVER_DIR = Path(__file__).resolve().parents[1]
"""Root of the ``apps/server/`` package tree."""

LOGGER = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_CONFIG: dict[str, Any] = {
    "report": {
        "company_name": "OSTECNICO",
        "subtitle": "Ordem de Serviço",
        "logo_path": "assets/logo-full.jpg",
        "language": "pt",
        "photo_timeout_s": 5.0,
        "output_dir": "reports",
    },
    "compression": {
        "max_dimension": 1280,
        "min_kb": 200,
        "max_kb": 350,
        "target_mb": 0.3,
        "initial_quality": 0.8,
        "undershoot_quality": 0.9,
        "overshoot_target_mb": 0.25,
        "overshoot_quality": 0.7,
    },
    "server": {"host": "0.0.0.0", "port": 8000},
    "logging": {"level": "INFO"},
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _resolve_config_path(path_text: str, config_path: Path) -> Path:
    path = Path(path_text)
    if path.is_absolute():
        return path
    return config_path.resolve().parent / path


@dataclass(slots=True)
class ReportConfig:
    company_name: str
    subtitle: str
    logo_path: Path | None
    language: str
    photo_timeout_s: float
    output_dir: Path

    def __post_init__(self) -> None:
        if not isinstance(self.photo_timeout_s, (int, float)) or self.photo_timeout_s <= 0:
            LOGGER.warning(
                "report.photo_timeout_s=%s is not positive — using 5.0",
                self.photo_timeout_s,
            )
            object.__setattr__(self, "photo_timeout_s", 5.0)


@dataclass(slots=True)
class CompressionConfig:
    max_dimension: int
    min_kb: int
    max_kb: int
    target_mb: float
    initial_quality: float
    undershoot_quality: float
    overshoot_target_mb: float
    overshoot_quality: float

    def __post_init__(self) -> None:
        if not isinstance(self.max_dimension, int) or self.max_dimension < 16:
            LOGGER.warning(
                "compression.max_dimension=%s is below minimum 16 — clamped to 16",
                self.max_dimension,
            )
            object.__setattr__(self, "max_dimension", 16)
        if self.min_kb < 0 or self.max_kb <= self.min_kb:
            raise ValueError(
                f"compression window must satisfy 0 <= min_kb < max_kb, "
                f"got [{self.min_kb}, {self.max_kb}]"
            )
        for name in ("initial_quality", "undershoot_quality", "overshoot_quality"):
            val = getattr(self, name)
            if not 0.0 < val <= 1.0:
                clamped = min(1.0, max(0.1, val))
                LOGGER.warning("compression.%s=%s is outside (0, 1] — clamped to %s", name, val, clamped)
                object.__setattr__(self, name, clamped)
        for name in ("target_mb", "overshoot_target_mb"):
            if getattr(self, name) <= 0:
                raise ValueError(f"compression.{name} must be positive, got {getattr(self, name)!r}")

    @property
    def min_bytes(self) -> int:
        return int(self.min_kb * 1024)

    @property
    def max_bytes(self) -> int:
        return int(self.max_kb * 1024)


@dataclass(slots=True)
class ServerConfig:
    host: str
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ValueError(f"ServerConfig.port must be 1–65535, got {self.port!r}")


@dataclass(slots=True)
class LoggingConfig:
    level: str

    def __post_init__(self) -> None:
        level = str(self.level).strip().upper()
        if level not in VALID_LOG_LEVELS:
            LOGGER.warning("logging.level=%r is not a valid level — using INFO", self.level)
            level = "INFO"
        object.__setattr__(self, "level", level)


@dataclass(slots=True)
class AppConfig:
    report: ReportConfig
    compression: CompressionConfig
    server: ServerConfig
    logging: LoggingConfig
    config_path: Path


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML object at the top level.")
        return data


def default_config() -> AppConfig:
    """Return the built-in defaults without reading any file."""
    return load_config(SERVER_DIR / "config.yaml", read_file=False)


def load_config(config_path: Path | None = None, *, read_file: bool = True) -> AppConfig:
    path = config_path or (SERVER_DIR / "config.yaml")
    path = path.resolve()
    override = _read_config_file(path) if read_file else {}
    merged = _deep_merge(deepcopy(DEFAULT_CONFIG), override)

    report_cfg = merged["report"]
    logo_raw = report_cfg.get("logo_path")
    logo_path = (
        _resolve_config_path(str(logo_raw), path)
        if isinstance(logo_raw, str) and logo_raw.strip()
        else None
    )
    language = str(report_cfg.get("language") or "pt").strip().lower()

    server_port = int(merged["server"]["port"])
    if not 1 <= server_port <= 65535:
        raise ValueError(f"server.port must be 1-65535, got {server_port}")

    comp = merged["compression"]
    return AppConfig(
        report=ReportConfig(
            company_name=str(report_cfg["company_name"]),
            subtitle=str(report_cfg["subtitle"]),
            logo_path=logo_path,
            language=language,
            photo_timeout_s=float(report_cfg.get("photo_timeout_s", 5.0)),
            output_dir=_resolve_config_path(str(report_cfg.get("output_dir") or "reports"), path),
        ),
        compression=CompressionConfig(
            max_dimension=int(comp["max_dimension"]),
            min_kb=int(comp["min_kb"]),
            max_kb=int(comp["max_kb"]),
            target_mb=float(comp["target_mb"]),
            initial_quality=float(comp["initial_quality"]),
            undershoot_quality=float(comp["undershoot_quality"]),
            overshoot_target_mb=float(comp["overshoot_target_mb"]),
            overshoot_quality=float(comp["overshoot_quality"]),
        ),
        server=ServerConfig(host=str(merged["server"]["host"]), port=server_port),
        logging=LoggingConfig(level=str(merged["logging"].get("level", "INFO"))),
        config_path=path,
    )
