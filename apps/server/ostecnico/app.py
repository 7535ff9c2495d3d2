"""FastAPI application wiring and the ``ostecnico-server`` entry point."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from . import __version__
from .config import AppConfig, load_config
from .intake import ServiceOrderStore
from .report.images import ImageLoader, load_image
from .routes import create_router
from .session import SessionContext

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RuntimeState:
    config: AppConfig
    session: SessionContext = field(default_factory=SessionContext)
    store: ServiceOrderStore | None = None
    image_loader: ImageLoader = load_image


def create_app(
    config_path: Path | None = None,
    *,
    store: ServiceOrderStore | None = None,
    session: SessionContext | None = None,
) -> FastAPI:
    config = load_config(config_path)
    LOGGER.info("Loaded config from %s", config.config_path)
    runtime = RuntimeState(
        config=config,
        session=session or SessionContext(),
        store=store,
    )
    app = FastAPI(title="OSTecnico", version=__version__)
    app.state.runtime = runtime
    app.include_router(create_router(runtime))
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Run OSTecnico report server")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    args = parser.parse_args()

    runtime_app = create_app(config_path=args.config)
    runtime: RuntimeState = runtime_app.state.runtime
    logging.basicConfig(
        level=runtime.config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        runtime_app,
        host=runtime.config.server.host,
        port=runtime.config.server.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
