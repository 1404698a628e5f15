# =======================================================================================
# rfid_gate/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .config import config
from .api.routes.channels import router as channels_router
from .api.routes.health import router as health_router
from .api.routes.scan import router as scan_router
from .logging_utils import configure_logging
from .workers.supervisor import ReaderSupervisor

logger = logging.getLogger(__name__)


def create_app(supervisor: Optional[ReaderSupervisor] = None, start_workers: bool = True) -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="RFID Gate Access Bridge",
        version="1.0.0",
        description="Bridges community gate RFID readers to the resident store",
        debug=config.API_DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(channels_router, prefix="/api", tags=["channels"])
    app.include_router(scan_router, prefix="/api", tags=["scan"])

    app.state.supervisor = supervisor

    # to keep plain /health for load balancers
    @app.get("/health")
    def legacy_health():
        return {"status": "ok"}

    @app.on_event("startup")
    async def startup_event():
        if app.state.supervisor is None:
            app.state.supervisor = ReaderSupervisor.from_config(config)
        if start_workers:
            app.state.supervisor.start()
        logger.info("RFID Gate Access Bridge started")

    @app.on_event("shutdown")
    async def shutdown_event():
        if app.state.supervisor is not None:
            app.state.supervisor.stop()
        logger.info("RFID Gate Access Bridge stopped")

    return app


app = create_app()
