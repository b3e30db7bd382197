# main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse

# Import logging utilities early so that the logger configuration is
# applied before any other modules emit log messages.
from tablero.logging_config import logger
import json
import time

from tablero.clients.http_client import HTTPClient
from tablero.clients.store_client import StoreClient
from tablero.core.config import get_settings
from tablero.routes.passes import router as passes_router
from tablero.routes.reports import router as reports_router
from tablero.services.pass_service import PassBuilder
from tablero.services.report_service import ReportContext


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    # cliente HTTP compartido, conexiones reutilizadas
    app.state.http_client = HTTPClient(settings)
    store = StoreClient(app.state.http_client, settings)
    app.state.reports = ReportContext.from_store(store, settings)
    app.state.pass_builder = PassBuilder(settings, store)
    try:
        yield
    finally:
        app.state.http_client.close()


def create_app() -> FastAPI:
    app = FastAPI(title="Tablero de sucursales", default_response_class=ORJSONResponse, lifespan=lifespan)

    app.include_router(reports_router)
    app.include_router(passes_router)

    @app.middleware("http")  # type: ignore[misc]
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000
        try:
            logger.info(json.dumps({
                "event": "http_request",
                "path": request.url.path,
                "method": request.method,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            }))
        except Exception:
            logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({round(duration_ms,2)} ms)")
        return response

    return app


app = create_app()
