from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from contextlib import asynccontextmanager
from uuid import uuid4

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError
from starlette.middleware.base import BaseHTTPMiddleware

from bloodbank.config import Settings, get_settings
from bloodbank.database import Database
from bloodbank.errors import register_exception_handlers
from bloodbank.logging_utils import configure_logging, log_json
from bloodbank.models import ApiDescriptor, EndpointMap
from bloodbank.routes import admin, auth, blood_lab, donor, facility, hospital
from bloodbank.services.accounts import AccountService
from bloodbank.services.store import DocumentStore, MongoStore


logger = logging.getLogger(__name__)

API_NAME = "Blood Bank Management System API"
API_VERSION = "1.0.0"

# Root descriptor key -> mount prefix
ENDPOINT_PATHS = {
    "auth": "/api/auth",
    "donor": "/api/donor",
    "facility": "/api/facility",
    "admin": "/api/admin",
    "bloodLab": "/api/blood-lab",
    "hospital": "/api/hospital",
}

DEFAULT_ROUTERS: dict[str, APIRouter] = {
    ENDPOINT_PATHS["auth"]: auth.router,
    ENDPOINT_PATHS["donor"]: donor.router,
    ENDPOINT_PATHS["facility"]: facility.router,
    ENDPOINT_PATHS["admin"]: admin.router,
    ENDPOINT_PATHS["bloodLab"]: blood_lab.router,
    ENDPOINT_PATHS["hospital"]: hospital.router,
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_started = time.perf_counter()
        request_id = str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        log_json(
            logger,
            "http_request",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            total_ms=int((time.perf_counter() - request_started) * 1000),
        )
        return response


def _startup(app: FastAPI) -> None:
    settings: Settings = app.state.settings
    database: Database | None = app.state.database
    if settings.is_serverless and settings.uses_default_jwt_secret:
        log_json(logger, "default_jwt_secret", level=logging.WARNING, hint="set JWT_SECRET for this deployment")

    if database is not None and not database.connect():
        # Requests are still served; handlers that reach the store answer 503.
        return

    if settings.admin_email and settings.admin_password:
        try:
            AccountService(app.state.store, settings).ensure_admin(settings.admin_email, settings.admin_password)
        except PyMongoError as exc:
            log_json(logger, "admin_seed_failed", level=logging.ERROR, error=str(exc))


@asynccontextmanager
async def lifespan(app: FastAPI):
    _startup(app)
    yield
    if app.state.database is not None:
        app.state.database.close()


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    routers: Mapping[str, APIRouter] | None = None,
) -> FastAPI:
    """Build a fresh application.

    Without an explicit ``store`` the app talks to MongoDB through a
    ``Database`` built from ``settings``; one connection attempt is made at
    startup and its failure is only logged.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=API_NAME, version=API_VERSION, lifespan=lifespan)
    app.state.settings = settings
    if store is None:
        app.state.database = Database.from_settings(settings)
        app.state.store = MongoStore(app.state.database)
    else:
        app.state.database = None
        app.state.store = store

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/", response_model=ApiDescriptor)
    async def root() -> ApiDescriptor:
        return ApiDescriptor(message=API_NAME, version=API_VERSION, endpoints=EndpointMap(**ENDPOINT_PATHS))

    for prefix, router in (routers if routers is not None else DEFAULT_ROUTERS).items():
        app.include_router(router, prefix=prefix)

    return app


app = create_app()


def run(settings: Settings | None = None) -> None:
    """Serve the application on the configured port unless running on Vercel."""
    application = app if settings is None else create_app(settings)
    settings = application.state.settings
    if settings.is_serverless:
        log_json(logger, "server_skipped", reason="serverless")
        return

    log_json(logger, "server_starting", host=settings.host, port=settings.port)
    uvicorn.run(application, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
