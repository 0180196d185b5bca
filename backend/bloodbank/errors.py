from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from bloodbank.logging_utils import log_json


logger = logging.getLogger(__name__)


class BloodBankError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(BloodBankError):
    status_code = 400


class AuthenticationFailed(BloodBankError):
    status_code = 401


class PermissionDenied(BloodBankError):
    status_code = 403


class NotFound(BloodBankError):
    status_code = 404


class Conflict(BloodBankError):
    status_code = 409


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BloodBankError)
    async def handle_domain_error(request: Request, exc: BloodBankError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)

    @app.exception_handler(PyMongoError)
    async def handle_database_error(request: Request, exc: PyMongoError) -> JSONResponse:
        log_json(
            logger,
            "database_error",
            level=logging.ERROR,
            request_id=getattr(request.state, "request_id", ""),
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(status_code=503, content={"detail": "Database unavailable"})
