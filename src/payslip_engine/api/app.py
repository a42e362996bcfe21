"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payslip_engine.api.routes import health_router, payslips_router, shifts_router
from payslip_engine.calculators.engine import InvalidEditError
from payslip_engine.calculators.payroll_config import InvalidPayrollConfigError
from payslip_engine.calculators.types import MissingContractTermsError
from payslip_engine.config import get_settings
from payslip_engine.database import create_schema, dispose_db, init_db
from payslip_engine.scheduling.intervals import InvalidIntervalError
from payslip_engine.services.locking_service import (
    EmptyBatchError,
    MixedBatchError,
    ReopenReasonRequiredError,
)
from payslip_engine.services.payslip_store import ConcurrentFinalizationError, PayslipLockedError
from payslip_engine.services.state_machine import InvalidTransitionError

logger = logging.getLogger(__name__)

# Domain error -> (HTTP status, error code)
ERROR_RESPONSES: dict[type[Exception], tuple[int, str]] = {
    MissingContractTermsError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "MISSING_CONTRACT_TERMS"),
    InvalidEditError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_EDIT"),
    InvalidIntervalError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_INTERVAL"),
    InvalidPayrollConfigError: (status.HTTP_500_INTERNAL_SERVER_ERROR, "INVALID_PAYROLL_CONFIG"),
    ReopenReasonRequiredError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "REOPEN_REASON_REQUIRED"),
    EmptyBatchError: (status.HTTP_404_NOT_FOUND, "EMPTY_BATCH"),
    MixedBatchError: (status.HTTP_400_BAD_REQUEST, "MIXED_BATCH"),
    InvalidTransitionError: (status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
    ConcurrentFinalizationError: (status.HTTP_409_CONFLICT, "CONCURRENT_FINALIZATION"),
    PayslipLockedError: (status.HTTP_409_CONFLICT, "LOCKED"),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create missing tables on startup unless disabled; close the pool on shutdown."""
    engine, _ = init_db()
    if get_settings().create_schema:
        await create_schema(engine)
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Payslip Engine API",
        description="Monthly payslip calculation and shift approval",
        version="0.1.0",
        lifespan=lifespan,
    )

    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Map a domain error to its status code and error code."""
        status_code, code = next(
            ERROR_RESPONSES[cls] for cls in type(exc).__mro__ if cls in ERROR_RESPONSES
        )
        if status_code >= 500:
            logger.error("%s on %s: %s", code, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})

    for exc_class in ERROR_RESPONSES:
        app.add_exception_handler(exc_class, domain_exception_handler)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payslips_router, prefix="/api/v1")
    app.include_router(shifts_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
