"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hr_payroll import __version__
from hr_payroll.api.routes import health_router, payroll_router
from hr_payroll.calculators.tax_calculator import InvalidTaxScheduleError
from hr_payroll.database import create_schema, dispose_db
from hr_payroll.periods import InvalidPeriodError
from hr_payroll.services import (
    InvalidPayrollConfigError,
    InvalidTransitionError,
    PayrollRunInProgressError,
    PayrollRunNotFoundError,
    PayrollRunTimeoutError,
    UnsupportedBankFormatError,
)

logger = logging.getLogger(__name__)

# Domain exception -> (HTTP status, error code)
ERROR_STATUS: dict[type[Exception], tuple[int, str]] = {
    InvalidPeriodError: (status.HTTP_400_BAD_REQUEST, "INVALID_PERIOD"),
    InvalidPayrollConfigError: (status.HTTP_400_BAD_REQUEST, "INVALID_CONFIG"),
    InvalidTaxScheduleError: (status.HTTP_400_BAD_REQUEST, "INVALID_TAX_SCHEDULE"),
    UnsupportedBankFormatError: (status.HTTP_400_BAD_REQUEST, "UNSUPPORTED_BANK_FORMAT"),
    PayrollRunNotFoundError: (status.HTTP_404_NOT_FOUND, "PAYROLL_RUN_NOT_FOUND"),
    PayrollRunInProgressError: (status.HTTP_409_CONFLICT, "PAYROLL_RUN_IN_PROGRESS"),
    InvalidTransitionError: (status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
    PayrollRunTimeoutError: (status.HTTP_504_GATEWAY_TIMEOUT, "PAYROLL_RUN_TIMEOUT"),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    await create_schema()
    yield
    # Shutdown
    await dispose_db()


def create_app(manage_database: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="HR Payroll API",
        description="Monthly payroll runs, payslips and payroll configuration",
        version=__version__,
        lifespan=lifespan if manage_database else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        status_code, code = next(
            ERROR_STATUS[cls] for cls in type(exc).__mro__ if cls in ERROR_STATUS
        )
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "code": code},
        )

    for exc_class in ERROR_STATUS:
        app.add_exception_handler(exc_class, domain_exception_handler)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
