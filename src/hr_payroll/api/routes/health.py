"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from hr_payroll import __version__
from hr_payroll.api.dependencies import DbSession
from hr_payroll.models import PayrollRun

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: datetime
    database: str
    # Runs currently in processing; a value that never drops hints at a stuck run
    processing_runs: int | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession) -> HealthResponse:
    """Check API and database health."""
    db_status = "unhealthy"
    processing_runs = None
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
        result = await db.execute(
            select(func.count())
            .select_from(PayrollRun)
            .where(PayrollRun.status == "processing")
        )
        processing_runs = result.scalar_one()
    except SQLAlchemyError:
        pass

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        database=db_status,
        processing_runs=processing_runs,
    )


@router.get("/ready")
async def readiness_check(db: DbSession) -> JSONResponse:
    """Ready once the payroll tables can be queried."""
    try:
        await db.execute(select(PayrollRun.payroll_run_id).limit(1))
    except SQLAlchemyError:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready"},
        )
    return JSONResponse(content={"status": "ready"})


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
