"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.dependencies import get_db
from app.schemas import HealthCheckResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Return service health status.

    Checks database connectivity and reports whether periodic scraping
    is enabled.
    """
    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        db_status = "ok"
    except SQLAlchemyError as e:
        db_status = f"error: {str(e)}"

    scheduler_status = "enabled" if settings.SCRAPE_SCHEDULE_ENABLED else "disabled"

    return HealthCheckResponse(
        status="ok" if db_status == "ok" else "degraded",
        database=db_status,
        scheduler=scheduler_status,
        services={"database": db_status},
    )
