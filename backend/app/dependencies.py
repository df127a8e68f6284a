"""FastAPI dependency injection providers."""

import secrets
from typing import AsyncGenerator, Optional

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.session import async_session_factory
from app.scrapers.coordinator import RunGuard, ScrapeCoordinator

logger = structlog.get_logger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)

# One guard per process, shared with the scheduler
run_guard = RunGuard()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for request-scoped usage.

    The session is automatically committed on success or rolled back on error.
    Always closed after the request completes.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_run_guard() -> RunGuard:
    return run_guard


async def get_coordinator(db: AsyncSession = Depends(get_db)) -> ScrapeCoordinator:
    """Build a coordinator over the request's session with all sources registered."""
    return ScrapeCoordinator(db)


def _token_matches(credentials: Optional[HTTPAuthorizationCredentials], secret: str) -> bool:
    if not credentials or not credentials.credentials:
        return False
    # Constant-time comparison
    return secrets.compare_digest(credentials.credentials.encode(), secret.encode())


async def require_admin_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> None:
    """Authorize admin scraper endpoints with `Authorization: Bearer <CRON_SECRET>`.

    Raises:
        HTTPException: 403 when CRON_SECRET is not configured, 401 on a
            missing or wrong token
    """
    if not settings.CRON_SECRET:
        logger.warning("cron_secret_not_configured", endpoint="admin")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin scraper endpoints are disabled (CRON_SECRET not configured)",
        )

    if not _token_matches(credentials, settings.CRON_SECRET):
        logger.warning("admin_token_rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> None:
    """Authorize the cron trigger.

    Raises:
        HTTPException: 500 when CRON_SECRET is not configured, 401 on a
            missing or wrong token
    """
    if not settings.CRON_SECRET:
        logger.error("cron_secret_not_configured", endpoint="cron")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="CRON_SECRET not configured",
        )

    if not _token_matches(credentials, settings.CRON_SECRET):
        logger.warning("cron_token_rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
