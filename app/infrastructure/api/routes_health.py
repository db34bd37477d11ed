"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request, session: AsyncSession = Depends(get_session)):
    """Check API, database connectivity and the assignment worker pool."""
    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {e}"

    pool = getattr(request.app.state, "worker_pool", None)
    workers = {
        "enabled": pool is not None,
        "running": bool(pool and pool.running),
        "size": pool.size if pool else 0,
    }

    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "workers": workers,
        "service": "CaseFlow - Case Assignment Pipeline",
    }
