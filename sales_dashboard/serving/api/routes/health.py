"""
Health Check Endpoints

Provides liveness and readiness checks for the dashboard and orchestration systems.
"""

from typing import Dict

from fastapi import APIRouter, Response

from sales_dashboard.database.connection import check_database_health

router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, str]:
    """
    Liveness endpoint polled by the dashboard.

    Returns 200 whenever the application is running.
    """
    return {"status": "UP"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """
    Readiness probe endpoint.

    Returns 503 until the order database answers.
    """
    db_health = await check_database_health()

    if db_health.get("status") != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": db_health.get("error", "database_unavailable")}

    return {"status": "ready"}
