"""
FastAPI dependencies for the application.
"""

from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException, Request, status

from labmonitor.db.session import get_db
from labmonitor.workers.monitoring_runner import MonitoringRunner

__all__ = ["get_db", "get_actor_id", "require_actor_id", "get_monitoring_runner"]


async def get_actor_id(x_user_id: Optional[UUID] = Header(None)) -> Optional[UUID]:
    """
    Acting person from the X-User-Id header.

    Authentication happens upstream; the header only attributes changes.
    """
    return x_user_id


async def require_actor_id(x_user_id: Optional[UUID] = Header(None)) -> UUID:
    """
    Like get_actor_id, but raises 400 if X-User-Id header is missing.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-Id header is required"
        )
    return x_user_id


def get_monitoring_runner(request: Request) -> MonitoringRunner:
    """Runner created at startup; it holds the in-flight guard for alert sweeps."""
    return request.app.state.monitoring_runner
