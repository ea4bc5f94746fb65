"""
Main FastAPI application.

This is the entry point for the API server. Periodic sweeps run in the
separate worker process (labmonitor.workers.monitoring_runner); the API
exposes the same pass on demand through POST /alerts/run.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from labmonitor import __version__
from labmonitor.core.config import settings
from labmonitor.errors import AppError, app_error_handler, store_unavailable_handler
from labmonitor.routers import alerts, health, schedules, tasks, velocity
from labmonitor.workers.monitoring_runner import MonitoringRunner

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI app.

    On startup: create the monitoring runner and seed default alert
    configurations (insert-if-absent).
    """
    logger.info("Starting %s...", settings.APP_NAME)
    runner = MonitoringRunner()
    app.state.monitoring_runner = runner
    try:
        await runner.ensure_default_configurations()
    except (SQLAlchemyError, OSError):
        logger.exception("Could not seed alert configurations; detectors fall back to defaults")

    yield

    logger.info("Shutting down %s...", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Monitoring and alerting engine for lab task, schedule and activity state",
    version=__version__,
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(OperationalError, store_unavailable_handler)
app.add_exception_handler(InterfaceError, store_unavailable_handler)

app.include_router(health.router, tags=["Health"])
app.include_router(tasks.router)
app.include_router(schedules.router)
app.include_router(alerts.router)
app.include_router(velocity.router)
