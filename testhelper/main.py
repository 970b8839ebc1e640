"""Test Helper backend: FastAPI entry point.

Scenario storage, table seeding, mock serving, and request proxying for
integration tests.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from testhelper import __version__
from testhelper.config.settings import get_settings
from testhelper.config.logging_config import setup_logging, get_logger
from testhelper.config.request_context import CORRELATION_ID_HEADER, correlation_id_var
from testhelper.exceptions import (
    DDLParseError,
    DependencyError,
    ExecutionError,
    GroupNotFoundError,
    MockEndpointNotFoundError,
    ScenarioNotFoundError,
    ScenarioValidationError,
)
from testhelper.storage.database import init_db, dispose_db
from testhelper.storage.table_executor import dispose_table_executor
from testhelper.mock_services.activation import get_activation_manager
from testhelper.api.routes import scenarios, mock, tables, database, proxy

settings = get_settings()
setup_logging(log_level=settings.log_level, json_logs=settings.log_json)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: scenario storage and mock registry."""
    logger.info("Starting Test Helper", env=settings.app_env)

    await init_db()
    logger.info("Database initialized")

    get_activation_manager()

    yield

    logger.info("Shutting down Test Helper")
    await dispose_table_executor()
    await dispose_db()


app = FastAPI(
    title="Test Helper",
    description="Scenario-driven database seeding and API mocking for integration tests",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-Requested-With", CORRELATION_ID_HEADER],
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid.uuid4())
    token = correlation_id_var.set(correlation_id)
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("correlation_id")
        correlation_id_var.reset(token)
    response.headers[CORRELATION_ID_HEADER] = correlation_id
    return response


@app.exception_handler(ScenarioValidationError)
async def validation_error_handler(request: Request, exc: ScenarioValidationError):
    return JSONResponse(status_code=422, content={"error": "Validation failed", "details": exc.errors})


@app.exception_handler(DependencyError)
async def dependency_error_handler(request: Request, exc: DependencyError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(DDLParseError)
async def ddl_parse_error_handler(request: Request, exc: DDLParseError):
    if exc.errors:
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc), "errors": exc.errors})
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ScenarioNotFoundError)
@app.exception_handler(GroupNotFoundError)
@app.exception_handler(MockEndpointNotFoundError)
async def not_found_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(ExecutionError)
async def execution_error_handler(request: Request, exc: ExecutionError):
    logger.error("Scenario execution failed", path=request.url.path, **exc.to_dict())
    return JSONResponse(status_code=500, content={"error": str(exc), "details": exc.to_dict()})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_id = str(uuid.uuid4())[:8]
    logger.error("Unhandled exception", error_id=error_id, error=str(exc), path=request.url.path, exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "error_id": error_id})


# Routes
app.include_router(scenarios.router, prefix="/api/v1")
app.include_router(mock.router, prefix="/api/v1")
app.include_router(tables.router, prefix="/api/v1")
app.include_router(database.router, prefix="/api/v1")
app.include_router(proxy.router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    activations = get_activation_manager()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "activeScenarioId": activations.active_scenario_id,
    }


@app.get("/")
async def root():
    return {
        "name": "Test Helper",
        "version": __version__,
        "description": "Scenario-driven database seeding and API mocking for integration tests",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("testhelper.main:app", host="0.0.0.0", port=settings.app_port, reload=True)
