"""
Warp Gate - FastAPI Server
Webhook endpoints called by Jira and Bamboo to drive FTL releases.

Every webhook is acknowledged with 200 once its inputs are checked; the
workflow itself runs in the background and reports back on the Jira issue.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import get_settings
from ..core.bamboo_client import BambooClient
from ..core.errors import PreconditionFailure, PropertiesError
from ..core.jira_client import JiraClient
from ..core.locks import IssueLockRegistry
from ..core.logger import get_logger, setup_logging
from ..core.scheduler import DeferredTaskScheduler
from ..models.properties import load_properties
from ..workflow.engine import DeploymentWorkflowEngine
from ..workflow.lifecycle import IssueLifecycle
from .models import (
    DeploymentRequest,
    ErrorResponse,
    HealthResponse,
    JiraWebhook,
    OkResponse,
    StatusResponse,
    ValidationRequest,
)

logger = get_logger("warpgate.api")


# Global state for tracking service status
class ServiceState:
    def __init__(self):
        self.start_time = time.time()
        self.settings = None
        self.properties = None
        self.jira: Optional[JiraClient] = None
        self.bamboo: Optional[BambooClient] = None
        self.scheduler: Optional[DeferredTaskScheduler] = None
        self.engine: Optional[DeploymentWorkflowEngine] = None
        self.lifecycle: Optional[IssueLifecycle] = None

    @property
    def ready(self) -> bool:
        return self.engine is not None and self.lifecycle is not None


service_state = ServiceState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    # Startup
    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_format == "json")
    logger.info("Starting Warp Gate", version=app.version)
    logger.info("Configuration", config=settings.sanitised())
    service_state.settings = settings

    try:
        properties = load_properties(settings.properties_path)
        service_state.properties = properties
        service_state.jira = JiraClient(settings.jira)
        service_state.bamboo = BambooClient(settings.bamboo)
        service_state.scheduler = DeferredTaskScheduler()
        locks = IssueLockRegistry()
        service_state.engine = DeploymentWorkflowEngine(
            settings,
            properties,
            service_state.jira,
            service_state.bamboo,
            scheduler=service_state.scheduler,
            locks=locks,
        )
        service_state.lifecycle = IssueLifecycle(
            settings,
            properties,
            service_state.jira,
            service_state.bamboo,
            scheduler=service_state.scheduler,
            locks=locks,
        )
        logger.info("Workflow engine ready", projects=len(properties.projects))
    except PropertiesError as e:
        logger.error("Initialization error", error=str(e))
        logger.warning("Service will start but webhooks are rejected until properties are fixed")

    yield

    # Shutdown
    if service_state.scheduler and service_state.scheduler.pending:
        logger.warning("Shutting down with background workflows in flight", pending=service_state.scheduler.pending)
    logger.info("Shutting down Warp Gate")
    for client in (service_state.jira, service_state.bamboo):
        if client:
            await client.close()


app = FastAPI(
    title="Warp Gate",
    description="Fast-track (FTL) release automation between Jira and Bamboo.",
    version=__version__,
    openapi_tags=[
        {"name": "Deploy", "description": "Prelive, production, yolo and validation webhooks"},
        {"name": "Issue", "description": "Build and release webhooks"},
        {"name": "Health", "description": "Service status and health"},
    ],
    lifespan=lifespan,
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=status_code, message=message).model_dump(),
    )


@app.exception_handler(PreconditionFailure)
async def precondition_exception_handler(request: Request, exc: PreconditionFailure):
    logger.warning("Request rejected", path=request.url.path, reason=str(exc))
    return _error(400, str(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _error(400, f"Invalid request body: {exc.errors()}")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error("Unhandled error", path=request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"status": "error", "error": "INTERNAL_ERROR"})


def _ready_state() -> ServiceState:
    if not service_state.ready:
        raise StarletteHTTPException(status_code=503, detail="Workflow engine not initialized")
    return service_state


# ==================== Deploy webhooks ====================

@app.post("/api/issue/{issue_key}/deploy/prelive", response_model=OkResponse, tags=["Deploy"])
async def deploy_prelive(issue_key: str, body: DeploymentRequest):
    """Bamboo finished an FTL build: create the release and deploy it to prelive."""
    state = _ready_state()
    state.engine.request_prelive_deployment(body.plan_result_key, body.issue_key or issue_key)
    return OkResponse()


@app.post("/api/issue/{issue_key}/deploy/production", response_model=OkResponse, tags=["Deploy"])
async def deploy_production(issue_key: str, body: JiraWebhook):
    """Issue passed QA on prelive: deploy its release to the idle production colour."""
    state = _ready_state()
    state.engine.request_production_deployment(body.project_key, body.issue_key or issue_key)
    return OkResponse()


@app.post("/api/issue/{issue_key}/deploy/yolo", response_model=OkResponse, tags=["Deploy"])
async def deploy_yolo(issue_key: str, body: DeploymentRequest):
    """Prelive deployment that skips manual QA."""
    state = _ready_state()
    state.engine.request_yolo_deployment(body.plan_result_key, body.issue_key or issue_key)
    return OkResponse()


@app.post("/api/issue/{issue_key}/deploy/validate", response_model=OkResponse, tags=["Deploy"])
async def deploy_validate(issue_key: str, body: ValidationRequest):
    """Bamboo finished a deployment: move the issue on or report the failure."""
    state = _ready_state()
    state.engine.request_validation(body.issue_key or issue_key, body.results_url, body.transition_code)
    return OkResponse()


# ==================== Issue webhooks ====================

@app.post("/api/issue/{issue_key}/build", response_model=OkResponse, tags=["Issue"])
async def build_issue(issue_key: str, body: JiraWebhook):
    """FTL issue is ready: queue a release build of the release branch."""
    state = _ready_state()
    issue = body.issue.model_dump(by_alias=True) if body.issue else None
    state.lifecycle.request_build(issue)
    return OkResponse()


@app.post("/api/issue/{issue_key}/release", response_model=OkResponse, tags=["Issue"])
async def release_issue(issue_key: str):
    """Issue is done: release its fix version."""
    state = _ready_state()
    state.lifecycle.request_release(issue_key)
    return OkResponse()


# ==================== Status ====================

@app.get("/api/status", response_model=StatusResponse, tags=["Health"])
async def status():
    """Loaded properties and configuration (passwords masked)."""
    settings = service_state.settings or get_settings()
    properties = service_state.properties
    return StatusResponse(
        properties=properties.model_dump(mode="json", by_alias=True) if properties else {},
        config=settings.sanitised(),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    scheduler = service_state.scheduler
    return HealthResponse(
        status="healthy" if service_state.ready else "unhealthy",
        engine_ready=service_state.ready,
        uptime_seconds=time.time() - service_state.start_time,
        pending_tasks=scheduler.pending if scheduler else 0,
    )
