"""
Project Lifecycle Gateway
Exposes readiness verdicts, deadline windows and lifecycle transitions over HTTP
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import structlog
import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from servers.lifecycle.controller import LifecycleController
from servers.lifecycle.deadlines import (
    check_candidate, commitment_relative_window, creation_relative_window
)
from servers.lifecycle.errors import LifecycleError, NetworkError, display_message
from servers.lifecycle.logs import configure_logging
from servers.lifecycle.methods import ProjectLifecycleClient
from servers.lifecycle.models import (
    DeadlineCheck, DeadlineWindow, ProjectDraft, ProjectType, ReadinessVerdict, TransitionOutcome
)
from servers.lifecycle.readiness import evaluate_readiness
from servers.lifecycle.settings import Settings, get_settings

load_dotenv()

logger = structlog.get_logger(__name__)


class CreationWindowRequest(BaseModel):
    created_at: str
    project_type: ProjectType


class CandidateCheckRequest(BaseModel):
    window: DeadlineWindow
    candidate: str


class DeadlineUpdateRequest(BaseModel):
    deadline: str


def create_app(settings: Optional[Settings] = None,
               client: Optional[ProjectLifecycleClient] = None) -> FastAPI:
    """Build the gateway; tests pass a client backed by a mock transport."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        api_client = client or ProjectLifecycleClient(
            base_url=settings.api_url,
            api_key=settings.api_key,
            timeout=settings.request_timeout,
            retry_attempts=settings.metadata_retry_attempts,
        )
        app.state.client = api_client
        app.state.controller = LifecycleController(api_client)
        logger.info("Lifecycle gateway started", api_url=settings.api_url)
        try:
            yield
        finally:
            if client is None:
                await api_client.aclose()
            logger.info("Lifecycle gateway stopped")

    app = FastAPI(
        title="Project Lifecycle Gateway",
        description="Readiness, deadline windows and lifecycle transitions for projects",
        lifespan=lifespan,
    )

    api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

    async def get_api_key(api_key: str = Security(api_key_header)):
        if settings.gateway_api_key and api_key != settings.gateway_api_key:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid API Key"
            )
        return api_key

    def get_client(request: Request) -> ProjectLifecycleClient:
        return request.app.state.client

    def get_controller(request: Request) -> LifecycleController:
        return request.app.state.controller

    def to_http_error(e: LifecycleError) -> HTTPException:
        code = status.HTTP_502_BAD_GATEWAY if isinstance(e, NetworkError) else (e.status or 500)
        return HTTPException(status_code=code, detail=display_message(e))

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "timestamp": datetime.now().isoformat()}

    @app.get("/projects/{project_uuid}/readiness", response_model=ReadinessVerdict,
             dependencies=[Depends(get_api_key)])
    async def get_readiness(project_uuid: str, api: ProjectLifecycleClient = Depends(get_client)):
        """Whether the project may be started, with team and deadline diagnostics."""
        try:
            project = await api.fetch_project(project_uuid)
            constraints = await api.fetch_team_role_constraints(project_uuid)
        except LifecycleError as e:
            logger.error(f"Failed to evaluate readiness: {e}", project_uuid=project_uuid)
            raise to_http_error(e)
        return evaluate_readiness(project, constraints)

    @app.get("/projects/{project_uuid}/deadline-window", response_model=DeadlineWindow,
             dependencies=[Depends(get_api_key)])
    async def get_deadline_window(project_uuid: str, api: ProjectLifecycleClient = Depends(get_client)):
        """Legal deadline window for moving the deadline of an existing project."""
        try:
            project = await api.fetch_project(project_uuid)
        except LifecycleError as e:
            logger.error(f"Failed to fetch project: {e}", project_uuid=project_uuid)
            raise to_http_error(e)

        window = commitment_relative_window(project.created_at, project.project_type, project.estimated_date)
        if window is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="The project has no creation date or project type to compute a deadline window"
            )
        return window

    @app.post("/deadline-window/creation", response_model=DeadlineWindow,
              dependencies=[Depends(get_api_key)])
    async def post_creation_window(body: CreationWindowRequest):
        """Legal deadline window while an application is being reviewed."""
        window = creation_relative_window(body.created_at, body.project_type)
        if window is None:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                                detail="created_at must be a valid date")
        return window

    @app.post("/deadline-window/check", response_model=DeadlineCheck,
              dependencies=[Depends(get_api_key)])
    async def post_check_candidate(body: CandidateCheckRequest):
        return check_candidate(body.window, body.candidate)

    @app.post("/applications/{application_uuid}/approve", response_model=TransitionOutcome,
              dependencies=[Depends(get_api_key)])
    async def approve_application(application_uuid: str, draft: ProjectDraft,
                                  controller: LifecycleController = Depends(get_controller)):
        return await controller.approve(application_uuid, draft)

    @app.post("/projects/{project_uuid}/start", response_model=TransitionOutcome,
              dependencies=[Depends(get_api_key)])
    async def start_project(project_uuid: str, controller: LifecycleController = Depends(get_controller)):
        return await controller.start(project_uuid)

    @app.post("/projects/{project_uuid}/rollback", response_model=TransitionOutcome,
              dependencies=[Depends(get_api_key)])
    async def rollback_project(project_uuid: str, controller: LifecycleController = Depends(get_controller)):
        return await controller.rollback(project_uuid)

    @app.patch("/projects/{project_uuid}/deadline", response_model=TransitionOutcome,
               dependencies=[Depends(get_api_key)])
    async def update_deadline(project_uuid: str, body: DeadlineUpdateRequest,
                              controller: LifecycleController = Depends(get_controller)):
        return await controller.update_deadline(project_uuid, body.deadline)

    return app


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.gateway_host, port=settings.gateway_port, log_level="info")
