import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

from leetrack.application.config import AppConfig, resolve_config
from leetrack.application.factory import Services, build_services
from leetrack.application.forgetting_curve import derive_status, next_review_time
from leetrack.application.settings import settings_from_dict
from leetrack.application.tracker import now_ms
from leetrack.consts import VERSION
from leetrack.domain.errors import StoreWriteError
from leetrack.domain.models import NetworkEvent, ProblemRecord, ProblemStatus, ReviewSettings

logger = logging.getLogger("leetrack.server")


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class NetworkEventRequest(BaseModel):
    url: str
    initiator: str | None = None
    timestamp: float = 0.0


class ActiveTabRequest(BaseModel):
    url: str | None = None


class ProblemResponse(BaseModel):
    id: str
    title: str
    difficulty: str
    url: str
    firstSubmissionTime: int
    proficiency: int
    isArchived: bool
    status: ProblemStatus
    nextReviewTime: int | None


class SettingsResponse(BaseModel):
    forgettingCurve: list[int]


class SettingsRequest(BaseModel):
    forgettingCurve: list[int]


def _problem_response(
    record: ProblemRecord, settings: ReviewSettings, now: int
) -> ProblemResponse:
    return ProblemResponse(
        **record.to_dict(),
        status=derive_status(record, settings, now),
        nextReviewTime=next_review_time(record, settings),
    )


def create_app(
    config: AppConfig | None = None, services: Services | None = None
) -> FastAPI:
    """
    Build the local service the browser shim reports to.

    `services` may be injected (tests); otherwise it is built from config.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        svc = services or build_services(config or resolve_config())
        logger.info(f"leetrack v{VERSION} starting up...")
        await svc.start()
        app.state.services = svc
        app.state.start_time = time.time()
        yield
        # Shutdown
        logger.info("leetrack shutting down...")
        await svc.close()

    app = FastAPI(
        title="leetrack",
        description="Tracks accepted LeetCode submissions and schedules reviews.",
        version=VERSION,
        lifespan=lifespan,
    )

    def _services(request: Request) -> Services:
        return request.app.state.services

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """
        Simple health check to verify server is reachable.
        """
        return HealthResponse(
            status="ok",
            version=VERSION,
            uptime_seconds=time.time() - request.app.state.start_time,
        )

    @app.get("/version")
    async def get_version():
        return {"version": VERSION}

    @app.post("/events/network")
    async def network_event(req: NetworkEventRequest, request: Request):
        """Completed request observed by the browser."""
        svc = _services(request)
        event = NetworkEvent(url=req.url, initiator=req.initiator, timestamp=req.timestamp)
        return {"matched": svc.events.publish(event)}

    @app.put("/tabs/active")
    async def active_tab(req: ActiveTabRequest, request: Request):
        _services(request).tabs.report(req.url)
        return {"url": req.url}

    @app.get("/problems", response_model=list[ProblemResponse])
    async def list_problems(request: Request, status: ProblemStatus | None = None):
        svc = _services(request)
        settings = svc.tracker.settings
        now = now_ms()
        records = await svc.store.list_records(settings)
        responses = [_problem_response(r, settings, now) for r in records]
        if status is not None:
            responses = [r for r in responses if r.status == status]
        return responses

    @app.get("/problems/{problem_id}", response_model=ProblemResponse)
    async def get_problem(problem_id: str, request: Request):
        svc = _services(request)
        settings = svc.tracker.settings
        record = await svc.store.get(problem_id, settings) if problem_id.isdigit() else None
        if record is None:
            raise HTTPException(status_code=404, detail=f"Problem {problem_id} not tracked")
        return _problem_response(record, settings, now_ms())

    @app.get("/settings", response_model=SettingsResponse)
    async def get_settings(request: Request):
        settings = _services(request).tracker.settings
        return SettingsResponse(forgettingCurve=list(settings.forgetting_curve))

    @app.post("/settings/reload", response_model=SettingsResponse)
    async def reload_settings(request: Request):
        """Called after the options page saves a new forgetting curve."""
        svc = _services(request)
        settings = await svc.settings_repo.reload()
        svc.tracker.reload_settings(settings)
        return SettingsResponse(forgettingCurve=list(settings.forgetting_curve))

    @app.put("/settings", response_model=SettingsResponse)
    async def save_settings(req: SettingsRequest, request: Request):
        """Store a new forgetting curve and switch the tracker to it."""
        svc = _services(request)
        settings = settings_from_dict(req.model_dump())
        if settings is None or not settings.forgetting_curve:
            raise HTTPException(
                status_code=422, detail="forgettingCurve needs at least one positive entry"
            )
        try:
            await svc.settings_repo.save(settings)
        except StoreWriteError as e:
            logger.error(f"Failed to save settings: {e}")
            raise HTTPException(status_code=503, detail=str(e)) from e
        settings = await svc.settings_repo.reload()
        svc.tracker.reload_settings(settings)
        return SettingsResponse(forgettingCurve=list(settings.forgetting_curve))

    return app
