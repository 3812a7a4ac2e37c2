"""HTTP API exposing reminder status and manual reminder sends."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from eventpulse.app.reminder_app import ReminderApp
from eventpulse.errors import EventNotFoundError
from eventpulse.reminders.thresholds import Threshold


class ReminderStatusResponse(BaseModel):
    running: bool
    active_cadences: List[str] = Field(default_factory=list)
    uptime_seconds: float = 0.0
    started_at: Optional[str] = None
    last_sweeps: Dict[str, Any] = Field(default_factory=dict)


class TestReminderRequest(BaseModel):
    event_id: str = Field(..., description="Event to remind about")
    reminder_type: str = Field(..., description="One of 24h, 2h, 30m")


class TestReminderResponse(BaseModel):
    event_id: str
    event_title: str
    reminder_type: str
    eligible_participants: int
    success_count: int = 0
    failure_count: int = 0
    message: str


def get_reminder_app(app: FastAPI) -> ReminderApp:
    reminder_app = getattr(app.state, "reminder_app", None)
    if reminder_app is None:
        raise RuntimeError("Reminder app instance is not configured on the application state")
    return reminder_app


def create_app(reminder_app_instance: ReminderApp | None = None) -> FastAPI:
    reminder_app = reminder_app_instance or ReminderApp()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.reminder_app = reminder_app
        await reminder_app.startup()
        try:
            yield
        finally:
            await reminder_app.shutdown()

    app = FastAPI(
        title="Event Reminder API",
        version="1.0.0",
        description="Status and manual trigger endpoints for event reminder pushes.",
        lifespan=lifespan,
    )

    @app.get("/reminders/status", response_model=ReminderStatusResponse)
    async def reminder_status_endpoint() -> ReminderStatusResponse:
        try:
            data = get_reminder_app(app).get_status()
            return ReminderStatusResponse(**data)
        except Exception as exc:  # pragma: no cover
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error getting reminder status: {exc}",
            ) from exc

    @app.post("/reminders/test", response_model=TestReminderResponse)
    async def test_reminder_endpoint(payload: TestReminderRequest) -> TestReminderResponse:
        try:
            Threshold.parse(payload.reminder_type)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

        try:
            result = await get_reminder_app(app).send_test_reminder(payload.event_id, payload.reminder_type)
        except EventNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error sending test reminder: {exc}",
            ) from exc

        dispatch = result.dispatch
        if dispatch is None:
            message = f"No eligible participants for {result.threshold} reminder"
        else:
            message = f"{result.threshold} reminder sent successfully"

        return TestReminderResponse(
            event_id=result.event_id,
            event_title=result.event_title,
            reminder_type=result.threshold.wire_name,
            eligible_participants=result.eligible_participants,
            success_count=dispatch.success_count if dispatch else 0,
            failure_count=dispatch.failure_count if dispatch else 0,
            message=message,
        )

    @app.get("/reminders/stats")
    async def reminder_stats_endpoint() -> Dict[str, Any]:
        try:
            return get_reminder_app(app).get_stats()
        except Exception as exc:  # pragma: no cover
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to fetch stats: {exc}",
            ) from exc

    @app.get("/health")
    async def health_endpoint() -> Dict[str, Any]:
        try:
            return get_reminder_app(app).snapshot()
        except Exception as exc:  # pragma: no cover
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to fetch health snapshot: {exc}",
            ) from exc

    return app


app = create_app()
