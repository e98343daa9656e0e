"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from uuid import UUID

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from attendance_ledger.api.admin import router as admin_router
from attendance_ledger.api.models import (
    CreateSessionRequest,
    DeleteSessionsRequest,
    StudentLoginRequest,
    StudentSubmitRequest,
)
from attendance_ledger.app_logging import configure_logging
from attendance_ledger.containers import AppContainer
from attendance_ledger.domain.errors import AttendanceError, InvalidInput


async def require_owner(x_owner_id: str | None = Header(default=None)) -> str:
    """Return the calling session owner's id from the X-Owner-Id header."""
    if not x_owner_id or not x_owner_id.strip():
        raise InvalidInput("X-Owner-Id header is required.")
    return x_owner_id.strip()


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        try:
            await asyncio.to_thread(state_container.session_manager.resume)
        except Exception:
            logger.exception("Failed to re-arm expiry timers")
        sweeper = asyncio.create_task(_sweep_periodically(state_container))
        yield
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(AttendanceError)
    async def attendance_error(
        _request: Request, exc: AttendanceError
    ) -> JSONResponse:
        if exc.retryable:
            logger.warning("Retryable failure: %s", exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = InvalidInput(_describe_validation_error(exc))
        return JSONResponse(status_code=error.status_code, content=error_payload(error))

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/api/status")
    def status(request: Request) -> dict[str, object]:
        """Report the fixed session timing so clients can render countdowns."""
        settings = _container(request).settings
        return {
            "success": True,
            "session_duration_seconds": settings.session_duration_seconds,
            "retention_days": settings.retention_days,
        }

    @app.post("/api/sessions")
    def create_session(
        payload: CreateSessionRequest,
        request: Request,
        owner_id: str = Depends(require_owner),
    ) -> dict[str, object]:
        """Start a new attendance session."""
        service = _container(request).attendance_service
        return {"success": True, **service.create_session(payload.name, owner_id)}

    @app.post("/api/sessions/delete-many")
    def delete_sessions(
        payload: DeleteSessionsRequest,
        request: Request,
        owner_id: str = Depends(require_owner),
    ) -> dict[str, object]:
        """Delete selected sessions and their submissions."""
        service = _container(request).attendance_service
        deleted = service.delete_sessions(payload.ids, owner_id)
        return {"success": True, "deleted": deleted}

    @app.post("/api/sessions/clear-all")
    def clear_sessions(
        request: Request, owner_id: str = Depends(require_owner)
    ) -> dict[str, object]:
        """Delete every session of the calling owner."""
        service = _container(request).attendance_service
        return {"success": True, "deleted": service.clear_owner(owner_id)}

    @app.post("/api/sessions/{session_id}/stop")
    def stop_session(
        session_id: UUID, request: Request, owner_id: str = Depends(require_owner)
    ) -> dict[str, object]:
        """Stop a session; stopping a finished session is a no-op."""
        service = _container(request).attendance_service
        return {"success": True, **service.stop_session(session_id, owner_id)}

    @app.get("/api/sessions/{session_id}/responses")
    def session_responses(
        session_id: UUID, request: Request, owner_id: str = Depends(require_owner)
    ) -> dict[str, object]:
        """Return a session's submissions in arrival order."""
        service = _container(request).attendance_service
        return {
            "success": True,
            "responses": service.get_submissions(session_id, owner_id),
        }

    @app.get("/api/history")
    def history(
        request: Request, owner_id: str = Depends(require_owner)
    ) -> dict[str, object]:
        """Return the owner's sessions inside the retention window."""
        service = _container(request).attendance_service
        return {"success": True, "sessions": service.list_sessions(owner_id)}

    @app.get("/s/{code}")
    def session_status(code: str, request: Request) -> dict[str, object]:
        """Return advisory status for the session behind a scanned code."""
        service = _container(request).attendance_service
        return {"success": True, **service.session_status(code)}

    @app.post("/api/student/login")
    def student_login(
        payload: StudentLoginRequest, request: Request
    ) -> dict[str, object]:
        """Bind the submitter's device to their identity."""
        service = _container(request).attendance_service
        return {
            "success": True,
            **service.register_device(payload.email, payload.device_id),
        }

    @app.post("/api/student/submit")
    def student_submit(
        payload: StudentSubmitRequest, request: Request
    ) -> dict[str, object]:
        """Record an attendance submission."""
        service = _container(request).attendance_service
        return {
            "success": True,
            **service.submit(payload.session_code, payload.email, payload.device_id),
        }

    return app


def error_payload(error: AttendanceError) -> dict[str, object]:
    """Serialize an error as the typed failure result clients expect."""
    return {
        "success": False,
        "error": error.message,
        "code": error.code,
        "retryable": error.retryable,
    }


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def _sweep_periodically(container: AppContainer) -> None:
    logger = logging.getLogger(__name__)
    interval = container.settings.sweep_interval_seconds
    while True:
        try:
            await asyncio.to_thread(container.history_store.sweep)
        except Exception:
            logger.exception("Retention sweep failed")
        await asyncio.sleep(interval)


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else str(message)
