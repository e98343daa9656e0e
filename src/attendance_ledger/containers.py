"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from attendance_ledger.adapters.apscheduler_timers import (
    BackgroundSchedulerTimerFactory,
)
from attendance_ledger.adapters.supabase_device_repository import (
    SupabaseDeviceBindingRepository,
)
from attendance_ledger.adapters.supabase_identifier_repository import (
    SupabaseIdentifierRepository,
)
from attendance_ledger.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from attendance_ledger.adapters.supabase_submission_repository import (
    SupabaseSubmissionRepository,
)
from attendance_ledger.config import Settings
from attendance_ledger.services.attendance import AttendanceService
from attendance_ledger.services.cache import InMemoryCache
from attendance_ledger.services.clock import Clock, SystemClock
from attendance_ledger.services.devices import (
    DeviceBindingRegistry,
    DeviceBindingRepository,
)
from attendance_ledger.services.expiry import ExpiryScheduler, TimerFactory
from attendance_ledger.services.history import HistoryStore
from attendance_ledger.services.identifiers import (
    IdentifierRepository,
    IdentifierResolver,
)
from attendance_ledger.services.ledger import SubmissionLedger, SubmissionRepository
from attendance_ledger.services.sessions import SessionManager, SessionRepository


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    clock: Clock
    expiry_scheduler: ExpiryScheduler
    session_manager: SessionManager
    device_registry: DeviceBindingRegistry
    identifier_resolver: IdentifierResolver
    submission_ledger: SubmissionLedger
    history_store: HistoryStore
    attendance_service: AttendanceService
    close_resources: Callable[[], Awaitable[None]]


def assemble_container(  # noqa: PLR0913
    settings: Settings,
    *,
    session_repository: SessionRepository,
    submission_repository: SubmissionRepository,
    device_repository: DeviceBindingRepository,
    identifier_repository: IdentifierRepository,
    timer_factory: TimerFactory,
    clock: Clock,
) -> AppContainer:
    """Wire services on top of the given repositories and time sources."""
    scheduler = ExpiryScheduler(timer_factory=timer_factory, clock=clock)
    session_manager = SessionManager(
        repository=session_repository,
        submissions=submission_repository,
        scheduler=scheduler,
        duration=settings.session_duration,
        retention=settings.retention,
        code_length=settings.code_length,
        clock=clock,
    )
    device_registry = DeviceBindingRegistry(device_repository, clock=clock)
    identifier_resolver = IdentifierResolver(
        repository=identifier_repository,
        cache=InMemoryCache(clock=clock),
        cache_ttl_seconds=settings.identifier_cache_ttl_seconds,
    )
    ledger = SubmissionLedger(
        repository=submission_repository,
        sessions=session_manager,
        devices=device_registry,
        resolver=identifier_resolver,
        clock=clock,
    )
    history_store = HistoryStore(sessions=session_manager, ledger=ledger, clock=clock)
    attendance_service = AttendanceService(
        sessions=session_manager,
        ledger=ledger,
        devices=device_registry,
        history=history_store,
        public_base_url=settings.public_base_url,
    )

    async def close_resources() -> None:
        scheduler.shutdown()

    return AppContainer(
        settings=settings,
        clock=clock,
        expiry_scheduler=scheduler,
        session_manager=session_manager,
        device_registry=device_registry,
        identifier_resolver=identifier_resolver,
        submission_ledger=ledger,
        history_store=history_store,
        attendance_service=attendance_service,
        close_resources=close_resources,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    return assemble_container(
        resolved_settings,
        session_repository=SupabaseSessionRepository(supabase_client),
        submission_repository=SupabaseSubmissionRepository(supabase_client),
        device_repository=SupabaseDeviceBindingRepository(supabase_client),
        identifier_repository=SupabaseIdentifierRepository(supabase_client),
        timer_factory=BackgroundSchedulerTimerFactory(),
        clock=SystemClock(),
    )
