"""Dependency injection singletons for CodePruner."""

from codepruner.analysis.aggregator import Aggregator
from codepruner.analysis.store import StatusStore
from codepruner.common.config import get_settings
from codepruner.common.database import DatabaseManager
from codepruner.events.store import EventStore
from codepruner.events.writer import EventWriter
from codepruner.ingestion.admission import AdmissionController
from codepruner.plans.lookup import PlanLookup, TenantPlanLookup
from codepruner.retention.sweeper import RetentionSweeper
from codepruner.scheduler.service import MaintenanceScheduler
from codepruner.tenants.service import TenantService

_db: DatabaseManager | None = None
_tenants: TenantService | None = None
_plans: PlanLookup | None = None
_events: EventStore | None = None
_statuses: StatusStore | None = None
_writer: EventWriter | None = None
_admission: AdmissionController | None = None
_sweeper: RetentionSweeper | None = None
_aggregator: Aggregator | None = None
_scheduler: MaintenanceScheduler | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_tenant_service() -> TenantService:
    global _tenants
    if _tenants is None:
        _tenants = TenantService()
    return _tenants


def get_plan_lookup() -> PlanLookup:
    global _plans
    if _plans is None:
        _plans = TenantPlanLookup(get_db())
    return _plans


def get_event_store() -> EventStore:
    global _events
    if _events is None:
        _events = EventStore()
    return _events


def get_status_store() -> StatusStore:
    global _statuses
    if _statuses is None:
        _statuses = StatusStore()
    return _statuses


def get_event_writer() -> EventWriter:
    global _writer
    if _writer is None:
        _writer = EventWriter(
            get_db(), get_event_store(),
            queue_size=get_settings().writer_queue_size,
        )
    return _writer


def get_admission_controller() -> AdmissionController:
    global _admission
    if _admission is None:
        _admission = AdmissionController(
            get_db(), get_plan_lookup(), get_event_writer(),
            store=get_event_store(),
        )
    return _admission


def get_sweeper() -> RetentionSweeper:
    global _sweeper
    if _sweeper is None:
        _sweeper = RetentionSweeper(
            get_db(), get_plan_lookup(),
            store=get_event_store(), tenants=get_tenant_service(),
        )
    return _sweeper


def get_aggregator() -> Aggregator:
    global _aggregator
    if _aggregator is None:
        _aggregator = Aggregator(
            get_db(),
            events=get_event_store(),
            statuses=get_status_store(),
            tenants=get_tenant_service(),
        )
    return _aggregator


def get_scheduler() -> MaintenanceScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = MaintenanceScheduler(
            get_sweeper(), get_aggregator(),
            schedule=get_settings().maintenance_cron,
        )
    return _scheduler


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _tenants, _plans, _events, _statuses, _writer
    global _admission, _sweeper, _aggregator, _scheduler
    _db = None
    _tenants = None
    _plans = None
    _events = None
    _statuses = None
    _writer = None
    _admission = None
    _sweeper = None
    _aggregator = None
    _scheduler = None
