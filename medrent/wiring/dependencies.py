from functools import lru_cache
import logging

from medrent.core.config import settings
from medrent.application.ports.availability import AvailabilityPort
from medrent.application.ports.booking_repository import BookingRepositoryPort
from medrent.application.ports.category_catalog import CategoryCatalogPort
from medrent.application.ports.workflow_store import WorkflowStorePort
from medrent.application.use_cases.booking_session import BookingSessionUseCase
from medrent.infrastructure.backend.supabase_availability import SupabaseAvailability
from medrent.infrastructure.backend.supabase_catalog import SupabaseCategoryCatalog
from medrent.infrastructure.backend.supabase_client import SupabaseClient
from medrent.infrastructure.backend.supabase_repository import SupabaseBookingRepository
from medrent.infrastructure.catalog.category_store import CategoryCatalogStore
from medrent.infrastructure.inventory.memory_inventory import build_demo_inventory
from medrent.infrastructure.store.json_store import JsonWorkflowStore
from medrent.infrastructure.store.memory_store import MemoryBookingRepository, MemoryWorkflowStore


_workflow_store: MemoryWorkflowStore | JsonWorkflowStore | None = None


def _use_hosted_backend() -> bool:
    return bool(settings.SUPABASE_URL and settings.SUPABASE_API_KEY) and settings.ENV.lower() not in {"dev", "local"}


@lru_cache
def get_supabase_client() -> SupabaseClient:
    return SupabaseClient()


def get_workflow_store() -> WorkflowStorePort:
    global _workflow_store
    if _workflow_store is None:
        if settings.ENV.lower() in {"dev", "local"}:
            _workflow_store = JsonWorkflowStore(data_dir=settings.WORKFLOW_DATA_DIR)
        else:
            _workflow_store = MemoryWorkflowStore()
    return _workflow_store


@lru_cache
def get_category_catalog() -> CategoryCatalogPort:
    if _use_hosted_backend():
        return SupabaseCategoryCatalog(get_supabase_client())
    return CategoryCatalogStore()


@lru_cache
def get_availability() -> AvailabilityPort:
    if _use_hosted_backend():
        return SupabaseAvailability(get_supabase_client())
    logger = logging.getLogger(__name__)
    logger.info("Using in-memory demo inventory (ENV=%s)", settings.ENV)
    return build_demo_inventory()


@lru_cache
def get_booking_repository() -> BookingRepositoryPort:
    if _use_hosted_backend():
        return SupabaseBookingRepository(get_supabase_client())
    return MemoryBookingRepository()


def get_booking_session_use_case() -> BookingSessionUseCase:
    return BookingSessionUseCase(
        store=get_workflow_store(),
        availability=get_availability(),
        catalog=get_category_catalog(),
        repository=get_booking_repository(),
        max_rental_days=settings.MAX_RENTAL_DAYS,
        deposit_rate=settings.DEPOSIT_RATE,
        cross_branch_enabled=settings.CROSS_BRANCH_ENABLED,
        default_delivery_fee=settings.CROSS_BRANCH_DELIVERY_FEE,
    )
