from __future__ import annotations

import logging
from typing import Callable, TypeVar

from medrent.application.ports.availability import AvailabilityPort
from medrent.application.ports.booking_repository import BookingRepositoryPort
from medrent.application.ports.category_catalog import CategoryCatalogPort
from medrent.application.ports.workflow_store import WorkflowStorePort
from medrent.application.use_cases.booking_workflow import BookingObserver, BookingWorkflow
from medrent.domain.entities.booking_record import BookingRecord
from medrent.domain.entities.booking_stage import BookingStage

T = TypeVar("T")


class UnknownSessionError(KeyError):
    pass


class BookingSessionUseCase:
    """Loads a session's workflow, runs one operation on it and stores the outcome."""

    def __init__(
        self,
        store: WorkflowStorePort,
        availability: AvailabilityPort,
        catalog: CategoryCatalogPort,
        repository: BookingRepositoryPort,
        max_rental_days: int = 365,
        deposit_rate: float = 0.30,
        cross_branch_enabled: bool = True,
        default_delivery_fee: int = 150,
        observers: list[BookingObserver] | None = None,
    ) -> None:
        self._store = store
        self._availability = availability
        self._catalog = catalog
        self._repository = repository
        self._max_rental_days = max_rental_days
        self._deposit_rate = deposit_rate
        self._cross_branch_enabled = cross_branch_enabled
        self._default_delivery_fee = default_delivery_fee
        self._observers = list(observers or [])
        self._logger = logging.getLogger(__name__)

    def start(self) -> str:
        session_id = self._store.create_session()
        self._logger.info("Booking session started", extra={"session_id": session_id})
        return session_id

    def snapshot(self, session_id: str) -> tuple[BookingStage, BookingRecord]:
        if not self._store.exists(session_id):
            raise UnknownSessionError(session_id)
        return self._store.load(session_id)

    def workflow(self, session_id: str) -> BookingWorkflow:
        stage, record = self.snapshot(session_id)
        workflow = BookingWorkflow(
            availability=self._availability,
            catalog=self._catalog,
            repository=self._repository,
            stage=stage,
            record=record,
            session_id=session_id,
            max_rental_days=self._max_rental_days,
            deposit_rate=self._deposit_rate,
            cross_branch_enabled=self._cross_branch_enabled,
            default_delivery_fee=self._default_delivery_fee,
        )
        for observer in self._observers:
            workflow.subscribe(observer)
        return workflow

    def run(self, session_id: str, operation: Callable[[BookingWorkflow], T]) -> tuple[BookingWorkflow, T]:
        """
        Apply `operation` and persist whatever state the workflow ends in.
        Rejected operations leave the workflow untouched, except for the move to
        NO_AVAILABILITY, which is stored as well.
        """
        workflow = self.workflow(session_id)
        try:
            result = operation(workflow)
        finally:
            self._store.save(session_id, workflow.stage, workflow.record)
        return workflow, result
