from __future__ import annotations

import logging
import threading
import uuid

from medrent.application.ports.booking_repository import BookingRepositoryPort
from medrent.application.ports.workflow_store import WorkflowStorePort
from medrent.domain.entities.booking_record import BookingRecord
from medrent.domain.entities.booking_stage import BookingStage


class MemoryWorkflowStore(WorkflowStorePort):
    def __init__(self) -> None:
        self._sessions: dict[str, tuple[BookingStage, BookingRecord]] = {}

    def create_session(self) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = (BookingStage.BRANCH_SELECTION, BookingRecord())
        return session_id

    def exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def load(self, session_id: str) -> tuple[BookingStage, BookingRecord]:
        return self._sessions.get(session_id, (BookingStage.BRANCH_SELECTION, BookingRecord()))

    def save(self, session_id: str, stage: BookingStage, record: BookingRecord) -> None:
        self._sessions[session_id] = (stage, record)


class MemoryBookingRepository(BookingRepositoryPort):
    def __init__(self, prefix: str = "MR") -> None:
        self._prefix = prefix
        self._bookings: dict[str, BookingRecord] = {}
        self._by_quote: dict[str, str] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def commit_booking(self, record: BookingRecord) -> str:
        with self._lock:
            existing = self._by_quote.get(record.quote_id or "")
            if existing:
                self._bookings[existing] = record
                return existing
            reference = f"{self._prefix}-{len(self._bookings) + 1:05d}"
            self._bookings[reference] = record
            if record.quote_id:
                self._by_quote[record.quote_id] = reference
        self._logger.info(
            "Booking committed",
            extra={"booking_id": record.booking_id, "quote_id": record.quote_id, "reason": reference},
        )
        return reference

    def get_booking(self, booking_reference: str) -> BookingRecord | None:
        return self._bookings.get(booking_reference)

    def list_bookings(self) -> list[BookingRecord]:
        return list(self._bookings.values())
