from __future__ import annotations

from abc import ABC, abstractmethod

from medrent.domain.entities.booking_record import BookingRecord
from medrent.domain.entities.booking_stage import BookingStage


class WorkflowStorePort(ABC):
    @abstractmethod
    def create_session(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def exists(self, session_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def load(self, session_id: str) -> tuple[BookingStage, BookingRecord]:
        """Load stage and record. Unknown sessions start at branch selection with an empty record."""
        raise NotImplementedError

    @abstractmethod
    def save(self, session_id: str, stage: BookingStage, record: BookingRecord) -> None:
        raise NotImplementedError
