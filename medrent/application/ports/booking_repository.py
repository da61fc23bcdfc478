from __future__ import annotations

from abc import ABC, abstractmethod

from medrent.domain.entities.booking_record import BookingRecord


class BookingRepositoryPort(ABC):
    @abstractmethod
    def commit_booking(self, record: BookingRecord) -> str:
        """
        Persist a finalized booking and its payment status.
        Idempotent on record.quote_id: committing the same quote again returns the same reference.
        """
        raise NotImplementedError

    @abstractmethod
    def get_booking(self, booking_reference: str) -> BookingRecord | None:
        raise NotImplementedError
