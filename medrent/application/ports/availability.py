from __future__ import annotations

from abc import ABC, abstractmethod

from medrent.domain.entities.booking_record import DateRange


class AvailabilityPort(ABC):
    @abstractmethod
    def check_availability(self, category_id: str, branch_id: str, date_range: DateRange) -> int:
        """Return the number of free units of a category at a branch for the whole range."""
        raise NotImplementedError

    @abstractmethod
    def reserve_unit(self, category_id: str, branch_id: str, date_range: DateRange, hold_id: str) -> bool:
        """
        Hold one unit for the range under `hold_id`.
        Returns False when no unit is free. Repeating the same hold_id is a no-op returning True.
        """
        raise NotImplementedError

    @abstractmethod
    def release_unit(self, hold_id: str) -> bool:
        """Release a hold. Returns True if a hold was released."""
        raise NotImplementedError
