from __future__ import annotations

from medrent.application.exceptions import ExternalServiceError
from medrent.application.ports.availability import AvailabilityPort
from medrent.domain.entities.booking_record import DateRange
from medrent.infrastructure.backend.supabase_client import SupabaseClient


class SupabaseAvailability(AvailabilityPort):
    """Availability and reservation holds backed by database functions."""

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    def check_availability(self, category_id: str, branch_id: str, date_range: DateRange) -> int:
        result = self._client.rpc(
            "check_availability",
            "available_units",
            {
                "p_category": category_id,
                "p_branch": branch_id,
                "p_start": date_range.start.isoformat(),
                "p_end": date_range.end.isoformat(),
            },
        )
        try:
            return int(result or 0)
        except (TypeError, ValueError) as e:
            raise ExternalServiceError("check_availability", f"unexpected result {result!r}") from e

    def reserve_unit(self, category_id: str, branch_id: str, date_range: DateRange, hold_id: str) -> bool:
        result = self._client.rpc(
            "reserve_unit",
            "reserve_unit",
            {
                "p_category": category_id,
                "p_branch": branch_id,
                "p_start": date_range.start.isoformat(),
                "p_end": date_range.end.isoformat(),
                "p_hold_id": hold_id,
            },
        )
        return bool(result)

    def release_unit(self, hold_id: str) -> bool:
        return bool(self._client.rpc("release_unit", "release_unit", {"p_hold_id": hold_id}))
