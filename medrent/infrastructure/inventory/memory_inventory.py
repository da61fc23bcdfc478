from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date

from medrent.application.ports.availability import AvailabilityPort
from medrent.domain.entities.booking_record import DateRange
from medrent.infrastructure.catalog.category_data import BRANCHES, EQUIPMENT_CATEGORIES


@dataclass(frozen=True)
class InventoryUnit:
    unit_id: str
    category_id: str
    branch_id: str
    status: str = "available"  # "available", "booked", "maintenance", "transfer"


@dataclass(frozen=True)
class Block:
    unit_id: str
    start: date
    end: date
    reason: str = "booking"

    def overlaps(self, date_range: DateRange) -> bool:
        return not (date_range.end < self.start or date_range.start > self.end)


class MemoryInventory(AvailabilityPort):
    """
    Unit-level stock for local runs and tests.

    A unit is free for a range when its status is "available" and no booking,
    maintenance or hold block overlaps the inclusive range.
    """

    def __init__(self, units: list[InventoryUnit] | None = None) -> None:
        self._units: dict[str, InventoryUnit] = {u.unit_id: u for u in units or []}
        self._blocks: list[Block] = []
        self._holds: dict[str, Block] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def add_unit(self, unit: InventoryUnit) -> None:
        with self._lock:
            self._units[unit.unit_id] = unit

    def add_booking_block(self, unit_id: str, start: date, end: date) -> None:
        with self._lock:
            self._blocks.append(Block(unit_id=unit_id, start=start, end=end, reason="booking"))

    def add_maintenance_block(self, unit_id: str, start: date, end: date, reason: str = "maintenance") -> None:
        with self._lock:
            self._blocks.append(Block(unit_id=unit_id, start=start, end=end, reason=reason))

    def check_availability(self, category_id: str, branch_id: str, date_range: DateRange) -> int:
        with self._lock:
            return len(self._free_units(category_id, branch_id, date_range))

    def reserve_unit(self, category_id: str, branch_id: str, date_range: DateRange, hold_id: str) -> bool:
        with self._lock:
            if hold_id in self._holds:
                return True
            free = self._free_units(category_id, branch_id, date_range)
            if not free:
                self._logger.info(
                    "No unit left to reserve",
                    extra={"category": category_id, "branch": branch_id, "quote_id": hold_id},
                )
                return False
            unit = free[0]
            self._holds[hold_id] = Block(
                unit_id=unit.unit_id, start=date_range.start, end=date_range.end, reason="hold"
            )
            self._logger.info(
                "Unit reserved",
                extra={"category": category_id, "branch": branch_id, "quote_id": hold_id},
            )
            return True

    def release_unit(self, hold_id: str) -> bool:
        with self._lock:
            released = self._holds.pop(hold_id, None)
        if released:
            self._logger.info("Unit released", extra={"quote_id": hold_id})
        return released is not None

    def held_unit(self, hold_id: str) -> str | None:
        hold = self._holds.get(hold_id)
        return hold.unit_id if hold else None

    def _free_units(self, category_id: str, branch_id: str, date_range: DateRange) -> list[InventoryUnit]:
        blocked = {
            block.unit_id
            for block in [*self._blocks, *self._holds.values()]
            if block.overlaps(date_range)
        }
        return [
            unit
            for unit in self._units.values()
            if unit.category_id == category_id
            and unit.branch_id == branch_id
            and unit.status == "available"
            and unit.unit_id not in blocked
        ]


def build_demo_inventory(units_per_branch: dict[str, int] | None = None) -> MemoryInventory:
    """Seed every catalog category with a few units at each branch."""
    counts = units_per_branch or {"hilton": 2, "johannesburg": 1}
    units = []
    for category_id in EQUIPMENT_CATEGORIES:
        for branch in BRANCHES:
            for n in range(1, counts.get(branch.branch_id, 0) + 1):
                units.append(
                    InventoryUnit(
                        unit_id=f"{category_id}-{branch.branch_id}-{n:02d}",
                        category_id=category_id,
                        branch_id=branch.branch_id,
                    )
                )
    return MemoryInventory(units)
