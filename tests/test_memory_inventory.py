"""
Tests for unit-level stock, blocks and reservation holds.
"""

from __future__ import annotations

from datetime import date

from medrent.domain.entities.booking_record import DateRange
from medrent.infrastructure.inventory.memory_inventory import (
    InventoryUnit,
    MemoryInventory,
    build_demo_inventory,
)

MARCH = DateRange(date(2025, 3, 1), date(2025, 3, 7))


def _beds(count: int = 2) -> MemoryInventory:
    return MemoryInventory(
        [InventoryUnit(f"bed-{n}", "electric-hospital-beds", "hilton") for n in range(1, count + 1)]
    )


def test_counts_only_matching_category_and_branch():
    inventory = _beds(2)
    inventory.add_unit(InventoryUnit("bed-jhb", "electric-hospital-beds", "johannesburg"))
    inventory.add_unit(InventoryUnit("hoist-1", "hoists", "hilton"))

    assert inventory.check_availability("electric-hospital-beds", "hilton", MARCH) == 2
    assert inventory.check_availability("electric-hospital-beds", "johannesburg", MARCH) == 1


def test_unit_out_of_service_is_not_counted():
    inventory = _beds(1)
    inventory.add_unit(InventoryUnit("bed-2", "electric-hospital-beds", "hilton", status="maintenance"))

    assert inventory.check_availability("electric-hospital-beds", "hilton", MARCH) == 1


def test_booking_block_overlap_is_inclusive():
    inventory = _beds(1)
    inventory.add_booking_block("bed-1", date(2025, 3, 7), date(2025, 3, 10))

    assert inventory.check_availability("electric-hospital-beds", "hilton", MARCH) == 0
    later = DateRange(date(2025, 3, 11), date(2025, 3, 12))
    assert inventory.check_availability("electric-hospital-beds", "hilton", later) == 1


def test_maintenance_block_removes_unit():
    inventory = _beds(2)
    inventory.add_maintenance_block("bed-2", date(2025, 2, 25), date(2025, 3, 2), reason="service")

    assert inventory.check_availability("electric-hospital-beds", "hilton", MARCH) == 1


def test_hold_is_idempotent_and_releasable():
    inventory = _beds(1)

    assert inventory.reserve_unit("electric-hospital-beds", "hilton", MARCH, "Q1") is True
    assert inventory.reserve_unit("electric-hospital-beds", "hilton", MARCH, "Q1") is True
    assert inventory.held_unit("Q1") == "bed-1"
    assert inventory.reserve_unit("electric-hospital-beds", "hilton", MARCH, "Q2") is False
    assert inventory.check_availability("electric-hospital-beds", "hilton", MARCH) == 0

    assert inventory.release_unit("Q1") is True
    assert inventory.release_unit("Q1") is False
    assert inventory.check_availability("electric-hospital-beds", "hilton", MARCH) == 1


def test_demo_inventory_covers_every_category():
    inventory = build_demo_inventory()

    assert inventory.check_availability("wheelchairs", "hilton", MARCH) == 2
    assert inventory.check_availability("oxygen-concentrators", "johannesburg", MARCH) == 1
