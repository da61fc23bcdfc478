from __future__ import annotations

from dataclasses import dataclass

from medrent.domain.entities.pricing import Money, RateTable


@dataclass(frozen=True)
class Branch:
    branch_id: str
    name: str
    location: str
    cross_branch_delivery_fee: Money | None = None  # falls back to settings when None


@dataclass(frozen=True)
class EquipmentCategory:
    category_id: str
    display_name: str
    rates: RateTable
    notes: str | None = None
