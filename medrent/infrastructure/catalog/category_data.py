from __future__ import annotations

from medrent.domain.entities.catalog import Branch, EquipmentCategory
from medrent.domain.entities.pricing import RateTable

BRANCHES: list[Branch] = [
    Branch(branch_id="hilton", name="Hilton Branch", location="Hilton, KZN", cross_branch_delivery_fee=350),
    Branch(
        branch_id="johannesburg",
        name="Johannesburg Branch",
        location="Johannesburg, GP",
        cross_branch_delivery_fee=450,
    ),
]


def _category(category_id: str, display_name: str, daily: int, weekly: int, monthly: int) -> EquipmentCategory:
    return EquipmentCategory(
        category_id=category_id,
        display_name=display_name,
        rates=RateTable(daily_rate=daily, weekly_rate=weekly, monthly_rate=monthly),
    )


EQUIPMENT_CATEGORIES: dict[str, EquipmentCategory] = {
    c.category_id: c
    for c in (
        _category("electric-hospital-beds", "Electric Hospital Beds", 150, 850, 2800),
        _category("electric-wheelchairs", "Electric Wheelchairs", 200, 1200, 4000),
        _category("wheelchairs", "Wheelchairs", 60, 350, 1200),
        _category("mobility-scooters", "Mobility Scooters", 130, 750, 2500),
        _category("commodes", "Commodes – Mobile Toilets", 35, 200, 650),
        _category("electric-bath-lifts", "Electric Bath Lifts", 100, 600, 1900),
        _category("swivel-bath-chairs", "Swivel Bath Chairs", 50, 300, 950),
        _category("knee-scooters", "Knee Scooters", 70, 400, 1300),
        _category("rollators", "Rollators", 45, 250, 800),
        _category("walker-frames", "Walker (Zimmer) Frames", 25, 150, 500),
        _category("wheelchair-ramps", "Wheelchair Ramps", 85, 500, 1600),
        _category("hoists", "Hoists", 140, 800, 2600),
        _category("oxygen-concentrators", "Oxygen Concentrator Machines", 160, 900, 3000),
    )
}
