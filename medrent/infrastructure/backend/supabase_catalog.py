from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from medrent.application.exceptions import ExternalServiceError
from medrent.application.ports.category_catalog import CategoryCatalogPort
from medrent.domain.entities.catalog import Branch, EquipmentCategory
from medrent.domain.entities.pricing import RateTable
from medrent.infrastructure.backend.supabase_client import SupabaseClient


class SupabaseCategoryCatalog(CategoryCatalogPort):
    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    def get_category(self, category_id: str) -> EquipmentCategory | None:
        rows = self._client.select(
            "get_category",
            "equipment_categories",
            {"select": "*", "id": f"eq.{category_id.lower().strip()}"},
        )
        return _category_from_row(rows[0]) if rows else None

    def list_categories(self) -> list[EquipmentCategory]:
        rows = self._client.select("list_categories", "equipment_categories", {"select": "*", "order": "name"})
        return [_category_from_row(row) for row in rows]

    def get_rates(self, category_id: str) -> RateTable | None:
        entry = self.get_category(category_id)
        return entry.rates if entry else None

    def get_branch(self, branch_id: str) -> Branch | None:
        rows = self._client.select("get_branch", "branches", {"select": "*", "id": f"eq.{branch_id.lower().strip()}"})
        return _branch_from_row(rows[0]) if rows else None

    def list_branches(self) -> list[Branch]:
        rows = self._client.select("list_branches", "branches", {"select": "*", "order": "sort_order"})
        return [_branch_from_row(row) for row in rows]


def _category_from_row(row: dict[str, Any]) -> EquipmentCategory:
    try:
        return EquipmentCategory(
            category_id=row["id"],
            display_name=row["name"],
            rates=RateTable(
                daily_rate=_money(row["daily_rate"]),
                weekly_rate=_money(row["weekly_rate"]),
                monthly_rate=_money(row["monthly_rate"]),
            ),
            notes=row.get("description"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ExternalServiceError("get_rates", f"malformed category row: {e}") from e


def _branch_from_row(row: dict[str, Any]) -> Branch:
    try:
        fee = row.get("cross_branch_delivery_fee")
        return Branch(
            branch_id=row["id"],
            name=row["name"],
            location=row.get("location") or "",
            cross_branch_delivery_fee=_money(fee) if fee is not None else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ExternalServiceError("get_branch", f"malformed branch row: {e}") from e


def _money(value: Any) -> int:
    """Whole currency units; fractional amounts are malformed."""
    if isinstance(value, bool):
        raise TypeError(f"not an amount: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"not an amount: {value!r}") from e
    if not amount.is_finite() or amount != amount.to_integral_value():
        raise ValueError(f"not a whole amount: {value!r}")
    return int(amount)
