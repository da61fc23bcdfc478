from __future__ import annotations

from medrent.application.ports.category_catalog import CategoryCatalogPort
from medrent.domain.entities.catalog import Branch, EquipmentCategory
from medrent.domain.entities.pricing import RateTable
from medrent.infrastructure.catalog.category_data import BRANCHES, EQUIPMENT_CATEGORIES


class CategoryCatalogStore(CategoryCatalogPort):
    def __init__(
        self,
        categories: dict[str, EquipmentCategory] | None = None,
        branches: list[Branch] | None = None,
    ) -> None:
        self._categories = categories if categories is not None else EQUIPMENT_CATEGORIES
        self._branches = branches if branches is not None else BRANCHES

    def get_category(self, category_id: str) -> EquipmentCategory | None:
        normalized_key = category_id.lower().strip()
        return self._categories.get(normalized_key)

    def list_categories(self) -> list[EquipmentCategory]:
        return list(self._categories.values())

    def get_rates(self, category_id: str) -> RateTable | None:
        entry = self.get_category(category_id)
        if not entry:
            return None
        return entry.rates

    def get_branch(self, branch_id: str) -> Branch | None:
        normalized_key = branch_id.lower().strip()
        for branch in self._branches:
            if branch.branch_id == normalized_key:
                return branch
        return None

    def list_branches(self) -> list[Branch]:
        return list(self._branches)
