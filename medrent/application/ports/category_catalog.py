from __future__ import annotations

from abc import ABC, abstractmethod

from medrent.domain.entities.catalog import Branch, EquipmentCategory
from medrent.domain.entities.pricing import RateTable


class CategoryCatalogPort(ABC):
    @abstractmethod
    def get_category(self, category_id: str) -> EquipmentCategory | None:
        """Get equipment category by id."""
        raise NotImplementedError

    @abstractmethod
    def list_categories(self) -> list[EquipmentCategory]:
        raise NotImplementedError

    @abstractmethod
    def get_rates(self, category_id: str) -> RateTable | None:
        """Get daily/weekly/monthly rates. Returns None if category is unknown."""
        raise NotImplementedError

    @abstractmethod
    def get_branch(self, branch_id: str) -> Branch | None:
        raise NotImplementedError

    @abstractmethod
    def list_branches(self) -> list[Branch]:
        """All branches in probing order."""
        raise NotImplementedError
