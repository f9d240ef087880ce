"""In-memory stores for categories and buildings."""

from __future__ import annotations

from coprodesk.admin.models import Building, Category


class CategoryStore:
    def __init__(self) -> None:
        self._categories: dict[str, Category] = {}

    def save(self, category: Category) -> Category:
        self._categories[category.id] = category
        return category

    def get(self, category_id: str) -> Category | None:
        return self._categories.get(category_id)

    def delete(self, category_id: str) -> bool:
        return self._categories.pop(category_id, None) is not None

    def list_all(self) -> list[Category]:
        return sorted(self._categories.values(), key=lambda c: c.name.lower())


class BuildingStore:
    def __init__(self) -> None:
        self._buildings: dict[str, Building] = {}

    def save(self, building: Building) -> Building:
        self._buildings[building.id] = building
        return building

    def get(self, building_id: str) -> Building | None:
        return self._buildings.get(building_id)

    def delete(self, building_id: str) -> bool:
        return self._buildings.pop(building_id, None) is not None

    def list_all(self, active_only: bool = False) -> list[Building]:
        buildings = [b for b in self._buildings.values() if b.active or not active_only]
        return sorted(buildings, key=lambda b: b.name.lower())
