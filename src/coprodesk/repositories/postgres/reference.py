"""PostgreSQL repositories for categories and buildings."""

from __future__ import annotations

from sqlalchemy import delete, func, select

from coprodesk.admin.models import Building, Category
from coprodesk.core.types import ensure_utc
from coprodesk.db.engine import DatabaseManager
from coprodesk.db.models import BuildingRow, CategoryRow

_BUILDING_FIELDS = (
    "name",
    "address",
    "city",
    "postal_code",
    "description",
    "active",
    "syndic_name",
    "syndic_contact_last_name",
    "syndic_contact_first_name",
    "syndic_email",
    "syndic_phone",
)


class PostgresCategoryRepository:
    """Postgres-backed category storage."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def save(self, category: Category) -> Category:
        async with self._db.session() as db:
            row = await db.get(CategoryRow, category.id)
            if row is None:
                db.add(CategoryRow(id=category.id, name=category.name, created_at=category.created_at))
            else:
                row.name = category.name
            await db.commit()
        return category

    async def get(self, category_id: str) -> Category | None:
        async with self._db.session() as db:
            row = await db.get(CategoryRow, category_id)
            if row is None:
                return None
            return Category(id=row.id, name=row.name, created_at=ensure_utc(row.created_at))

    async def delete(self, category_id: str) -> bool:
        async with self._db.session() as db:
            result = await db.execute(delete(CategoryRow).where(CategoryRow.id == category_id))
            await db.commit()
            return result.rowcount > 0

    async def list_all(self) -> list[Category]:
        async with self._db.session() as db:
            result = await db.execute(select(CategoryRow).order_by(func.lower(CategoryRow.name)))
            return [
                Category(id=r.id, name=r.name, created_at=ensure_utc(r.created_at))
                for r in result.scalars().all()
            ]


class PostgresBuildingRepository:
    """Postgres-backed building (copropriété) storage."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def save(self, building: Building) -> Building:
        async with self._db.session() as db:
            row = await db.get(BuildingRow, building.id)
            if row is None:
                row = BuildingRow(id=building.id)
                db.add(row)
            for field in _BUILDING_FIELDS:
                setattr(row, field, getattr(building, field))
            await db.commit()
        return building

    async def get(self, building_id: str) -> Building | None:
        async with self._db.session() as db:
            row = await db.get(BuildingRow, building_id)
            return self._row_to_building(row) if row else None

    async def delete(self, building_id: str) -> bool:
        async with self._db.session() as db:
            result = await db.execute(delete(BuildingRow).where(BuildingRow.id == building_id))
            await db.commit()
            return result.rowcount > 0

    async def list_all(self, active_only: bool = False) -> list[Building]:
        stmt = select(BuildingRow).order_by(func.lower(BuildingRow.name))
        if active_only:
            stmt = stmt.where(BuildingRow.active.is_(True))
        async with self._db.session() as db:
            result = await db.execute(stmt)
            return [self._row_to_building(r) for r in result.scalars().all()]

    @staticmethod
    def _row_to_building(row: BuildingRow) -> Building:
        return Building(id=row.id, **{f: getattr(row, f) for f in _BUILDING_FIELDS})
