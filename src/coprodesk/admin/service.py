"""Administration of users, categories and buildings.

Mutations are reserved to ASL and Superadmin. The role check runs before
any write is issued.
"""

from __future__ import annotations

import logging
from typing import Any

from coprodesk.admin.models import Building, Category
from coprodesk.auth.models import AuthCredentials, User
from coprodesk.auth.provider import AuthProvider
from coprodesk.core.errors import AuthorizationError, InputValidationError, NotFoundError
from coprodesk.core.types import UserRole
from coprodesk.repositories import resolve
from coprodesk.repositories.protocols import (
    BuildingRepository,
    CategoryRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

_USER_ADMIN_FIELDS = frozenset({"role", "building", "active", "first_name", "last_name"})
_PROFILE_FIELDS = frozenset({"first_name", "last_name"})


def require_admin(user: User, action: str) -> None:
    if not user.role.is_admin:
        raise AuthorizationError(f"Vous n'avez pas la permission {action}.")


class AdminService:
    """CRUD over users, categories and buildings."""

    def __init__(
        self,
        users: UserRepository,
        categories: CategoryRepository,
        buildings: BuildingRepository,
        provider: AuthProvider,
    ) -> None:
        self._users = users
        self._categories = categories
        self._buildings = buildings
        self._provider = provider

    # -- Users --

    async def list_users(
        self,
        actor: User,
        role: UserRole | None = None,
        search: str = "",
    ) -> list[User]:
        require_admin(actor, "de consulter les utilisateurs")
        users = await resolve(self._users.list_all(role))
        needle = search.strip().lower()
        if not needle:
            return users
        return [
            u for u in users
            if needle in u.username.lower() or needle in u.display_name.lower()
        ]

    async def create_user(
        self,
        actor: User,
        email: str,
        password: str,
        role: UserRole = UserRole.OWNER,
        building: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        active: bool = True,
    ) -> User:
        require_admin(actor, "de créer des utilisateurs")
        if await resolve(self._users.get_by_username(email.strip())) is not None:
            raise InputValidationError("Un utilisateur avec cet email existe déjà")
        result = await resolve(
            self._provider.sign_up(AuthCredentials(email=email, password=password))
        )
        if not result.success or result.user_id is None:
            raise InputValidationError(result.error or "Création de l'utilisateur impossible")
        user = User(
            id=result.user_id,
            username=email.strip(),
            role=role,
            building=building or None,
            first_name=first_name,
            last_name=last_name,
            active=active,
        )
        await resolve(self._users.save(user))
        logger.info("Admin %s created user %s as %s", actor.id, user.id, role.value)
        return user

    async def update_user(self, actor: User, user_id: str, changes: dict[str, Any]) -> User:
        """Change role, building, active flag or names of another user."""
        require_admin(actor, "de modifier des utilisateurs")
        unknown = set(changes) - _USER_ADMIN_FIELDS
        if unknown:
            raise InputValidationError(f"Champs non modifiables : {', '.join(sorted(unknown))}")
        user = await resolve(self._users.get(user_id))
        if user is None:
            raise NotFoundError(f"Utilisateur {user_id!r} introuvable")
        if "role" in changes:
            changes = {**changes, "role": UserRole(changes["role"])}
        updated = user.model_copy(update=changes)
        await resolve(self._users.save(updated))
        logger.info("Admin %s updated user %s: %s", actor.id, user_id, sorted(changes))
        return updated

    async def update_profile(self, user: User, changes: dict[str, Any]) -> User:
        """Let a user edit their own first and last name."""
        unknown = set(changes) - _PROFILE_FIELDS
        if unknown:
            raise AuthorizationError(
                f"Champs non modifiables : {', '.join(sorted(unknown))}"
            )
        current = await resolve(self._users.get(user.id))
        if current is None:
            raise NotFoundError("Profil introuvable")
        updated = current.model_copy(update=changes)
        await resolve(self._users.save(updated))
        return updated

    # -- Categories --

    async def list_categories(self) -> list[Category]:
        return await resolve(self._categories.list_all())

    async def add_category(self, actor: User, name: str) -> Category:
        require_admin(actor, "d'ajouter des catégories")
        name = _required(name, "Le nom de la catégorie ne peut pas être vide.")
        category = Category(name=name)
        await resolve(self._categories.save(category))
        return category

    async def rename_category(self, actor: User, category_id: str, name: str) -> Category:
        require_admin(actor, "de modifier des catégories")
        name = _required(name, "Le nom de la catégorie ne peut pas être vide.")
        category = await resolve(self._categories.get(category_id))
        if category is None:
            raise NotFoundError(f"Catégorie {category_id!r} introuvable")
        renamed = category.model_copy(update={"name": name})
        await resolve(self._categories.save(renamed))
        return renamed

    async def delete_category(self, actor: User, category_id: str) -> None:
        require_admin(actor, "de supprimer des catégories")
        if not await resolve(self._categories.delete(category_id)):
            raise NotFoundError(f"Catégorie {category_id!r} introuvable")

    # -- Buildings --

    async def list_buildings(self, active_only: bool = False) -> list[Building]:
        return await resolve(self._buildings.list_all(active_only))

    async def add_building(self, actor: User, data: dict[str, Any]) -> Building:
        require_admin(actor, "d'ajouter des copropriétés")
        name = _required(data.get("name", ""), "Le nom de la copropriété ne peut pas être vide.")
        building = Building(**{**data, "name": name})
        await resolve(self._buildings.save(building))
        logger.info("Admin %s added building %s", actor.id, building.name)
        return building

    async def update_building(
        self, actor: User, building_id: str, changes: dict[str, Any]
    ) -> Building:
        require_admin(actor, "de modifier des copropriétés")
        if "name" in changes:
            changes = {
                **changes,
                "name": _required(changes["name"], "Le nom de la copropriété ne peut pas être vide."),
            }
        building = await resolve(self._buildings.get(building_id))
        if building is None:
            raise NotFoundError(f"Copropriété {building_id!r} introuvable")
        updated = Building.model_validate({**building.model_dump(), **changes, "id": building.id})
        await resolve(self._buildings.save(updated))
        return updated

    async def delete_building(self, actor: User, building_id: str) -> None:
        require_admin(actor, "de supprimer des copropriétés")
        if not await resolve(self._buildings.delete(building_id)):
            raise NotFoundError(f"Copropriété {building_id!r} introuvable")


def _required(value: str | None, message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InputValidationError(message)
    return value
