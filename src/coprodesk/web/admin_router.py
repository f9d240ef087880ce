"""FastAPI router for user, category and building administration."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from coprodesk.admin.service import AdminService
from coprodesk.auth.middleware import current_user, require_roles
from coprodesk.auth.models import User
from coprodesk.core.types import UserRole
from coprodesk.web.auth_router import user_payload

router = APIRouter()

ADMIN_ONLY = require_roles(UserRole.SUPERADMIN, UserRole.ASL)


# --- Request models ---


class CreateUserRequest(BaseModel):
    email: str
    password: str
    role: UserRole = UserRole.OWNER
    building: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    active: bool = True


class UpdateUserRequest(BaseModel):
    role: UserRole | None = None
    building: str | None = None
    active: bool | None = None
    first_name: str | None = None
    last_name: str | None = None


class CategoryRequest(BaseModel):
    name: str


class BuildingRequest(BaseModel):
    name: str
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    description: str | None = None
    active: bool = True
    syndic_name: str | None = None
    syndic_contact_last_name: str | None = None
    syndic_contact_first_name: str | None = None
    syndic_email: str | None = None
    syndic_phone: str | None = None


class BuildingUpdateRequest(BaseModel):
    name: str | None = None
    address: str | None = None
    city: str | None = None
    postal_code: str | None = None
    description: str | None = None
    active: bool | None = None
    syndic_name: str | None = None
    syndic_contact_last_name: str | None = None
    syndic_contact_first_name: str | None = None
    syndic_email: str | None = None
    syndic_phone: str | None = None


def _admin(request: Request) -> AdminService:
    return request.app.state.admin_service


def _drop_nulls(changes: dict[str, Any], *keys: str) -> dict[str, Any]:
    """Remove explicit nulls sent for fields that are not nullable."""
    return {k: v for k, v in changes.items() if not (k in keys and v is None)}


# --- Users ---


@router.get("/api/admin/users", dependencies=[ADMIN_ONLY])
async def list_users(
    request: Request,
    role: UserRole | None = None,
    search: str = "",
    user: User = Depends(current_user),
) -> list[dict[str, Any]]:
    users = await _admin(request).list_users(user, role=role, search=search)
    return [user_payload(u) for u in users]


@router.post("/api/admin/users", status_code=201, dependencies=[ADMIN_ONLY])
async def create_user(
    body: CreateUserRequest, request: Request, user: User = Depends(current_user)
) -> dict[str, Any]:
    created = await _admin(request).create_user(user, **body.model_dump())
    return user_payload(created)


@router.patch("/api/admin/users/{user_id}", dependencies=[ADMIN_ONLY])
async def update_user(
    user_id: str,
    body: UpdateUserRequest,
    request: Request,
    user: User = Depends(current_user),
) -> dict[str, Any]:
    changes = _drop_nulls(body.model_dump(exclude_unset=True), "role", "active")
    updated = await _admin(request).update_user(user, user_id, changes)
    return user_payload(updated)


# --- Categories ---


@router.get("/api/categories")
async def list_categories(
    request: Request, user: User = Depends(current_user)
) -> list[dict[str, Any]]:
    categories = await _admin(request).list_categories()
    return [c.model_dump(mode="json") for c in categories]


@router.post("/api/categories", status_code=201)
async def add_category(
    body: CategoryRequest, request: Request, user: User = Depends(current_user)
) -> dict[str, Any]:
    category = await _admin(request).add_category(user, body.name)
    return category.model_dump(mode="json")


@router.patch("/api/categories/{category_id}")
async def rename_category(
    category_id: str,
    body: CategoryRequest,
    request: Request,
    user: User = Depends(current_user),
) -> dict[str, Any]:
    category = await _admin(request).rename_category(user, category_id, body.name)
    return category.model_dump(mode="json")


@router.delete("/api/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: str, request: Request, user: User = Depends(current_user)
) -> None:
    await _admin(request).delete_category(user, category_id)


# --- Buildings ---


@router.get("/api/buildings")
async def list_buildings(
    request: Request,
    active_only: bool = False,
    user: User = Depends(current_user),
) -> list[dict[str, Any]]:
    buildings = await _admin(request).list_buildings(active_only=active_only)
    return [b.model_dump(mode="json") for b in buildings]


@router.post("/api/buildings", status_code=201)
async def add_building(
    body: BuildingRequest, request: Request, user: User = Depends(current_user)
) -> dict[str, Any]:
    building = await _admin(request).add_building(user, body.model_dump())
    return building.model_dump(mode="json")


@router.patch("/api/buildings/{building_id}")
async def update_building(
    building_id: str,
    body: BuildingUpdateRequest,
    request: Request,
    user: User = Depends(current_user),
) -> dict[str, Any]:
    changes = _drop_nulls(body.model_dump(exclude_unset=True), "active")
    building = await _admin(request).update_building(user, building_id, changes)
    return building.model_dump(mode="json")


@router.delete("/api/buildings/{building_id}", status_code=204)
async def delete_building(
    building_id: str, request: Request, user: User = Depends(current_user)
) -> None:
    await _admin(request).delete_building(user, building_id)
