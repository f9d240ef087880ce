"""FastAPI router for sign-up, sign-in, sign-out and the current profile."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from coprodesk.auth.middleware import current_user, get_session
from coprodesk.auth.models import User

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(BaseModel):
    email: str
    password: str
    first_name: str | None = None
    last_name: str | None = None


class ProfileUpdateRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None


def user_payload(user: User) -> dict[str, Any]:
    data = user.model_dump(mode="json")
    data["display_name"] = user.display_name
    return data


@router.post("/api/auth/signup", status_code=201)
async def sign_up(body: SignUpRequest, request: Request) -> dict[str, Any]:
    session = get_session(request)
    user = await session.sign_up(body.email, body.password, body.first_name, body.last_name)
    return user_payload(user)


@router.post("/api/auth/login")
async def login(body: LoginRequest, request: Request) -> dict[str, Any]:
    session = get_session(request)
    user = await session.login(body.email, body.password)
    center = request.app.state.notification_center
    await center.open(user)
    return {"token": session.token, "user": user_payload(user)}


@router.post("/api/auth/logout")
async def logout(request: Request, user: User = Depends(current_user)) -> dict[str, Any]:
    await get_session(request).logout()
    return {"signed_out": True}


@router.post("/api/auth/refresh")
async def refresh(request: Request, user: User = Depends(current_user)) -> dict[str, Any]:
    token = await get_session(request).refresh()
    return {"token": token}


@router.get("/api/auth/me")
async def me(user: User = Depends(current_user)) -> dict[str, Any]:
    return user_payload(user)


@router.patch("/api/auth/me")
async def update_me(
    body: ProfileUpdateRequest,
    request: Request,
    user: User = Depends(current_user),
) -> dict[str, Any]:
    admin = request.app.state.admin_service
    updated = await admin.update_profile(user, body.model_dump(exclude_unset=True))
    return user_payload(updated)
