"""FastAPI application for coprodesk.

Wires the auth provider, stores, ticket and admin services and the
notification center onto ``app.state`` and exposes the REST API.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from coprodesk import __version__
from coprodesk.admin.service import AdminService
from coprodesk.admin.store import BuildingStore, CategoryStore
from coprodesk.auth.middleware import AuthMiddleware
from coprodesk.auth.models import User
from coprodesk.auth.provider import MockAuthProvider
from coprodesk.auth.store import UserStore
from coprodesk.core.config import Settings
from coprodesk.core.errors import CoproDeskError
from coprodesk.notifications.center import NotificationCenter
from coprodesk.notifications.feed import CommentFeed
from coprodesk.notifications.read_state import (
    InMemoryReadStore,
    JsonFileReadStore,
    ReadStatePort,
)
from coprodesk.repositories import resolve
from coprodesk.storage.attachments import LocalAttachmentStorage
from coprodesk.tickets.filters import FilterStateStore
from coprodesk.tickets.service import TicketService
from coprodesk.tickets.store import TicketStore
from coprodesk.web.admin_router import router as admin_router
from coprodesk.web.auth_router import router as auth_router
from coprodesk.web.notification_router import router as notification_router
from coprodesk.web.ticket_router import router as ticket_router

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[3]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str = __version__
    storage: str


# --- Wiring helpers ---


def _fixtures_path(settings: Settings) -> Path:
    path = Path(settings.auth.fixtures_path)
    if not path.is_absolute() and not path.exists():
        path = _PROJECT_ROOT / path
    return path


def _read_store(settings: Settings) -> ReadStatePort:
    backend = settings.notification.read_state_backend
    if backend == "json":
        return JsonFileReadStore(settings.notification.read_state_dir)
    if backend != "memory":
        logger.warning("Unknown read state backend %r, using memory", backend)
    return InMemoryReadStore()


def _profiles(provider: MockAuthProvider) -> list[User]:
    return [
        User.model_validate({**p, "username": p.get("username") or p["email"]})
        for p in provider.profiles
    ]


async def _seed_users(users: Any, profiles: list[User]) -> int:
    """Save every fixture profile that is not stored yet."""
    seeded = 0
    for profile in profiles:
        if await resolve(users.get(profile.id)) is None:
            await resolve(users.save(profile))
            seeded += 1
    return seeded


def _install_error_handler(app: FastAPI) -> None:
    @app.exception_handler(CoproDeskError)
    async def handle_coprodesk_error(request: Request, exc: CoproDeskError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# --- Application factory ---


def create_app(
    settings: Settings | None = None,
    auth_provider: MockAuthProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances.
    When ``settings.db.database_url`` is set, SQLAlchemy repositories are
    used instead of the in-memory stores.
    """
    if settings is None:
        settings = Settings()

    logging.getLogger("coprodesk").setLevel(settings.log_level.upper())

    if auth_provider is None:
        if settings.auth.provider != "mock":
            logger.warning("Unknown auth provider %r, using mock", settings.auth.provider)
        auth_provider = MockAuthProvider(
            fixtures_path=_fixtures_path(settings),
            token_expiry_minutes=settings.auth.token_expiry_minutes,
            password_rounds=settings.auth.password_rounds,
        )
    profiles = _profiles(auth_provider)

    db_manager = None
    if settings.db.database_url:
        from coprodesk.db.engine import DatabaseManager
        from coprodesk.repositories.postgres.reference import (
            PostgresBuildingRepository,
            PostgresCategoryRepository,
        )
        from coprodesk.repositories.postgres.tickets import PostgresTicketRepository
        from coprodesk.repositories.postgres.users import PostgresUserRepository

        db_manager = DatabaseManager.from_config(settings.db)
        user_store: Any = PostgresUserRepository(db_manager)
        ticket_store: Any = PostgresTicketRepository(db_manager)
        category_store: Any = PostgresCategoryRepository(db_manager)
        building_store: Any = PostgresBuildingRepository(db_manager)
    else:
        user_store = UserStore()
        for profile in profiles:
            user_store.save(profile)
        ticket_store = TicketStore()
        category_store = CategoryStore()
        building_store = BuildingStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if db_manager is not None:
            if db_manager.is_sqlite:
                await db_manager.create_schema()
            seeded = await _seed_users(user_store, profiles)
            logger.info("Seeded %d fixture users", seeded)
        yield
        if db_manager is not None:
            await db_manager.close()

    app = FastAPI(
        title="coprodesk",
        description="Condominium ticketing service",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    comment_feed = CommentFeed(max_pending=settings.notification.max_pending_events)
    notification_center = NotificationCenter(
        feed=comment_feed,
        tickets=ticket_store,
        read_store=_read_store(settings),
        idle_timeout_seconds=settings.notification.idle_timeout_seconds,
    )
    attachment_storage = LocalAttachmentStorage(
        settings.storage.upload_dir,
        settings.storage.public_base_url,
    )
    ticket_service = TicketService(
        tickets=ticket_store,
        storage=attachment_storage,
        feed=comment_feed,
        config=settings.tickets,
    )
    admin_service = AdminService(
        users=user_store,
        categories=category_store,
        buildings=building_store,
        provider=auth_provider,
    )

    # Store on app state for access in route handlers
    app.state.settings = settings
    app.state.db_manager = db_manager
    app.state.auth_provider = auth_provider
    app.state.user_store = user_store
    app.state.ticket_store = ticket_store
    app.state.category_store = category_store
    app.state.building_store = building_store
    app.state.comment_feed = comment_feed
    app.state.notification_center = notification_center
    app.state.attachment_storage = attachment_storage
    app.state.ticket_service = ticket_service
    app.state.admin_service = admin_service
    app.state.filter_store = FilterStateStore()

    _install_error_handler(app)
    app.add_middleware(AuthMiddleware)

    app.include_router(auth_router)
    app.include_router(ticket_router)
    app.include_router(notification_router)
    app.include_router(admin_router)

    upload_dir = Path(settings.storage.upload_dir)
    if upload_dir.is_dir():
        app.mount("/files", StaticFiles(directory=str(upload_dir)), name="files")

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            service="coprodesk",
            storage="sql" if db_manager is not None else "memory",
        )

    return app


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)
