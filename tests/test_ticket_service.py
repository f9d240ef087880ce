"""Tests for ticket lifecycle operations."""

from __future__ import annotations

import asyncio

import pytest

from coprodesk.core.config import TicketConfig
from coprodesk.core.errors import (
    AuthorizationError,
    BackendError,
    InputValidationError,
    NotFoundError,
)
from coprodesk.core.types import CommentType, TicketStatus, UserRole
from coprodesk.notifications.feed import CommentFeed
from coprodesk.storage.attachments import LocalAttachmentStorage
from coprodesk.tickets.filters import TicketFilters
from coprodesk.tickets.models import Attachment, TicketDraft
from coprodesk.tickets.service import TicketService
from coprodesk.tickets.store import TicketStore
from tests.conftest import BUILDING, OTHER_BUILDING, make_user

OWNER = make_user(UserRole.OWNER, "u-owner")
COUNCIL = make_user(UserRole.COUNCIL, "u-council")
SYNDIC = make_user(UserRole.SYNDIC, "u-syndic")
ASL = make_user(UserRole.ASL, "u-asl", building=None)


class FlakyTicketStore(TicketStore):
    """Fails the first ``failures`` list calls."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.calls = 0

    def list_tickets(self, query):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("backend unreachable")
        return super().list_tickets(query)


class SlowCommentStore(TicketStore):
    """Suspends inside ``add_comment`` so another operation can run."""

    async def add_comment(self, comment):
        await asyncio.sleep(0)
        return super().add_comment(comment)


@pytest.fixture
def feed() -> CommentFeed:
    return CommentFeed()


@pytest.fixture
def store() -> TicketStore:
    return TicketStore()


@pytest.fixture
def service(store, feed, tmp_path) -> TicketService:
    storage = LocalAttachmentStorage(tmp_path / "uploads", "http://files.test")
    return TicketService(store, storage, feed, TicketConfig(retry_delay_seconds=0))


def _draft(**kwargs) -> TicketDraft:
    data = {"title": "Ascenseur en panne", "description": "Bloqué au 3e étage"}
    data.update(kwargs)
    return TicketDraft(**data)


class TestCreate:
    async def test_owner_ticket_forced_to_council_and_own_building(self, service) -> None:
        ticket = await service.create(
            OWNER, _draft(building=OTHER_BUILDING, recipient_role=UserRole.ASL)
        )
        assert ticket.recipient_role is UserRole.COUNCIL
        assert ticket.building == BUILDING
        assert ticket.creator_id == OWNER.id
        assert ticket.status is TicketStatus.OPEN
        assert ticket.code.startswith("TK-")

    async def test_council_must_address_syndic(self, service) -> None:
        with pytest.raises(AuthorizationError):
            await service.create(COUNCIL, _draft(recipient_role=UserRole.ASL))
        ticket = await service.create(COUNCIL, _draft(recipient_role=UserRole.SYNDIC))
        assert ticket.recipient_role is UserRole.SYNDIC

    async def test_recipient_required_for_non_owner(self, service) -> None:
        with pytest.raises(InputValidationError):
            await service.create(COUNCIL, _draft())

    async def test_building_required_for_admin(self, service) -> None:
        with pytest.raises(InputValidationError):
            await service.create(ASL, _draft(recipient_role=UserRole.SYNDIC))

    async def test_title_required(self, service) -> None:
        with pytest.raises(InputValidationError):
            await service.create(OWNER, _draft(title="   "))

    async def test_pending_user_refused(self, service, store) -> None:
        with pytest.raises(AuthorizationError):
            await service.create(make_user(UserRole.PENDING), _draft())
        assert store.ticket_count == 0

    async def test_inactive_user_refused(self, service) -> None:
        with pytest.raises(AuthorizationError):
            await service.create(make_user(UserRole.OWNER, active=False), _draft())

    async def test_attachments_uploaded_and_named(self, service, tmp_path) -> None:
        draft = _draft(
            attachments=[Attachment(filename="photo fuite.jpg", content=b"\xff\xd8")]
        )
        ticket = await service.create(OWNER, draft)
        assert ticket.attachments == ["photo_fuite.jpg"]
        assert len(list((tmp_path / "uploads").rglob("photo_fuite.jpg"))) == 1


class TestListing:
    async def test_list_visible_scoped_by_role(self, service) -> None:
        await service.create(OWNER, _draft())
        await service.create(COUNCIL, _draft(recipient_role=UserRole.SYNDIC))
        assert len(await service.list_visible(OWNER)) == 1
        assert len(await service.list_visible(SYNDIC)) == 2
        assert len(await service.list_visible(ASL)) == 2

    async def test_pending_gets_empty_list(self, service) -> None:
        await service.create(OWNER, _draft())
        assert await service.list_visible(make_user(UserRole.PENDING)) == []

    async def test_status_filter(self, service) -> None:
        ticket = await service.create(OWNER, _draft())
        await service.close(OWNER, ticket.id)
        await service.create(OWNER, _draft())
        closed = await service.list_visible(OWNER, TicketFilters(status="cloture"))
        assert [t.id for t in closed] == [ticket.id]

    async def test_retries_then_succeeds(self, feed, tmp_path) -> None:
        store = FlakyTicketStore(failures=2)
        service = TicketService(
            store,
            LocalAttachmentStorage(tmp_path, "http://files.test"),
            feed,
            TicketConfig(list_retries=2, retry_delay_seconds=0),
        )
        assert await service.list_visible(ASL) == []
        assert store.calls == 3

    async def test_surfaces_error_after_retries(self, feed, tmp_path) -> None:
        store = FlakyTicketStore(failures=5)
        service = TicketService(
            store,
            LocalAttachmentStorage(tmp_path, "http://files.test"),
            feed,
            TicketConfig(list_retries=2, retry_delay_seconds=0),
        )
        with pytest.raises(BackendError):
            await service.list_visible(ASL)
        assert store.calls == 3

    async def test_get_invisible_ticket_is_not_found(self, service) -> None:
        ticket = await service.create(OWNER, _draft())
        other = make_user(UserRole.OWNER, "u-other")
        with pytest.raises(NotFoundError):
            await service.get(other, ticket.id)


class TestReply:
    async def test_reply_adds_comment_and_touches_ticket(self, service, store) -> None:
        ticket = await service.create(OWNER, _draft())
        comment = await service.reply(COUNCIL, ticket.id, "Nous passons demain")
        assert comment.type is CommentType.REPLY
        assert store.get_ticket(ticket.id).updated_at == comment.created_at
        assert [c.id for c in await service.comments(OWNER, ticket.id)] == [comment.id]

    async def test_reply_publishes_event(self, service, feed) -> None:
        subscription = feed.subscribe()
        ticket = await service.create(OWNER, _draft())
        await service.reply(COUNCIL, ticket.id, "Vu")
        events = subscription.drain()
        assert len(events) == 1
        assert events[0].ticket.id == ticket.id
        assert events[0].comment.author_id == COUNCIL.id

    async def test_attachment_urls_appended(self, service) -> None:
        ticket = await service.create(OWNER, _draft())
        comment = await service.reply(
            OWNER,
            ticket.id,
            "Voir photo",
            [Attachment(filename="plafond.png", content=b"png")],
        )
        assert comment.message.startswith("Voir photo\n\n")
        assert "Pièce jointe : http://files.test/" in comment.message
        assert comment.message.endswith("/plafond.png")

    async def test_empty_reply_refused(self, service) -> None:
        ticket = await service.create(OWNER, _draft())
        with pytest.raises(InputValidationError):
            await service.reply(OWNER, ticket.id, "  ")

    async def test_reply_requires_visibility(self, service) -> None:
        ticket = await service.create(OWNER, _draft())
        far_syndic = make_user(UserRole.SYNDIC, "u-far", building=OTHER_BUILDING)
        with pytest.raises(NotFoundError):
            await service.reply(far_syndic, ticket.id, "Bonjour")


class TestCloseReopen:
    async def test_close_stamps_closer(self, service) -> None:
        ticket = await service.create(OWNER, _draft())
        closed = await service.close(COUNCIL, ticket.id)
        assert closed.status is TicketStatus.CLOSED
        assert closed.closed_by == COUNCIL.id
        assert closed.closed_at is not None

    async def test_reopen_clears_closer(self, service) -> None:
        ticket = await service.create(OWNER, _draft())
        await service.close(OWNER, ticket.id)
        reopened = await service.reopen(OWNER, ticket.id)
        assert reopened.status is TicketStatus.OPEN
        assert reopened.closed_by is None
        assert reopened.closed_at is None

    async def test_toggle(self, service) -> None:
        ticket = await service.create(OWNER, _draft())
        assert (await service.toggle_closed(OWNER, ticket.id)).status is TicketStatus.CLOSED
        assert (await service.toggle_closed(OWNER, ticket.id)).status is TicketStatus.OPEN


class TestTransfer:
    async def test_transfer_updates_ticket_and_adds_comment(self, service, store) -> None:
        ticket = await service.create(OWNER, _draft())
        transferred, comment = await service.transfer(
            COUNCIL, ticket.id, UserRole.SYNDIC, "Urgent"
        )
        assert transferred.recipient_role is UserRole.SYNDIC
        assert transferred.status is TicketStatus.TRANSFERRED
        assert transferred.updated_at == comment.created_at
        assert comment.type is CommentType.TRANSFER
        assert comment.target_role is UserRole.SYNDIC
        assert comment.message == "Ticket transmis à Syndicat de copropriété\n\nUrgent"
        assert store.get_ticket(ticket.id) == transferred
        assert store.latest_comment(ticket.id) == comment

    async def test_transfer_must_follow_chain(self, service, store) -> None:
        ticket = await service.create(OWNER, _draft())
        with pytest.raises(AuthorizationError):
            await service.transfer(COUNCIL, ticket.id, UserRole.ASL)
        # nothing written
        assert store.get_ticket(ticket.id).recipient_role is UserRole.COUNCIL
        assert store.list_comments(ticket.id) == []

    async def test_closed_ticket_cannot_be_transferred(self, service) -> None:
        ticket = await service.create(OWNER, _draft())
        await service.close(OWNER, ticket.id)
        with pytest.raises(InputValidationError):
            await service.transfer(COUNCIL, ticket.id, UserRole.SYNDIC)

    async def test_asl_may_send_back_down(self, service) -> None:
        ticket = await service.create(OWNER, _draft())
        transferred, _ = await service.transfer(ASL, ticket.id, UserRole.OWNER)
        assert transferred.recipient_role is UserRole.OWNER

    async def test_transfer_publishes_event(self, service, feed) -> None:
        subscription = feed.subscribe()
        ticket = await service.create(OWNER, _draft())
        await service.transfer(COUNCIL, ticket.id, UserRole.SYNDIC)
        (event,) = subscription.drain()
        assert event.ticket.recipient_role is UserRole.SYNDIC


class TestInterleavedWrites:
    async def test_reply_keeps_concurrent_transfer(self, feed, tmp_path) -> None:
        store = SlowCommentStore()
        service = TicketService(
            store,
            LocalAttachmentStorage(tmp_path, "http://files.test"),
            feed,
            TicketConfig(retry_delay_seconds=0),
        )
        ticket = await service.create(OWNER, _draft())

        await asyncio.gather(
            service.reply(OWNER, ticket.id, "Toujours en panne"),
            service.transfer(COUNCIL, ticket.id, UserRole.SYNDIC),
        )

        stored = store.get_ticket(ticket.id)
        assert stored.recipient_role is UserRole.SYNDIC
        assert stored.status is TicketStatus.TRANSFERRED
        assert sorted(c.type for c in store.list_comments(ticket.id)) == [
            CommentType.REPLY,
            CommentType.TRANSFER,
        ]

    async def test_close_keeps_routing_columns(self, service, store) -> None:
        ticket = await service.create(OWNER, _draft())
        await service.transfer(COUNCIL, ticket.id, UserRole.SYNDIC)
        closed = await service.close(SYNDIC, ticket.id)
        assert closed.recipient_role is UserRole.SYNDIC
        assert store.get_ticket(ticket.id) == closed

    async def test_reply_publishes_stored_ticket(self, service, feed) -> None:
        ticket = await service.create(OWNER, _draft())
        await service.transfer(COUNCIL, ticket.id, UserRole.SYNDIC)
        subscription = feed.subscribe()
        await service.reply(SYNDIC, ticket.id, "Intervention prévue")
        (event,) = subscription.drain()
        assert event.ticket.recipient_role is UserRole.SYNDIC
        assert event.ticket.updated_at == event.comment.created_at
