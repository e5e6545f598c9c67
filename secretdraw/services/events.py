from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import AlreadyDrawnError, EventFullError, NotFoundError
from ..models import Event, Participant
from ..policies import clean_expected, clean_name, clean_wish
from ..store import EventStore
from ..tokens import new_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreatedEvent:
    event_id: str
    organizer_token: str
    persisted: bool


@dataclass(frozen=True)
class Joined:
    token: str
    persisted: bool


@dataclass(frozen=True)
class ManageView:
    event_id: str
    name: str
    expected_participants: int | None
    participant_names: list[str]
    all_submitted: bool
    expected_reached: bool
    draw_done: bool
    organizer_token_valid: bool

    @property
    def participant_count(self) -> int:
        return len(self.participant_names)

    @property
    def can_draw(self) -> bool:
        return self.all_submitted and self.expected_reached and not self.draw_done


@dataclass(frozen=True)
class ParticipantView:
    self_name: str
    ready: bool
    recipient_name: str | None = None
    recipient_wish: str | None = None


def create_event(
    store: EventStore,
    name: str,
    organizer_name: str,
    organizer_wish: str = "",
    expected: int | str | None = None,
) -> CreatedEvent:
    event_name = clean_name(name, "Draw name")
    organizer = clean_name(organizer_name, "Organizer name")
    wish = clean_wish(organizer_wish)
    expected_count = clean_expected(expected) if expected is not None else None

    organizer_token = new_token()
    event = Event(
        name=event_name,
        expected_participants=expected_count,
        participants={organizer_token: Participant(name=organizer, wish=wish, submitted=True)},
        created_at=store.clock(),
    )
    committed = store.create(event)
    return CreatedEvent(committed.value, organizer_token, committed.persisted)


def join_event(store: EventStore, event_id: str, name: str, wish: str = "") -> Joined:
    # Unknown event first, then closed or full, then the form fields.
    def add(event: Event) -> str:
        if event.draw_done:
            raise AlreadyDrawnError("Registration is closed, the draw already ran.")
        if event.is_full():
            raise EventFullError("Draw is full - maximum participants reached.")
        participant = Participant(name=clean_name(name), wish=clean_wish(wish), submitted=True)
        token = new_token()
        while token in event.participants:
            token = new_token()
        event.participants[token] = participant
        return token

    committed = store.mutate(event_id, add)
    return Joined(committed.value, committed.persisted)


def event_name(store: EventStore, event_id: str) -> str:
    return store.read(event_id, lambda event: event.name)


def manage_view(store: EventStore, event_id: str, organizer_token: str | None = None) -> ManageView:
    """
    Organizer-facing roster. Names and readiness only: recipient data is
    never part of this view, before or after the draw.
    """
    def build(event: Event) -> ManageView:
        return ManageView(
            event_id=event_id,
            name=event.name,
            expected_participants=event.expected_participants,
            participant_names=sorted(p.name for p in event.participants.values()),
            all_submitted=event.all_submitted(),
            expected_reached=event.expected_reached(),
            draw_done=event.draw_done,
            organizer_token_valid=bool(organizer_token) and organizer_token in event.participants,
        )

    return store.read(event_id, build)


def resolve_view(store: EventStore, event_id: str, token: str) -> ParticipantView:
    """
    What the holder of token may see: their own name and, after the draw,
    their recipient's name and wish. Nothing else about the event.
    """
    def build(event: Event) -> ParticipantView:
        me = event.participants.get(token)
        if me is None:
            raise NotFoundError()
        if not event.draw_done:
            return ParticipantView(self_name=me.name, ready=False)
        recipient = event.participants.get(me.gift_for)
        if recipient is None:
            logger.warning("Participant without a recipient in a completed draw.")
            return ParticipantView(self_name=me.name, ready=False)
        return ParticipantView(
            self_name=me.name,
            ready=True,
            recipient_name=recipient.name,
            recipient_wish=recipient.wish,
        )

    return store.read(event_id, build)
