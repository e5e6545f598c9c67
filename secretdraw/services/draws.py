from __future__ import annotations

import logging
import random
from typing import Sequence

from ..errors import AlreadyDrawnError, InsufficientParticipantsError
from ..models import Event
from ..policies import MIN_PARTICIPANTS
from ..store import Committed, EventStore

logger = logging.getLogger(__name__)

# Shuffle source, seeded once at import from OS entropy. It only has to be
# unbiased and unpredictable; tokens come from secrets, never from here.
_rng = random.Random()


def build_cycle(tokens: Sequence[str], rng: random.Random | None = None) -> dict[str, str]:
    """
    Returns giver -> recipient forming one directed cycle over all tokens.

    Shuffle, then everyone gives to the next person in the shuffled order
    and the last one gives to the first.
    """
    order = list(tokens)
    if len(order) < 2:
        raise InsufficientParticipantsError("Need at least 2 participants to build a cycle.")
    (rng or _rng).shuffle(order)
    n = len(order)
    return {order[i]: order[(i + 1) % n] for i in range(n)}


def run_draw(store: EventStore, event_id: str, rng: random.Random | None = None) -> Committed[None]:
    def draw(event: Event) -> None:
        if event.draw_done:
            raise AlreadyDrawnError("The draw has already been run for this event.")
        if len(event.participants) < MIN_PARTICIPANTS:
            raise InsufficientParticipantsError(f"Need at least {MIN_PARTICIPANTS} participants.")

        for giver, recipient in build_cycle(list(event.participants), rng).items():
            event.participants[giver].gift_for = recipient
        event.draw_done = True

    committed = store.mutate(event_id, draw)
    logger.info("Draw completed (persisted=%s).", committed.persisted)
    return committed
