import random
import threading

import pytest

from secretdraw.errors import AlreadyDrawnError, InsufficientParticipantsError, NotFoundError
from secretdraw.services.draws import build_cycle, run_draw
from secretdraw.services.events import resolve_view


def _follow(assignments, start):
    seen, current = [], start
    for _ in range(len(assignments)):
        current = assignments[current]
        seen.append(current)
    return seen


@pytest.mark.parametrize("n", [2, 3, 4, 7, 50])
def test_build_cycle_is_a_single_cycle(n):
    tokens = [f"t{i}" for i in range(n)]

    for seed in range(20):
        assignments = build_cycle(tokens, random.Random(seed))

        assert set(assignments) == set(tokens)
        assert sorted(assignments.values()) == sorted(tokens)
        for start in tokens:
            walk = _follow(assignments, start)
            assert walk[-1] == start
            assert set(walk) == set(tokens)


def test_build_cycle_does_not_reorder_input():
    tokens = ["a", "b", "c"]
    build_cycle(tokens, random.Random(0))
    assert tokens == ["a", "b", "c"]


def test_build_cycle_needs_two_tokens():
    with pytest.raises(InsufficientParticipantsError):
        build_cycle(["solo"])


def test_build_cycle_covers_every_cyclic_order():
    # 3 participants have exactly two directed 3-cycles; both should turn up.
    seen = {tuple(sorted(build_cycle("abc", random.Random(seed)).items())) for seed in range(50)}
    assert len(seen) == 2


def test_draw_forms_one_cycle_over_the_event(store, make_event, rng):
    event_id, tokens = make_event("Alice", "Bob", "Carol", "Dave", "Erin", expected=5)

    committed = run_draw(store, event_id, rng)

    assert committed.persisted
    event = store.get(event_id)
    assert event.draw_done
    assignments = event.assignments()
    assert set(assignments) == set(tokens.values())
    for token, participant in event.participants.items():
        assert participant.gift_for != token
        assert event.participants[participant.gift_for].name != participant.name
        walk = _follow(assignments, token)
        assert walk[-1] == token and set(walk) == set(tokens.values())


def test_second_draw_is_rejected_and_keeps_the_first(store, make_event, rng):
    event_id, _ = make_event("Alice", "Bob", "Carol")
    run_draw(store, event_id, rng)
    first = store.get(event_id).assignments()

    with pytest.raises(AlreadyDrawnError):
        run_draw(store, event_id, random.Random(99))

    assert store.get(event_id).assignments() == first


def test_concurrent_draws_run_exactly_once(store, make_event):
    event_id, _ = make_event("Alice", "Bob", "Carol", "Dave", "Erin")
    start = threading.Barrier(8, timeout=5)
    outcomes = []

    def draw(seed):
        start.wait()
        try:
            run_draw(store, event_id, random.Random(seed))
            outcomes.append(("ok", store.get(event_id).assignments()))
        except AlreadyDrawnError:
            outcomes.append(("already", None))

    threads = [threading.Thread(target=draw, args=(seed,)) for seed in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    winners = [assignments for outcome, assignments in outcomes if outcome == "ok"]
    assert len(winners) == 1
    assert [outcome for outcome, _ in outcomes].count("already") == 7
    assert store.get(event_id).assignments() == winners[0]


def test_draw_with_two_participants_is_rejected(store, make_event, rng):
    event_id, _ = make_event("Alice", "Bob")

    with pytest.raises(InsufficientParticipantsError):
        run_draw(store, event_id, rng)

    event = store.get(event_id)
    assert not event.draw_done
    assert all(p.gift_for == "" for p in event.participants.values())


def test_draw_on_unknown_event(store, rng):
    with pytest.raises(NotFoundError):
        run_draw(store, "f" * 32, rng)


def test_office_party(store, make_event, rng):
    event_id, tokens = make_event(
        "Alice", "Bob", "Carol", expected=3, wishes={"Alice": "socks", "Carol": "books"}
    )
    run_draw(store, event_id, rng)

    event = store.get(event_id)
    names = {t: p.name for t, p in event.participants.items()}
    recipients = {names[t]: names[p.gift_for] for t, p in event.participants.items()}
    assert sorted(recipients.values()) == ["Alice", "Bob", "Carol"]
    assert all(giver != recipient for giver, recipient in recipients.items())

    view = resolve_view(store, event_id, tokens["Alice"])
    wishes = {"Alice": "socks", "Bob": "", "Carol": "books"}
    assert view.ready
    assert view.self_name == "Alice"
    assert view.recipient_name == recipients["Alice"]
    assert view.recipient_wish == wishes[recipients["Alice"]]


def test_duplicate_names_resolve_by_token(store, make_event, rng):
    event_id, _ = make_event("Sam", "Sam", "Sam", wishes={})
    # Give each Sam a distinct wish so the lookup can be checked.
    tokens = list(store.get(event_id).participants)
    store.mutate(event_id, lambda e: [setattr(e.participants[t], "wish", f"wish-{i}") for i, t in enumerate(tokens)])
    run_draw(store, event_id, rng)

    event = store.get(event_id)
    for token in tokens:
        recipient = event.participants[token].gift_for
        view = resolve_view(store, event_id, token)
        assert view.recipient_wish == event.participants[recipient].wish
        assert recipient != token
