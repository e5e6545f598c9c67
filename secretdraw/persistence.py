from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from .errors import PersistenceError, SealedDataError
from .models import Event
from .security import AssignmentSealer

logger = logging.getLogger(__name__)


class SnapshotFile:
    """
    The whole store as one pretty-printed JSON document, rewritten in full on
    every save. Writes land in a sibling temp file first and are renamed over
    the target.
    """
    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def read(self) -> dict | None:
        """Parsed document, or None when no file exists yet."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        try:
            document = json.loads(text)
        except ValueError as e:
            raise PersistenceError(f"Cannot parse {self.path}: {e}") from e
        if not isinstance(document, dict):
            raise PersistenceError(f"Unexpected document in {self.path}")
        return document

    def write(self, document: dict) -> None:
        temp = self.path.with_name(self.path.name + ".tmp")
        try:
            temp.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(temp, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e

    def keep_aside(self, suffix: str) -> Path | None:
        """
        Rename an unusable data file out of the way so the next save does not
        overwrite it. Returns the new path, or None when there was nothing to move.
        """
        target = self.path.with_name(f"{self.path.name}.unreadable-{suffix}")
        try:
            os.replace(self.path, target)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Cannot move {self.path} aside: {e}") from e
        return target


def encode_store(events: dict[str, Event], sealer: AssignmentSealer | None = None) -> dict:
    encoded = {}
    for event_id, event in events.items():
        data = event.to_dict()
        assignments = event.assignments()
        if sealer is not None and assignments:
            for participant in data["participants"].values():
                participant["giftFor"] = ""
            data["sealedAssignments"] = sealer.seal(event_id, assignments)
        encoded[event_id] = data
    return {"events": encoded}


def decode_store(document: dict, sealer: AssignmentSealer | None = None) -> dict[str, Event]:
    raw_events = document.get("events") or {}
    if not isinstance(raw_events, dict):
        raise PersistenceError("'events' must be a mapping")

    events: dict[str, Event] = {}
    for event_id, data in raw_events.items():
        try:
            event = Event.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(f"Malformed event {event_id!r}: {e}") from e

        sealed = data.get("sealedAssignments")
        if sealed is not None and not isinstance(sealed, str):
            raise PersistenceError(f"Malformed sealed assignments in event {event_id!r}")
        if sealed:
            if sealer is None:
                raise SealedDataError("Data file holds sealed assignments but no key is configured")
            for giver, recipient in sealer.unseal(event_id, sealed).items():
                if giver in event.participants:
                    event.participants[giver].gift_for = recipient
        _upgrade_name_references(event)
        events[str(event_id)] = event
    return events


def _upgrade_name_references(event: Event) -> None:
    """
    Older data files stored the recipient's name in giftFor. Rewrite those to
    tokens when the name identifies exactly one participant.
    """
    by_name: dict[str, list[str]] = {}
    for token, participant in event.participants.items():
        by_name.setdefault(participant.name, []).append(token)

    for participant in event.participants.values():
        ref = participant.gift_for
        if not ref or ref in event.participants:
            continue
        matches = by_name.get(ref, [])
        if len(matches) == 1:
            participant.gift_for = matches[0]
        else:
            logger.warning("Unresolvable recipient reference in a stored draw.")
            participant.gift_for = ""
