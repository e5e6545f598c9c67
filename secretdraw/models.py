from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from .policies import MIN_PARTICIPANTS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Participant:
    name: str
    wish: str = ""
    # Token of the participant this one gives to; empty until the draw.
    gift_for: str = ""
    submitted: bool = True

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "wish": self.wish,
            "giftFor": self.gift_for,
            "submitted": self.submitted,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Participant":
        return cls(
            name=str(data["name"]),
            wish=str(data.get("wish") or ""),
            gift_for=str(data.get("giftFor") or ""),
            submitted=bool(data.get("submitted", False)),
        )


@dataclass
class Event:
    name: str
    expected_participants: int | None = None
    participants: dict[str, Participant] = field(default_factory=dict)
    draw_done: bool = False
    created_at: datetime = field(default_factory=utcnow)

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    def is_full(self) -> bool:
        return (
            self.expected_participants is not None
            and len(self.participants) >= self.expected_participants
        )

    def all_submitted(self) -> bool:
        return all(p.submitted for p in self.participants.values())

    def expected_reached(self) -> bool:
        if self.expected_participants is None:
            return len(self.participants) >= MIN_PARTICIPANTS
        return len(self.participants) >= self.expected_participants

    def assignments(self) -> dict[str, str]:
        """giver token -> recipient token, empty before the draw."""
        return {t: p.gift_for for t, p in self.participants.items() if p.gift_for}

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "expectedParticipants": self.expected_participants,
            "participants": {t: p.to_dict() for t, p in self.participants.items()},
            "drawDone": self.draw_done,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        created_at = datetime.fromisoformat(data["createdAt"])
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        expected = data.get("expectedParticipants")
        return cls(
            name=str(data["name"]),
            expected_participants=int(expected) if expected is not None else None,
            participants={
                str(t): Participant.from_dict(p)
                for t, p in (data.get("participants") or {}).items()
            },
            draw_done=bool(data.get("drawDone", False)),
            created_at=created_at,
        )
