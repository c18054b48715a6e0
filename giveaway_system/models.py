"""
Giveaway Models
Drawing records, creation drafts and their validation
"""

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, Optional, Union

from .config import GIVEAWAY_DEFAULT_SYMBOL
from .errors import InvalidDraft


DeadlineInput = Union[None, datetime, int, float, str]


def truncate_to_minute(moment: datetime) -> datetime:
    """Drop seconds and microseconds, converting to aware UTC"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return moment.replace(second=0, microsecond=0)


def parse_deadline(value: DeadlineInput) -> Optional[datetime]:
    """
    Parse a deadline into an aware UTC datetime truncated to whole minutes

    Accepts None, a datetime (naive values are taken as UTC), a UNIX
    timestamp (int, float or digit string) or an ISO-8601 string.

    Raises:
        InvalidDraft: If the value cannot be interpreted as a point in time
    """
    if value is None:
        return None

    if isinstance(value, bool):
        raise InvalidDraft(f"Invalid deadline: {value!r}")

    try:
        if isinstance(value, datetime):
            moment = value
        elif isinstance(value, (int, float)):
            moment = datetime.fromtimestamp(value, tz=timezone.utc)
        elif isinstance(value, str):
            raw = value.strip()
            if not raw:
                return None
            if raw.lstrip("-").isdigit():
                moment = datetime.fromtimestamp(int(raw), tz=timezone.utc)
            else:
                moment = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        else:
            raise InvalidDraft(f"Invalid deadline: {value!r}")
    except (ValueError, OverflowError, OSError) as e:
        raise InvalidDraft(f"Could not parse deadline {value!r}: {e}") from e

    return truncate_to_minute(moment)


def validate_symbol(symbol: str) -> str:
    if not isinstance(symbol, str) or len(symbol) != 1:
        raise InvalidDraft(f"Reaction symbol must be exactly one character, got {symbol!r}")
    return symbol


@dataclass
class DrawingDraft:
    """An unvalidated request to open a giveaway"""

    title: str
    channel_ref: int
    community_ref: int
    description: str = ""
    symbol: str = GIVEAWAY_DEFAULT_SYMBOL
    winner_count: int = 1
    deadline: DeadlineInput = None

    def validated(self) -> "DrawingDraft":
        """
        Return a normalized copy of this draft

        Raises:
            InvalidDraft: On an empty title, a multi-character symbol,
                a winner count below one or an unparseable deadline
        """
        title = (self.title or "").strip()
        if not title:
            raise InvalidDraft("Giveaway title must not be empty")

        symbol = validate_symbol(self.symbol)

        if isinstance(self.winner_count, bool) or not isinstance(self.winner_count, int):
            raise InvalidDraft(f"Winner count must be an integer, got {self.winner_count!r}")
        if self.winner_count < 1:
            raise InvalidDraft("Winner count must be at least 1")

        return replace(
            self,
            title=title,
            description=(self.description or "").strip(),
            symbol=symbol,
            deadline=parse_deadline(self.deadline),
        )


@dataclass
class Drawing:
    """An active giveaway"""

    id: int
    title: str
    announcement_ref: int
    channel_ref: int
    community_ref: int
    symbol: str
    winner_count: int
    deadline: Optional[datetime] = None
    participants: List[int] = field(default_factory=list)

    @classmethod
    def from_draft(cls, drawing_id: int, draft: DrawingDraft, announcement_ref: int) -> "Drawing":
        return cls(
            id=drawing_id,
            title=draft.title,
            announcement_ref=announcement_ref,
            channel_ref=draft.channel_ref,
            community_ref=draft.community_ref,
            symbol=draft.symbol,
            winner_count=draft.winner_count,
            deadline=draft.deadline,
        )

    def is_expired(self, now: datetime) -> bool:
        return self.deadline is not None and self.deadline <= now

    def copy(self) -> "Drawing":
        return copy.deepcopy(self)

    def to_record(self) -> dict:
        """Serialize to a plain dict for the snapshot"""
        return {
            "id": self.id,
            "title": self.title,
            "announcement_ref": self.announcement_ref,
            "channel_ref": self.channel_ref,
            "community_ref": self.community_ref,
            "symbol": self.symbol,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "winner_count": self.winner_count,
            "participants": list(self.participants),
        }

    @classmethod
    def from_record(cls, record: dict) -> "Drawing":
        """Rebuild a Drawing from a snapshot record"""
        deadline = record.get("deadline")
        return cls(
            id=int(record["id"]),
            title=record["title"],
            announcement_ref=int(record["announcement_ref"]),
            channel_ref=int(record["channel_ref"]),
            community_ref=int(record["community_ref"]),
            symbol=record["symbol"],
            winner_count=int(record["winner_count"]),
            deadline=parse_deadline(deadline) if deadline else None,
            participants=[int(user) for user in record.get("participants") or []],
        )
