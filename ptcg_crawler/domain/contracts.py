from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from .errors import CrawlerError

# Typed data transfer objects shared across layers

RowT = TypeVar("RowT")


# --- Extracted DOM data (plain records produced from rendered HTML) ---


@dataclass
class LinkData:
    text: str
    href: Optional[str] = None


@dataclass
class CellData:
    text: str
    links: list[LinkData] = field(default_factory=list)

    @property
    def first_href(self) -> Optional[str]:
        for link in self.links:
            if link.href:
                return link.href
        return None


# --- Parsed records ---


@dataclass
class ParsedEvent:
    event_id: str
    name: str
    date: Optional[str] = None
    city: Optional[str] = None


@dataclass
class ParsedParticipant:
    player_id_masked: str
    first_name: str
    last_name: str
    country: str
    division: Optional[str] = None
    deck_list_url: Optional[str] = None
    standing: Optional[int] = None


# --- Storage outcomes ---


class InsertStatus(str, Enum):
    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"


@dataclass
class InsertOutcome(Generic[RowT]):
    """Result of a create-if-absent insert.

    ALREADY_EXISTS is a normal outcome, not a failure; failures raise.
    """

    status: InsertStatus
    row: Optional[RowT] = None

    @property
    def inserted(self) -> bool:
        return self.status is InsertStatus.INSERTED

    @classmethod
    def created(cls, row: RowT) -> "InsertOutcome[RowT]":
        return cls(InsertStatus.INSERTED, row)

    @classmethod
    def already_exists(cls) -> "InsertOutcome[RowT]":
        return cls(InsertStatus.ALREADY_EXISTS, None)


@dataclass
class PlayerResolution:
    player: Any
    created: bool


# --- Crawl results ---


@dataclass
class EventCrawlResult:
    events_added: int = 0
    events_skipped: int = 0
    errors: list[CrawlerError] = field(default_factory=list)
    added_event_ids: list[str] = field(default_factory=list)

    @property
    def events_processed(self) -> int:
        return self.events_added + self.events_skipped


@dataclass
class RosterCrawlResult:
    event_id: str
    players_added: int = 0
    players_reused: int = 0
    participations_added: int = 0
    errors: list[CrawlerError] = field(default_factory=list)
    participants_found: int = 0
    participants_valid: int = 0


@dataclass
class CrawlSummary:
    mode: str
    total_events_processed: int = 0
    events_added: int = 0
    events_skipped: int = 0
    players_added: int = 0
    players_reused: int = 0
    participations_added: int = 0
    total_errors: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
