"""
Domain Module
Parsed records, crawl results and the crawler error taxonomy
"""

from .contracts import (
    CellData,
    CrawlSummary,
    EventCrawlResult,
    InsertOutcome,
    InsertStatus,
    LinkData,
    ParsedEvent,
    ParsedParticipant,
    PlayerResolution,
    RosterCrawlResult,
)
from .errors import CrawlerError, CrawlerErrorType, create_crawler_error, from_exception

__all__ = [
    "CellData",
    "CrawlSummary",
    "CrawlerError",
    "CrawlerErrorType",
    "EventCrawlResult",
    "InsertOutcome",
    "InsertStatus",
    "LinkData",
    "ParsedEvent",
    "ParsedParticipant",
    "PlayerResolution",
    "RosterCrawlResult",
    "create_crawler_error",
    "from_exception",
]
