"""
Crawler error taxonomy.

Failures on a single event or roster row are converted into ``CrawlerError``
records and collected on the crawl results instead of aborting the batch.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy.exc import DBAPIError, SQLAlchemyError


class CrawlerErrorType(str, Enum):
    NETWORK_ERROR = "NETWORK_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"


RETRYABLE_ERROR_TYPES = frozenset(
    {
        CrawlerErrorType.NETWORK_ERROR,
        CrawlerErrorType.TIMEOUT_ERROR,
        CrawlerErrorType.RATE_LIMIT_ERROR,
    }
)

# Checked in order; the first category with a matching keyword wins.
_CLASSIFICATION: list[tuple[CrawlerErrorType, tuple[str, ...]]] = [
    (CrawlerErrorType.TIMEOUT_ERROR, ("timeout", "navigation")),
    (CrawlerErrorType.NETWORK_ERROR, ("network", "econnreset", "econnrefused", "socket")),
    (CrawlerErrorType.RATE_LIMIT_ERROR, ("rate limit", "429", "too many")),
    (CrawlerErrorType.DATABASE_ERROR, ("database", "sqlite", "constraint", "integrity")),
]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CrawlerError:
    type: CrawlerErrorType
    message: str
    event_id: Optional[str] = None
    timestamp: str = field(default_factory=_utc_now_iso)
    retryable: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        return data


def create_crawler_error(
    error_type: CrawlerErrorType, message: str, event_id: Optional[str] = None
) -> CrawlerError:
    return CrawlerError(
        type=error_type,
        message=message,
        event_id=event_id,
        retryable=error_type in RETRYABLE_ERROR_TYPES,
    )


def classify_message(message: str) -> CrawlerErrorType:
    lowered = message.lower()
    for error_type, keywords in _CLASSIFICATION:
        if any(k in lowered for k in keywords):
            return error_type
    return CrawlerErrorType.PARSE_ERROR


def from_exception(error: BaseException, event_id: Optional[str] = None) -> CrawlerError:
    """Build a typed error record from an arbitrary exception.

    SQLAlchemy errors are DATABASE_ERROR by type; their text embeds the SQL and
    bound parameters (event and player names), which must not drive keyword
    classification.
    """
    if isinstance(error, SQLAlchemyError):
        cause = error.orig if isinstance(error, DBAPIError) and error.orig is not None else error
        message = str(cause) or error.__class__.__name__
        return create_crawler_error(CrawlerErrorType.DATABASE_ERROR, message, event_id)
    message = str(error) or error.__class__.__name__
    return create_crawler_error(classify_message(message), message, event_id)
