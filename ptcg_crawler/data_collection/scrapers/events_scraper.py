"""
Events listing scraper.

Fetches the past-events table, keeps the rows that link to a TCG
sub-tournament and stores the events that are not yet known.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from ptcg_crawler.common.logging_utils import get_logger
from ptcg_crawler.common.parsing import (
    cell_from_tag,
    clean_text,
    parse_event_start_date,
    soup_from_html,
)
from ptcg_crawler.common.playwright_utils import PageRenderer
from ptcg_crawler.common.retry import is_retryable_error, retry_async
from ptcg_crawler.core.config import Settings
from ptcg_crawler.database.manager import DatabaseManager
from ptcg_crawler.database.services.events import existing_external_ids, insert_event
from ptcg_crawler.domain.contracts import CellData, EventCrawlResult, ParsedEvent
from ptcg_crawler.domain.errors import from_exception

PAST_EVENTS_TABLE_SELECTOR = "#dtPastEvents"
PAST_EVENTS_ROWS_SELECTOR = "#dtPastEvents tbody tr"

EVENT_ID_PATTERN = re.compile(r"/tournament/([A-Za-z0-9]+)")

# Column positions in the listing table
DATE_COL = 0
NAME_COL = 2
CITY_COL = 3
LINKS_COL = 4
MIN_CELLS = 5

logger = get_logger(__name__)


def extract_tcg_event_id(href: Optional[str]) -> Optional[str]:
    """'/tournament/SY01X2Yt7Ow5bF1Lq9hH' -> 'SY01X2Yt7Ow5bF1Lq9hH'"""
    if not href:
        return None
    m = EVENT_ID_PATTERN.search(href)
    return m.group(1) if m else None


def extract_listing_rows(html: str) -> list[list[CellData]]:
    """Rows of the past-events table as plain cell records."""
    soup = soup_from_html(html)
    table = soup.select_one(PAST_EVENTS_TABLE_SELECTOR)
    if table is None:
        return []
    rows = table.select("tbody tr")
    return [[cell_from_tag(td) for td in row.find_all("td")] for row in rows]


def parse_event_row(cells: Sequence[CellData], link_text: str = "TCG") -> Optional[ParsedEvent]:
    """Parse one listing row; rows without a TCG tournament link yield None.

    A row may carry links to several games (VG, TCG, GO); only the anchor whose
    visible text equals ``link_text`` identifies the TCG tournament.
    """
    if len(cells) < MIN_CELLS:
        return None

    anchor = next((a for a in cells[LINKS_COL].links if a.text.strip() == link_text), None)
    if anchor is None:
        return None
    event_id = extract_tcg_event_id(anchor.href)
    if not event_id:
        return None

    name_cell = cells[NAME_COL]
    raw_name = name_cell.links[0].text if name_cell.links and name_cell.links[0].text else name_cell.text
    return ParsedEvent(
        event_id=event_id,
        name=clean_text(raw_name) or "",
        date=clean_text(cells[DATE_COL].text),
        city=clean_text(cells[CITY_COL].text),
    )


def parse_event_rows(rows: Sequence[Sequence[CellData]], link_text: str = "TCG") -> list[ParsedEvent]:
    events = []
    for cells in rows:
        event = parse_event_row(cells, link_text)
        if event is not None:
            events.append(event)
    return events


class EventsScraper:
    """Fetches the events listing and stores events not seen before"""

    def __init__(self, renderer: PageRenderer, db_manager: DatabaseManager, settings: Settings):
        self.renderer = renderer
        self.db_manager = db_manager
        self.settings = settings
        self.logger = logger

    async def fetch_listing(self) -> list[ParsedEvent]:
        async def _fetch() -> list[ParsedEvent]:
            html = await self.renderer.render(
                self.settings.events_url, wait_selector=PAST_EVENTS_ROWS_SELECTOR
            )
            self.logger.info("Page loaded, parsing events...")
            events = parse_event_rows(extract_listing_rows(html), self.settings.tcg_link_text)
            self.logger.info(f"Found {len(events)} TCG events")
            return events

        def _on_retry(error: Exception, attempt: int) -> None:
            self.logger.warning(f"Retry attempt {attempt} for fetching events: {error}")

        return await retry_async(
            _fetch,
            max_attempts=self.settings.retry_max_attempts,
            initial_delay=self.settings.retry_initial_delay_seconds,
            backoff_multiplier=self.settings.retry_backoff_multiplier,
            max_delay=self.settings.retry_max_delay_seconds,
            on_retry=_on_retry,
            should_retry=is_retryable_error,
        )

    def save_new_events(self, events: Sequence[ParsedEvent]) -> EventCrawlResult:
        """Insert events whose id is not stored yet; one bad row never blocks the rest."""
        result = EventCrawlResult()
        existing = set(existing_external_ids(self.db_manager, [e.event_id for e in events]))

        for event in events:
            if event.event_id in existing:
                result.events_skipped += 1
                continue
            try:
                insert_event(
                    self.db_manager,
                    event_id=event.event_id,
                    name=event.name,
                    date=event.date,
                    date_start=parse_event_start_date(event.date),
                    city=event.city,
                )
            except Exception as e:
                result.errors.append(from_exception(e, event.event_id))
                self.logger.error(f"Failed to save event {event.event_id}: {e}")
                continue
            existing.add(event.event_id)
            result.events_added += 1
            result.added_event_ids.append(event.event_id)
            self.logger.debug(f"Added event: {event.name} ({event.event_id})")

        return result

    async def crawl(self) -> EventCrawlResult:
        """Fetch the listing and store new events; fetch failures end up in errors."""
        try:
            events = await self.fetch_listing()
        except Exception as e:
            self.logger.error(f"Failed to crawl events: {e}")
            return EventCrawlResult(errors=[from_exception(e)])
        return self.save_new_events(events)
