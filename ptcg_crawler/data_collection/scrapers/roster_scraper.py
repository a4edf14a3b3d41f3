"""
Roster scraper.

Fetches one event's roster table, resolves players by their composite identity
and records their participation in the event.
"""

from __future__ import annotations

import re
from typing import Awaitable, Callable, Optional, Sequence

from ptcg_crawler.common.logging_utils import get_logger, log_progress
from ptcg_crawler.common.parsing import (
    cell_from_tag,
    normalize_header,
    parse_standing,
    soup_from_html,
)
from ptcg_crawler.common.playwright_utils import PageRenderer, polite_delay
from ptcg_crawler.common.retry import is_retryable_error, retry_async
from ptcg_crawler.core.config import Settings
from ptcg_crawler.database.manager import DatabaseManager
from ptcg_crawler.database.services.events import find_event_by_external_id
from ptcg_crawler.database.services.participations import insert_participation
from ptcg_crawler.database.services.players import find_or_create_player
from ptcg_crawler.domain.contracts import CellData, ParsedParticipant, RosterCrawlResult
from ptcg_crawler.domain.errors import CrawlerErrorType, create_crawler_error, from_exception

TABLE_SELECTOR = "table"
TABLE_ROWS_SELECTOR = "table tbody tr"
# DataTables page-length control; option "-1" is "All"
DATATABLES_LENGTH_SELECTOR = ".dataTables_length select"

COUNTRY_RE = re.compile(r"^[A-Z]{2}$")

# (field, accepted header labels); labels are compared after normalize_header()
ROSTER_COLUMNS: list[tuple[str, tuple[str, ...]]] = [
    ("player_id_masked", ("player id", "id")),
    ("first_name", ("first name", "first")),
    ("last_name", ("last name", "last")),
    ("country", ("country",)),
    ("division", ("division",)),
    ("deck_list", ("deck list", "decklist", "deck")),
    ("standing", ("standing", "place", "rank")),
]

logger = get_logger(__name__)


def build_roster_url(event_id: str, base_url: str = "https://rk9.gg/roster") -> str:
    return f"{base_url.rstrip('/')}/{event_id}"


def resolve_columns(headers: Sequence[str]) -> dict[str, int]:
    """Map each roster field to its column index, -1 when the column is absent.

    Older events have no country column, so positions cannot be hard-coded.
    """
    normalized = [normalize_header(h) for h in headers]
    mapping: dict[str, int] = {}
    for field_name, labels in ROSTER_COLUMNS:
        mapping[field_name] = next(
            (i for i, header in enumerate(normalized) if header in labels), -1
        )
    return mapping


def extract_roster_table(html: str) -> tuple[list[str], list[list[CellData]]]:
    """Header labels and body rows of the first table on the roster page."""
    soup = soup_from_html(html)
    table = soup.select_one(TABLE_SELECTOR)
    if table is None:
        return [], []
    headers = [th.get_text(" ", strip=True) for th in table.select("thead tr th")]
    body = table.find("tbody") or table
    rows = [
        [cell_from_tag(td) for td in tr.find_all("td")]
        for tr in body.find_all("tr")
        if tr.find("td") is not None
    ]
    return headers, rows


def _cell_text(cells: Sequence[CellData], index: int) -> str:
    if 0 <= index < len(cells):
        return cells[index].text.strip()
    return ""


def _cell_href(cells: Sequence[CellData], index: int) -> Optional[str]:
    if 0 <= index < len(cells):
        return cells[index].first_href
    return None


def normalize_country(raw: str) -> str:
    """Two-letter country code, or '' for anything else (including missing)."""
    code = raw.strip().upper()
    return code if COUNTRY_RE.match(code) else ""


def parse_roster_row(cells: Sequence[CellData], columns: dict[str, int]) -> ParsedParticipant:
    division = _cell_text(cells, columns["division"])
    return ParsedParticipant(
        player_id_masked=_cell_text(cells, columns["player_id_masked"]),
        first_name=_cell_text(cells, columns["first_name"]),
        last_name=_cell_text(cells, columns["last_name"]),
        country=normalize_country(_cell_text(cells, columns["country"])),
        division=division or None,
        deck_list_url=_cell_href(cells, columns["deck_list"]),
        standing=parse_standing(_cell_text(cells, columns["standing"])),
    )


def parse_roster(headers: Sequence[str], rows: Sequence[Sequence[CellData]]) -> list[ParsedParticipant]:
    columns = resolve_columns(headers)
    return [parse_roster_row(cells, columns) for cells in rows]


def is_valid_participant(participant: ParsedParticipant) -> bool:
    return (
        participant.player_id_masked != ""
        and participant.first_name != ""
        and participant.last_name != ""
        and COUNTRY_RE.match(participant.country) is not None
    )


class RosterScraper:
    """Crawls event rosters one at a time with a polite delay in between"""

    def __init__(
        self,
        renderer: PageRenderer,
        db_manager: DatabaseManager,
        settings: Settings,
        *,
        delay: Callable[[float, float], Awaitable[float]] = polite_delay,
    ):
        self.renderer = renderer
        self.db_manager = db_manager
        self.settings = settings
        self.delay = delay
        self.logger = logger

    async def fetch_roster(self, event_id: str) -> list[ParsedParticipant]:
        url = build_roster_url(event_id, self.settings.roster_url_base)

        async def _fetch() -> list[ParsedParticipant]:
            html = await self.renderer.render(
                url,
                wait_selector=TABLE_ROWS_SELECTOR,
                show_all_selector=DATATABLES_LENGTH_SELECTOR,
            )
            self.logger.info("Page loaded, parsing participants...")
            headers, rows = extract_roster_table(html)
            participants = parse_roster(headers, rows)
            self.logger.info(f"Found {len(participants)} participants")
            return participants

        def _on_retry(error: Exception, attempt: int) -> None:
            self.logger.warning(f"Retry attempt {attempt} for roster {event_id}: {error}")

        return await retry_async(
            _fetch,
            max_attempts=self.settings.retry_max_attempts,
            initial_delay=self.settings.retry_initial_delay_seconds,
            backoff_multiplier=self.settings.retry_backoff_multiplier,
            max_delay=self.settings.retry_max_delay_seconds,
            on_retry=_on_retry,
            should_retry=is_retryable_error,
        )

    def save_participants(
        self, event_id: str, participants: Sequence[ParsedParticipant]
    ) -> RosterCrawlResult:
        result = RosterCrawlResult(event_id=event_id, participants_found=len(participants))

        event = find_event_by_external_id(self.db_manager, event_id)
        if event is None:
            result.errors.append(
                create_crawler_error(
                    CrawlerErrorType.DATABASE_ERROR,
                    f"Event not found in database: {event_id}",
                    event_id,
                )
            )
            return result

        valid = [p for p in participants if is_valid_participant(p)]
        result.participants_valid = len(valid)
        self.logger.debug(f"Valid participants: {len(valid)}/{len(participants)}")

        for participant in valid:
            try:
                resolution = find_or_create_player(
                    self.db_manager,
                    player_id_masked=participant.player_id_masked,
                    first_name=participant.first_name,
                    last_name=participant.last_name,
                    country=participant.country,
                )
                if resolution.created:
                    result.players_added += 1
                else:
                    result.players_reused += 1

                outcome = insert_participation(
                    self.db_manager,
                    player_id=resolution.player.id,
                    event_id=event.id,
                    division=participant.division,
                    deck_list_url=participant.deck_list_url,
                    standing=participant.standing,
                )
                if outcome.inserted:
                    result.participations_added += 1
            except Exception as e:
                result.errors.append(from_exception(e, event_id))
                self.logger.error(
                    f"Failed to save participant {participant.first_name} "
                    f"{participant.last_name}: {e}"
                )

        return result

    async def crawl_roster(self, event_id: str) -> RosterCrawlResult:
        try:
            participants = await self.fetch_roster(event_id)
        except Exception as e:
            self.logger.error(f"Failed to crawl roster for {event_id}: {e}")
            return RosterCrawlResult(event_id=event_id, errors=[from_exception(e, event_id)])
        return self.save_participants(event_id, participants)

    async def crawl_rosters(self, event_ids: Sequence[str]) -> list[RosterCrawlResult]:
        """Crawl rosters strictly in sequence; never in parallel."""
        results: list[RosterCrawlResult] = []
        total = len(event_ids)
        for index, event_id in enumerate(event_ids, start=1):
            log_progress(self.logger, "Crawling rosters", index, total)
            results.append(await self.crawl_roster(event_id))
            if index < total:
                await self.delay(
                    self.settings.crawl_delay_min_seconds, self.settings.crawl_delay_max_seconds
                )
        return results
