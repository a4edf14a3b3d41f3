"""
Crawl Orchestrator

Runs one crawl: events listing first, then the roster of every event that was
new in this run. Owns the browser session and the database manager for the
duration of the run.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Optional, Protocol

from ptcg_crawler.common.logging_utils import get_logger, log_stats
from ptcg_crawler.common.playwright_utils import BrowserSession, PageRenderer
from ptcg_crawler.core.config import Settings
from ptcg_crawler.data_collection.scrapers.events_scraper import EventsScraper
from ptcg_crawler.data_collection.scrapers.roster_scraper import RosterScraper
from ptcg_crawler.database.manager import DatabaseManager
from ptcg_crawler.domain.contracts import CrawlSummary, EventCrawlResult, RosterCrawlResult
from ptcg_crawler.domain.errors import CrawlerError, from_exception


class CrawlMode(str, Enum):
    FULL = "full"
    UPDATE = "update"


class CrawlState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    FULL_CRAWL = "full_crawl"
    INCREMENTAL_CRAWL = "incremental_crawl"
    FINALIZING = "finalizing"


class ManagedRenderer(PageRenderer, Protocol):
    async def start(self) -> Any: ...

    async def close(self) -> None: ...


class CrawlOrchestrator:
    """Sequences a crawl run and aggregates its results into a ``CrawlSummary``.

    Both modes run the same steps: the events diff already limits roster
    crawling to events not seen before.
    """

    def __init__(
        self,
        settings: Settings,
        db_manager: Optional[DatabaseManager] = None,
        session: Optional[ManagedRenderer] = None,
    ):
        self.settings = settings
        self.db_manager = db_manager or DatabaseManager(
            settings.database_url, echo=settings.database_echo
        )
        self.session: ManagedRenderer = session or BrowserSession.from_settings(settings)
        self.state = CrawlState.IDLE
        self.logger = get_logger("crawl_orchestrator")

    async def initialize(self) -> None:
        """Open storage and launch the browser; failures propagate to the caller."""
        self.state = CrawlState.INITIALIZING
        self.logger.info("Initializing database connection...")
        self.db_manager.initialize()
        self.logger.info("Launching browser...")
        await self.session.start()

    async def crawl(self, mode: CrawlMode = CrawlMode.FULL) -> CrawlSummary:
        self.state = CrawlState.FULL_CRAWL if mode is CrawlMode.FULL else CrawlState.INCREMENTAL_CRAWL
        self.logger.info(f"Starting {mode.value} crawl")
        started = time.monotonic()

        events_result = EventCrawlResult()
        roster_results: list[RosterCrawlResult] = []
        extra_errors: list[CrawlerError] = []
        try:
            events_scraper = EventsScraper(self.session, self.db_manager, self.settings)
            events_result = await events_scraper.crawl()
            self.logger.info(
                f"Events: {events_result.events_added} added, "
                f"{events_result.events_skipped} skipped"
            )

            if events_result.added_event_ids:
                roster_scraper = RosterScraper(self.session, self.db_manager, self.settings)
                roster_results = await roster_scraper.crawl_rosters(events_result.added_event_ids)
            else:
                self.logger.info("No new events, skipping roster crawl")
        except Exception as e:
            self.logger.error(f"Crawl failed: {e}")
            extra_errors.append(from_exception(e))

        summary = self.build_summary(
            mode, events_result, roster_results, extra_errors, time.monotonic() - started
        )
        log_stats(self.logger, summary.to_dict())
        return summary

    @staticmethod
    def build_summary(
        mode: CrawlMode,
        events_result: EventCrawlResult,
        roster_results: list[RosterCrawlResult],
        extra_errors: Optional[list[CrawlerError]] = None,
        duration_seconds: float = 0.0,
    ) -> CrawlSummary:
        total_errors = len(events_result.errors) + len(extra_errors or [])
        total_errors += sum(len(r.errors) for r in roster_results)
        return CrawlSummary(
            mode=mode.value,
            total_events_processed=events_result.events_processed,
            events_added=events_result.events_added,
            events_skipped=events_result.events_skipped,
            players_added=sum(r.players_added for r in roster_results),
            players_reused=sum(r.players_reused for r in roster_results),
            participations_added=sum(r.participations_added for r in roster_results),
            total_errors=total_errors,
            duration_seconds=duration_seconds,
        )

    async def finalize(self) -> None:
        """Close browser and storage; never raises."""
        self.state = CrawlState.FINALIZING
        try:
            await self.session.close()
        except Exception as e:
            self.logger.warning(f"Browser close failed: {e}")
        try:
            self.db_manager.close()
        except Exception as e:
            self.logger.warning(f"Database close failed: {e}")
        self.state = CrawlState.IDLE

    async def run(self, mode: CrawlMode = CrawlMode.FULL) -> CrawlSummary:
        """initialize -> crawl -> finalize; initialization errors are re-raised."""
        try:
            await self.initialize()
            return await self.crawl(mode)
        finally:
            await self.finalize()
