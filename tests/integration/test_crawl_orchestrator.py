import pytest

from ptcg_crawler.data_collection.orchestrator import CrawlMode, CrawlOrchestrator, CrawlState
from ptcg_crawler.data_collection.scrapers.roster_scraper import build_roster_url
from ptcg_crawler.database.services.events import get_all_events, insert_event
from ptcg_crawler.database.services.players import find_or_create_player
from ptcg_crawler.domain.contracts import EventCrawlResult, RosterCrawlResult
from ptcg_crawler.domain.errors import create_crawler_error, CrawlerErrorType


def _pages(settings, listing, rosters):
    pages = {settings.events_url: listing}
    for event_id, html in rosters.items():
        pages[build_roster_url(event_id, settings.roster_url_base)] = html
    return pages


@pytest.fixture
def known_state(db):
    """One event already stored and one player already known."""
    insert_event(db, event_id="EXIST01", name="Old League Cup", date=None, date_start=None, city=None)
    find_or_create_player(db, player_id_masked="2....5", first_name="Alice", last_name="Smith", country="US")
    return db


@pytest.mark.asyncio
async def test_end_to_end_crawl(known_state, crawl_settings, events_listing_html, roster_html, empty_roster_html, fake_renderer_cls):
    renderer = fake_renderer_cls(
        _pages(
            crawl_settings,
            events_listing_html,
            {"SEA26tcg": roster_html, "TOR22tcg": empty_roster_html},
        )
    )
    orchestrator = CrawlOrchestrator(crawl_settings, db_manager=known_state, session=renderer)

    summary = await orchestrator.run(CrawlMode.FULL)

    assert summary.mode == "full"
    assert summary.events_added == 2
    assert summary.events_skipped == 1
    assert summary.total_events_processed == 3
    assert summary.players_added == 2
    assert summary.players_reused == 1
    assert summary.participations_added == 3
    assert summary.total_errors == 0
    assert summary.duration_seconds >= 0
    # only rosters of events added in this run are fetched
    roster_urls = [url for url, _, _ in renderer.calls[1:]]
    assert roster_urls == [
        build_roster_url("SEA26tcg", crawl_settings.roster_url_base),
        build_roster_url("TOR22tcg", crawl_settings.roster_url_base),
    ]
    assert renderer.started == 1
    assert renderer.closed == 1
    assert orchestrator.state == CrawlState.IDLE
    assert not known_state.is_initialized


@pytest.mark.asyncio
async def test_update_run_after_full_run_adds_nothing(db, crawl_settings, events_listing_html, empty_roster_html, fake_renderer_cls):
    pages = _pages(
        crawl_settings,
        events_listing_html,
        {e: empty_roster_html for e in ("SEA26tcg", "TOR22tcg", "EXIST01")},
    )
    orchestrator = CrawlOrchestrator(crawl_settings, db_manager=db, session=fake_renderer_cls(pages))
    await orchestrator.initialize()

    first = await orchestrator.crawl(CrawlMode.FULL)
    assert first.events_added == 3
    assert orchestrator.state == CrawlState.FULL_CRAWL

    second = await orchestrator.crawl(CrawlMode.UPDATE)
    assert orchestrator.state == CrawlState.INCREMENTAL_CRAWL
    assert second.mode == "update"
    assert second.events_added == 0
    assert second.events_skipped == 3
    assert len(get_all_events(db)) == 3

    await orchestrator.finalize()


@pytest.mark.asyncio
async def test_initialization_failure_is_fatal_and_cleans_up(db, crawl_settings, fake_renderer_cls):
    renderer = fake_renderer_cls(fail_start=RuntimeError("browser launch failed"))
    orchestrator = CrawlOrchestrator(crawl_settings, db_manager=db, session=renderer)

    with pytest.raises(RuntimeError, match="browser launch failed"):
        await orchestrator.run()
    assert renderer.calls == []
    assert renderer.closed == 1
    assert orchestrator.state == CrawlState.IDLE


@pytest.mark.asyncio
async def test_crawl_failure_is_summarized(db, crawl_settings, fake_renderer_cls, monkeypatch):
    from ptcg_crawler.data_collection.scrapers.events_scraper import EventsScraper

    def broken_save(self, events):
        raise RuntimeError("database disk image is malformed")

    monkeypatch.setattr(EventsScraper, "save_new_events", broken_save)
    renderer = fake_renderer_cls({crawl_settings.events_url: "<html></html>"})
    orchestrator = CrawlOrchestrator(crawl_settings, db_manager=db, session=renderer)

    summary = await orchestrator.run(CrawlMode.UPDATE)
    assert summary.total_errors == 1
    assert summary.events_added == 0
    assert renderer.closed == 1


@pytest.mark.asyncio
async def test_finalize_never_raises(crawl_settings, fake_renderer_cls):
    class ExplodingRenderer(fake_renderer_cls):
        async def close(self):
            raise RuntimeError("already closed")

    orchestrator = CrawlOrchestrator(crawl_settings, session=ExplodingRenderer())
    await orchestrator.finalize()
    await orchestrator.finalize()
    assert orchestrator.state == CrawlState.IDLE


def test_build_summary_aggregates_errors():
    events = EventCrawlResult(events_added=2, events_skipped=1)
    events.errors.append(create_crawler_error(CrawlerErrorType.PARSE_ERROR, "bad row"))
    rosters = [
        RosterCrawlResult("A", players_added=2, players_reused=1, participations_added=3),
        RosterCrawlResult(
            "B",
            players_added=1,
            participations_added=1,
            errors=[create_crawler_error(CrawlerErrorType.NETWORK_ERROR, "reset", "B")],
        ),
    ]

    summary = CrawlOrchestrator.build_summary(CrawlMode.FULL, events, rosters, duration_seconds=1.5)
    assert summary.total_events_processed == 3
    assert summary.players_added == 3
    assert summary.players_reused == 1
    assert summary.participations_added == 4
    assert summary.total_errors == 2
    assert summary.to_dict()["duration_seconds"] == 1.5
