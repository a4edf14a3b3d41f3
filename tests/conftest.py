"""Global pytest fixtures.

Centralizes:
 - Project root path insertion (so individual tests don't repeat sys.path hacks)
 - Crawl settings without delays and an in-memory database manager
 - HTML snippets for the events listing and roster pages
 - A fake page renderer standing in for the Playwright browser session
"""

import sys
from pathlib import Path

import pytest

# Ensure project root (containing ptcg_crawler/) is on sys.path once
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ptcg_crawler.core.config import Settings  # noqa: E402
from ptcg_crawler.database.manager import DatabaseManager  # noqa: E402


EVENTS_URL = "https://rk9.gg/events/pokemon"
ROSTER_BASE = "https://rk9.gg/roster"


# -------------------- Settings & Database -------------------- #

@pytest.fixture
def crawl_settings():
    """Settings with no polite delay and no retry backoff."""
    return Settings(
        database_url="sqlite://",
        events_url=EVENTS_URL,
        roster_url_base=ROSTER_BASE,
        crawl_delay_min_seconds=0,
        crawl_delay_max_seconds=0,
        retry_initial_delay_seconds=0,
        retry_max_delay_seconds=0,
    )


@pytest.fixture
def db():
    manager = DatabaseManager("sqlite://")
    manager.initialize()
    yield manager
    manager.close()


# -------------------- Fake Renderer -------------------- #

class FakeRenderer:
    """Serves canned HTML per URL; a list value is consumed one item per call.

    Exceptions in the canned responses are raised instead of returned.
    """

    def __init__(self, pages=None, *, fail_start=None):
        self.pages = dict(pages or {})
        self.calls = []
        self.started = 0
        self.closed = 0
        self.fail_start = fail_start

    async def start(self):
        if self.fail_start is not None:
            raise self.fail_start
        self.started += 1
        return self

    async def close(self):
        self.closed += 1

    async def render(self, url, *, wait_selector, show_all_selector=None):
        self.calls.append((url, wait_selector, show_all_selector))
        if url not in self.pages:
            raise RuntimeError(f"page not found: {url}")
        response = self.pages[url]
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_renderer_cls():
    return FakeRenderer


# -------------------- HTML Fixtures -------------------- #

def _listing_row(date, name, city, links):
    anchors = " ".join(f'<a href="{href}">{text}</a>' for text, href in links)
    return (
        f"<tr><td>{date}</td><td><img src='/logo.png'></td>"
        f"<td><a href='/event/x'>{name}</a></td><td>{city}</td><td>{anchors}</td></tr>"
    )


@pytest.fixture
def events_listing_html():
    """Three TCG events (one multi-game row) and one VG-only row."""
    rows = [
        _listing_row(
            "February 7-8, 2026",
            "Seattle   Regional\n Championships",
            "Seattle, WA",
            [("VG", "/tournament/VGSEA26"), ("TCG", "/tournament/SEA26tcg"), ("GO", "/tournament/GOSEA26")],
        ),
        _listing_row(
            "September 30–October 2, 2022",
            "Toronto Regional Championships",
            "Toronto, ON",
            [("TCG", "/tournament/TOR22tcg")],
        ),
        _listing_row(
            "March 3, 2024",
            "Old League Cup",
            "Portland, OR",
            [("TCG", "/tournament/EXIST01")],
        ),
        _listing_row(
            "April 1-2, 2024",
            "VGC Only Event",
            "Dallas, TX",
            [("VG", "/tournament/VGONLY1")],
        ),
    ]
    return (
        "<html><body><table id='dtPastEvents'><thead><tr>"
        "<th>Date</th><th></th><th>Name</th><th>Location</th><th>Links</th>"
        "</tr></thead><tbody>" + "".join(rows) + "</tbody></table></body></html>"
    )


def _roster_html(headers, rows):
    head = "".join(f"<th>{h}</th>" for h in headers)
    body = "".join("<tr>" + "".join(f"<td>{c}</td>" for c in row) + "</tr>" for row in rows)
    return (
        "<html><body><div class='dataTables_length'><select><option value='25'>25</option>"
        "<option value='-1'>All</option></select></div>"
        f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table></body></html>"
    )


ROSTER_HEADERS = ["Player ID", "First Name", "Last  Name", "Country", "Division", "Deck List", "Standing"]


@pytest.fixture
def roster_html():
    """Three valid participants and one without a country."""
    return _roster_html(
        ROSTER_HEADERS,
        [
            ["2....5", "Alice", "Smith", "US", "Masters", '<a href="/decklist/public/abc">View</a>', "1"],
            ["3....7", " Bob ", "Jones", "jp", "Masters", "", "-"],
            ["4....9", "Carol", "White", "CA", "Senior", '<a href="/decklist/public/def">View</a>', "3"],
            ["5....1", "Dan", "Brown", "", "Junior", "", ""],
        ],
    )


@pytest.fixture
def empty_roster_html():
    return _roster_html(ROSTER_HEADERS, [])


@pytest.fixture
def old_roster_html():
    """Older roster layout without a country column."""
    return _roster_html(
        ["Player ID", "First Name", "Last Name", "Division", "Standing"],
        [
            ["1....1", "Eve", "Green", "Masters", "2"],
            ["1....2", "Frank", "Black", "Masters", "5"],
        ],
    )
