import pytest

from ptcg_crawler.apps.summary import format_duration, format_summary, print_summary
from ptcg_crawler.domain.contracts import CrawlSummary


@pytest.mark.parametrize(
    "seconds,expected",
    [
        (0, "0ms"),
        (0.85, "850ms"),
        (5.5, "5.5s"),
        (59.94, "59.9s"),
        (125, "2m 5s"),
        (3661, "1h 1m 1s"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def _summary():
    return CrawlSummary(
        mode="update",
        total_events_processed=3,
        events_added=2,
        events_skipped=1,
        players_added=2,
        players_reused=1,
        participations_added=3,
        total_errors=0,
        duration_seconds=12.3,
    )


def test_format_summary_block():
    text = format_summary(_summary())
    assert "Crawl Summary (update)" in text
    assert "Total processed: 3" in text
    assert "Skipped:         1" in text
    assert "Reused:          1" in text
    assert "Errors:             0" in text
    assert text.splitlines()[-2].endswith("12.3s")


def test_print_summary(capsys):
    print_summary(_summary())
    out = capsys.readouterr().out
    assert "Crawl Summary" in out
    assert "New added:       3" in out
