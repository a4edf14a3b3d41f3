"""
Run summary formatting for the crawl command.
"""

import click

from ptcg_crawler.domain.contracts import CrawlSummary

DIVIDER = "=" * 50


def format_duration(seconds: float) -> str:
    """850ms, 5.5s, 2m 5s, 1h 1m 1s"""
    ms = int(round(seconds * 1000))
    if ms < 1000:
        return f"{ms}ms"

    total_seconds = ms // 1000
    minutes, secs = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{ms / 1000:.1f}s"


def format_summary(summary: CrawlSummary) -> str:
    lines = [
        DIVIDER,
        f"Crawl Summary ({summary.mode})",
        DIVIDER,
        "",
        "Events:",
        f"   Total processed: {summary.total_events_processed}",
        f"   New added:       {summary.events_added}",
        f"   Skipped:         {summary.events_skipped}",
        "",
        "Players:",
        f"   New added:       {summary.players_added}",
        f"   Reused:          {summary.players_reused}",
        "",
        "Participations:",
        f"   New added:       {summary.participations_added}",
        "",
        f"Errors:             {summary.total_errors}",
        "",
        f"Duration:           {format_duration(summary.duration_seconds)}",
        DIVIDER,
    ]
    return "\n".join(lines)


def print_summary(summary: CrawlSummary) -> None:
    click.echo(format_summary(summary))
