"""
Command-line interface for the crawler and the read queries.
Usage examples:
  ptcg-crawler                 (full crawl)
  ptcg-crawler --update        (incremental crawl)
  ptcg-crawler crawl
  ptcg-crawler crawl --update
  ptcg-crawler search "Tomás Maxwell" --country US --division Masters
  ptcg-crawler history 42
"""

import asyncio
import sys
from typing import Optional

import click

from ptcg_crawler.apps.summary import print_summary
from ptcg_crawler.common.logging_utils import configure_logging, get_logger
from ptcg_crawler.core.config import settings
from ptcg_crawler.data_collection.orchestrator import CrawlMode, CrawlOrchestrator
from ptcg_crawler.database.manager import DatabaseManager
from ptcg_crawler.database.queries import (
    DEFAULT_SEARCH_LIMIT,
    get_participations_with_events,
    search_players,
)


async def _run_crawl(orchestrator: CrawlOrchestrator, mode: CrawlMode) -> int:
    logger = get_logger("cli")
    try:
        try:
            await orchestrator.initialize()
        except Exception as e:
            logger.error(f"Fatal error during initialization: {e}")
            return 1
        summary = await orchestrator.crawl(mode)
        print_summary(summary)
        return 0
    finally:
        await orchestrator.finalize()


def _open_database() -> DatabaseManager:
    db = DatabaseManager(settings.database_url, echo=settings.database_echo)
    db.initialize()
    return db


class _DefaultCrawlGroup(click.Group):
    """Group that runs `crawl` when the first argument is an option.

    `ptcg-crawler --update` behaves like `ptcg-crawler crawl --update`.
    """

    def resolve_command(self, ctx, args):
        if args and args[0].startswith("-"):
            return "crawl", self.get_command(ctx, "crawl"), args
        return super().resolve_command(ctx, args)


@click.group(
    cls=_DefaultCrawlGroup,
    invoke_without_command=True,
    context_settings={"ignore_unknown_options": True},
)
@click.pass_context
def cli(ctx: click.Context):
    """rk9.gg tournament roster crawler (runs a full crawl when no command is given)"""
    configure_logging("ptcg-crawler", level=settings.log_level)
    if ctx.invoked_subcommand is None:
        ctx.invoke(crawl)


@cli.command(context_settings={"ignore_unknown_options": True, "allow_extra_args": True})
@click.option("--update", is_flag=True, default=False, help="Incremental crawl (new events only).")
def crawl(update: bool):
    """Crawl the events listing and the rosters of new events"""
    mode = CrawlMode.UPDATE if update else CrawlMode.FULL
    logger = get_logger("cli")
    logger.info("=" * 50)
    logger.info("PTCG Opponent Crawler")
    logger.info(f"Mode: {'Update' if update else 'Full'}")
    logger.info("=" * 50)

    orchestrator = CrawlOrchestrator(settings)
    exit_code = asyncio.run(_run_crawl(orchestrator, mode))
    if exit_code:
        sys.exit(exit_code)


@cli.command()
@click.argument("name")
@click.option("--country", default=None, help="Two-letter country code.")
@click.option("--division", default=None, help="Only players with a participation in this division.")
@click.option("--limit", type=int, default=DEFAULT_SEARCH_LIMIT, show_default=True)
def search(name: str, country: Optional[str], division: Optional[str], limit: int):
    """Search players by name (every word must match first or last name)"""
    db = _open_database()
    try:
        players = search_players(db, name, country=country, division=division, limit=limit)
    finally:
        db.close()

    if not players:
        click.echo("No players found.")
        return
    for p in players:
        click.echo(
            f"{p.id}\t{p.first_name} {p.last_name}\t{p.country}\t"
            f"{p.player_id_masked}\t{p.participation_count} events"
        )


@cli.command()
@click.argument("player_id", type=int)
@click.option("--division", default=None)
def history(player_id: int, division: Optional[str]):
    """List a player's participations, newest event first"""
    db = _open_database()
    try:
        rows = get_participations_with_events(db, player_id, division=division)
    finally:
        db.close()

    if not rows:
        click.echo("No participations found.")
        return
    for row in rows:
        standing = row.standing if row.standing is not None else "-"
        click.echo(
            f"{row.event_date_start or '?'}\t{row.event_name}\t{row.event_city or ''}\t"
            f"{row.division or ''}\t#{standing}\t{row.deck_list_url or ''}"
        )


def main():
    cli()


if __name__ == "__main__":
    main()
