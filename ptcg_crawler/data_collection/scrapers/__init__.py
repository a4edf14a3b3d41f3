"""
Data Collection Scrapers Package

Scrapers for the rk9.gg events listing and event rosters.

Note: avoid importing scraper modules at package import time so the parsing
helpers can be tested without Playwright. Import concrete scrapers from their
modules directly, e.g.:

    from ptcg_crawler.data_collection.scrapers.roster_scraper import RosterScraper
"""

__all__: list[str] = []
