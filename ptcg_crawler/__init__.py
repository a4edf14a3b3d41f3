"""
PTCG Opponent Crawler
Tournament roster crawler with deduplicating ingestion into a relational store
"""

__version__ = "1.0.0"
__author__ = "PTCG Opponent Checker Team"

# NOTE:
# Avoid importing heavy modules (playwright, sqlalchemy) at package import time
# to keep "import ptcg_crawler" lightweight for the pure parser unit tests.

__all__ = []
