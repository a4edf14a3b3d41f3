"""
Data Collection Module
Crawl orchestrator and the rk9.gg scrapers

Note: do not import subpackages here to keep package import side-effect free.
Import needed classes directly from their modules.
"""

__all__: list[str] = []
