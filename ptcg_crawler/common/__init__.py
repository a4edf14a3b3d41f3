"""
Common Module
Shared helpers: logging, retry, parsing and the Playwright browser session

Note: playwright_utils is not imported here so the parsing helpers can be
used without the browser dependency loaded.
"""

__all__: list[str] = []
