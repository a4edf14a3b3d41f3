import re
from datetime import date

from bs4 import BeautifulSoup, Tag

from ptcg_crawler.domain.contracts import CellData, LinkData

MONTHS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

# "February 7-8, 2026", "September 30–October 2, 2022", "March 5, 2023"
EVENT_DATE_RE = re.compile(r"^([A-Za-z]+)\s+(\d{1,2})(?:\s*-\s*[^,]*?)?,\s*(\d{4})$")

STANDING_RE = re.compile(r"^\s*(\d+)")

NO_STANDING = {"", "-"}


def clean_text(s: str | None) -> str | None:
    if s is None:
        return None
    s = re.sub(r"\s+", " ", s.strip())
    return s or None


def normalize_header(s: str | None) -> str:
    """Lowercase a table header label and collapse its whitespace."""
    return re.sub(r"\s+", " ", (s or "").strip()).lower()


def parse_standing(s: str | None) -> int | None:
    """Parse a final standing cell.

    Empty cells and the '-' placeholder mean "no standing"; so do values
    without a leading number and non-positive ranks.
    """
    if s is None:
        return None
    text = s.strip()
    if text in NO_STANDING:
        return None
    m = STANDING_RE.match(text)
    if not m:
        return None
    rank = int(m.group(1))
    return rank if rank > 0 else None


def parse_event_start_date(s: str | None) -> str | None:
    """Return the start date of a listing date range as 'YYYY-MM-DD'.

    Only the first month/day are used; a range may use a hyphen or an en-dash
    and may cross into a second month. Unparseable text yields None.
    """
    if not s:
        return None
    normalized = s.strip().replace("–", "-").replace("—", "-")
    m = EVENT_DATE_RE.match(normalized)
    if not m:
        return None
    month_name, day, year = m.groups()
    month = MONTHS.get(month_name.lower())
    if month is None:
        return None
    try:
        return date(int(year), month, int(day)).isoformat()
    except ValueError:
        return None


def soup_from_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def cell_from_tag(cell: Tag) -> CellData:
    """Flatten a <td>/<th> into its trimmed text and its anchors."""
    links = [
        LinkData(text=a.get_text(" ", strip=True), href=a.get("href") or None)
        for a in cell.find_all("a")
    ]
    return CellData(text=cell.get_text(" ", strip=True), links=links)
