# tourbot/core/sources/shows.py
"""
SHOW DATA SOURCES - Get tour dates from a CSV export or an HTTP API

Show records have no fixed schema. Besides date and city, a row may carry
venue_name, state/region, country, doors_time, show_time, soundcheck_time,
load_in_time, ticket_status, timezone, or any other column the promoter
sheet happens to have. Records are plain dicts that keep the source's
field order (CSV header order / JSON key order).

Supports:
    - CsvShowSource: shows.csv in the data directory
    - ApiShowSource: JSON list, or {"shows": [...]} / {"data": [...]}
"""

import asyncio
import csv
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from tourbot.core.sources.flights import decode_csv_bytes, read_csv_text

logger = logging.getLogger(__name__)

ShowRecord = Dict[str, Any]


def clean_show(raw: Dict[str, Any]) -> ShowRecord:
    """Strip string values; keep key order."""
    return {
        str(key): value.strip() if isinstance(value, str) else value
        for key, value in raw.items()
        if key is not None
    }


def matches_filters(show: ShowRecord, filters: Optional[Dict[str, Any]]) -> bool:
    """
    Case-insensitive equality on every filter key.

    Example:
        matches_filters({"city": "Sydney"}, {"city": "sydney"}) → True
    """
    for key, wanted in (filters or {}).items():
        if wanted is None:
            continue
        if str(show.get(key) or "").lower() != str(wanted).lower():
            return False
    return True


class CsvShowSource:
    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> List[ShowRecord]:
        if not self.path.exists():
            logger.info(f"Show file {self.path} not found, treating as empty")
            return []
        return [clean_show(row) for row in read_csv_text(decode_csv_bytes(self.path.read_bytes()))]

    async def get_shows(self, filters: Optional[Dict[str, Any]] = None) -> List[ShowRecord]:
        try:
            shows = await asyncio.to_thread(self._read)
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            logger.error(f"Failed to read shows from {self.path}: {e}")
            return []
        return [show for show in shows if matches_filters(show, filters)]


class ApiShowSource:
    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.headers = headers or {}
        self.transport = transport

    async def get_shows(self, filters: Optional[Dict[str, Any]] = None) -> List[ShowRecord]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.url, headers=self.headers)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch shows from {self.url}: {e}")
            return []

        # Handle different API response formats
        if isinstance(data, list):
            shows = data
        elif isinstance(data, dict):
            shows = data.get("shows") or data.get("data") or []
        else:
            logger.error(f"Unexpected shows payload: {type(data)}")
            return []

        return [
            clean_show(show)
            for show in shows
            if isinstance(show, dict) and matches_filters(show, filters)
        ]


# Promoter sheets are not consistent about dates
SHOW_DATE_FORMATS = (
    "%Y-%m-%d",  # 2025-03-15 (ISO)
    "%d/%m/%Y",  # 15/03/2025
    "%d.%m.%Y",  # 15.03.2025
    "%d %B %Y",  # 15 March 2025
    "%d %b %Y",  # 15 Mar 2025
)


def parse_show_date(value: Any) -> Optional[date]:
    """
    Calendar date of a show, or None if it can't be read.

    Examples:
        "2025-03-15"          → date(2025, 3, 15)
        "2025-03-15T20:00:00" → date(2025, 3, 15)
        "15/03/2025"          → date(2025, 3, 15)
        "TBC"                 → None
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None

    text = str(value).strip()
    for fmt in SHOW_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # ISO with a time part
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None
