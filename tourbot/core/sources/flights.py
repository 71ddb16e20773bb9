# tourbot/core/sources/flights.py
"""
FLIGHT TABLE SOURCE - Read the touring party's flight bookings

Purpose:
    1. Read the flights CSV (columns resolved by header name, any order)
    2. Convert rows to FlightRecord (zone defaults to the fallback zone)
    3. Drop rows without a departure time
    4. Derive the city vocabulary from departure/arrival cities

Data Flow:
    travel_flights.csv → read_csv_text() → to_flight_record() → [FlightRecord]
"""

import asyncio
import csv
import io
import logging
from pathlib import Path
from typing import Dict, List, Optional

from tourbot.core import schemas

logger = logging.getLogger(__name__)

FLIGHT_COLUMNS = (
    "airline",
    "flight_number",
    "departure_city",
    "arrival_city",
    "departure_time",
    "arrival_time",
    "departure_timezone",
    "arrival_timezone",
    "confirmation",
)


def decode_csv_bytes(file_content: bytes) -> str:
    # utf-8-sig also swallows the BOM spreadsheet exports add
    try:
        return file_content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return file_content.decode("latin-1")


def read_csv_text(text: str) -> List[Dict[str, str]]:
    """
    Parse CSV text into dicts keyed by the header row.

    Quoted fields may contain commas, and a doubled quote ("") inside
    quotes is a literal quote. Short rows are padded with "".

    Example:
        Input:
            airline,flight_number,departure_time
            "Qantas, Domestic",QF1,2025-03-15T09:00:00

        Output:
            [{"airline": "Qantas, Domestic", "flight_number": "QF1",
              "departure_time": "2025-03-15T09:00:00"}]
    """
    reader = csv.DictReader(io.StringIO(text), restval="")

    rows = []
    for row in reader:
        # extra cells land under the None key
        row.pop(None, None)
        if any((value or "").strip() for value in row.values()):
            rows.append(row)
    return rows


def to_flight_record(
    raw_row: Dict[str, str], default_tz: str
) -> Optional[schemas.FlightRecord]:
    """
    Convert one CSV row to a FlightRecord.

    Returns None when departure_time is missing; such rows are dropped,
    not the whole table.
    """
    values = {
        column: (raw_row.get(column) or "").strip() for column in FLIGHT_COLUMNS
    }

    if not values["departure_time"]:
        return None

    values["departure_timezone"] = values["departure_timezone"] or default_tz
    return schemas.FlightRecord(**values)


def read_flight_file(path: Path, default_tz: str) -> List[schemas.FlightRecord]:
    if not path.exists():
        logger.info(f"Flight table {path} not found, treating as empty")
        return []

    rows = read_csv_text(decode_csv_bytes(path.read_bytes()))

    records = []
    for idx, row in enumerate(rows, start=2):  # header is line 1
        record = to_flight_record(row, default_tz)
        if record is None:
            logger.warning(f"{path.name} line {idx}: no departure_time, row dropped")
            continue
        records.append(record)
    return records


class FlightTable:
    """
    Flight bookings backed by a CSV file.

    Every call re-reads the file, so edits show up without a restart.
    """

    def __init__(self, path: Path, default_tz: str):
        self.path = Path(path)
        self.default_tz = default_tz

    async def load(self) -> List[schemas.FlightRecord]:
        try:
            return await asyncio.to_thread(read_flight_file, self.path, self.default_tz)
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            logger.error(f"Failed to read flight table {self.path}: {e}")
            return []

    async def list_cities(self) -> List[str]:
        """
        All distinct departure/arrival cities, lowercased, first-seen order.
        """
        cities: Dict[str, None] = {}
        for record in await self.load():
            for city in (record.departure_city, record.arrival_city):
                if city:
                    cities.setdefault(city.lower(), None)
        return list(cities)
