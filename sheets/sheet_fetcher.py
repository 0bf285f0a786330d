"""
SheetFetcher Module (Async Version)
===================================
Downloads the spreadsheet CSV export with httpx.AsyncClient and falls back to
the built-in sample table whenever the live sheet cannot be used.
"""

import logging
from datetime import datetime
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from models.assessment_models import SheetSnapshot, Table
from sheets.csv_parser import CsvParseError, parse_csv
from sheets.sample_data import SAMPLE_TABLE

logger = logging.getLogger(__name__)


class SheetFetchError(Exception):
    pass


def looks_like_html(text: str) -> bool:
    head = text.lstrip()[:500].lower()
    return head.startswith("<!doctype html") or "<html" in head


def describe_html_page(html: str) -> str:
    """Google answers private sheets with a sign-in page; report its title."""
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else ""
    return f"received an HTML page instead of CSV ({title or 'untitled'})"


class SheetFetcher:
    def __init__(self, csv_url: str, timeout: float = 30.0,
                 client: Optional[httpx.AsyncClient] = None,
                 fallback_table: Table = SAMPLE_TABLE):
        self.csv_url = csv_url
        self.fallback_table = fallback_table
        self.client = client or httpx.AsyncClient(
            headers={
                "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"
            },
            follow_redirects=True,
            timeout=timeout
        )

    async def fetch_csv_text(self) -> str:
        """Fetches the raw CSV export. Raises SheetFetchError on any transport problem."""
        try:
            resp = await self.client.get(self.csv_url)
        except httpx.TimeoutException as e:
            raise SheetFetchError(f"Timed out fetching {self.csv_url}") from e
        except httpx.HTTPError as e:
            raise SheetFetchError(f"Could not reach {self.csv_url}: {e}") from e

        if resp.status_code >= 300:
            raise SheetFetchError(f"HTTP {resp.status_code}: {resp.reason_phrase}")
        return resp.text

    async def fetch_live_table(self) -> Table:
        """
        Fetches and parses the live sheet.
        HTML payloads and tables without a header plus reference row count as failures.
        """
        text = await self.fetch_csv_text()
        if looks_like_html(text):
            raise SheetFetchError(describe_html_page(text))

        try:
            table = parse_csv(text)
        except CsvParseError as e:
            raise SheetFetchError(str(e)) from e

        if len(table) < 2:
            raise SheetFetchError(f"Sheet has {len(table)} usable rows, expected at least 2")
        return table

    async def fetch_table(self) -> SheetSnapshot:
        """Never raises: failures are logged and the sample table is served instead."""
        logger.info("Fetching sheet CSV from %s", self.csv_url)
        try:
            table = await self.fetch_live_table()
        except SheetFetchError as e:
            logger.warning("Falling back to sample data: %s", e)
            return SheetSnapshot(table=self.fallback_table, source="fallback",
                                 fetched_at=datetime.now(), error=str(e))

        logger.info("Parsed %d rows from live sheet", len(table))
        return SheetSnapshot(table=table, source="remote", fetched_at=datetime.now())

    async def close(self):
        """Closes the async client session."""
        await self.client.aclose()
