# Shared pytest fixtures
from __future__ import annotations

from datetime import datetime

import httpx
import pytest
from tenacity import wait_none

from dashboard.data_management import get_json
from sheets.sheet_fetcher import SheetFetcher

FIXED_NOW = datetime(2025, 1, 1, 9, 0, 0)

SCENARIO_CSV = """T,S,Name,ID,DOB,Dept,"1. Q1","2. Q2"
not a date,,Alice,1,d,IT,A,B
not a date,,Bob,2,d,IT,A,C
"""

SHEET_CSV = (
    'Timestamp,Score,Full Name,Employee ID,Date of Birth,Department,'
    '"1. Which cycle is used in IC engines?","2. Unit of Power is?","3. SI unit of entropy?"\n'
    '8/16/2025 14:10:59,3 / 3,Shubham Kumar,123,12/2/1995,IT,Otto Cycle,Watt,J/K\r\n'
    '8/16/2025 19:07:21,2 / 3,Rajesh Sharma,456,13/02/1990,Mechanical,otto cycle , Watt ,W\r\n'
    '\n'
    'short,row,only\n'
    '8/17/2025 10:15:30,0 / 3,,999,1/1/1990,Mechanical,Carnot Cycle,Joule,W\n'
    'garbage timestamp,1 / 3,Priya Singh,789,25/05/1992,Electrical,Carnot Cycle,Watt,\n'
)


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def scenario_csv() -> str:
    return SCENARIO_CSV


@pytest.fixture()
def sheet_csv() -> str:
    return SHEET_CSV


@pytest.fixture()
def make_fetcher():
    """Builds a SheetFetcher whose HTTP client is served by ``handler``."""
    def factory(handler, url: str = "https://sheets.example/export?format=csv") -> SheetFetcher:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return SheetFetcher(url, client=client)
    return factory


@pytest.fixture()
def csv_handler():
    def factory(text: str, status_code: int = 200):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, text=text)
        return handler
    return factory


@pytest.fixture()
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(get_json.retry, "wait", wait_none())
