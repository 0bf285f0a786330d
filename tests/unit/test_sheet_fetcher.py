from __future__ import annotations

import asyncio

import httpx
import pytest

from sheets.sample_data import SAMPLE_TABLE
from sheets.sheet_fetcher import SheetFetchError, describe_html_page, looks_like_html

LOGIN_PAGE = "<!DOCTYPE html><html><head><title>Sign in - Google Accounts</title></head><body></body></html>"


def run(coro):
    return asyncio.run(coro)


def test_fetch_table_from_live_sheet(make_fetcher, csv_handler, sheet_csv):
    fetcher = make_fetcher(csv_handler(sheet_csv))
    snapshot = run(fetcher.fetch_table())

    assert snapshot.source == "remote"
    assert not snapshot.is_fallback
    assert snapshot.error is None
    assert len(snapshot.table) == 5
    assert snapshot.table[1][2] == "Shubham Kumar"


def test_fetch_table_requests_configured_url(make_fetcher, sheet_csv):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, text=sheet_csv)

    run(make_fetcher(handler, url="https://sheets.example/d/abc/export?format=csv&gid=0").fetch_table())
    assert seen == ["https://sheets.example/d/abc/export?format=csv&gid=0"]


def test_non_2xx_falls_back_to_sample(make_fetcher, csv_handler):
    snapshot = run(make_fetcher(csv_handler("nope", status_code=404)).fetch_table())

    assert snapshot.is_fallback
    assert snapshot.table == SAMPLE_TABLE
    assert "404" in snapshot.error


def test_timeout_falls_back_to_sample(make_fetcher):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    snapshot = run(make_fetcher(handler).fetch_table())
    assert snapshot.is_fallback
    assert "Timed out" in snapshot.error


def test_connection_error_falls_back_to_sample(make_fetcher):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    snapshot = run(make_fetcher(handler).fetch_table())
    assert snapshot.is_fallback
    assert "Could not reach" in snapshot.error


def test_html_page_falls_back_to_sample(make_fetcher, csv_handler):
    snapshot = run(make_fetcher(csv_handler(LOGIN_PAGE)).fetch_table())
    assert snapshot.is_fallback
    assert "Sign in - Google Accounts" in snapshot.error


def test_header_only_sheet_falls_back_to_sample(make_fetcher, csv_handler):
    snapshot = run(make_fetcher(csv_handler("a,b,c,d,e,f,g\n")).fetch_table())
    assert snapshot.is_fallback
    assert "1 usable rows" in snapshot.error


def test_fetch_live_table_raises(make_fetcher, csv_handler):
    with pytest.raises(SheetFetchError):
        run(make_fetcher(csv_handler("", status_code=500)).fetch_live_table())


def test_looks_like_html():
    assert looks_like_html(LOGIN_PAGE)
    assert looks_like_html("\n  <html><body>x</body></html>")
    assert not looks_like_html("Timestamp,Score,Full Name,Employee ID,DOB,Department")


def test_describe_html_page_without_title():
    assert describe_html_page("<html><body></body></html>").endswith("(untitled)")
