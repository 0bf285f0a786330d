"""
Data Management
==============================

Loads dashboard data from the results API and prepares it for display:
filtering, pagination and CSV export.
"""
import csv
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import httpx
import pandas as pd
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from analytics.metrics import PASS_THRESHOLD, calculate_summary
from analytics.scoring import process_sheet_data
from sheets.sample_data import SAMPLE_TABLE

logger = logging.getLogger(__name__)

ITEMS_PER_PAGE = 10
MAX_PAGE_LINKS = 5
SCORE_RANGES = ["0-2", "3-4", "5-6", "7-8", "9-10"]

EXPORT_COLUMNS = ["Name", "Employee ID", "Department", "DOB", "Score", "Status",
                  "Submission Date", "Detailed Answers"]


@dataclass
class DashboardData:
    responses: List[Dict[str, Any]] = field(default_factory=list)
    total_responses: int = 0
    passed_count: int = 0
    failed_count: int = 0
    average_score: float = 0.0
    departments: List[str] = field(default_factory=list)
    department_stats: List[Dict[str, Any]] = field(default_factory=list)
    questions: List[str] = field(default_factory=list)
    correct_answers: List[str] = field(default_factory=list)
    source: str = "api"
    api_url: Optional[str] = None
    loaded_at: datetime = field(default_factory=datetime.now)
    error: Optional[str] = None

    @property
    def is_sample(self) -> bool:
        return self.source == "sample"

    @classmethod
    def from_stats(cls, stats: Dict[str, Any], **kwargs) -> "DashboardData":
        metadata = stats.get("metadata") or {}
        return cls(
            responses=stats.get("responses") or [],
            total_responses=stats.get("totalResponses") or 0,
            passed_count=stats.get("passedCount") or 0,
            failed_count=stats.get("failedCount") or 0,
            average_score=stats.get("averageScore") or 0.0,
            departments=stats.get("departments") or [],
            department_stats=stats.get("departmentStats") or [],
            questions=metadata.get("questions") or [],
            correct_answers=metadata.get("correctAnswers") or [],
            **kwargs,
        )


class ApiUnavailable(Exception):
    pass


def is_transient_error(exc: BaseException) -> bool:
    """Transport failures and 5xx answers are worth retrying; 4xx answers are not."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


@retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=5),
       retry=retry_if_exception(is_transient_error), reraise=True)
def get_json(client: httpx.Client, url: str) -> Dict[str, Any]:
    resp = client.get(url)
    resp.raise_for_status()
    return resp.json()


def load_from_api(client: httpx.Client, api_url: str) -> DashboardData:
    """Health check, then questions and statistics from one API base URL."""
    health = get_json(client, f"{api_url}/health")
    if not health.get("success"):
        raise ApiUnavailable(f"{api_url} reported unhealthy")

    payload = get_json(client, f"{api_url}/dashboard-stats")
    if not payload.get("success"):
        raise ApiUnavailable(payload.get("error") or payload.get("message") or "Failed to load data")

    data = DashboardData.from_stats(payload["data"], source="api", api_url=api_url)
    if not data.questions:
        questions = get_json(client, f"{api_url}/questions").get("data") or {}
        data.questions = questions.get("questions") or []
        data.correct_answers = questions.get("correctAnswers") or []
    return data


def load_sample_data(error: Optional[str] = None) -> DashboardData:
    """Grades the built-in sample sheet locally."""
    processed = process_sheet_data(SAMPLE_TABLE)
    stats = calculate_summary(processed.results).to_dict()
    stats["metadata"] = processed.key.to_dict() if processed.key else {}
    return DashboardData.from_stats(stats, source="sample", error=error)


def load_dashboard_data(api_urls: Sequence[str], timeout: float = 45.0,
                        client: Optional[httpx.Client] = None) -> DashboardData:
    """Tries every API URL in order; serves the local sample when none answers."""
    own_client = client is None
    client = client or httpx.Client(timeout=timeout, headers={"Cache-Control": "no-cache"})
    errors = []
    try:
        for api_url in api_urls:
            try:
                data = load_from_api(client, api_url.rstrip("/"))
                logger.info("Loaded %d responses from %s", data.total_responses, api_url)
                return data
            except (httpx.HTTPError, ApiUnavailable, ValueError, KeyError) as e:
                logger.warning("API %s unavailable: %s", api_url, e)
                errors.append(f"{api_url}: {e}")
    finally:
        if own_client:
            client.close()

    return load_sample_data(error="; ".join(errors) or "No API URL configured")


def check_credentials(username: str, employee_id: str, expected_username: str,
                      expected_employee_id: str) -> bool:
    return username == expected_username and employee_id == expected_employee_id


def apply_filters(df: pd.DataFrame, department: str = "", score_range: str = "",
                  status: str = "", search: str = "") -> pd.DataFrame:
    """Empty filter values match everything."""
    mask = pd.Series(True, index=df.index)

    if department:
        mask &= df["Department"] == department

    if score_range:
        low, high = (int(part) for part in score_range.split("-"))
        mask &= df["Score"].between(low, high)

    if status:
        passed = df["Score"] >= PASS_THRESHOLD
        mask &= passed if status == "passed" else ~passed

    if search:
        needle = search.lower()
        mask &= (df["Name"].str.lower().str.contains(needle, regex=False)
                 | df["Employee ID"].str.lower().str.contains(needle, regex=False))

    return df[mask]


def total_pages(item_count: int, per_page: int = ITEMS_PER_PAGE) -> int:
    return max(1, -(-item_count // per_page))


def paginate(df: pd.DataFrame, page: int, per_page: int = ITEMS_PER_PAGE) -> pd.DataFrame:
    page = min(max(page, 1), total_pages(len(df), per_page))
    start = (page - 1) * per_page
    return df.iloc[start:start + per_page]


def page_numbers(current: int, pages: int, max_links: int = MAX_PAGE_LINKS) -> List[int]:
    """Window of at most max_links page numbers centred on the current page."""
    shown = min(max_links, pages)
    start = max(1, current - shown // 2)
    end = min(pages, start + shown - 1)
    if end - start + 1 < shown:
        start = max(1, end - shown + 1)
    return list(range(start, end + 1))


def build_export_csv(df: pd.DataFrame) -> str:
    export = df[EXPORT_COLUMNS].copy()
    export["Submission Date"] = export["Submission Date"].apply(
        lambda d: d.strftime("%d/%m/%Y") if pd.notna(d) else "")
    return export.to_csv(index=False, quoting=csv.QUOTE_ALL)


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"mechanical-trainee-test-results-{now.strftime('%Y-%m-%d')}.csv"


def page_after_filtering(current_page: int, filters: tuple, previous_filters: Optional[tuple]) -> int:
    """Back to the first page whenever the filter selection changes."""
    return current_page if filters == previous_filters else 1


def detail_labels(df: pd.DataFrame) -> Dict[Any, str]:
    """Selector labels keyed by frame index, so duplicate names stay selectable."""
    return {idx: f"{row['Name']} ({row['Employee ID']})" for idx, row in df.iterrows()}
