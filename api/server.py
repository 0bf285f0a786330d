"""
API Server
==========

JSON API over the scoring pipeline. Every request reads the current sheet
snapshot (cached for a short time), grades it and answers with a
``{"success": ...}`` envelope.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from analytics.metrics import calculate_summary, pass_percentage
from analytics.scoring import initialize_scoring_key, process_sheet_data
from config.logging_setup import setup_logging
from config.settings import Settings, load_settings
from models.assessment_models import SheetSnapshot
from sheets.sheet_fetcher import SheetFetcher, SheetFetchError

logger = logging.getLogger(__name__)

METHOD = "CSV Export with Dynamic Correct Answers"

SHARING_INSTRUCTIONS = [
    "1. Open your Google Sheet",
    "2. Click Share button",
    '3. Change access to "Anyone with the link can view"',
    "4. Ensure the sheet is publicly accessible",
    "5. Make sure first employee has the correct answers",
]


class SheetCache:
    """
    Keeps the last live snapshot for ``ttl`` seconds.
    Fallback snapshots are never cached so the live sheet is retried next time.
    """

    def __init__(self, fetcher: SheetFetcher, ttl: float):
        self.fetcher = fetcher
        self.ttl = ttl
        self._entry: Optional[tuple] = None

    def _fresh(self) -> Optional[SheetSnapshot]:
        entry = self._entry
        if entry is None:
            return None
        snapshot, stored_at = entry
        if time.monotonic() - stored_at > self.ttl:
            return None
        return snapshot

    async def get_snapshot(self) -> SheetSnapshot:
        cached = self._fresh()
        if cached is not None:
            logger.debug("Serving cached sheet fetched at %s", cached.fetched_at)
            return cached

        snapshot = await self.fetcher.fetch_table()
        if self.ttl > 0 and not snapshot.is_fallback:
            self._entry = (snapshot, time.monotonic())
        return snapshot

    def clear(self):
        self._entry = None

    def status(self) -> Dict[str, Any]:
        cached = self._fresh()
        return {
            "ttlSeconds": self.ttl,
            "cached": cached is not None,
            "fetchedAt": cached.fetched_at.isoformat() if cached else None,
        }


def _source_info(snapshot: SheetSnapshot) -> Dict[str, Any]:
    return {"source": snapshot.source, "sourceError": snapshot.error}


def create_app(settings: Optional[Settings] = None,
               fetcher: Optional[SheetFetcher] = None) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.log_level)
    fetcher = fetcher or SheetFetcher(settings.csv_url, timeout=settings.fetch_timeout)
    cache = SheetCache(fetcher, settings.cache_ttl)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Quiz results API ready, sheet: %s", settings.sheet_id)
        yield
        await fetcher.close()

    app = FastAPI(title="Maruti Quiz Results API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.cache = cache

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc),
        })

    @app.get("/api/health")
    async def health():
        return {
            "success": True,
            "message": "Quiz results API is running (Dynamic CSV Mode)",
            "timestamp": datetime.now().isoformat(),
            "config": {
                "method": METHOD,
                "sheetId": settings.sheet_id,
                "cache": cache.status(),
            },
        }

    @app.get("/api/test-connection")
    async def test_connection():
        try:
            table = await fetcher.fetch_live_table()
        except SheetFetchError as e:
            logger.error("CSV connection test failed: %s", e)
            return JSONResponse(status_code=500, content={
                "success": False,
                "error": "Failed to connect via CSV",
                "message": str(e),
                "instructions": SHARING_INSTRUCTIONS,
            })

        key = initialize_scoring_key(table)
        return {
            "success": True,
            "message": "CSV connection successful with dynamic correct answers",
            "details": {
                "method": "CSV Export with First Employee as Reference",
                "totalRows": len(table),
                "headerRow": list(table[0][:6]),
                "firstEmployeeData": list(table[1][:6]),
                "questionsExtracted": key.total_questions if key else 0,
                "correctAnswersExtracted": len(key.answer_key) if key else 0,
                "referenceEmployee": (key.reference_name if key else "") or "Unknown",
            },
        }

    @app.get("/api/test-responses")
    async def test_responses():
        snapshot = await cache.get_snapshot()
        processed = process_sheet_data(snapshot.table)
        reference = processed.reference
        return {
            "success": True,
            "data": [record.to_dict() for record in processed.results],
            "totalCount": len(processed.results),
            "timestamp": datetime.now().isoformat(),
            "metadata": {
                "method": METHOD,
                "headerRow": list(snapshot.table[0]) if snapshot.table else [],
                "totalRows": len(snapshot.table),
                "processedRows": len(processed.results),
                "droppedRows": [dropped.to_dict() for dropped in processed.dropped],
                "referenceEmployee": reference.full_name if reference else "Unknown",
                "questionsFromHeader": processed.key.total_questions if processed.key else 0,
                **_source_info(snapshot),
            },
        }

    @app.get("/api/dashboard-stats")
    async def dashboard_stats():
        snapshot = await cache.get_snapshot()
        processed = process_sheet_data(snapshot.table)
        summary = calculate_summary(processed.results)

        data = summary.to_dict()
        key = processed.key
        data["metadata"] = {
            "method": METHOD,
            "questions": list(key.questions) if key else [],
            "correctAnswers": list(key.answer_key) if key else [],
            "referenceEmployeeName": summary.reference.full_name if summary.reference else "Unknown",
            **_source_info(snapshot),
        }
        logger.info("Statistics calculated: %d responses, %d passed, average %.1f",
                    summary.total_responses, summary.passed_count, summary.average_score)
        return {"success": True, "data": data}

    @app.get("/api/questions")
    async def questions():
        snapshot = await cache.get_snapshot()
        key = initialize_scoring_key(snapshot.table)
        data = key.to_dict() if key else {"questions": [], "correctAnswers": [], "totalQuestions": 0}
        data.update({
            "source": "Dynamically loaded from first employee",
            "referenceNote": "Questions from header row, correct answers from first employee",
            **_source_info(snapshot),
        })
        return {"success": True, "data": data}

    @app.get("/api/response/{employee_id}")
    async def response_details(employee_id: str):
        snapshot = await cache.get_snapshot()
        processed = process_sheet_data(snapshot.table)
        target = next((r for r in processed.results if r.employee_id == employee_id), None)
        if target is None:
            return JSONResponse(status_code=404, content={
                "success": False,
                "message": "Employee not found",
            })

        key = processed.key
        reference = processed.reference
        reference_name = reference.full_name if reference else "Unknown"
        comparison = [
            {
                "questionNumber": answer.question_index + 1,
                "question": key.questions[answer.question_index],
                "userAnswer": answer.selected_answer,
                "referenceAnswer": key.answer_key[answer.question_index],
                "isCorrect": answer.is_correct,
                "referenceEmployeeName": reference_name,
            }
            for answer in target.answers
        ]

        data = target.to_dict()
        data.update({
            "referenceEmployee": reference.to_dict() if reference else None,
            "comparisonAnalysis": comparison,
            "summary": {
                "totalQuestions": key.total_questions,
                "correctAnswers": target.score,
                "scorePercentage": pass_percentage(target.score, key.total_questions),
                "comparedWith": reference_name,
            },
        })
        return {"success": True, "data": data}

    @app.get("/api/debug/raw-data")
    async def raw_data():
        snapshot = await cache.get_snapshot()
        table = snapshot.table
        key = initialize_scoring_key(table)
        return {
            "success": True,
            "data": {
                "method": "CSV Export with Dynamic Processing",
                "totalRows": len(table),
                "headerRow": list(table[0]) if table else [],
                "firstEmployeeRow": list(table[1]) if len(table) > 1 else [],
                "sampleDataRows": [list(row) for row in table[1:6]],
                "extractedQuestions": list(key.questions) if key else [],
                "extractedCorrectAnswers": list(key.answer_key) if key else [],
                "allRows": [list(row) for row in table],
                **_source_info(snapshot),
            },
        }

    @app.post("/api/cache/clear")
    async def clear_cache():
        cache.clear()
        return {"success": True, "message": "Cache cleared"}

    return app


def main():
    settings = load_settings()
    setup_logging(settings.log_level)
    logger.info("Starting quiz results API on port %d", settings.api_port)
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
