import json
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
import uvicorn

from src.observability.structured_logger import StructuredRuntimeLogger
from src.trending.domain.exceptions import InvalidInput, InvalidPeriod, TrendingError
from src.trending.domain.time_period import TimePeriod
from src.trending.runtime.trending_runtime import TrendingRuntime
from src.trending.services.impression_ingestion import ImpressionIngestionService
from src.trending.services.trending_query_facade import TrendingQueryFacade

TRACK_FAILED = "Failed to track impression"
FETCH_FAILED = "Failed to fetch trending tokens"


def _error(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers={"X-Error-Code": code},
    )


def _parse_limit(raw: Optional[str], default: int) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise InvalidInput("limit must be an integer") from None


def build_trending_router(
    ingestion: ImpressionIngestionService,
    facade: TrendingQueryFacade,
    default_limit: int = 5,
    logger: Optional[StructuredRuntimeLogger] = None,
) -> APIRouter:
    runtime_logger = logger or StructuredRuntimeLogger()
    router = APIRouter(tags=["trending"])

    def _rejected(route: str, message: str, code: str) -> JSONResponse:
        runtime_logger.warning("REQUEST_REJECTED", route=route, code=code, reason=message)
        return _error(400, message, code)

    @router.post("/impressions")
    async def track_impression(request: Request):
        try:
            payload = json.loads(await request.body())
        except ValueError:
            return _rejected("/impressions", "Invalid JSON body", InvalidInput.code)
        if not isinstance(payload, dict):
            return _rejected("/impressions", "Invalid JSON body", InvalidInput.code)

        post_id = payload.get("post_id")
        if not post_id:
            return _rejected("/impressions", "post_id is required", InvalidInput.code)
        if not isinstance(post_id, str):
            return _rejected("/impressions", "post_id must be a string", InvalidInput.code)
        user_id = payload.get("user_id") or None
        if user_id is not None and not isinstance(user_id, str):
            return _rejected("/impressions", "user_id must be a string", InvalidInput.code)

        try:
            await run_in_threadpool(ingestion.record, post_id, user_id)
        except InvalidInput as e:
            # Types are checked above; what remains is a blank post_id
            return _rejected("/impressions", "post_id is required", e.code)
        except TrendingError as e:
            runtime_logger.error("IMPRESSION_REQUEST_FAILED", post_id=post_id, code=e.code, cause=repr(e))
            return _error(500, TRACK_FAILED, e.code)
        except Exception as e:
            runtime_logger.error("IMPRESSION_REQUEST_FAILED", post_id=post_id, code="internal_error", cause=repr(e))
            return _error(500, TRACK_FAILED, TrendingError.code)

        return JSONResponse(status_code=201, content={"success": True})

    @router.get("/trending-tokens")
    def trending_tokens(
        limit: Optional[str] = Query(None),
        time_period: Optional[str] = Query(None, alias="timePeriod"),
    ):
        try:
            parsed_limit = _parse_limit(limit, default_limit)
            period = time_period if time_period else TimePeriod.default().value
            result = facade.trending(parsed_limit, period)
        except InvalidPeriod as e:
            return _rejected("/trending-tokens", "Invalid timePeriod", e.code)
        except InvalidInput as e:
            return _rejected("/trending-tokens", str(e), e.code)
        except TrendingError as e:
            runtime_logger.error(
                "TRENDING_REQUEST_FAILED", limit=limit, time_period=time_period, code=e.code, cause=repr(e)
            )
            return _error(500, FETCH_FAILED, e.code)
        except Exception as e:
            runtime_logger.error(
                "TRENDING_REQUEST_FAILED", limit=limit, time_period=time_period, code="internal_error", cause=repr(e)
            )
            return _error(500, FETCH_FAILED, TrendingError.code)

        return JSONResponse(status_code=200, content=result.to_payload())

    @router.get("/healthz")
    def healthz():
        return {"status": "ok"}

    return router


def create_app(runtime: TrendingRuntime, manage_lifecycle: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if manage_lifecycle:
            runtime.start()
        try:
            yield
        finally:
            if manage_lifecycle:
                runtime.stop()

    app = FastAPI(title="trending-tokens", lifespan=lifespan)
    app.include_router(
        build_trending_router(
            ingestion=runtime.ingestion,
            facade=runtime.facade,
            default_limit=runtime.config.default_limit,
            logger=runtime.structured_logger,
        )
    )
    return app


def run_server(runtime: TrendingRuntime, host: str = "0.0.0.0", port: int = 8000) -> None:
    uvicorn.run(create_app(runtime), host=host, port=port)
