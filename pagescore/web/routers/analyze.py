
from __future__ import annotations

import time
import logging
from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, ValidationError, field_validator
from starlette.responses import JSONResponse

from pagescore.services.analyze import InvalidURLError, analyze_url, validate_url
from pagescore.services.fetch import FetchError, new_client
from pagescore.services.rubric import EngineConfig
from pagescore.services.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter()

class AnalyzeRequest(BaseModel):
    url: Optional[str] = None

    @field_validator("url", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

def _error(message: str, status_code: int, started: float) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": message, "duration_ms": _elapsed_ms(started)},
        status_code=status_code,
    )

def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)

async def _requested_url(request: Request) -> str:
    try:
        body = await request.json()
    except ValueError:
        raise InvalidURLError("URL is required")
    if not isinstance(body, dict):
        raise InvalidURLError("URL is required")
    try:
        req = AnalyzeRequest.model_validate(body)
    except ValidationError:
        raise InvalidURLError("URL is required")
    return validate_url(req.url)

async def _run(request: Request):
    """Returns (scorecard, None) or (None, error response)."""
    started = time.perf_counter()
    try:
        url = await _requested_url(request)
    except InvalidURLError as e:
        return None, _error(str(e), 400, started)

    engine: EngineConfig = request.app.state.engine
    settings: Settings = request.app.state.settings
    transport = getattr(request.app.state, "http_transport", None)
    try:
        async with new_client(settings, transport=transport) as client:
            scorecard = await analyze_url(url, engine, settings, client=client)
    except FetchError as e:
        logger.warning("Analysis of %s failed: %s", url, e)
        return None, _error(str(e), 500, started)
    except Exception as e:
        logger.exception("Analysis of %s crashed", url)
        return None, _error(f"Internal error: {e.__class__.__name__}", 500, started)
    return (scorecard, _elapsed_ms(started)), None

@router.post("/api/analyze")
async def api_analyze(request: Request):
    ok, err = await _run(request)
    if err is not None:
        return err
    scorecard, duration_ms = ok
    return JSONResponse({"success": True, "scorecard": scorecard.to_dict(), "duration_ms": duration_ms})

@router.post("/api/score")
async def api_score(request: Request):
    ok, err = await _run(request)
    if err is not None:
        return err
    scorecard, duration_ms = ok
    logger.info(
        "Scored %s: %s/100 (rubric %s, phase %s) in %d ms",
        scorecard.final_url, scorecard.total_score, scorecard.rubric_version, scorecard.phase, duration_ms,
    )
    out = scorecard.to_dict()
    out["duration_ms"] = duration_ms
    return JSONResponse(out)

@router.get("/api/checks")
async def api_checks(request: Request):
    engine: EngineConfig = request.app.state.engine
    rubric = engine.rubric
    checks = []
    for cat in rubric.categories:
        for chk in cat.checks:
            checks.append({
                "id": chk.id,
                "category": cat.id,
                "category_label": cat.label,
                "category_weight": cat.nominal_weight,
                "label": chk.label,
                "weight": chk.weight,
                "description": chk.description,
                "why_it_matters": chk.why_it_matters,
                "how_to_pass": chk.how_to_pass,
                "allow_na": chk.id in rubric.allow_na,
                "active": engine.is_active(chk.id),
            })
    return JSONResponse({"rubric_version": rubric.version, "phase": engine.phase, "checks": checks})
