
from __future__ import annotations

from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from pagescore.log import setup_logging
from pagescore.services.evaluate import evaluator_ids
from pagescore.services.rubric import build_engine_config
from pagescore.services.settings import load_settings
from pagescore.web.routers import analyze

APP_NAME = "pagescore"
app = FastAPI(title=f"{APP_NAME} API")

app.include_router(analyze.router)

@app.on_event("startup")
async def startup_event():
    # Rubric/registry problems raise here and abort startup
    settings = load_settings()
    logger = setup_logging(settings.log_level)
    app.state.settings = settings
    app.state.engine = build_engine_config(settings, evaluator_ids())
    if not settings.render_endpoint:
        logger.warning("No render endpoint configured; rendered-HTML checks will report rendering unavailable")

@app.get("/healthz")
async def healthz(request: Request):
    engine = request.app.state.engine
    return JSONResponse({"ok": True, "rubric_version": engine.rubric.version, "phase": engine.phase})
