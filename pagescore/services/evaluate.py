from __future__ import annotations
from typing import List
import logging

from pagescore.models import FAIL, CheckResult
from pagescore.services.checks.base import REGISTRY, CheckContext

# Importing the families registers their evaluators
from pagescore.services.checks import (  # noqa: F401
    accessibility,
    brand,
    fetchability,
    freshness,
    metadata,
    schema,
    semantics,
)
from pagescore.services.rubric import EngineConfig

logger = logging.getLogger(__name__)

def evaluator_ids() -> List[str]:
    return sorted(REGISTRY)

def run_check(check_id: str, ctx: CheckContext, engine: EngineConfig) -> CheckResult:
    """Run one evaluator; a crash becomes a fail with the error as evidence."""
    evaluator = REGISTRY[check_id]
    try:
        verdict = evaluator(ctx)
        return engine.make_result(check_id, verdict.status, verdict.evidence, verdict.details)
    except Exception as e:
        logger.exception("Evaluator %s crashed on %s", check_id, ctx.raw.final_url)
        return engine.make_result(check_id, FAIL, [f"Check failed with error: {e.__class__.__name__}: {e}"])

def evaluate_all(ctx: CheckContext, engine: EngineConfig) -> List[CheckResult]:
    """Active checks only, in rubric order."""
    return [run_check(cid, ctx, engine) for cid in engine.active_checks()]
