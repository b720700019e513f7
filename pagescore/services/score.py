from __future__ import annotations
from typing import Dict, List

from pagescore.models import NA, CategoryResult, CheckResult
from pagescore.services.rubric import CategorySpec, EngineConfig

def _pct(value: float, maxv: float) -> int:
    return max(0, min(100, round(100 * value / maxv))) if maxv > 0 else 0

def category_score(category: CategorySpec, results: Dict[str, CheckResult], engine: EngineConfig) -> CategoryResult:
    """
    Points earned / possible for one category. Only active checks count;
    an `na` outcome drops that check's weight from max_score.
    """
    checks: List[CheckResult] = []
    score = 0.0
    max_score = 0.0
    for spec in category.checks:
        if not engine.is_active(spec.id):
            continue
        res = results.get(spec.id)
        if res is None:
            max_score += spec.weight
            continue
        checks.append(res)
        if res.status == NA:
            continue
        score += res.score
        max_score += spec.weight

    percentage = round(100 * score / max_score, 2) if max_score > 0 else 0
    return CategoryResult(
        id=category.id,
        label=category.label,
        checks=checks,
        score=score,
        max_score=max_score,
        percentage=percentage,
    )

def category_scores(results: List[CheckResult], engine: EngineConfig) -> List[CategoryResult]:
    by_id = {r.id: r for r in results}
    return [category_score(cat, by_id, engine) for cat in engine.rubric.categories]

def total_score(categories: List[CategoryResult]) -> int:
    earned = sum(c.score for c in categories)
    possible = sum(c.max_score for c in categories)
    return _pct(earned, possible)
