
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional
import json
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from pagescore.models import FAIL, NA, PARTIAL, PASS, STATUSES, CheckResult
from pagescore.services.settings import Settings

logger = logging.getLogger(__name__)

PARTIAL_CREDIT = 0.5

class RubricError(ValueError):
    """The rubric document or its phase selection is unusable."""

class CheckSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    weight: float = Field(gt=0)
    description: str = ""
    why_it_matters: str = ""
    how_to_pass: str = ""

class CategorySpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    nominal_weight: Optional[float] = None
    checks: List[CheckSpec]

class PhaseSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: int
    description: str = ""
    enabled_checks: List[str] = Field(default_factory=list)

class Rubric(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    allow_na: List[str] = Field(default_factory=list)
    categories: List[CategorySpec]
    phases: List[PhaseSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_references(self) -> "Rubric":
        seen: Dict[str, str] = {}
        for cat in self.categories:
            for chk in cat.checks:
                if chk.id in seen:
                    raise ValueError(f"check {chk.id} appears in both {seen[chk.id]} and {cat.id}")
                seen[chk.id] = cat.id
        unknown_na = [c for c in self.allow_na if c not in seen]
        if unknown_na:
            raise ValueError(f"allow_na references unknown checks: {', '.join(unknown_na)}")
        numbers = [p.phase for p in self.phases]
        if len(numbers) != len(set(numbers)):
            raise ValueError("phase numbers must be unique")
        for p in self.phases:
            unknown = [c for c in p.enabled_checks if c not in seen]
            if unknown:
                raise ValueError(f"phase {p.phase} enables unknown checks: {', '.join(unknown)}")
        return self

    def check_ids(self) -> List[str]:
        return [chk.id for cat in self.categories for chk in cat.checks]

    def find_check(self, check_id: str) -> Optional[CheckSpec]:
        for cat in self.categories:
            for chk in cat.checks:
                if chk.id == check_id:
                    return chk
        return None

    def phase(self, number: int) -> PhaseSpec:
        for p in self.phases:
            if p.phase == number:
                return p
        raise RubricError(f"phase {number} is not defined in rubric {self.version}")

def parse_rubric(data: Dict[str, Any]) -> Rubric:
    try:
        return Rubric.model_validate(data)
    except ValidationError as e:
        raise RubricError(f"invalid rubric: {e}") from e

def load_rubric(path: Path) -> Rubric:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise RubricError(f"cannot read rubric {path}: {e}") from e
    return parse_rubric(raw)

def validate_registry(rubric: Rubric, evaluator_ids: Iterable[str]) -> None:
    """Every evaluator must map to a rubric check and every rubric check to an evaluator."""
    registered = set(evaluator_ids)
    declared = set(rubric.check_ids())
    unknown = sorted(registered - declared)
    if unknown:
        raise RubricError(f"evaluators without a rubric entry: {', '.join(unknown)}")
    missing = sorted(declared - registered)
    if missing:
        raise RubricError(f"rubric checks without an evaluator: {', '.join(missing)}")

def score_for_status(status: str, weight: float) -> float:
    if status == PASS:
        return weight
    if status == PARTIAL:
        return weight * PARTIAL_CREDIT
    if status in (FAIL, NA):
        return 0
    raise ValueError(f"unknown check status: {status!r}")

@dataclass(frozen=True)
class EngineConfig:
    """Validated rubric plus the active phase; built once and passed around read-only."""
    rubric: Rubric
    phase: int
    active_check_ids: FrozenSet[str]

    def is_active(self, check_id: str) -> bool:
        return check_id in self.active_check_ids

    def active_checks(self) -> List[str]:
        return [cid for cid in self.rubric.check_ids() if cid in self.active_check_ids]

    def make_result(
        self,
        check_id: str,
        status: str,
        evidence: List[str],
        details: Optional[Dict[str, Any]] = None,
    ) -> CheckResult:
        check = self.rubric.find_check(check_id)
        if check is None:
            raise RubricError(f"check {check_id} not found in rubric")
        if status not in STATUSES:
            raise ValueError(f"unknown check status: {status!r}")
        if status == NA and check_id not in self.rubric.allow_na:
            raise ValueError(f"check {check_id} may not report na")
        return CheckResult(
            id=check_id,
            status=status,
            score=score_for_status(status, check.weight),
            evidence=list(evidence),
            details=dict(details or {}),
        )

def engine_config_for(rubric: Rubric, phase: int) -> EngineConfig:
    return EngineConfig(
        rubric=rubric,
        phase=phase,
        active_check_ids=frozenset(rubric.phase(phase).enabled_checks),
    )

def build_engine_config(settings: Settings, evaluator_ids: Iterable[str]) -> EngineConfig:
    rubric = load_rubric(settings.rubric_path)
    validate_registry(rubric, evaluator_ids)
    engine = engine_config_for(rubric, settings.phase)
    logger.info(
        "Loaded rubric %s (phase %s, %d active checks)",
        rubric.version, engine.phase, len(engine.active_check_ids),
    )
    return engine
