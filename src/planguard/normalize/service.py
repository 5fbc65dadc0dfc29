"""
Composição da normalização de planos.

`normalize_plan` executa os passes de deduplicação e o autofix na ordem
fixa, via `NormalizationEngine`, e consolida o resultado.

Uso:
    result = normalize_plan(plan, logf=print_like)
    result.plan              # plano normalizado
    result.removed_by_pass   # {"dedup.exact": 1, ...}
    result.fixes             # correções aplicadas pelo autofix
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from planguard.core.config.loader import resolve_config
from planguard.core.engine.engine import NormalizationEngine
from planguard.core.pipeline.context import LogFunc, RunContext, new_run_context
from planguard.core.pipeline.types import StepKind, StepResult, StepStatus
from planguard.core.plan.types import Plan

from .steps import PLAN_ARTIFACT, default_steps


@dataclass(frozen=True)
class NormalizationResult:
    """Plano normalizado, contagem de remoções por passe, correções e StepResults."""
    plan: Plan
    removed_by_pass: Dict[str, int] = field(default_factory=dict)
    fixes: List[str] = field(default_factory=list)
    steps: Dict[str, StepResult] = field(default_factory=dict)

    @property
    def removed(self) -> int:
        return sum(self.removed_by_pass.values())

    @property
    def ok(self) -> bool:
        return all(r.status != StepStatus.FAILED for r in self.steps.values())


def normalize_plan(
    plan: Plan,
    *,
    config: Optional[Dict[str, Any]] = None,
    logf: Optional[LogFunc] = None,
    ctx: Optional[RunContext] = None,
) -> NormalizationResult:
    """
    Normaliza um plano exatamente uma vez (todos os passes + autofix).

    Args:
        plan (Plan): Plano emitido pelo planejador externo.
        config (Optional[Dict[str, Any]]): Overrides sobre `DEFAULT_CONFIG`;
            ignorado quando `ctx` é informado.
        logf (Optional[LogFunc]): Callback `logf(fmt, *args)`; ausente = silencioso.
        ctx (Optional[RunContext]): Contexto existente (ex.: com Manifest).

    Returns:
        NormalizationResult: Resultado consolidado. O plano de entrada nunca é mutado.
    """
    if ctx is None:
        ctx = new_run_context(resolve_config(config), logf=logf)
    elif logf is not None and ctx.logf is None:
        ctx.logf = logf

    ctx.set_artifact(PLAN_ARTIFACT, plan)
    run = NormalizationEngine(steps=default_steps(), ctx=ctx).run()

    removed_by_pass: Dict[str, int] = {}
    fixes: List[str] = []
    for sid, result in run.steps.items():
        if result.status != StepStatus.SUCCESS:
            continue
        impact = result.payload.get("impact") or {}
        if result.kind == StepKind.DEDUP:
            removed_by_pass[sid] = int(impact.get("removed", 0))
        fixes.extend(result.payload.get("fixes") or [])

    return NormalizationResult(
        plan=ctx.get_artifact(PLAN_ARTIFACT),
        removed_by_pass=removed_by_pass,
        fixes=fixes,
        steps=dict(run.steps),
    )
