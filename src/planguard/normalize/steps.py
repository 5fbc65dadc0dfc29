"""
Passes de normalização como Steps do pipeline.

Cada passe lê o plano corrente do artefato `plan` do RunContext, publica o
plano resultante no mesmo artefato e devolve um `StepResult` com:

    payload:
      impact:
        commands_before: int
        commands_after: int
        removed: int

A cadeia `depends_on` fixa a ordem exata → semântico → documentos →
lançamentos → somente-leitura → órfãos → autofix de distribuição.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from planguard.core.pipeline.context import RunContext
from planguard.core.pipeline.registry import StepRegistry
from planguard.core.pipeline.step import Step
from planguard.core.pipeline.types import StepKind, StepResult, StepStatus
from planguard.core.plan.types import Plan

from . import dedup
from .autofix import apply_distribution_autofix, find_distribution_create


PLAN_ARTIFACT = "plan"

EXACT = "dedup.exact"
SEMANTIC = "dedup.semantic"
DOCUMENT_CYCLES = "dedup.document_cycles"
LAUNCH_CYCLES = "dedup.launch_cycles"
READ_ONLY = "dedup.read_only"
ORPHANS = "dedup.orphans"
DISTRIBUTION = "autofix.distribution"

PASS_ORDER: Tuple[str, ...] = (
    EXACT,
    SEMANTIC,
    DOCUMENT_CYCLES,
    LAUNCH_CYCLES,
    READ_ONLY,
    ORPHANS,
    DISTRIBUTION,
)


def _normalize_cfg(ctx: RunContext) -> Dict[str, Any]:
    return (ctx.config or {}).get("normalize", {}) or {}


def _send_shape(ctx: RunContext) -> Dict[str, str]:
    shape = _normalize_cfg(ctx).get("send_command", {}) or {}
    return {
        "service": str(shape.get("service", "ssm")).lower(),
        "operation": str(shape.get("operation", "send-command")).lower(),
    }


@dataclass
class PlanPassStep(Step):
    """Base dos passes de deduplicação: aplica `prune` ao artefato `plan`."""

    id: str = ""
    label: str = ""
    kind: StepKind = StepKind.DEDUP
    depends_on: List[str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = []

    def prune(self, plan: Plan, ctx: RunContext) -> Tuple[Plan, int]:
        raise NotImplementedError

    def run(self, ctx: RunContext) -> StepResult:
        try:
            plan = ctx.get_artifact(PLAN_ARTIFACT)
            if not isinstance(plan, Plan):
                raise TypeError(f"Artifact {PLAN_ARTIFACT} must be Plan, got {type(plan).__name__}")

            new_plan, removed = self.prune(plan, ctx)
            ctx.set_artifact(PLAN_ARTIFACT, new_plan)

            if removed > 0:
                ctx.emit("[normalize] %s: removed %d command(s)", self.label, removed)

            ctx.log(
                step_id=self.id,
                level="info",
                message=f"{self.label}: removed {removed} command(s)",
                removed=removed,
            )

            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.SUCCESS,
                summary=f"removed {removed} {self.label} command(s)",
                metrics={"removed": removed},
                payload={
                    "impact": {
                        "commands_before": len(plan),
                        "commands_after": len(new_plan),
                        "removed": removed,
                    }
                },
            )

        except Exception as e:
            ctx.log(
                step_id=self.id,
                level="error",
                message=f"{self.id} failed",
                error_type=e.__class__.__name__,
                error_message=str(e) or "error",
            )
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.FAILED,
                summary=str(e) or f"{self.id} failed",
                payload={"error": {"type": e.__class__.__name__, "message": str(e) or "error"}},
            )


@dataclass
class ExactDuplicatesStep(PlanPassStep):
    id: str = EXACT
    label: str = "exact duplicate"

    def prune(self, plan: Plan, ctx: RunContext) -> Tuple[Plan, int]:
        return dedup.prune_exact_duplicates(plan)


@dataclass
class SemanticDuplicatesStep(PlanPassStep):
    id: str = SEMANTIC
    label: str = "redundant remote-execution"

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = [EXACT]

    def prune(self, plan: Plan, ctx: RunContext) -> Tuple[Plan, int]:
        return dedup.prune_semantic_duplicates(plan, **_send_shape(ctx))


@dataclass
class DocumentCyclesStep(PlanPassStep):
    id: str = DOCUMENT_CYCLES
    label: str = "document-cycle"

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = [SEMANTIC]

    def prune(self, plan: Plan, ctx: RunContext) -> Tuple[Plan, int]:
        return dedup.prune_document_cycles(plan, service=_send_shape(ctx)["service"])


@dataclass
class LaunchCyclesStep(PlanPassStep):
    id: str = LAUNCH_CYCLES
    label: str = "launch-cycle"

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = [DOCUMENT_CYCLES]

    def prune(self, plan: Plan, ctx: RunContext) -> Tuple[Plan, int]:
        return dedup.prune_launch_cycles(plan)


@dataclass
class ReadOnlyStep(PlanPassStep):
    id: str = READ_ONLY
    label: str = "redundant read-only"

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = [LAUNCH_CYCLES]

    def prune(self, plan: Plan, ctx: RunContext) -> Tuple[Plan, int]:
        ro = _normalize_cfg(ctx).get("read_only", {}) or {}
        return dedup.prune_redundant_read_only(
            plan,
            verbs=tuple(ro.get("verbs") or dedup.READ_ONLY_VERBS),
            target_flags=tuple(ro.get("target_flags") or dedup.READ_ONLY_TARGET_FLAGS),
        )


@dataclass
class OrphansStep(PlanPassStep):
    id: str = ORPHANS
    label: str = "orphaned-placeholder"

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = [READ_ONLY]

    def prune(self, plan: Plan, ctx: RunContext) -> Tuple[Plan, int]:
        return dedup.prune_orphaned_placeholders(plan)


@dataclass
class DistributionAutofixStep(Step):
    """Autofix do ciclo de vida de distribuições (só adiciona, nunca remove)."""

    id: str = DISTRIBUTION
    kind: StepKind = StepKind.AUTOFIX
    depends_on: List[str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.depends_on is None:
            self.depends_on = [ORPHANS]

    def run(self, ctx: RunContext) -> StepResult:
        try:
            plan = ctx.get_artifact(PLAN_ARTIFACT)
            if not isinstance(plan, Plan):
                raise TypeError(f"Artifact {PLAN_ARTIFACT} must be Plan, got {type(plan).__name__}")

            new_plan, fixes = apply_distribution_autofix(plan)
            ctx.set_artifact(PLAN_ARTIFACT, new_plan)

            for fix in fixes:
                ctx.emit("[normalize] autofix: %s", fix)
            if find_distribution_create(plan) < 0:
                ctx.log(
                    step_id=self.id,
                    level="debug",
                    message="skipped distribution patching: no create-distribution command",
                )

            ctx.log(step_id=self.id, level="info", message=f"{len(fixes)} fix(es) applied", fixes=list(fixes))

            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.SUCCESS,
                summary=f"{len(fixes)} fix(es) applied",
                metrics={"fixes": len(fixes)},
                payload={
                    "fixes": list(fixes),
                    "impact": {
                        "commands_before": len(plan),
                        "commands_after": len(new_plan),
                        "removed": 0,
                    },
                },
            )

        except Exception as e:
            ctx.log(
                step_id=self.id,
                level="error",
                message=f"{self.id} failed",
                error_type=e.__class__.__name__,
                error_message=str(e) or "error",
            )
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.FAILED,
                summary=str(e) or f"{self.id} failed",
                payload={"error": {"type": e.__class__.__name__, "message": str(e) or "error"}},
            )


def default_registry() -> StepRegistry:
    """Registro com os sete passes na ordem fixa de composição."""
    registry = StepRegistry()
    for step in (
        ExactDuplicatesStep(),
        SemanticDuplicatesStep(),
        DocumentCyclesStep(),
        LaunchCyclesStep(),
        ReadOnlyStep(),
        OrphansStep(),
        DistributionAutofixStep(),
    ):
        registry.add(step)
    return registry


def default_steps() -> List[Step]:
    return default_registry().list()
