# src/planguard/core/engine/engine.py
"""
Engine de normalização do planguard.

Executa os passes de normalização na ordem definida pelo planner,
aplicando as políticas explícitas de configuração:
    - `steps.<id>.enabled` → passe desabilitado vira SKIPPED
    - `engine.fail_fast`   → interrompe na primeira falha

O Engine:
- não muta StepResult (frozen); enriquecimentos geram nova instância
- converte exceções em `PlanguardErrorPayload` (StepResult.payload["error"])
- registra cada passe como evento estruturado no RunContext e, quando o
  contexto carrega um Manifest, como step_started/step_finished/step_failed
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from planguard.core.pipeline.context import RunContext
from planguard.core.pipeline.step import Step
from planguard.core.pipeline.types import StepKind, StepResult, StepStatus
from planguard.core.traceability.manifest import step_failed, step_finished, step_started

from planguard.core.errors import (
    PlanguardErrorPayload,
    engine_configuration_error,
    engine_execution_error,
)
from planguard.core.exceptions import PlanguardException

from .planner import plan_execution


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma normalização (um StepResult por passe)."""

    steps: Dict[str, StepResult] = field(default_factory=dict)

    @property
    def failed(self) -> List[str]:
        return [sid for sid, r in self.steps.items() if r.status == StepStatus.FAILED]


class NormalizationEngine:
    """Engine canônico do planguard (planner + execução dos passes)."""

    def __init__(self, *, steps: Sequence[Step], ctx: RunContext):
        self.steps: List[Step] = list(steps)
        self.ctx: RunContext = ctx

    def _is_enabled(self, step_id: str) -> bool:
        steps_cfg = (self.ctx.config or {}).get("steps", {}) or {}
        step_cfg = steps_cfg.get(step_id, {}) or {}
        return bool(step_cfg.get("enabled", True))

    def _fail_fast(self) -> bool:
        engine_cfg = (self.ctx.config or {}).get("engine", {}) or {}
        return bool(engine_cfg.get("fail_fast", True))

    # ------------------------------------------------------------------
    # Exceção -> PlanguardErrorPayload
    # ------------------------------------------------------------------
    def _exception_to_error(self, step_id: str, exc: Exception) -> PlanguardErrorPayload:
        """Converte exceções em payload serializável, sem expor stack trace.

        - PlanguardException: já carrega message/details/hint/decision_required.
        - Outras exceções: ENGINE_EXECUTION_ERROR genérico.
        """
        if isinstance(exc, PlanguardException):
            return PlanguardErrorPayload(
                type=exc.__class__.__name__,
                message=str(exc) or "Erro de execução",
                details=dict(exc.details or {}),
                hint=exc.hint,
                decision_required=bool(exc.decision_required),
            )

        return engine_execution_error(
            step=step_id,
            exc_type=exc.__class__.__name__,
            exc_message=str(exc) or None,
        )

    # ------------------------------------------------------------------
    # Rastreabilidade
    # ------------------------------------------------------------------
    def _record_started(self, step: Step) -> None:
        kind = getattr(step, "kind", None) or StepKind.DEDUP
        self.ctx.log(step_id=step.id, level="info", message="step started", kind=str(kind.value))
        if self.ctx.manifest is not None:
            step_started(
                self.ctx.manifest,
                step_id=step.id,
                kind=kind.value,
                ts=datetime.now(timezone.utc),
            )

    def _record_result(self, result: StepResult) -> None:
        level = "error" if result.status == StepStatus.FAILED else "info"
        self.ctx.log(
            step_id=result.step_id,
            level=level,
            message=result.summary,
            status=result.status.value,
            metrics=dict(result.metrics),
        )
        if self.ctx.manifest is None:
            return

        ts = datetime.now(timezone.utc)
        if result.status == StepStatus.FAILED:
            step_failed(self.ctx.manifest, step_id=result.step_id, ts=ts, error=result.summary)
        else:
            step_finished(
                self.ctx.manifest,
                step_id=result.step_id,
                ts=ts,
                result={
                    "status": result.status.value,
                    "summary": result.summary,
                    "metrics": dict(result.metrics),
                    "warnings": list(result.warnings),
                    "artifacts": dict(result.artifacts),
                },
            )

    def _enrich_step_result(self, *, step_id: str, step: Step, result: StepResult) -> StepResult:
        """Retorna NOVA instância com warnings do contexto mesclados (sem duplicatas)."""
        desired_kind = getattr(result, "kind", None) or getattr(step, "kind", StepKind.DEDUP)

        merged_w: List[str] = []
        for msg in list(result.warnings or []) + list(self.ctx.warnings.get(step_id, []) or []):
            if msg not in merged_w:
                merged_w.append(msg)

        return replace(result, step_id=step_id, kind=desired_kind, warnings=merged_w)

    def _mk_result(
        self,
        *,
        step_id: str,
        step: Step,
        status: StepStatus,
        summary: str,
        payload: Dict[str, Any] | None = None,
    ) -> StepResult:
        r = StepResult(
            step_id=step_id,
            kind=getattr(step, "kind", None) or StepKind.DEDUP,
            status=status,
            summary=summary,
            payload=dict(payload or {}),
        )
        return self._enrich_step_result(step_id=step_id, step=step, result=r)

    def run(self) -> RunResult:
        ordered = plan_execution(self.steps)

        results: Dict[str, StepResult] = {}
        for step in ordered:
            sid = step.id

            if not self._is_enabled(sid):
                results[sid] = self._mk_result(
                    step_id=sid,
                    step=step,
                    status=StepStatus.SKIPPED,
                    summary="skipped by config",
                )
                self._record_result(results[sid])
                continue

            deps = list(getattr(step, "depends_on", []) or [])
            if any(results.get(d) and results[d].status == StepStatus.FAILED for d in deps):
                results[sid] = self._mk_result(
                    step_id=sid,
                    step=step,
                    status=StepStatus.SKIPPED,
                    summary="skipped due to failed dependency",
                )
                self._record_result(results[sid])
                continue

            self._record_started(step)
            try:
                step_result = step.run(self.ctx)
                if not isinstance(step_result, StepResult):
                    error = engine_configuration_error(
                        message="Step retornou tipo inválido",
                        details={
                            "step_id": sid,
                            "expected": "StepResult",
                            "received": type(step_result).__name__,
                        },
                        hint="Ajuste o Step para retornar StepResult",
                    )
                    results[sid] = self._mk_result(
                        step_id=sid,
                        step=step,
                        status=StepStatus.FAILED,
                        summary=error.message,
                        payload={"error": error.to_dict()},
                    )
                else:
                    results[sid] = self._enrich_step_result(step_id=sid, step=step, result=step_result)

            except Exception as e:
                error = self._exception_to_error(sid, e)
                results[sid] = self._mk_result(
                    step_id=sid,
                    step=step,
                    status=StepStatus.FAILED,
                    summary=error.message,
                    payload={"error": error.to_dict()},
                )

            self._record_result(results[sid])

            if results[sid].status == StepStatus.FAILED and self._fail_fast():
                break

        return RunResult(steps=results)
