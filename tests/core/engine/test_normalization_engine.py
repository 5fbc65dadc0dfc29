# tests/core/engine/test_normalization_engine.py
"""
Testes do NormalizationEngine.

Os testes asseguram que:
- passes executam na ordem do planner
- `steps.<id>.enabled: false` produz SKIPPED sem executar o passe
- `engine.fail_fast` interrompe a execução na primeira falha
- exceções viram payloads de erro serializáveis
- dependentes de um passe que falhou são SKIPPED
- o Manifest, quando presente no contexto, registra cada passe

Decisões arquiteturais:
    - O Engine não tenta recuperação nem retry
    - Falhas nunca propagam como exceção para o chamador
"""

from datetime import datetime, timezone

from planguard.core.engine.engine import NormalizationEngine
from planguard.core.errors import ENGINE_CONFIGURATION_ERROR, ENGINE_EXECUTION_ERROR
from planguard.core.exceptions import ExecutorConfigurationError
from planguard.core.pipeline.types import StepKind, StepStatus
from planguard.core.traceability.manifest import create_manifest


class FailingStep:
    """Step mínimo que sempre levanta exceção em `run`."""

    def __init__(self, step_id="fail", depends_on=None, exc=None):
        self.id = step_id
        self.kind = StepKind.DEDUP
        self.depends_on = depends_on or []
        self.exc = exc or RuntimeError("boom")

    def run(self, ctx):
        raise self.exc


class WrongReturnStep:
    id = "wrong"
    kind = StepKind.DEDUP
    depends_on = []

    def run(self, ctx):
        return {"status": "success"}


def test_happy_path(DummyStep, dummy_ctx):
    steps = [
        DummyStep(step_id="dedup.b", depends_on=["dedup.a"]),
        DummyStep(step_id="dedup.a"),
    ]
    result = NormalizationEngine(steps=steps, ctx=dummy_ctx).run()

    assert list(result.steps) == ["dedup.a", "dedup.b"]
    assert all(r.status == StepStatus.SUCCESS for r in result.steps.values())
    assert dummy_ctx.get_artifact("order") == ["dedup.a", "dedup.b"]
    assert result.failed == []


def test_skip_by_config(DummyStep, dummy_ctx):
    """
    Verifica que um passe desabilitado por configuração não é executado.

    Invariantes:
        - O status é SKIPPED com resumo "skipped by config"
        - Nenhum artefato do passe é produzido
        - Passes seguintes continuam executando
    """
    dummy_ctx.config["steps"]["dedup.a"] = {"enabled": False}
    steps = [DummyStep(step_id="dedup.a"), DummyStep(step_id="dedup.b", depends_on=["dedup.a"])]

    result = NormalizationEngine(steps=steps, ctx=dummy_ctx).run()

    assert result.steps["dedup.a"].status == StepStatus.SKIPPED
    assert result.steps["dedup.a"].summary == "skipped by config"
    assert not dummy_ctx.has_artifact("dedup.a.ok")
    assert result.steps["dedup.b"].status == StepStatus.SUCCESS


def test_fail_fast_stops_execution(DummyStep, dummy_ctx):
    dummy_ctx.config["engine"] = {"fail_fast": True}
    steps = [FailingStep(step_id="a"), DummyStep(step_id="b")]

    result = NormalizationEngine(steps=steps, ctx=dummy_ctx).run()

    assert result.steps["a"].status == StepStatus.FAILED
    assert "b" not in result.steps
    assert result.failed == ["a"]


def test_without_fail_fast_dependents_are_skipped(DummyStep, dummy_ctx):
    dummy_ctx.config["engine"] = {"fail_fast": False}
    steps = [
        FailingStep(step_id="a"),
        DummyStep(step_id="b", depends_on=["a"]),
        DummyStep(step_id="c"),
    ]

    result = NormalizationEngine(steps=steps, ctx=dummy_ctx).run()

    assert result.steps["a"].status == StepStatus.FAILED
    assert result.steps["b"].status == StepStatus.SKIPPED
    assert result.steps["c"].status == StepStatus.SUCCESS


def test_unexpected_exception_becomes_payload(dummy_ctx):
    result = NormalizationEngine(steps=[FailingStep()], ctx=dummy_ctx).run()
    error = result.steps["fail"].payload["error"]

    assert error["type"] == ENGINE_EXECUTION_ERROR
    assert error["details"]["exc_type"] == "RuntimeError"
    assert error["details"]["exc_message"] == "boom"


def test_planguard_exception_keeps_its_details(dummy_ctx):
    exc = ExecutorConfigurationError(message="quebrou", details={"k": 1}, hint="olhe o log")
    result = NormalizationEngine(steps=[FailingStep(exc=exc)], ctx=dummy_ctx).run()
    error = result.steps["fail"].payload["error"]

    assert error["type"] == "ExecutorConfigurationError"
    assert error["message"] == "quebrou"
    assert error["details"] == {"k": 1}
    assert error["hint"] == "olhe o log"


def test_invalid_return_type_fails(dummy_ctx):
    result = NormalizationEngine(steps=[WrongReturnStep()], ctx=dummy_ctx).run()
    r = result.steps["wrong"]

    assert r.status == StepStatus.FAILED
    assert r.payload["error"]["type"] == ENGINE_CONFIGURATION_ERROR
    assert r.payload["error"]["details"]["received"] == "dict"


def test_context_warnings_are_merged(DummyStep, dummy_ctx):
    dummy_ctx.add_warning(step_id="dedup.a", message="atenção")
    result = NormalizationEngine(steps=[DummyStep(step_id="dedup.a")], ctx=dummy_ctx).run()
    assert result.steps["dedup.a"].warnings == ["atenção"]


def test_manifest_records_each_step(DummyStep, dummy_ctx):
    dummy_ctx.manifest = create_manifest(
        run_id=dummy_ctx.run_id,
        started_at=datetime(2026, 1, 16, tzinfo=timezone.utc),
        planguard_version="0.1.0",
        config_hash="c" * 64,
        plan_hash="p" * 64,
    )
    steps = [DummyStep(step_id="dedup.a"), FailingStep(step_id="dedup.b", depends_on=["dedup.a"])]

    NormalizationEngine(steps=steps, ctx=dummy_ctx).run()

    m = dummy_ctx.manifest
    assert m.steps["dedup.a"]["status"] == "success"
    assert m.steps["dedup.b"]["status"] == "failed"
    assert [e["event_type"] for e in m.events] == [
        "step_started",
        "step_finished",
        "step_started",
        "step_failed",
    ]
