# tests/conftest.py
"""
Fixtures compartilhados para testes do planguard.

Este módulo define fixtures reutilizáveis que fornecem:
- configuração resolvida e determinística (com polling curto)
- contexto de execução controlado (RunContext) com `logf` capturado
- fábrica de comandos para montar planos de teste
- colaboradores falsos do Executor (runner, sessão remota, checker)
- Steps dummy para testes estruturais do engine

Decisões arquiteturais:
    - Nenhuma fixture executa processos externos
    - Colaboradores falsos registram chamadas para asserts posteriores
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture realiza I/O
    - Dados retornados são determinísticos e isolados por teste

Limites explícitos:
    - Não substituir testes de integração com binários reais
    - Não conter lógica condicional complexa
"""

import pytest
from datetime import datetime, timezone


# =====================================================
# Config + RunContext
# =====================================================

@pytest.fixture
def dummy_config() -> dict:
    """
    Configuração efetiva mínima para testes.

    Parte de `DEFAULT_CONFIG` e reduz intervalos e timeouts do Executor
    para que esperas em testes terminem em milissegundos.

    Returns:
        dict: Configuração resolvida (cópia independente dos defaults).
    """
    from planguard.core.config import resolve_config

    return resolve_config(
        {
            "executor": {
                "poll_interval_seconds": 0.01,
                "default_wait_timeout_seconds": 0.2,
            }
        }
    )


@pytest.fixture
def log_lines() -> list:
    """Lista onde o `logf` do contexto de teste acumula linhas já formatadas."""
    return []


@pytest.fixture
def dummy_ctx(dummy_config, log_lines):
    """
    RunContext determinístico para testes.

    Decisões arquiteturais:
        - `run_id` e `created_at` são fixos para garantir determinismo
        - `logf` formata no estilo printf e grava em `log_lines`

    Returns:
        RunContext: Contexto isolado e previsível.
    """
    from planguard.core.pipeline.context import RunContext

    def logf(fmt, *args):
        log_lines.append(fmt % args if args else fmt)

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_config,
        meta={"source": "pytest"},
        logf=logf,
    )


# =====================================================
# Plano
# =====================================================

@pytest.fixture
def cmd():
    """
    Fábrica de `Command`: `cmd("ec2", "run-instances", produces={...})`.

    Returns:
        Callable[..., Command]
    """
    from planguard.core.plan.types import Command

    def _make(*args, produces=None, wait_for=None, session=None, reason=""):
        return Command(
            args=tuple(args),
            reason=reason,
            produces=dict(produces or {}),
            wait_for=wait_for,
            session=session,
        )

    return _make


@pytest.fixture
def make_plan():
    """Fábrica de `Plan` a partir de comandos posicionais."""
    from planguard.core.plan.types import Plan

    def _make(*commands, bindings=None, cluster_name=""):
        return Plan(commands=tuple(commands), bindings=dict(bindings or {}), cluster_name=cluster_name)

    return _make


# =====================================================
# Colaboradores do Executor
# =====================================================

class FakeRunner:
    """
    CommandRunner falso.

    `outputs` mapeia a operação (`"ec2 run-instances"`) para a saída
    devolvida; `fail_on` lista operações que levantam exceção.
    Cada chamada é registrada em `calls` com os args já substituídos.
    """

    def __init__(self, outputs=None, fail_on=None):
        self.outputs = dict(outputs or {})
        self.fail_on = set(fail_on or [])
        self.calls = []

    def run(self, ctx, args):
        args = list(args)
        self.calls.append(args)
        op = " ".join(args[:2])
        if op in self.fail_on:
            raise RuntimeError(f"{op} exploded")
        return self.outputs.get(op, "")


class FakeSessionRunner:
    """SessionRunner falso que registra connect/run/close em `calls`."""

    def __init__(self, output="", fail=False):
        self.output = output
        self.fail = fail
        self.calls = []

    def connect(self, ctx, target):
        self.calls.append(("connect", target))

    def run(self, ctx, script):
        self.calls.append(("run", script))
        if self.fail:
            raise RuntimeError("remote script failed")
        return self.output

    def close(self):
        self.calls.append(("close",))


class FakeChecker:
    """ConditionChecker falso: devolve os valores de `answers` em sequência (o último se repete)."""

    def __init__(self, answers=(True,)):
        self.answers = list(answers)
        self.calls = []

    def check(self, ctx, wait):
        self.calls.append(wait)
        idx = min(len(self.calls) - 1, len(self.answers) - 1)
        return self.answers[idx]


@pytest.fixture
def fake_runner_cls():
    return FakeRunner


@pytest.fixture
def fake_session_runner_cls():
    return FakeSessionRunner


@pytest.fixture
def fake_checker_cls():
    return FakeChecker


# =====================================================
# Steps dummy (engine)
# =====================================================

@pytest.fixture
def DummyStep():
    """
    Fixture factory que fornece uma implementação mínima e duck-typed de um Step.

    A implementação retornada expõe `id`, `kind` e `depends_on` e, ao
    executar, registra um artefato `<id>.ok` e a própria ordem de execução
    no artefato `order`.

    Returns:
        type: Classe _DummyStep que pode ser instanciada pelos testes.
    """
    from planguard.core.pipeline.types import StepKind, StepResult, StepStatus

    class _DummyStep:
        def __init__(self, step_id="dedup.dummy", kind=StepKind.DEDUP, depends_on=None):
            self.id = step_id
            self.kind = kind
            self.depends_on = depends_on or []

        def run(self, ctx):
            ctx.set_artifact(f"{self.id}.ok", True)
            order = ctx.get_artifact("order") if ctx.has_artifact("order") else []
            ctx.set_artifact("order", order + [self.id])
            return StepResult(
                step_id=self.id,
                kind=self.kind,
                status=StepStatus.SUCCESS,
                summary="dummy ok",
                metrics={},
                warnings=[],
                artifacts={"ok": f"{self.id}.ok"},
                payload={"note": "dummy"},
            )

    return _DummyStep
