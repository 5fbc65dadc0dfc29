"""
Executor sequencial de planos com resolução de bindings.

Máquina de estados (uma instância por execução):

    PENDING → RUNNING(i) → SUCCEEDED | FAILED | TIMED_OUT | CANCELLED

Para cada comando `i`, em ordem:
    1. substitui placeholders com a tabela de bindings corrente
    2. executa via CommandRunner (ou connect/run/close no SessionRunner)
    3. aprende bindings a partir da saída (`produces`)
    4. aguarda `wait_for`, consultando o ConditionChecker a cada
       `interval` da espera (ou `executor.poll_interval_seconds`), respeitando
       o cancelamento do contexto

A primeira falha encerra a execução (fail-fast). Dry-run apenas substitui
e registra; não chama colaboradores e só falha quando o host de uma sessão
remota depende de um placeholder que nada no plano produz.

Decisões arquiteturais:
    - Falhas de colaboradores nunca propagam: viram payloads em `ExecResult.errors`
    - A tabela de bindings pertence a uma única chamada de `execute`
    - O plano nunca é mutado
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from planguard.core.config.loader import resolve_config
from planguard.core.errors import (
    PlanguardErrorPayload,
    command_failed,
    execution_cancelled,
    executor_configuration_error,
    unresolved_destination,
    wait_timeout,
)
from planguard.core.exceptions import (
    ExecutionCancelledError,
    ExecutorConfigurationError,
    UnresolvedDestinationError,
    WaitTimeoutError,
)
from planguard.core.pipeline.context import RunContext, new_run_context
from planguard.core.plan.types import Command, Plan, SessionTarget, WaitFor
from planguard.core.traceability.manifest import step_failed, step_finished, step_started

from .bindings import (
    apply_bindings,
    apply_bindings_to_string,
    expand_path,
    format_command_for_log,
    learn_bindings_from_output,
    unresolved_keys,
)
from .runners import (
    DEFAULT_WAIT_CHECK_ARGS,
    CommandRunner,
    ConditionChecker,
    ParamikoSessionRunner,
    RunnerConditionChecker,
    SessionRunner,
    SubprocessCommandRunner,
)


DEFAULT_CONNECTION_COMMANDS: Tuple[str, ...] = (
    "kubectl get nodes",
    "kubectl get pods -A",
)


class ExecState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Connection:
    """Resumo de conexão: endpoint, kubeconfig e comandos sugeridos."""
    cluster_name: str
    endpoint: str
    kubeconfig: str
    commands: Tuple[str, ...] = DEFAULT_CONNECTION_COMMANDS


@dataclass(frozen=True)
class CommandOutcome:
    index: int
    args: Tuple[str, ...]
    status: str
    output: str = ""
    bindings: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ExecResult:
    success: bool
    state: ExecState
    bindings: Dict[str, str] = field(default_factory=dict)
    connection: Optional[Connection] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    steps: List[CommandOutcome] = field(default_factory=list)


def build_connection_info(
    plan: Plan,
    bindings: Dict[str, str],
    *,
    kubeconfig: str = "~/.kube/config",
) -> Connection:
    """Endpoint a partir de `CLUSTER_ENDPOINT` (vazio quando ausente) e dois comandos padrão."""
    return Connection(
        cluster_name=plan.cluster_name or bindings.get("CLUSTER_NAME", ""),
        endpoint=bindings.get("CLUSTER_ENDPOINT", ""),
        kubeconfig=expand_path(kubeconfig),
    )


class _Abort(Exception):
    """Encerramento interno da execução com estado terminal e payload."""

    def __init__(self, state: ExecState, error: PlanguardErrorPayload):
        super().__init__(error.message)
        self.state = state
        self.error = error


class Executor:
    """Executor canônico de planos normalizados."""

    def __init__(
        self,
        runner: CommandRunner,
        *,
        session_runner: Optional[SessionRunner] = None,
        checker: Optional[ConditionChecker] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.config: Dict[str, Any] = resolve_config(config)
        exec_cfg = self.config.get("executor", {}) or {}

        self.runner = runner
        self.session_runner = session_runner
        self.checker: ConditionChecker = checker or RunnerConditionChecker(
            SubprocessCommandRunner(binary=str(exec_cfg.get("wait_binary") or "kubectl")),
            tuple(exec_cfg.get("wait_check_args") or DEFAULT_WAIT_CHECK_ARGS),
        )
        self.state = ExecState.PENDING

        self.dry_run = bool(exec_cfg.get("dry_run", False))
        self.poll_interval = float(exec_cfg.get("poll_interval_seconds", 5.0))
        self.default_timeout = float(exec_cfg.get("default_wait_timeout_seconds", 600.0))
        self.log_truncate = int(exec_cfg.get("log_truncate", 150))
        self.kubeconfig = str(exec_cfg.get("kubeconfig", "~/.kube/config"))

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "Executor":
        """
        Monta um Executor com os backends concretos.

        - comandos: `SubprocessCommandRunner(executor.binary)`
        - sessões remotas: `ParamikoSessionRunner(executor.ssh_port)`
        - esperas: checker padrão sobre `executor.wait_binary`
        """
        resolved = resolve_config(config)
        exec_cfg = resolved.get("executor", {}) or {}
        return cls(
            SubprocessCommandRunner(binary=str(exec_cfg.get("binary") or "aws")),
            session_runner=ParamikoSessionRunner(port=int(exec_cfg.get("ssh_port", 22))),
            config=resolved,
        )

    # ------------------------------------------------------------------
    # Rastreabilidade
    # ------------------------------------------------------------------
    @staticmethod
    def _step_id(index: int) -> str:
        return f"exec.{index}"

    def _record_started(self, ctx: RunContext, index: int) -> None:
        if ctx.manifest is not None:
            step_started(ctx.manifest, step_id=self._step_id(index), kind="command", ts=datetime.now(timezone.utc))

    def _record_outcome(self, ctx: RunContext, outcome: CommandOutcome, error: Optional[str] = None) -> None:
        ctx.log(
            step_id=self._step_id(outcome.index),
            level="error" if error else "info",
            message=error or f"command {outcome.status}",
            status=outcome.status,
            learned=sorted(outcome.bindings),
        )
        if ctx.manifest is None:
            return
        ts = datetime.now(timezone.utc)
        if error:
            step_failed(ctx.manifest, step_id=self._step_id(outcome.index), ts=ts, error=error)
        else:
            step_finished(
                ctx.manifest,
                step_id=self._step_id(outcome.index),
                ts=ts,
                result={"status": outcome.status, "metrics": {"learned": len(outcome.bindings)}},
            )

    # ------------------------------------------------------------------
    # Validações
    # ------------------------------------------------------------------
    def _check_collaborators(self, plan: Plan, dry_run: bool) -> None:
        if dry_run or self.session_runner is not None:
            return
        sessions = [i for i, cmd in enumerate(plan.commands) if cmd.session is not None]
        if sessions:
            raise _Abort(
                ExecState.FAILED,
                executor_configuration_error(
                    message="Plano contém comandos de sessão remota, mas nenhum SessionRunner foi fornecido",
                    details={"session_steps": sessions},
                ),
            )

    @staticmethod
    def _known_before(plan: Plan, index: int) -> Set[str]:
        known = {k for k, v in plan.bindings.items() if v}
        for cmd in plan.commands[:index]:
            known.update(k.strip() for k in cmd.produces)
        return known

    # ------------------------------------------------------------------
    # Execução de um comando
    # ------------------------------------------------------------------
    def _run_session(self, ctx: RunContext, session: SessionTarget, bindings: Dict[str, str]) -> str:
        host = apply_bindings_to_string(session.host, bindings)
        missing = unresolved_keys([host], ())
        if missing:
            raise UnresolvedDestinationError(
                message="Destino remoto contém placeholder não resolvido",
                details={"host": session.host, "missing_keys": missing},
            )

        target = replace(
            session,
            host=host,
            user=apply_bindings_to_string(session.user, bindings),
            key_path=expand_path(apply_bindings_to_string(session.key_path, bindings)),
            script=apply_bindings_to_string(session.script, bindings),
        )

        assert self.session_runner is not None
        self.session_runner.connect(ctx, target)
        try:
            return self.session_runner.run(ctx, target.script)
        finally:
            self.session_runner.close()

    def _wait(self, ctx: RunContext, index: int, wait: WaitFor, bindings: Dict[str, str]) -> None:
        resolved = replace(
            wait,
            resource=apply_bindings_to_string(wait.resource, bindings),
            condition=apply_bindings_to_string(wait.condition, bindings),
        )
        timeout = wait.timeout_seconds if wait.timeout_seconds and wait.timeout_seconds > 0 else self.default_timeout
        poll = wait.interval_seconds if wait.interval_seconds and wait.interval_seconds > 0 else self.poll_interval
        deadline = time.monotonic() + timeout

        ctx.emit("[exec] waiting for %s on %s (timeout %.0fs)", resolved.condition, resolved.resource, timeout)

        while True:
            if ctx.cancel_event.is_set():
                raise ExecutionCancelledError(
                    message="Execução cancelada durante espera",
                    details={"resource": resolved.resource, "condition": resolved.condition},
                )
            if self.checker.check(ctx, resolved):
                return
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError(
                    message="Condição de espera não observada dentro do timeout",
                    details={
                        "resource": resolved.resource,
                        "condition": resolved.condition,
                        "timeout_seconds": timeout,
                    },
                )
            ctx.cancel_event.wait(min(poll, remaining))

    def _execute_command(
        self,
        ctx: RunContext,
        plan: Plan,
        index: int,
        cmd: Command,
        bindings: Dict[str, str],
        dry_run: bool,
    ) -> CommandOutcome:
        args = tuple(apply_bindings(cmd.args, bindings))
        total = len(plan.commands)
        label = format_command_for_log(args, self.log_truncate)
        if cmd.session is not None:
            label = f"session {cmd.session.script_name or cmd.session.host}"

        if dry_run:
            ctx.emit("[dry-run] %d/%d %s", index + 1, total, label)
            if cmd.session is not None:
                missing = unresolved_keys([cmd.session.host], self._known_before(plan, index))
                if missing:
                    raise _Abort(
                        ExecState.FAILED,
                        unresolved_destination(step_index=index, host=cmd.session.host, missing_keys=missing),
                    )
            return CommandOutcome(index=index, args=args, status="dry_run")

        ctx.emit("[exec] %d/%d %s", index + 1, total, label)
        try:
            if cmd.session is not None:
                output = self._run_session(ctx, cmd.session, bindings)
            else:
                output = self.runner.run(ctx, list(args))
        except UnresolvedDestinationError as e:
            raise _Abort(
                ExecState.FAILED,
                unresolved_destination(
                    step_index=index,
                    host=e.details.get("host", ""),
                    missing_keys=list(e.details.get("missing_keys", [])),
                ),
            ) from e
        except Exception as e:
            raise _Abort(
                ExecState.FAILED,
                command_failed(
                    step_index=index,
                    command=label,
                    reason=cmd.reason or None,
                    exc_type=e.__class__.__name__,
                    exc_message=str(e) or None,
                ),
            ) from e

        learned = learn_bindings_from_output(cmd.produces, output or "", bindings)
        for key in learned:
            ctx.emit("[exec] learned %s", key)

        if cmd.wait_for is not None:
            try:
                self._wait(ctx, index, cmd.wait_for, bindings)
            except WaitTimeoutError as e:
                raise _Abort(
                    ExecState.TIMED_OUT,
                    wait_timeout(
                        step_index=index,
                        resource=e.details.get("resource", cmd.wait_for.resource),
                        condition=e.details.get("condition", cmd.wait_for.condition),
                        timeout_seconds=e.details.get("timeout_seconds", self.default_timeout),
                    ),
                ) from e
            except ExecutionCancelledError as e:
                raise _Abort(
                    ExecState.CANCELLED,
                    execution_cancelled(
                        step_index=index,
                        resource=e.details.get("resource"),
                        condition=e.details.get("condition"),
                    ),
                ) from e
            except Exception as e:
                raise _Abort(
                    ExecState.FAILED,
                    command_failed(
                        step_index=index,
                        command=label,
                        reason="condition check failed",
                        exc_type=e.__class__.__name__,
                        exc_message=str(e) or None,
                    ),
                ) from e

        return CommandOutcome(index=index, args=args, status="succeeded", output=output or "", bindings=learned)

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------
    def execute(
        self,
        plan: Plan,
        *,
        ctx: Optional[RunContext] = None,
        dry_run: Optional[bool] = None,
    ) -> ExecResult:
        """
        Executa o plano em ordem.

        Args:
            plan (Plan): Plano normalizado.
            ctx (Optional[RunContext]): Contexto (cancelamento, logf, Manifest).
            dry_run (Optional[bool]): Sobrepõe `executor.dry_run`.

        Returns:
            ExecResult: Resultado com estado terminal, bindings e erros serializados.

        Raises:
            ExecutorConfigurationError: Se `plan` não for um `Plan`.
        """
        if not isinstance(plan, Plan):
            raise ExecutorConfigurationError(
                message="Plano ausente ou inválido",
                details={"received": type(plan).__name__},
            )

        ctx = ctx or new_run_context(self.config)
        dry_run = self.dry_run if dry_run is None else bool(dry_run)

        bindings: Dict[str, str] = dict(plan.bindings)
        outcomes: List[CommandOutcome] = []
        self.state = ExecState.RUNNING

        try:
            self._check_collaborators(plan, dry_run)
            for index, cmd in enumerate(plan.commands):
                if ctx.cancel_event.is_set():
                    raise _Abort(ExecState.CANCELLED, execution_cancelled(step_index=index))

                self._record_started(ctx, index)
                try:
                    outcome = self._execute_command(ctx, plan, index, cmd, bindings, dry_run)
                except _Abort as abort:
                    failed = CommandOutcome(
                        index=index,
                        args=tuple(apply_bindings(cmd.args, bindings)),
                        status=abort.state.value,
                    )
                    outcomes.append(failed)
                    self._record_outcome(ctx, failed, error=abort.error.message)
                    raise

                outcomes.append(outcome)
                self._record_outcome(ctx, outcome)

        except _Abort as abort:
            self.state = abort.state
            ctx.emit("[exec] %s: %s", abort.state.value, abort.error.message)
            return ExecResult(
                success=False,
                state=abort.state,
                bindings=dict(bindings),
                connection=None,
                errors=[abort.error.to_dict()],
                steps=outcomes,
            )

        self.state = ExecState.SUCCEEDED
        return ExecResult(
            success=True,
            state=ExecState.SUCCEEDED,
            bindings=dict(bindings),
            connection=build_connection_info(plan, bindings, kubeconfig=self.kubeconfig),
            errors=[],
            steps=outcomes,
        )
