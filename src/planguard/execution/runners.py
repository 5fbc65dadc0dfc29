"""
Colaboradores de execução do Executor.

Uma interface explícita por capacidade:
    - CommandRunner    → `run(ctx, args) -> output`; levanta exceção em falha
    - SessionRunner    → connect/run/close para bootstrap remoto (sessão SSH)
    - ConditionChecker → `check(ctx, wait) -> bool` para condições de espera

Implementações concretas (um backend por capacidade):
    - SubprocessCommandRunner  → executa `<binary> <args...>` via subprocess
    - ParamikoSessionRunner    → executa o script numa sessão SSH (paramiko)
    - RunnerConditionChecker   → formata `executor.wait_check_args` e considera
      a condição observada quando o comando não falha

Limites explícitos:
    - Nenhum retry: política de retry pertence ao chamador
    - Nenhuma interpretação de semântica de provedores de nuvem
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence, runtime_checkable

import paramiko

from planguard.core.exceptions import CommandExecutionError, ExecutorConfigurationError
from planguard.core.pipeline.context import RunContext
from planguard.core.plan.types import SessionTarget, WaitFor

from .bindings import expand_path, format_command_for_log


DEFAULT_WAIT_CHECK_ARGS = ("wait", "--for=condition={condition}", "{resource}", "--timeout=0s")


@runtime_checkable
class CommandRunner(Protocol):
    def run(self, ctx: RunContext, args: Sequence[str]) -> str:
        """Executa `args` e devolve a saída; levanta exceção em falha."""
        ...


@runtime_checkable
class SessionRunner(Protocol):
    def connect(self, ctx: RunContext, target: SessionTarget) -> None:
        ...

    def run(self, ctx: RunContext, script: str) -> str:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class ConditionChecker(Protocol):
    def check(self, ctx: RunContext, wait: WaitFor) -> bool:
        """True quando a condição já foi observada."""
        ...


def _tail(text: str, limit: int = 2000) -> str:
    text = (text or "").strip()
    return text[-limit:] if len(text) > limit else text


@dataclass
class SubprocessCommandRunner:
    """Executa `<binary> <args...>` e devolve stdout; código de saída != 0 vira falha."""

    binary: str = "aws"
    timeout_seconds: Optional[float] = None
    env: Optional[dict] = None

    def run(self, ctx: RunContext, args: Sequence[str]) -> str:
        argv = [self.binary, *args]
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                env=self.env,
                check=False,
            )
        except FileNotFoundError as e:
            raise CommandExecutionError(
                message=f"Binário não encontrado: {self.binary}",
                details={"binary": self.binary},
                hint="Instale o binário ou ajuste executor.binary",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise CommandExecutionError(
                message="Comando excedeu o timeout do processo",
                details={"command": format_command_for_log(argv), "timeout_seconds": self.timeout_seconds},
            ) from e

        if proc.returncode != 0:
            raise CommandExecutionError(
                message=f"Comando terminou com código {proc.returncode}",
                details={
                    "command": format_command_for_log(argv),
                    "returncode": proc.returncode,
                    "stderr": _tail(proc.stderr),
                },
            )
        return proc.stdout


@dataclass
class ParamikoSessionRunner:
    """
    Sessão remota SSH via paramiko.

    `connect` abre o cliente (chave RSA quando `key_path` é informado),
    `run` executa o script no shell remoto e `close` encerra a conexão.
    Código de saída != 0 vira `CommandExecutionError`.
    """

    port: int = 22
    timeout_seconds: Optional[float] = None
    _client: Optional[paramiko.SSHClient] = field(default=None, init=False, repr=False)
    _target: Optional[SessionTarget] = field(default=None, init=False, repr=False)

    def connect(self, ctx: RunContext, target: SessionTarget) -> None:
        if not target.host:
            raise ExecutorConfigurationError(message="Destino de sessão sem host")

        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            pkey = None
            if target.key_path:
                pkey = paramiko.RSAKey.from_private_key_file(expand_path(target.key_path))
            client.connect(
                hostname=target.host,
                port=self.port,
                username=target.user or None,
                pkey=pkey,
                timeout=self.timeout_seconds,
            )
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise CommandExecutionError(
                message=f"Falha ao conectar em {target.host}",
                details={"host": target.host, "user": target.user, "error": str(e)},
                hint="Verifique host, usuário e chave SSH",
            ) from e

        self._client = client
        self._target = target
        ctx.log(step_id="exec.session", level="info", message="ssh connected", host=target.host, user=target.user)

    def run(self, ctx: RunContext, script: str) -> str:
        if self._client is None or self._target is None:
            raise ExecutorConfigurationError(message="Sessão não conectada")
        try:
            _, stdout, stderr = self._client.exec_command(script, timeout=self.timeout_seconds)
            output = stdout.read().decode("utf-8", errors="replace")
            errors = stderr.read().decode("utf-8", errors="replace")
            status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise CommandExecutionError(
                message="Falha na sessão remota",
                details={"host": self._target.host, "script_name": self._target.script_name, "error": str(e)},
            ) from e

        if status != 0:
            raise CommandExecutionError(
                message=f"Script remoto terminou com código {status}",
                details={
                    "host": self._target.host,
                    "script_name": self._target.script_name,
                    "returncode": status,
                    "stderr": _tail(errors),
                },
            )
        return output

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._target = None


@dataclass
class RunnerConditionChecker:
    """Verifica condições rodando `args_template` formatado no CommandRunner."""

    runner: CommandRunner
    args_template: Sequence[str] = DEFAULT_WAIT_CHECK_ARGS

    def check(self, ctx: RunContext, wait: WaitFor) -> bool:
        args = [
            a.format(resource=wait.resource, condition=wait.condition) for a in self.args_template
        ]
        try:
            self.runner.run(ctx, args)
        except Exception as e:
            ctx.log(
                step_id="exec.wait",
                level="debug",
                message="condition not observed yet",
                resource=wait.resource,
                condition=wait.condition,
                error_type=e.__class__.__name__,
            )
            return False
        return True
