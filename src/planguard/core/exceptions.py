"""
planguard — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do planguard.

Objetivo:
- Permitir que colaboradores de execução e o Executor levantem exceções tipadas
- Facilitar o mapeamento determinístico para PlanguardErrorPayload
- Distinguir falha de comando, timeout de espera e cancelamento

Regras:
- Não contém semântica de provedores de nuvem.
- Exceções devem carregar apenas dados estruturados (serializáveis).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PlanguardException(Exception):
    """Base class para exceções internas do planguard.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None
    decision_required: bool = False

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommandExecutionError(PlanguardException):
    """O colaborador de execução reportou falha ao rodar um comando."""


@dataclass(frozen=True)
class WaitTimeoutError(PlanguardException):
    """A condição de espera não foi observada dentro do timeout."""


@dataclass(frozen=True)
class ExecutionCancelledError(PlanguardException):
    """Sinal de cancelamento externo observado durante uma espera."""


@dataclass(frozen=True)
class UnresolvedDestinationError(PlanguardException):
    """Destino de sessão remota contém placeholder sem produtor."""


@dataclass(frozen=True)
class ExecutorConfigurationError(PlanguardException):
    """Colaborador obrigatório ausente ou configuração inconsistente."""
