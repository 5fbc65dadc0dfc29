"""
planguard — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do planguard.
Erros são artefatos de execução e fazem parte do contrato operacional
do sistema, devendo ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Ambiguidade de parsing ou classificação **nunca** vira erro: passes de
normalização são totais. Os erros aqui catalogados existem apenas para
o Executor e para o Engine de normalização.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanguardErrorPayload:
    """
    Payload canônico de erro do planguard.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    - decision_required: indica se a execução está bloqueada aguardando decisão humana
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Executor
EXEC_COMMAND_FAILED = "EXEC_COMMAND_FAILED"
EXEC_WAIT_TIMEOUT = "EXEC_WAIT_TIMEOUT"
EXEC_CANCELLED = "EXEC_CANCELLED"
EXEC_UNRESOLVED_DESTINATION = "EXEC_UNRESOLVED_DESTINATION"
EXEC_CONFIGURATION_ERROR = "EXEC_CONFIGURATION_ERROR"

# Engine de normalização
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def command_failed(
    *,
    step_index: int,
    command: str,
    reason: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique a saída do comando e as credenciais do colaborador de execução. Nenhum retry é aplicado automaticamente.",
) -> PlanguardErrorPayload:
    return PlanguardErrorPayload(
        type=EXEC_COMMAND_FAILED,
        message="Falha ao executar comando do plano",
        details={
            "step_index": step_index,
            "command": command,
            "reason": reason,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
        decision_required=False,
    )


def wait_timeout(
    *,
    step_index: int,
    resource: str,
    condition: str,
    timeout_seconds: float,
    hint: str = "Aumente o timeout do wait_for ou verifique se o recurso chega de fato à condição esperada.",
) -> PlanguardErrorPayload:
    return PlanguardErrorPayload(
        type=EXEC_WAIT_TIMEOUT,
        message="Condição de espera não observada dentro do timeout",
        details={
            "step_index": step_index,
            "resource": resource,
            "condition": condition,
            "timeout_seconds": timeout_seconds,
        },
        hint=hint,
        decision_required=False,
    )


def execution_cancelled(
    *,
    step_index: int,
    resource: Optional[str] = None,
    condition: Optional[str] = None,
    hint: str = "A execução foi cancelada externamente. Reexecute o plano quando apropriado.",
) -> PlanguardErrorPayload:
    return PlanguardErrorPayload(
        type=EXEC_CANCELLED,
        message="Execução cancelada durante espera",
        details={
            "step_index": step_index,
            "resource": resource,
            "condition": condition,
        },
        hint=hint,
        decision_required=False,
    )


def unresolved_destination(
    *,
    step_index: int,
    host: str,
    missing_keys: List[str],
    hint: str = "Garanta que algum comando anterior produza a chave ou forneça-a em plan.bindings.",
) -> PlanguardErrorPayload:
    return PlanguardErrorPayload(
        type=EXEC_UNRESOLVED_DESTINATION,
        message="Destino remoto contém placeholder que nunca será resolvido",
        details={
            "step_index": step_index,
            "host": host,
            "missing_keys": missing_keys,
        },
        hint=hint,
        decision_required=True,
    )


def executor_configuration_error(
    *,
    message: str = "Configuração inválida para execução do plano",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Forneça os colaboradores exigidos pelo plano (session_runner, checker) antes de reexecutar.",
) -> PlanguardErrorPayload:
    return PlanguardErrorPayload(
        type=EXEC_CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
        decision_required=False,
    )


def engine_execution_error(
    *,
    step: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o log técnico e a configuração da normalização. Nenhum fallback é aplicado automaticamente.",
) -> PlanguardErrorPayload:
    return PlanguardErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante a normalização do plano",
        details={
            "step": step,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
        decision_required=False,
    )


def engine_configuration_error(
    *,
    message: str = "Configuração inválida para normalização do plano",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Revise a configuração dos passes e declare explicitamente as opções necessárias antes de reexecutar.",
) -> PlanguardErrorPayload:
    return PlanguardErrorPayload(
        type=ENGINE_CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
        decision_required=False,
    )
