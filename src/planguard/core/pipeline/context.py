"""
Contexto de execução compartilhado do planguard.

Este módulo define o `RunContext`, a estrutura canônica que acompanha uma
normalização e/ou uma execução de plano.

O RunContext é o único meio permitido de:
    - troca de artefatos entre passes (ex.: o plano corrente)
    - registro de eventos estruturados de log
    - coleta de warnings por passe
    - sinalização de cancelamento para o Executor
    - encaminhamento de mensagens ao callback `logf` injetado

Decisões arquiteturais:
    - Logs são eventos estruturados (`events`), não o módulo `logging`
    - `logf` é um callback estilo printf; ausente significa silencioso
    - O cancelamento é um `threading.Event`, consultado no laço de espera

Invariantes:
    - Eventos sempre incluem `run_id` e `step_id`
    - Warnings são agrupados por `step_id`
    - Um contexto pertence a uma única normalização/execução

Limites explícitos:
    - Não executa passes nem comandos
    - Não persiste dados automaticamente
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from datetime import timezone


LogFunc = Callable[..., None]


@dataclass
class RunContext:
    """
    Contexto de uma normalização ou execução de plano.

    Campos:
        - run_id: identificador da execução
        - created_at: instante de criação (UTC)
        - config: configuração resolvida
        - meta: metadados livres
        - logf: callback `logf(fmt, *args)` opcional
        - cancel_event: sinal externo de cancelamento
        - manifest: Manifest v1 opcional, atualizado pelo Engine e pelo Executor
    """
    run_id: str
    created_at: datetime
    config: Dict[str, Any]
    meta: Dict[str, Any] = field(default_factory=dict)
    logf: Optional[LogFunc] = None
    cancel_event: threading.Event = field(default_factory=threading.Event)
    manifest: Optional[Any] = None

    _artifacts: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Artifact store
    # -----------------------------
    def set_artifact(self, key: str, value: Any) -> None:
        self._artifacts[key] = value

    def has_artifact(self, key: str) -> bool:
        return key in self._artifacts

    def get_artifact(self, key: str) -> Any:
        if key not in self._artifacts:
            raise KeyError(key)
        return self._artifacts[key]

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def emit(self, fmt: str, *args: Any) -> None:
        """Encaminha uma mensagem ao `logf` injetado (no-op quando ausente)."""
        if self.logf is not None:
            self.logf(fmt, *args)

    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        if step_id not in self.warnings:
            self.warnings[step_id] = []
        self.warnings[step_id].append(message)

    # -----------------------------
    # Cancelamento
    # -----------------------------
    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()


def new_run_context(
    config: Dict[str, Any],
    *,
    run_id: Optional[str] = None,
    logf: Optional[LogFunc] = None,
    manifest: Optional[Any] = None,
) -> RunContext:
    """Cria um RunContext com `run_id` aleatório (uuid4) quando não informado."""

    return RunContext(
        run_id=run_id or uuid.uuid4().hex,
        created_at=datetime.now(timezone.utc),
        config=config,
        logf=logf,
        manifest=manifest,
    )
