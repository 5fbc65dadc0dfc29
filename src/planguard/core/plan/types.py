"""
Modelo de dados canônico de um plano.

Um plano é uma sequência ordenada de comandos emitida por um planejador
externo. A ordem é semanticamente relevante: ela codifica tanto a ordem de
execução quanto a ordem de dependência entre valores produzidos e
consumidos.

Componentes principais:
    - WaitFor       → condição de espera após um comando
    - SessionTarget → destino de sessão remota (bootstrap via SSH)
    - Command       → uma unidade de trabalho (args, reason, produces, wait_for)
    - Plan          → sequência ordenada de comandos + metadados
    - PLACEHOLDER_RE / find_placeholders → sintaxe `<UPPER_SNAKE_CASE>`

Decisões arquiteturais:
    - Estruturas são dataclasses congeladas; passes constroem novos planos
      via `dataclasses.replace` e nunca mutam a entrada
    - `args` é sempre uma tupla; `produces` é copiado na construção

Invariantes:
    - Placeholders são exatamente `<` + maiúscula + [A-Z0-9_]* + `>`
    - Texto entre colchetes angulares em minúsculas nunca é placeholder
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple


CURRENT_PLAN_VERSION = 1

PLACEHOLDER_RE = re.compile(r"<([A-Z][A-Z0-9_]*)>")

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")


def find_placeholders(text: str) -> List[str]:
    """Retorna as chaves de placeholder em `text`, na ordem em que aparecem."""
    return PLACEHOLDER_RE.findall(text or "")


def placeholder(key: str) -> str:
    """Formata uma chave como placeholder (`KEY` → `<KEY>`)."""
    return f"<{key}>"


def parse_duration(value: Any) -> Optional[float]:
    """
    Converte uma duração para segundos.

    Formatos aceitos:
        - número (int/float) → segundos
        - string numérica ("30") → segundos
        - string com sufixos `ms`, `s`, `m`, `h`, combináveis ("1h30m", "10m", "500ms")

    Valores ausentes ou não positivos retornam `None` (o chamador aplica o default).

    Raises:
        ValueError: Se a string não seguir nenhum dos formatos aceitos.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        seconds = float(value)
        return seconds if seconds > 0 else None

    text = str(value).strip().lower()
    if not text:
        return None

    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART_RE.finditer(text):
            if match.start() != pos:
                break
            amount = float(match.group(1))
            unit = match.group(2)
            if unit == "ms":
                seconds += amount / 1000.0
            elif unit == "s":
                seconds += amount
            elif unit == "m":
                seconds += amount * 60.0
            else:
                seconds += amount * 3600.0
            pos = match.end()
        if pos == 0 or pos != len(text):
            raise ValueError(f"Duração inválida: {value!r}")

    return seconds if seconds > 0 else None


@dataclass(frozen=True)
class WaitFor:
    """
    Condição de espera após um comando.

    `timeout_seconds` e `interval_seconds` em `None` usam os defaults do Executor
    (`executor.default_wait_timeout_seconds` / `executor.poll_interval_seconds`).
    """
    resource: str
    condition: str
    timeout_seconds: Optional[float] = None
    interval_seconds: Optional[float] = None


@dataclass(frozen=True)
class SessionTarget:
    """Destino de uma sessão remota: o script é executado via connect/run/close."""
    host: str
    user: str = ""
    key_path: str = ""
    script: str = ""
    script_name: str = ""


@dataclass(frozen=True)
class Command:
    """
    Uma unidade de trabalho do plano.

    Campos:
        - args: tokens ordenados, convencionalmente `[serviço, operação, ...flags]`
        - reason: justificativa em texto livre
        - produces: chave UPPER_SNAKE → expressão de extração (marcador ou `$.caminho`)
        - wait_for: condição opcional a aguardar após o comando
        - session: destino opcional de sessão remota
    """
    args: Tuple[str, ...] = ()
    reason: str = ""
    produces: Dict[str, str] = field(default_factory=dict)
    wait_for: Optional[WaitFor] = None
    session: Optional[SessionTarget] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(str(a) for a in (self.args or ())))
        object.__setattr__(self, "produces", dict(self.produces or {}))

    @property
    def service(self) -> str:
        return self.args[0].strip().lower() if len(self.args) > 0 else ""

    @property
    def operation(self) -> str:
        return self.args[1].strip().lower() if len(self.args) > 1 else ""

    def is_op(self, service: str, operation: str) -> bool:
        return self.service == service and self.operation == operation

    def flag_value(self, flag: str) -> str:
        """Valor que segue `flag` (forma `--flag valor`); vazio quando ausente."""
        for i in range(len(self.args) - 1):
            if self.args[i].strip() == flag:
                return self.args[i + 1].strip()
        return ""

    def placeholders(self) -> List[str]:
        """Chaves referenciadas nos args, sem repetição, na ordem de aparição."""
        seen: List[str] = []
        for arg in self.args:
            for key in find_placeholders(arg):
                if key not in seen:
                    seen.append(key)
        return seen

    def references(self, key: str) -> bool:
        """True se algum arg contém `<key>` como substring."""
        token = placeholder(key)
        return any(token in arg for arg in self.args)

    def with_produces(self, extra: Mapping[str, str]) -> "Command":
        merged = dict(self.produces)
        merged.update(extra)
        return replace(self, produces=merged)


@dataclass(frozen=True)
class Plan:
    """
    Sequência ordenada de comandos com metadados.

    `bindings` contém valores já conhecidos pelo chamador (ex.: `CLUSTER_NAME`),
    usados como semente da tabela de bindings do Executor e como chaves
    conhecidas pelo passe de órfãos.
    """
    commands: Tuple[Command, ...] = ()
    version: int = CURRENT_PLAN_VERSION
    question: str = ""
    summary: str = ""
    cluster_name: str = ""
    notes: Tuple[str, ...] = ()
    bindings: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "commands", tuple(self.commands or ()))
        object.__setattr__(self, "notes", tuple(self.notes or ()))
        object.__setattr__(self, "bindings", dict(self.bindings or {}))

    def __len__(self) -> int:
        return len(self.commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self.commands)

    def with_commands(self, commands: Iterable[Command]) -> "Plan":
        return replace(self, commands=tuple(commands))

    def produced_keys(self) -> Set[str]:
        keys: Set[str] = set()
        for cmd in self.commands:
            keys.update(cmd.produces.keys())
        return keys
