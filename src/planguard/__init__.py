# src/planguard/__init__.py
"""
planguard — normalização e execução segura de planos de comandos.

Um planejador externo emite uma sequência ordenada de comandos de
infraestrutura anotados com os valores que cada comando produz e os
placeholders (`<KEY>`) que comandos posteriores consomem. O planguard
normaliza essa sequência (deduplicação + autofix de invariantes) e a
executa em ordem, resolvendo placeholders a partir das saídas anteriores.

Arquitetura em alto nível:
    - core.config       → defaults, carregamento YAML/JSON, merge e hashing
    - core.plan         → modelo imutável de plano, placeholders, loader
    - core.pipeline     → protocolo de Step, contexto de execução e registry
    - core.engine       → planner determinístico e engine de normalização
    - core.traceability → Manifest e Event Log
    - normalize         → passes de deduplicação e autofix
    - execution         → bindings, colaboradores e Executor

Limites explícitos:
    - Não gera planos
    - Não interpreta semântica de provedores de nuvem
    - Não aplica retry em comandos que falham
"""

from .core.plan import Command, Plan, SessionTarget, WaitFor, load_plan
from .execution import ExecResult, ExecState, Executor
from .normalize import NormalizationResult, normalize_plan

__version__ = "0.1.0"

__all__ = [
    "Command",
    "Plan",
    "SessionTarget",
    "WaitFor",
    "load_plan",
    "ExecResult",
    "ExecState",
    "Executor",
    "NormalizationResult",
    "normalize_plan",
    "__version__",
]
