"""
Engine de normalização do planguard.

Componentes principais:
    - planner → ordenação topológica determinística e validações estruturais
    - engine  → execução coordenada dos passes com políticas explícitas
"""

from .engine import NormalizationEngine, RunResult
from .planner import CycleDetectedError, UnknownDependencyError, plan_execution

__all__ = [
    "NormalizationEngine",
    "RunResult",
    "CycleDetectedError",
    "UnknownDependencyError",
    "plan_execution",
]
