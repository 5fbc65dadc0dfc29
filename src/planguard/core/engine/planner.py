# src/planguard/core/engine/planner.py
"""
Planejador de execução dos passes de normalização (DAG).

Valida a estrutura declarada pelos passes e produz uma ordem topológica
determinística: empates são resolvidos por ordem lexicográfica de `step.id`.

Invariantes:
    - Nenhum passe aparece antes de suas dependências
    - Todos os passes aparecem exatamente uma vez
    - A mesma definição sempre produz a mesma ordem

Limites explícitos:
    - Não executa passes
    - Não interage com RunContext
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Set

from planguard.core.pipeline.step import Step


class UnknownDependencyError(ValueError):
    """Um passe declarou em `depends_on` um id que não foi registrado."""


class CycleDetectedError(ValueError):
    """O grafo de dependências entre passes contém um ciclo."""


def plan_execution(steps: Iterable[Step]) -> List[Step]:
    """
    Produz uma ordem de execução topológica determinística (Kahn).

    Args:
        steps (Iterable[Step]): Passes declarados.

    Returns:
        List[Step]: Passes em ordem de execução.

    Raises:
        ValueError: Se algum passe possuir `id` inválido ou duplicado.
        UnknownDependencyError: Se um passe declarar dependência inexistente.
        CycleDetectedError: Se houver ciclo no grafo de dependências.
    """
    step_list = list(steps)
    by_id: Dict[str, Step] = {}
    for s in step_list:
        sid = getattr(s, "id", None)
        if not isinstance(sid, str) or not sid.strip():
            raise ValueError("step.id must be a non-empty string")
        if sid in by_id:
            raise ValueError(f"Duplicate step id: {sid}")
        by_id[sid] = s

    deps: Dict[str, List[str]] = {}
    for sid, s in by_id.items():
        d = list(getattr(s, "depends_on", []) or [])
        for dep in d:
            if dep not in by_id:
                raise UnknownDependencyError(f"Step '{sid}' depends on unknown step '{dep}'")
        deps[sid] = d

    incoming_count: Dict[str, int] = {sid: 0 for sid in by_id}
    outgoing: Dict[str, Set[str]] = {sid: set() for sid in by_id}

    for sid, dlist in deps.items():
        incoming_count[sid] = len(dlist)
        for dep in dlist:
            outgoing[dep].add(sid)

    ready: List[str] = sorted(sid for sid, c in incoming_count.items() if c == 0)
    order_ids: List[str] = []

    while ready:
        sid = ready.pop(0)
        order_ids.append(sid)
        for child in sorted(outgoing[sid]):
            incoming_count[child] -= 1
            if incoming_count[child] == 0:
                ready.append(child)
                ready.sort()

    if len(order_ids) != len(by_id):
        raise CycleDetectedError("Cycle detected in step dependency graph")

    return [by_id[sid] for sid in order_ids]
