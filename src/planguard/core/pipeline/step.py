"""
Contrato canônico de Step do planguard.

Um Step é um passe de normalização isolado: recebe o plano corrente via
`RunContext` (artefato "plan"), publica o plano resultante no mesmo
artefato e devolve um `StepResult`.

Princípios fundamentais:
    - Steps não conhecem o Engine nem o planner
    - Dependências são declaradas em `depends_on`
    - Conformidade é verificada por duck typing (@runtime_checkable)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable, List

from .context import RunContext
from .types import StepKind, StepResult


@runtime_checkable
class Step(Protocol):
    """
    Interface mínima de um passe executável pelo `NormalizationEngine`.

    Atributos obrigatórios:
        - id: identificador único e estável do passe
        - kind: classificação semântica (`StepKind`)
        - depends_on: ids dos passes que devem executar antes

    Invariantes:
        - `run` é executado no máximo uma vez por normalização
        - O retorno de `run` é sempre um `StepResult`
    """
    id: str
    kind: StepKind
    depends_on: List[str]

    def run(self, ctx: RunContext) -> StepResult:
        """Executa o passe uma única vez usando exclusivamente o RunContext."""
        ...
