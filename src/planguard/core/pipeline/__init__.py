"""
# Pipeline Core — planguard

Contratos e estruturas fundamentais da normalização de planos.

A normalização é modelada como um **DAG explícito de passes** (Steps):
- cada passe declara identidade, tipo semântico e dependências
- a execução é coordenada exclusivamente pelo `NormalizationEngine`
- o plano corrente circula pelo `RunContext` (artefato "plan")

## Componentes

- **types**: `StepStatus`, `StepKind`, `StepResult`
- **step**: `Step` (Protocol)
- **context**: `RunContext`, `new_run_context`
- **registry**: `StepRegistry`, `DuplicateStepIdError`
"""

from .context import RunContext, new_run_context
from .registry import DuplicateStepIdError, StepRegistry
from .step import Step
from .types import StepKind, StepResult, StepStatus

__all__ = [
    "RunContext",
    "new_run_context",
    "DuplicateStepIdError",
    "StepRegistry",
    "Step",
    "StepKind",
    "StepResult",
    "StepStatus",
]
