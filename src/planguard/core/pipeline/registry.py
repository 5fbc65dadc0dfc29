"""
Registro estrutural de passes de normalização.

O `StepRegistry` valida a unicidade dos identificadores e preserva a
ordem de registro antes que o planner resolva a ordem de execução.

Invariantes:
    - Cada passe registrado possui um `step.id` único e não vazio
    - `list()` reflete exatamente a ordem de registro
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .step import Step


class DuplicateStepIdError(ValueError):
    """
    Exceção levantada ao registrar dois passes com o mesmo `step.id`.

    A duplicidade é tratada como erro fatal de montagem do pipeline e é
    detectada no momento do registro, antes de qualquer execução.
    """


@dataclass
class StepRegistry:
    """Registro ordenado de passes, com validação de `step.id`."""

    _steps: Dict[str, Step] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, step: Step) -> None:
        step_id = getattr(step, "id", None)
        if not isinstance(step_id, str) or not step_id.strip():
            raise ValueError("step.id must be a non-empty string")

        if step_id in self._steps:
            raise DuplicateStepIdError(f"Duplicate step id: {step_id}")

        self._steps[step_id] = step
        self._order.append(step_id)

    def get(self, step_id: str) -> Step:
        return self._steps[step_id]

    def list(self) -> List[Step]:
        return [self._steps[sid] for sid in self._order]

    def __len__(self) -> int:
        return len(self._order)
