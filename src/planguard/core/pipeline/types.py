"""
Tipos canônicos do pipeline de normalização do planguard.

Este módulo define os enums e a estrutura de resultado que padronizam a
comunicação entre os passes de normalização (Steps), o
`NormalizationEngine` e o Manifest.

Componentes principais:
    - StepStatus → estados finais (SUCCESS, SKIPPED, FAILED)
    - StepKind   → classificação semântica do passe (DEDUP, AUTOFIX)
    - StepResult → resultado imutável produzido por um passe

Invariantes:
    - Enums possuem valores textuais estáveis (serializáveis em JSON)
    - StepResult nunca é alterado após criado

Limites explícitos:
    - Não executa passes
    - Não decide ordem de execução
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class StepKind(str, Enum):
    """
    Classificação semântica de um passe de normalização.

    Tipos definidos:
        - DEDUP: passe que apenas remove comandos do plano
        - AUTOFIX: passe que apenas adiciona mapeamentos ou comandos

    O valor é puramente informativo: o Engine não o utiliza para decidir
    execução, apenas o registra no Manifest.
    """
    DEDUP = "dedup"
    AUTOFIX = "autofix"


class StepStatus(str, Enum):
    """
    Estados finais possíveis de um passe.

    Estados definidos:
        - SUCCESS: passe concluído (mesmo que nada tenha sido removido)
        - SKIPPED: passe desabilitado por configuração
        - FAILED: passe interrompido por erro inesperado
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """
    Resultado imutável da execução de um passe.

    Campos:
        - step_id: identificador do passe (ex.: "dedup.exact")
        - kind: tipo semântico do passe
        - status: estado final
        - summary: resumo textual
        - metrics: contagens numéricas (ex.: `removed`)
        - warnings: avisos não fatais
        - artifacts: referências a artefatos produzidos
        - payload: dados livres (ex.: `impact`, `fixes`, `error`)

    Invariantes:
        - `step_id`, `kind` e `status` estão sempre presentes
        - Coleções internas possuem defaults explícitos
    """
    step_id: str
    kind: StepKind
    status: StepStatus
    summary: str
    metrics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    artifacts: Dict[str, str] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict)
