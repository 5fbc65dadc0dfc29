"""
Manifest v1 — rastreabilidade de normalizações e execuções de planos.

O Manifest consolida, de forma determinística e auditável:
    - metadados da execução (run_id, started_at, planguard_version)
    - hashes das entradas (configuração efetiva e plano)
    - estado incremental de cada passe de normalização e de cada comando executado
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem real de execução
    - O Manifest é serializável e reconstruível (round-trip JSON)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - A API aceita o Manifest como objeto ou como dict; alterações feitas
      sobre um dict são sincronizadas de volta no próprio dict
    - Comandos executados são registrados com step_id `exec.<índice>`

Limites explícitos:
    - Não executa passes nem comandos
    - Não realiza migração de versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union, Tuple


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Normaliza um timestamp para timezone-aware em UTC (naive é assumido UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class PlanguardManifest:
    """
    Manifest v1 — registro de uma normalização e/ou execução de plano.

    Campos principais:
        - run: metadados da execução
        - inputs: `config_hash` e `plan_hash`
        - steps: estado incremental indexado por step_id
        - events: Event Log ordenado

    Invariantes:
        - `steps` é sempre um dicionário indexado por step_id
        - `events` é sempre uma lista ordenada
        - A estrutura completa é serializável em JSON
    """
    run: Dict[str, Any]
    inputs: Dict[str, Any]
    steps: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Retorna uma cópia serializável, independente do estado interno."""
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "steps": {k: dict(v) for k, v in self.steps.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanguardManifest":
        """Reconstrói o Manifest; campos ausentes iniciam vazios."""
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            steps={k: dict(v) for k, v in (data.get("steps", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


ManifestLike = Union[PlanguardManifest, Dict[str, Any]]


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    planguard_version: str,
    config_hash: str,
    plan_hash: str,
) -> PlanguardManifest:
    """
    Cria o Manifest inicial de uma execução (Manifest v1).

    ⚠️ Importante: esta função **não emite eventos implicitamente**.
    O Event Log inicia vazio e só é preenchido por chamadas explícitas
    a `add_event`, `step_started`, `step_finished` ou `step_failed`.

    Args:
        run_id (str): Identificador único da execução.
        started_at (datetime): Timestamp de início da execução.
        planguard_version (str): Versão do planguard utilizada.
        config_hash (str): Hash da configuração efetiva.
        plan_hash (str): Hash do plano de entrada.

    Returns:
        PlanguardManifest: Instância inicializada do Manifest v1.
    """
    started_at = _ensure_tzaware_utc(started_at)
    return PlanguardManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "planguard_version": planguard_version,
        },
        inputs={
            "config_hash": config_hash,
            "plan_hash": plan_hash,
        },
        steps={},
        events=[],
    )


def _get_manifest(manifest: ManifestLike) -> Tuple[PlanguardManifest, bool]:
    if isinstance(manifest, PlanguardManifest):
        return manifest, False
    return PlanguardManifest.from_dict(manifest), True


def _sync_back(manifest: ManifestLike, m: PlanguardManifest, is_dict: bool) -> None:
    if is_dict:
        manifest.clear()
        manifest.update(m.to_dict())


def add_event(
    manifest: ManifestLike,
    *,
    event_type: str,
    ts: datetime,
    step_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona um evento explícito ao Event Log do Manifest.

    Invariantes:
        - Cada chamada adiciona exatamente um evento
        - Eventos não são reordenados ou deduplicados
    """
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)

    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if step_id is not None:
        ev["step_id"] = step_id
    if payload is not None:
        ev["payload"] = payload

    m.events.append(ev)
    _sync_back(manifest, m, is_dict)


def step_started(
    manifest: ManifestLike,
    *,
    step_id: str,
    kind: str,
    ts: datetime,
) -> None:
    """Marca um passe (ou comando) como `running` e registra `step_started`."""
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)

    m.steps.setdefault(step_id, {})
    m.steps[step_id].update(
        {
            "step_id": step_id,
            "kind": kind,
            "status": "running",
            "started_at": _iso(ts),
        }
    )

    add_event(m, event_type="step_started", ts=ts, step_id=step_id, payload={"kind": kind})
    _sync_back(manifest, m, is_dict)


def step_finished(
    manifest: ManifestLike,
    *,
    step_id: str,
    ts: datetime,
    result: Dict[str, Any],
) -> None:
    """
    Registra a conclusão de um passe (ou comando) no Manifest.

    `result` pode conter `status`, `summary`, `metrics`, `warnings` e
    `artifacts`; a duração é calculada a partir de `started_at` quando
    presente.
    """
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)

    s = m.steps.setdefault(step_id, {"step_id": step_id})

    started_iso = s.get("started_at")
    started_dt = ts
    if started_iso:
        try:
            started_dt = datetime.fromisoformat(started_iso)
        except ValueError:
            started_dt = ts

    status = result.get("status", "success")

    s.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "summary": result.get("summary"),
            "metrics": result.get("metrics", {}) or {},
            "warnings": result.get("warnings", []) or [],
            "artifacts": result.get("artifacts", {}) or {},
        }
    )

    add_event(
        m,
        event_type="step_finished",
        ts=ts,
        step_id=step_id,
        payload={"status": status, "duration_ms": s.get("duration_ms", 0)},
    )
    _sync_back(manifest, m, is_dict)


def step_failed(
    manifest: ManifestLike,
    *,
    step_id: str,
    ts: datetime,
    error: str,
) -> None:
    """Marca um passe (ou comando) como `failed` e registra `step_failed`."""
    ts = _ensure_tzaware_utc(ts)
    m, is_dict = _get_manifest(manifest)

    s = m.steps.setdefault(step_id, {"step_id": step_id})
    s.update(
        {
            "status": "failed",
            "finished_at": _iso(ts),
            "error": error,
        }
    )

    add_event(m, event_type="step_failed", ts=ts, step_id=step_id, payload={"error": error})
    _sync_back(manifest, m, is_dict)


def save_manifest(manifest: ManifestLike, path: Path) -> None:
    """
    Persiste o Manifest em JSON determinístico (chaves ordenadas, indent 2).

    Raises:
        OSError: Em caso de falha ao criar diretórios ou escrever o arquivo.
        TypeError: Se o conteúdo não for serializável em JSON.
    """
    data = manifest.to_dict() if isinstance(manifest, PlanguardManifest) else manifest
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")


def load_manifest(path: Path) -> PlanguardManifest:
    """Reconstrói o Manifest a partir de um arquivo JSON salvo por `save_manifest`."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return PlanguardManifest.from_dict(data)
