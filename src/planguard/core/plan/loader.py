"""
Loader canônico de planos.

Converte a forma serializada (JSON/YAML) de um plano nas estruturas
imutáveis de `planguard.core.plan.types` e vice-versa.

Forma aceita:
    {
      "version": 1,
      "question": "...", "summary": "...", "cluster_name": "...",
      "notes": ["..."], "bindings": {"KEY": "value"},
      "commands": [
        {"args": [...], "reason": "...", "produces": {"KEY": "expr"},
         "wait_for": {"resource": "...", "condition": "...", "timeout": "10m",
                      "interval": "5s"},
         "session": {"host": "...", "user": "...", "key_path": "...",
                     "script": "...", "script_name": "..."}}
      ]
    }

Decisões arquiteturais:
    - `waitFor` é aceito como sinônimo de `wait_for`, e `type` como sinônimo de `condition`
    - Uma lista na raiz é interpretada como lista de comandos
    - Erros estruturais são fatais e tipados (`PlanFormatError`)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml  # PyYAML

from .errors import InvalidPlanShapeError, PlanNotFoundError, UnsupportedPlanFormatError
from .types import CURRENT_PLAN_VERSION, Command, Plan, SessionTarget, WaitFor, parse_duration


def _require_str_list(value: Any, where: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidPlanShapeError(f"{where} deve ser lista de strings")
    return list(value)


def _require_str_map(value: Any, where: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidPlanShapeError(f"{where} deve ser mapeamento string → string")
    out: Dict[str, str] = {}
    for k, v in value.items():
        if not isinstance(k, str) or not isinstance(v, (str, int, float)) or isinstance(v, bool):
            raise InvalidPlanShapeError(f"{where} deve ser mapeamento string → string")
        out[k] = str(v)
    return out


def _wait_from_dict(data: Any, where: str) -> Optional[WaitFor]:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise InvalidPlanShapeError(f"{where} deve ser um objeto")

    resource = data.get("resource")
    condition = data.get("condition", data.get("type"))
    if not isinstance(resource, str) or not resource.strip():
        raise InvalidPlanShapeError(f"{where}.resource é obrigatório")
    if not isinstance(condition, str) or not condition.strip():
        raise InvalidPlanShapeError(f"{where}.condition é obrigatório")

    raw_timeout = data.get("timeout", data.get("timeout_seconds"))
    try:
        timeout = parse_duration(raw_timeout)
    except ValueError as e:
        raise InvalidPlanShapeError(f"{where}.timeout inválido: {raw_timeout!r}") from e

    raw_interval = data.get("interval", data.get("interval_seconds"))
    try:
        interval = parse_duration(raw_interval)
    except ValueError as e:
        raise InvalidPlanShapeError(f"{where}.interval inválido: {raw_interval!r}") from e

    return WaitFor(resource=resource, condition=condition, timeout_seconds=timeout, interval_seconds=interval)


def _session_from_dict(data: Any, where: str) -> Optional[SessionTarget]:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise InvalidPlanShapeError(f"{where} deve ser um objeto")

    host = data.get("host")
    if not isinstance(host, str) or not host.strip():
        raise InvalidPlanShapeError(f"{where}.host é obrigatório")

    return SessionTarget(
        host=host,
        user=str(data.get("user") or ""),
        key_path=str(data.get("key_path") or ""),
        script=str(data.get("script") or ""),
        script_name=str(data.get("script_name") or ""),
    )


def command_from_dict(data: Any, *, index: int = 0) -> Command:
    """Constrói um `Command` a partir de sua forma serializada."""
    where = f"commands[{index}]"
    if not isinstance(data, dict):
        raise InvalidPlanShapeError(f"{where} deve ser um objeto")

    wait_raw = data.get("wait_for", data.get("waitFor"))

    return Command(
        args=tuple(_require_str_list(data.get("args"), f"{where}.args")),
        reason=str(data.get("reason") or ""),
        produces=_require_str_map(data.get("produces"), f"{where}.produces"),
        wait_for=_wait_from_dict(wait_raw, f"{where}.wait_for"),
        session=_session_from_dict(data.get("session"), f"{where}.session"),
    )


def plan_from_dict(data: Any) -> Plan:
    """
    Constrói um `Plan` a partir de um dicionário (ou lista de comandos).

    Raises:
        InvalidPlanShapeError: Se a estrutura não corresponder à forma aceita.
    """
    if isinstance(data, list):
        data = {"commands": data}

    if not isinstance(data, dict):
        raise InvalidPlanShapeError(
            f"Plan root deve ser dict, recebido: {type(data).__name__}"
        )

    raw_commands = data.get("commands") or []
    if not isinstance(raw_commands, list):
        raise InvalidPlanShapeError("commands deve ser uma lista")

    version = data.get("version", CURRENT_PLAN_VERSION)
    if not isinstance(version, int) or isinstance(version, bool):
        raise InvalidPlanShapeError("version deve ser inteiro")

    return Plan(
        commands=tuple(command_from_dict(c, index=i) for i, c in enumerate(raw_commands)),
        version=version,
        question=str(data.get("question") or ""),
        summary=str(data.get("summary") or ""),
        cluster_name=str(data.get("cluster_name") or ""),
        notes=tuple(_require_str_list(data.get("notes"), "notes")),
        bindings=_require_str_map(data.get("bindings"), "bindings"),
    )


def command_to_dict(cmd: Command) -> Dict[str, Any]:
    out: Dict[str, Any] = {"args": list(cmd.args), "reason": cmd.reason}
    if cmd.produces:
        out["produces"] = dict(cmd.produces)
    if cmd.wait_for is not None:
        out["wait_for"] = {
            "resource": cmd.wait_for.resource,
            "condition": cmd.wait_for.condition,
            "timeout": cmd.wait_for.timeout_seconds,
        }
        if cmd.wait_for.interval_seconds is not None:
            out["wait_for"]["interval"] = cmd.wait_for.interval_seconds
    if cmd.session is not None:
        out["session"] = {
            "host": cmd.session.host,
            "user": cmd.session.user,
            "key_path": cmd.session.key_path,
            "script": cmd.session.script,
            "script_name": cmd.session.script_name,
        }
    return out


def plan_to_dict(plan: Plan) -> Dict[str, Any]:
    """Forma serializável de um `Plan` (inversa de `plan_from_dict`)."""
    return {
        "version": plan.version,
        "question": plan.question,
        "summary": plan.summary,
        "cluster_name": plan.cluster_name,
        "notes": list(plan.notes),
        "bindings": dict(plan.bindings),
        "commands": [command_to_dict(c) for c in plan.commands],
    }


def load_plan(path: str) -> Plan:
    """
    Carrega um plano de um arquivo JSON ou YAML.

    Raises:
        PlanNotFoundError: Se o arquivo não existir.
        UnsupportedPlanFormatError: Se a extensão não for suportada.
        InvalidPlanShapeError: Se o conteúdo for estruturalmente inválido.
    """
    p = Path(path)
    if not p.exists():
        raise PlanNotFoundError(f"Arquivo de plano não encontrado: {p}")

    suffix = p.suffix.lower()
    with p.open("r", encoding="utf-8") as f:
        if suffix in {".yaml", ".yml"}:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidPlanShapeError(f"YAML inválido em {p}: {e}") from e
        elif suffix == ".json":
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise InvalidPlanShapeError(f"JSON inválido em {p}: {e}") from e
        else:
            raise UnsupportedPlanFormatError(f"Formato não suportado: {p.suffix}")

    if data is None:
        data = {}

    return plan_from_dict(data)
