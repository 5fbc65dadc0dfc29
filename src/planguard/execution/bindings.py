"""
Resolução de bindings durante a execução de um plano.

Funções:
    - apply_bindings / apply_bindings_to_string → substituem `<KEY>` por valores conhecidos
    - learn_bindings_from_output → extraem valores da saída de um comando
    - format_command_for_log → linha de log truncada
    - expand_path → expande `~/` inicial
    - unresolved_keys → placeholders sem valor conhecido

Regras de substituição:
    - Binding ausente ou vazio mantém o placeholder literalmente
    - Vários placeholders em um mesmo arg são todos substituídos
    - Texto entre colchetes em minúsculas nunca é tratado como placeholder

Regras de extração (`produces`):
    - `$.A.B[0].C` → caminho avaliado sobre a saída JSON
    - expressão contendo `<KEY>` → template resolvido a partir dos bindings,
      aplicado apenas quando totalmente resolvível
    - qualquer outra expressão → marcador literal; o valor é o restante da
      linha após a primeira ocorrência, sem espaços nas pontas
    - valores vazios são ignorados
"""

from __future__ import annotations

import json
import os
import re
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional, Sequence

from planguard.core.plan.types import PLACEHOLDER_RE, find_placeholders

JSON_PATH_PREFIX = "$."

_PATH_TOKEN_RE = re.compile(r"\.([^.\[\]]+)|\[(\d+)\]")

_MISSING = object()


def apply_bindings_to_string(text: str, bindings: Mapping[str, str]) -> str:
    def _sub(match: "re.Match[str]") -> str:
        value = bindings.get(match.group(1))
        return value if value else match.group(0)

    return PLACEHOLDER_RE.sub(_sub, text)


def apply_bindings(args: Sequence[str], bindings: Mapping[str, str]) -> List[str]:
    """Cópia de `args` com placeholders substituídos; `args` nunca é mutado."""
    return [apply_bindings_to_string(a, bindings) for a in args]


def unresolved_keys(texts: Iterable[str], known: Iterable[str]) -> List[str]:
    """Chaves de placeholder em `texts` ausentes de `known`, sem repetição."""
    known_set = set(known)
    missing: List[str] = []
    for text in texts:
        for key in find_placeholders(text):
            if key not in known_set and key not in missing:
                missing.append(key)
    return missing


def _eval_json_path(document: Any, expr: str) -> Any:
    path = expr[len(JSON_PATH_PREFIX) - 1:]
    pos = 0
    current = document
    for match in _PATH_TOKEN_RE.finditer(path):
        if match.start() != pos:
            return _MISSING
        pos = match.end()
        name, index = match.group(1), match.group(2)
        if name is not None:
            if not isinstance(current, dict) or name not in current:
                return _MISSING
            current = current[name]
        else:
            i = int(index)
            if not isinstance(current, list) or i >= len(current):
                return _MISSING
            current = current[i]
    if pos != len(path):
        return _MISSING
    return current


def _render(value: Any) -> str:
    if value is _MISSING or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True)
    return str(value).strip()


def _value_after_marker(output: str, marker: str) -> str:
    idx = output.find(marker)
    if idx < 0:
        return ""
    rest = output[idx + len(marker):]
    return rest.split("\n", 1)[0].strip()


def learn_bindings_from_output(
    produces: Mapping[str, str],
    output: str,
    bindings: MutableMapping[str, str],
) -> Dict[str, str]:
    """
    Extrai os valores declarados em `produces` e grava em `bindings` (last write wins).

    Templates são avaliados depois das demais expressões, para que possam
    usar valores aprendidos no mesmo comando.

    Returns:
        Dict[str, str]: Bindings aprendidos nesta chamada.
    """
    learned: Dict[str, str] = {}
    if not produces:
        return learned

    document: Any = _MISSING
    templates: List[str] = []

    for key, expr in produces.items():
        if not expr:
            continue
        if expr.startswith(JSON_PATH_PREFIX):
            if document is _MISSING:
                try:
                    document = json.loads(output) if output.strip() else None
                except ValueError:
                    document = None
            value = _render(_eval_json_path(document, expr)) if document is not None else ""
        elif find_placeholders(expr):
            templates.append(key)
            continue
        else:
            value = _value_after_marker(output, expr) if output else ""

        if value:
            bindings[key] = value
            learned[key] = value

    for key in templates:
        expr = produces[key]
        if unresolved_keys([expr], (k for k, v in bindings.items() if v)):
            continue
        value = apply_bindings_to_string(expr, bindings).strip()
        if value:
            bindings[key] = value
            learned[key] = value

    return learned


def format_command_for_log(args: Sequence[str], limit: int = 150) -> str:
    """Args unidos por espaço, truncados em `limit` caracteres + "..."."""
    line = " ".join(args)
    if limit > 0 and len(line) > limit:
        return line[:limit] + "..."
    return line


def expand_path(path: str, home: Optional[str] = None) -> str:
    """Expande apenas um `~/` inicial para o diretório home."""
    if path.startswith("~/"):
        base = home if home is not None else os.path.expanduser("~")
        return os.path.join(base, path[2:])
    return path
