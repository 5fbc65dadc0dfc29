"""
Extração de scripts embutidos em comandos de execução remota.

Planejadores não determinísticos codificam o script de um
`ssm send-command --parameters ...` de várias formas. Este módulo recupera
o script subjacente como uma única string (linhas unidas por "\\n"),
tolerando todas as codificações observadas:

    {"commands":["cmd1","cmd2"]}     objeto JSON
    ["cmd1","cmd2"]                  array JSON
    commands=["cmd1","cmd2"]         atalho (espaços em volta de "=" aceitos)
    commands=['cmd1','cmd2']         atalho com aspas simples
    commands=cmd1                    atalho com valor único
    '{"commands":["cmd1"]}'          valor inteiro entre aspas
    {'commands':['cmd1']}            objeto com aspas simples
    cmd1                             string única (último recurso)

Invariantes:
    - Nenhuma função deste módulo levanta exceção (fail-open)
    - Entrada ilegível resulta em string vazia
"""

from __future__ import annotations

import json
from typing import Any, List, Optional, Sequence

PARAMETERS_FLAG = "--parameters"


def _json_loads(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def _str_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, list) and value and all(isinstance(v, str) for v in value):
        return list(value)
    return None


def _commands_from_object(value: Any) -> Optional[List[str]]:
    if not isinstance(value, dict):
        return None
    if "commands" in value:
        return _str_list(value["commands"])
    for key, item in value.items():
        if isinstance(key, str) and key.lower() == "commands":
            return _str_list(item)
    return None


def single_to_double_quotes(text: str) -> str:
    """
    Converte aspas simples em duplas fora de regiões entre aspas duplas.

    O estado alterna apenas em aspas duplas não escapadas; aspas simples
    dentro de strings com aspas duplas (ex.: comandos de shell) são mantidas.
    """
    out: List[str] = []
    in_double = False
    escaped = False
    for ch in text:
        if escaped:
            out.append(ch)
            escaped = False
        elif ch == "\\":
            out.append(ch)
            escaped = True
        elif ch == '"':
            in_double = not in_double
            out.append(ch)
        elif ch == "'" and not in_double:
            out.append('"')
        else:
            out.append(ch)
    return "".join(out)


def _strip_outer_quotes(params: str) -> str:
    if len(params) >= 2 and params[0] == params[-1] and params[0] in ("'", '"'):
        inner = params[1:-1]
        stripped = inner.strip()
        if "commands" in inner or stripped.startswith("[") or stripped.startswith("{"):
            return inner
    return params


def try_extract_commands(params: str) -> List[str]:
    """Tenta cada formato conhecido, em ordem de prioridade; lista vazia se nenhum casar."""
    params = (params or "").strip()
    if not params:
        return []

    parsed = _json_loads(params)

    # 1) objeto JSON
    cmds = _commands_from_object(parsed)
    if cmds:
        return cmds

    # 2) array JSON
    cmds = _str_list(parsed)
    if cmds:
        return cmds

    # 3) atalho commands=
    idx = params.lower().find("commands")
    if idx >= 0:
        rest = params[idx + len("commands"):].lstrip(" \t")
        if rest.startswith("="):
            rest = rest[1:].strip()
            cmds = _str_list(_json_loads(rest))
            if cmds:
                return cmds
            if rest.startswith("["):
                cmds = _str_list(_json_loads(single_to_double_quotes(rest)))
                if cmds:
                    return cmds
            if rest and not rest.startswith("[") and not rest.startswith("{"):
                return [rest]

    # 4) objeto inteiro com aspas simples
    if "'" in params:
        cmds = _commands_from_object(_json_loads(single_to_double_quotes(params)))
        if cmds:
            return cmds

    # 5) último recurso
    if not params.startswith("{") and not params.startswith("[") and not params.lower().startswith("commands"):
        return [params]

    return []


def parameters_value(args: Sequence[str]) -> Optional[str]:
    """Valor do primeiro `--parameters` (`--parameters V`, `--parameters=V`); None se ausente."""
    for i, raw in enumerate(args):
        a = raw.strip()
        if a == PARAMETERS_FLAG and i + 1 < len(args):
            return args[i + 1].strip()
        if a.startswith(PARAMETERS_FLAG) and "=" in a:
            return a[a.index("=") + 1:].strip()
    return None


def extract_script(args: Sequence[str]) -> str:
    """
    Recupera o script embutido no `--parameters` de um comando.

    Args:
        args (Sequence[str]): Argumentos do comando.

    Returns:
        str: Script com comandos unidos por "\\n"; vazio se não encontrado.
    """
    params = parameters_value(args)
    if params is None:
        return ""
    return "\n".join(try_extract_commands(_strip_outer_quotes(params)))


def extract_script_from_doc_content(content: str) -> str:
    """Primeiro `mainSteps[].inputs.runCommand` não vazio de um documento, unido por "\\n"."""
    content = (content or "").strip()
    if not content:
        return ""

    doc = _json_loads(content)
    if not isinstance(doc, dict):
        return ""

    steps = doc.get("mainSteps")
    if not isinstance(steps, list):
        return ""

    for step in steps:
        if not isinstance(step, dict):
            continue
        inputs = step.get("inputs")
        if not isinstance(inputs, dict):
            continue
        run_command = _str_list(inputs.get("runCommand"))
        if run_command:
            return "\n".join(run_command)
    return ""
