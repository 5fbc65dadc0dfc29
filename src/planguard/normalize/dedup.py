"""
Passes de deduplicação de planos.

Cada passe é uma função pura `(plan) -> (plan, removed)`: constrói uma
nova tupla de comandos preservando a ordem relativa dos remanescentes e
nunca levanta exceção. Comandos ilegíveis ou não classificáveis são sempre
mantidos (fail-open).

Passes, na ordem fixa de composição:
    1. prune_exact_duplicates
    2. prune_semantic_duplicates
    3. prune_document_cycles
    4. prune_launch_cycles
    5. prune_redundant_read_only
    6. prune_orphaned_placeholders

Invariantes:
    - P(P(plan)) == P(plan) para todo passe P
    - Nenhum passe reordena comandos
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from planguard.core.plan.types import Command, Plan, find_placeholders, placeholder

from .intent import DEFAULT_LAYERS, RuleLayer, classify_script, classify_send_command
from .script import extract_script_from_doc_content


SIGNATURE_SEPARATOR = "\x1f"

READ_ONLY_VERBS: Tuple[str, ...] = ("describe-", "get-", "list-")

READ_ONLY_TARGET_FLAGS: Tuple[str, ...] = (
    "--instance-ids",
    "--id",
    "--target-group-arn",
    "--names",
    "--load-balancer-arn",
    "--load-balancer-arns",
)

LAUNCH_LIFECYCLE_OPS: Tuple[Tuple[str, str], ...] = (
    ("ec2", "terminate-instances"),
    ("ec2", "wait"),
    ("ec2", "describe-instance-status"),
    ("elbv2", "register-targets"),
    ("elbv2", "deregister-targets"),
    ("elbv2", "wait"),
    ("elbv2", "describe-target-health"),
)

PruneResult = Tuple[Plan, int]


def _without(plan: Plan, drop: Set[int]) -> PruneResult:
    if not drop:
        return plan, 0
    kept = [cmd for i, cmd in enumerate(plan.commands) if i not in drop]
    return plan.with_commands(kept), len(drop)


def command_signature(args: Sequence[str]) -> str:
    """Tokens não vazios (stripped) unidos por `\\x1f`; "" quando não há tokens."""
    return SIGNATURE_SEPARATOR.join(a.strip() for a in args if a.strip())


# ---------------------------------------------------------------------------
# 1. Duplicatas exatas
# ---------------------------------------------------------------------------
def prune_exact_duplicates(plan: Plan) -> PruneResult:
    """Mantém a primeira ocorrência de cada assinatura; comandos sem assinatura ficam."""
    seen: Set[str] = set()
    drop: Set[int] = set()
    for i, cmd in enumerate(plan.commands):
        sig = command_signature(cmd.args)
        if not sig:
            continue
        if sig in seen:
            drop.add(i)
            continue
        seen.add(sig)
    return _without(plan, drop)


# ---------------------------------------------------------------------------
# 2. Duplicatas semânticas (mesma intenção)
# ---------------------------------------------------------------------------
def _keep_last_per_category(categories: Sequence[str]) -> Set[int]:
    last: Dict[str, int] = {}
    for i, category in enumerate(categories):
        if category:
            last[category] = i
    return {i for i, category in enumerate(categories) if category and last[category] != i}


def prune_semantic_duplicates(
    plan: Plan,
    *,
    layers: Sequence[RuleLayer] = DEFAULT_LAYERS,
    service: str = "ssm",
    operation: str = "send-command",
) -> PruneResult:
    """Para cada categoria de intenção não vazia, mantém apenas a ÚLTIMA ocorrência."""
    categories = [
        classify_send_command(cmd.args, layers, service=service, operation=operation)
        for cmd in plan.commands
    ]
    return _without(plan, _keep_last_per_category(categories))


# ---------------------------------------------------------------------------
# 3. Ciclos de documentos remotos
# ---------------------------------------------------------------------------
def prune_document_cycles(
    plan: Plan,
    *,
    layers: Sequence[RuleLayer] = DEFAULT_LAYERS,
    service: str = "ssm",
) -> PruneResult:
    """
    Colapsa ciclos define → executa → remove de documentos com a mesma intenção.

    Para cada intenção com mais de um documento, mantém apenas o ciclo do
    documento criado por último. Para os documentos superados, remove
    create-document/delete-document (`--name`), send-command
    (`--document-name`) e, em cascata, `wait`/`get-command-invocation`
    posteriores que referenciam uma chave produzida por um envio removido.
    """
    intents: Dict[str, str] = {}
    order: List[str] = []
    for cmd in plan.commands:
        if not cmd.is_op(service, "create-document"):
            continue
        name = cmd.flag_value("--name")
        if not name:
            continue
        script = extract_script_from_doc_content(cmd.flag_value("--content"))
        intents[name] = classify_script(script, layers)
        order.append(name)

    if len(intents) < 2:
        return plan, 0

    last_for_intent: Dict[str, str] = {}
    for name in order:
        if intents[name]:
            last_for_intent[intents[name]] = name

    superseded = {
        name for name in order if intents[name] and last_for_intent[intents[name]] != name
    }
    if not superseded:
        return plan, 0

    removed_keys: Set[str] = set()
    drop: Set[int] = set()
    for i, cmd in enumerate(plan.commands):
        if cmd.service != service:
            continue
        op = cmd.operation
        if op in ("create-document", "delete-document"):
            if cmd.flag_value("--name") in superseded:
                drop.add(i)
        elif op == "send-command":
            if cmd.flag_value("--document-name") in superseded:
                drop.add(i)
                removed_keys.update(cmd.produces.keys())
        elif op in ("wait", "get-command-invocation"):
            if any(cmd.references(k) for k in removed_keys):
                drop.add(i)

    return _without(plan, drop)


# ---------------------------------------------------------------------------
# 4. Ciclos de lançamento de instâncias
# ---------------------------------------------------------------------------
def launch_id_key(cmd: Command) -> str:
    """
    Chave do identificador produzido por um lançamento.

    Heurística: a primeira chave de `produces` cujo nome em maiúsculas
    contém "INSTANCE" e "ID". Pode casar chaves não relacionadas
    (ex.: `INSTANCE_PROFILE_ID`).
    """
    for key in cmd.produces:
        upper = key.strip().upper()
        if "INSTANCE" in upper and "ID" in upper:
            return key
    return ""


def _is_lifecycle(cmd: Command) -> bool:
    return (cmd.service, cmd.operation) in LAUNCH_LIFECYCLE_OPS


def prune_launch_cycles(plan: Plan) -> PruneResult:
    """
    Mantém apenas o ÚLTIMO `ec2 run-instances`.

    Cada lançamento anterior é removido junto com os comandos de ciclo de
    vida (terminate, wait, describe-instance-status, register/deregister
    targets, describe-target-health) que referenciam o id produzido por ele.
    """
    launches = [i for i, cmd in enumerate(plan.commands) if cmd.is_op("ec2", "run-instances")]
    if len(launches) < 2:
        return plan, 0

    keep = launches[-1]
    drop: Set[int] = set()
    for idx in launches[:-1]:
        drop.add(idx)
        key = launch_id_key(plan.commands[idx])
        if not key:
            continue
        token = placeholder(key)
        for j, cmd in enumerate(plan.commands):
            if j in (idx, keep) or j in drop:
                continue
            if _is_lifecycle(cmd) and any(token in a for a in cmd.args):
                drop.add(j)

    return _without(plan, drop)


# ---------------------------------------------------------------------------
# 5. Consultas somente-leitura redundantes
# ---------------------------------------------------------------------------
def primary_target(args: Sequence[str], target_flags: Iterable[str] = READ_ONLY_TARGET_FLAGS) -> str:
    flags = {f.lower() for f in target_flags}
    for i in range(len(args) - 1):
        if args[i].strip().lower() in flags:
            return args[i + 1].strip()
    return ""


def prune_redundant_read_only(
    plan: Plan,
    *,
    verbs: Sequence[str] = READ_ONLY_VERBS,
    target_flags: Sequence[str] = READ_ONLY_TARGET_FLAGS,
) -> PruneResult:
    """Agrupa consultas sem `produces` por (serviço, operação, alvo) e mantém a última de cada grupo."""
    groups: Dict[Tuple[str, str, str], List[int]] = {}
    for i, cmd in enumerate(plan.commands):
        if len(cmd.args) < 2 or cmd.produces:
            continue
        if not cmd.operation.startswith(tuple(verbs)):
            continue
        key = (cmd.service, cmd.operation, primary_target(cmd.args, target_flags))
        groups.setdefault(key, []).append(i)

    drop: Set[int] = set()
    for indices in groups.values():
        drop.update(indices[:-1])
    return _without(plan, drop)


# ---------------------------------------------------------------------------
# 6. Placeholders órfãos (ponto fixo)
# ---------------------------------------------------------------------------
def prune_orphaned_placeholders(
    plan: Plan,
    *,
    known_keys: Optional[Iterable[str]] = None,
) -> PruneResult:
    """
    Remove comandos que referenciam `<KEY>` sem produtor remanescente.

    A remoção é feita em ponto fixo: o conjunto `drop` só cresce, então o
    laço termina em no máximo `len(plan) + 1` iterações e uma única chamada
    remove cadeias inteiras de dependentes.

    Args:
        plan (Plan): Plano de entrada.
        known_keys (Optional[Iterable[str]]): Chaves já resolvidas fora do
            plano; por padrão, as chaves de `plan.bindings` com valor não vazio.
    """
    if known_keys is None:
        seed = {k for k, v in plan.bindings.items() if v}
    else:
        seed = set(known_keys)
    drop: Set[int] = set()

    for _ in range(len(plan.commands) + 1):
        produced = set(seed)
        for i, cmd in enumerate(plan.commands):
            if i not in drop:
                produced.update(k.strip() for k in cmd.produces)

        newly = {
            i
            for i, cmd in enumerate(plan.commands)
            if i not in drop
            and any(key not in produced for arg in cmd.args for key in find_placeholders(arg))
        }
        if not newly:
            break
        drop |= newly

    return _without(plan, drop)
