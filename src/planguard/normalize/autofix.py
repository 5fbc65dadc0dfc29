"""
Autofix de invariantes: ciclo de vida de distribuições CloudFront.

Quando o plano cria uma distribuição, consumidores posteriores dependem do
id e do domínio dela. Este passe:
    - preenche, no primeiro `cloudfront create-distribution[-with-tags]`,
      os mapeamentos `produces` ausentes:
          CLOUDFRONT_ID     = $.Distribution.Id
          CLOUDFRONT_DOMAIN = $.Distribution.DomainName
          HTTPS_URL         = https://<CLOUDFRONT_DOMAIN>
    - acrescenta `cloudfront wait distribution-deployed --id <ID>` ao final
      quando não existe espera equivalente

Invariantes:
    - Nunca sobrescreve um mapeamento existente
    - Nunca remove comandos
    - Nunca levanta exceção
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from planguard.core.plan.types import Command, Plan, placeholder


ID_KEYS: Tuple[str, ...] = ("CLOUDFRONT_ID", "CF_DISTRIBUTION_ID")
DOMAIN_KEY = "CLOUDFRONT_DOMAIN"
HTTPS_KEY = "HTTPS_URL"

DEFAULT_PRODUCES: Dict[str, str] = {
    "CLOUDFRONT_ID": "$.Distribution.Id",
    DOMAIN_KEY: "$.Distribution.DomainName",
    HTTPS_KEY: f"https://{placeholder(DOMAIN_KEY)}",
}

WAIT_REASON = "Wait for CloudFront distribution deployment to complete before reporting pairing URL"


def _is_create(cmd: Command) -> bool:
    return cmd.service == "cloudfront" and cmd.operation in (
        "create-distribution",
        "create-distribution-with-tags",
    )


def _is_wait(cmd: Command) -> bool:
    return (
        cmd.is_op("cloudfront", "wait")
        and len(cmd.args) >= 3
        and cmd.args[2].strip().lower() == "distribution-deployed"
    )


def find_distribution_create(plan: Plan) -> int:
    """Índice do primeiro comando de criação de distribuição, ou -1."""
    for i, cmd in enumerate(plan.commands):
        if _is_create(cmd):
            return i
    return -1


def _produced_id_key(plan: Plan) -> Optional[str]:
    produced = {k.strip().upper() for cmd in plan.commands for k in cmd.produces}
    for key in ID_KEYS:
        if key in produced:
            return key
    return None


def _produces_domain(plan: Plan) -> bool:
    return any(k.strip().upper() == DOMAIN_KEY for cmd in plan.commands for k in cmd.produces)


def _produces_https(plan: Plan) -> bool:
    return any(
        k.strip().upper() == HTTPS_KEY and v.strip().lower().startswith("https://")
        for cmd in plan.commands
        for k, v in cmd.produces.items()
    )


def apply_distribution_autofix(plan: Plan) -> Tuple[Plan, List[str]]:
    """
    Aplica o autofix de distribuição.

    Returns:
        Tuple[Plan, List[str]]: Novo plano e a lista de correções aplicadas
        (vazia quando nada foi alterado).
    """
    create_idx = find_distribution_create(plan)
    if create_idx < 0:
        return plan, []

    fixes: List[str] = []
    missing: Dict[str, str] = {}
    create = plan.commands[create_idx]

    id_key = _produced_id_key(plan)
    if id_key is None and "CLOUDFRONT_ID" not in create.produces:
        missing["CLOUDFRONT_ID"] = DEFAULT_PRODUCES["CLOUDFRONT_ID"]
        id_key = "CLOUDFRONT_ID"
    if not _produces_domain(plan) and DOMAIN_KEY not in create.produces:
        missing[DOMAIN_KEY] = DEFAULT_PRODUCES[DOMAIN_KEY]
    if not _produces_https(plan) and HTTPS_KEY not in create.produces:
        missing[HTTPS_KEY] = DEFAULT_PRODUCES[HTTPS_KEY]

    commands = list(plan.commands)
    if missing:
        commands[create_idx] = create.with_produces(missing)
        fixes.extend(f"added {key} produce mapping" for key in missing)

    if id_key is not None and not any(_is_wait(cmd) for cmd in commands):
        commands.append(
            Command(
                args=("cloudfront", "wait", "distribution-deployed", "--id", placeholder(id_key)),
                reason=WAIT_REASON,
            )
        )
        fixes.append("appended missing cloudfront wait distribution-deployed")

    if not fixes:
        return plan, []
    return plan.with_commands(commands), fixes
