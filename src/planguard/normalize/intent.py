"""
Classificação de intenção de scripts remotos.

Um script recuperado por `planguard.normalize.script` é mapeado para uma
categoria semântica (ex.: "onboard", "service-start") por camadas de regras
ordenadas. Regras são dados imutáveis passados explicitamente:

    RuleLayer(name, gates, rules)
      gates: Gate(name, clauses) → verdadeiro se alguma cláusula tiver
             todas as suas substrings presentes no script em minúsculas
      rules: IntentRule(category, require, forbid) → casa quando todos os
             gates de `require` são verdadeiros e nenhum de `forbid`

A primeira regra que casar vence, camada a camada. Nenhuma regra casando
resulta em "" (o passe chamador nunca remove o comando por intenção).

Categorias padrão:
    - camada "onboarding": onboard, onboard-and-start, config-origins, list-invocations
    - camada "generic": clone, service-start, service-stop, env-setup,
      registry-pull, diagnostics, mkdir
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from .script import extract_script


@dataclass(frozen=True)
class Gate:
    name: str
    clauses: Tuple[Tuple[str, ...], ...]

    def matches(self, lowered: str) -> bool:
        return any(all(sub in lowered for sub in clause) for clause in self.clauses)


@dataclass(frozen=True)
class IntentRule:
    category: str
    require: Tuple[str, ...]
    forbid: Tuple[str, ...] = ()

    def matches(self, gates: Dict[str, bool]) -> bool:
        return all(gates.get(g, False) for g in self.require) and not any(
            gates.get(g, False) for g in self.forbid
        )


@dataclass(frozen=True)
class RuleLayer:
    name: str
    gates: Tuple[Gate, ...]
    rules: Tuple[IntentRule, ...]

    def classify(self, lowered: str) -> str:
        values = {gate.name: gate.matches(lowered) for gate in self.gates}
        for rule in self.rules:
            if rule.matches(values):
                return rule.category
        return ""


ONBOARDING_LAYER = RuleLayer(
    name="onboarding",
    gates=(
        Gate("onboard", (("docker-setup.sh",), ("openclaw-cli onboard",), ('openclaw-cli" onboard',))),
        Gate("start", (("docker compose up",), ("docker-compose up",), ("docker run", "openclaw"))),
        Gate("config", (("openclaw.json", "allowedorigins"),)),
        Gate("list", (("list-command-invocations",),)),
    ),
    rules=(
        IntentRule("onboard", require=("onboard",), forbid=("start",)),
        IntentRule("onboard-and-start", require=("onboard", "start")),
        IntentRule("config-origins", require=("config",), forbid=("start", "onboard")),
        IntentRule("list-invocations", require=("list",)),
    ),
)

GENERIC_LAYER = RuleLayer(
    name="generic",
    gates=(
        Gate("clone", (("git clone",),)),
        Gate("start", (("docker compose up",), ("docker-compose up",), ("docker run",))),
        Gate("stop", (("docker compose down",), ("docker compose stop",), ("docker-compose down",))),
        Gate("env_write", (("> .env",), (">> .env",), ("cat >", ".env"))),
        Gate("registry", (("ecr get-login-password",), ("docker pull", ".dkr.ecr."))),
        Gate("diag", (("docker logs",), ("docker ps",), ("curl -s",), ("health",))),
        Gate("mkdir", (("mkdir -p",),)),
    ),
    rules=(
        IntentRule("clone", require=("clone",)),
        IntentRule("service-start", require=("start",)),
        IntentRule("service-stop", require=("stop",), forbid=("start",)),
        IntentRule("env-setup", require=("env_write",), forbid=("start",)),
        IntentRule("registry-pull", require=("registry",)),
        IntentRule("diagnostics", require=("diag",), forbid=("start",)),
        IntentRule("mkdir", require=("mkdir",), forbid=("clone", "start", "env_write")),
    ),
)

DEFAULT_LAYERS: Tuple[RuleLayer, ...] = (ONBOARDING_LAYER, GENERIC_LAYER)


def classify_script(script: str, layers: Sequence[RuleLayer] = DEFAULT_LAYERS) -> str:
    """Categoria do script (primeira regra que casar), ou "" se nenhuma casar."""
    if not script:
        return ""
    lowered = script.lower()
    for layer in layers:
        category = layer.classify(lowered)
        if category:
            return category
    return ""


def is_send_command(
    args: Sequence[str],
    *,
    service: str = "ssm",
    operation: str = "send-command",
) -> bool:
    if len(args) < 4:
        return False
    return args[0].strip().lower() == service and args[1].strip().lower() == operation


def classify_send_command(
    args: Sequence[str],
    layers: Sequence[RuleLayer] = DEFAULT_LAYERS,
    *,
    service: str = "ssm",
    operation: str = "send-command",
) -> str:
    """Classifica apenas comandos no formato de envio remoto (ao menos quatro args)."""
    if not is_send_command(args, service=service, operation=operation):
        return ""
    return classify_script(extract_script(args), layers)
