"""
Configuração padrão (defaults) do planguard.

Estes valores são a base sobre a qual arquivos locais e overrides
em memória são aplicados via `deep_merge`. Os identificadores em
`steps` correspondem aos ids dos passes de normalização.

O dicionário nunca é mutado: `resolve_config` sempre devolve uma cópia.
"""

from __future__ import annotations

from typing import Any, Dict


DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        "fail_fast": True,
    },
    "steps": {
        "dedup.exact": {"enabled": True},
        "dedup.semantic": {"enabled": True},
        "dedup.document_cycles": {"enabled": True},
        "dedup.launch_cycles": {"enabled": True},
        "dedup.read_only": {"enabled": True},
        "dedup.orphans": {"enabled": True},
        "autofix.distribution": {"enabled": True},
    },
    "normalize": {
        "send_command": {
            "service": "ssm",
            "operation": "send-command",
        },
        "read_only": {
            "verbs": ["describe-", "get-", "list-"],
            "target_flags": [
                "--instance-ids",
                "--id",
                "--target-group-arn",
                "--names",
                "--load-balancer-arn",
                "--load-balancer-arns",
            ],
        },
    },
    "executor": {
        "binary": "aws",
        "dry_run": False,
        "poll_interval_seconds": 5.0,
        "default_wait_timeout_seconds": 600.0,
        "log_truncate": 150,
        "wait_binary": "kubectl",
        "wait_check_args": ["wait", "--for=condition={condition}", "{resource}", "--timeout=0s"],
        "ssh_port": 22,
        "kubeconfig": "~/.kube/config",
    },
}
