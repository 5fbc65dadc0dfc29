"""
Hash canônico de plano (SHA-256 sobre a forma serializada em JSON canônico).

O hash identifica estruturalmente o plano de entrada no Manifest.
"""

from planguard.core.config.hashing import canonical_sha256

from .loader import plan_to_dict
from .types import Plan


def compute_plan_hash(plan: Plan) -> str:
    """
    Gera um hash determinístico do plano.

    Raises:
        TypeError: Se o objeto fornecido não for um `Plan`.
    """
    if not isinstance(plan, Plan):
        raise TypeError(f"Plan para hashing deve ser Plan, recebido: {type(plan).__name__}")
    return canonical_sha256(plan_to_dict(plan))
