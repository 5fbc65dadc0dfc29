"""
Camada de configuração do planguard.

Responsabilidades do pacote:
    - Defaults canônicos embutidos (`DEFAULT_CONFIG`)
    - Carregamento de arquivos de configuração (YAML/JSON)
    - Resolução de configuração final via deep-merge determinístico
    - Geração de hash canônico para rastreabilidade

Princípios fundamentais:
    - Configuração não contém lógica de normalização
    - Overrides são sempre explícitos
    - A mesma entrada sempre produz a mesma configuração final
"""

from .defaults import DEFAULT_CONFIG
from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .hashing import canonical_sha256, compute_config_hash
from .loader import load_config, resolve_config
from .merge import deep_merge

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "canonical_sha256",
    "compute_config_hash",
    "load_config",
    "resolve_config",
    "deep_merge",
]
