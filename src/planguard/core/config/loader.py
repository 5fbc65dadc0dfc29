"""
Loader canônico de configuração do planguard.

Este módulo é responsável por carregar, validar estruturalmente e resolver
a configuração efetiva utilizada pela normalização e pelo Executor.

A configuração é resolvida a partir de:
    - `DEFAULT_CONFIG` (sempre presente, embutido no pacote)
    - um arquivo de defaults do projeto (opcional)
    - um arquivo local de overrides (opcional)
    - overrides em memória (opcional, via `resolve_config`)

Princípios fundamentais:
    - Configuração é declarativa e explícita
    - Erros estruturais são tratados como falhas fatais
    - A mesma entrada sempre produz a mesma configuração final

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults

Limites explícitos:
    - Não valida semântica de provedores de nuvem
    - Não persiste configuração ou hash
"""

from pathlib import Path
from typing import Any, Dict, Optional
import json

import yaml  # PyYAML

from .defaults import DEFAULT_CONFIG
from .merge import deep_merge
from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo de configuração e valida sua estrutura básica.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)

    Decisões arquiteturais:
        - O arquivo deve existir no momento do carregamento
        - O conteúdo raiz deve ser um dicionário (`dict`)
        - Arquivos vazios são interpretados como dicionários vazios

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def resolve_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Resolve a configuração efetiva a partir de `DEFAULT_CONFIG` e overrides em memória.

    Args:
        overrides (Optional[Dict[str, Any]]): Overrides explícitos (ex.: vindos de testes).

    Returns:
        Dict[str, Any]: Nova configuração resolvida (cópia independente dos defaults).

    Raises:
        InvalidConfigRootTypeError: Se `overrides` não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """
    if overrides is None:
        return deep_merge(DEFAULT_CONFIG, {})
    if not isinstance(overrides, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(overrides).__name__}"
        )
    return deep_merge(DEFAULT_CONFIG, overrides)


def load_config(
    *,
    defaults_path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva do planguard.

    Política de resolução:
        - `DEFAULT_CONFIG` é sempre a base
        - `defaults_path`, quando informado, é obrigatório e aplicado sobre a base
        - `local_path` é opcional; se o arquivo não existir, é ignorado
        - A resolução utiliza `deep_merge` com política determinística

    Args:
        defaults_path (Optional[str]): Caminho para o arquivo de defaults do projeto.
        local_path (Optional[str]): Caminho opcional para overrides locais.

    Returns:
        Dict[str, Any]: Configuração final resolvida.

    Raises:
        DefaultsNotFoundError: Se `defaults_path` for informado e não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """

    effective = resolve_config()

    if defaults_path is not None:
        effective = deep_merge(effective, _load_file(Path(defaults_path)))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _load_file(local_file))

    return effective
