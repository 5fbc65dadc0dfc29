"""
Exceções canônicas da camada de configuração do planguard.

Este módulo define a hierarquia oficial de exceções utilizadas durante
o carregamento, validação estrutural e resolução de configuração da
normalização e do Executor.

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Erros estruturais são tratados como falhas fatais
    - Mensagens de erro são claras e direcionadas ao operador

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa falha de comando ou de espera

Limites explícitos:
    - Não executa planos
    - Não realiza fallback ou recovery
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do planguard.

    Permite captura genérica de erros de configuração e distinção clara
    entre falhas estruturais e falhas de execução de plano.
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando um arquivo de configuração explicitamente
    indicado não é encontrado no caminho especificado.

    Limites explícitos:
        - Não tenta inferir ou criar o arquivo automaticamente
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo de configuração
    não é suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Exceção levantada quando o conteúdo raiz da configuração
    não é um dicionário (`dict`).
    """


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"executor": {"poll_interval_seconds": 5}}
        - override: {"executor": "fast"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """
