"""
Exceções de formato de plano.

Estas exceções são levantadas exclusivamente pelo loader de planos,
seguindo o mesmo estilo das exceções de configuração. A normalização
e a execução nunca as levantam.
"""


class PlanFormatError(Exception):
    """Classe base para erros estruturais de plano."""


class PlanNotFoundError(PlanFormatError):
    """Arquivo de plano não encontrado no caminho informado."""


class UnsupportedPlanFormatError(PlanFormatError):
    """Extensão de arquivo de plano não suportada (aceitos: .json, .yaml, .yml)."""


class InvalidPlanShapeError(PlanFormatError):
    """
    Conteúdo do plano com forma inválida.

    Exemplos:
        - raiz que não é dict (ou lista de comandos)
        - `args` que não é lista de strings
        - `produces` que não é mapeamento string → string
        - `wait_for` sem `resource`/`condition` ou com timeout ilegível
    """
