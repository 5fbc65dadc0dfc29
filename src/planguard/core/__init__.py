# src/planguard/core/__init__.py
"""
Core do planguard.

Reúne as responsabilidades independentes de domínio: configuração,
modelo de plano, protocolos de Step, engine de normalização,
catálogo de erros e rastreabilidade.

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo comportamento é explícito e testado
    - Estruturas imutáveis entre camadas
    - Estado e efeitos colaterais são sempre rastreáveis
"""
