# src/dockypody/core/__init__.py
"""
Core do DockyPody.

Este pacote reúne a implementação independente de CLI do sistema de build
de imagens multi-serviço: resolução de configuração, grafo de dependências
e cálculo de hashes de definição para reuso de cache em CI.

Componentes principais:
    - config   → manifests, merge de camadas, schema tipado e settings
    - sources  → classificação de fontes, resolução de SHAs git e build args
    - graph    → nós de build, resolução de dependências e ordem topológica
    - hashing  → normalização canônica, extração de definição e engine de hash
    - context  → log estruturado, warnings e cache de SHAs de uma execução

Limites explícitos:
    - Não constrói imagens Docker/OCI
    - Não gera certificados TLS
    - Não lê variáveis de ambiente diretamente
"""
