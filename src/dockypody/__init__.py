# src/dockypody/__init__.py
"""
DockyPody — scripts de build para imagens de container multi-serviço.

Este pacote raiz define o namespace público do DockyPody (sistema de build
de containers da Open Cloud Mesh).

Arquitetura em alto nível:
    - core.config  → manifests de serviço, versões e plataformas
    - core.sources → fontes git/local, SHAs curtos e build args
    - core.graph   → grafo de dependências e ordem de build
    - core.hashing → hash de definição com propagação entre dependências
    - cli          → camada fina de linha de comando
"""

__version__ = "0.1.0"
