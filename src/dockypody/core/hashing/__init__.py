# src/dockypody/core/hashing/__init__.py
"""
Hash de definição de serviços do DockyPody.

Componentes:
    - normalize  → texto canônico e estável para qualquer valor aninhado
    - definition → projeção da configuração na Definition Input
    - engine     → SHA-256 por nó e propagação pelo grafo (cadeia de Merkle)
"""

from .definition import DefinitionInput, extract_definition
from .engine import (
    GraphHashResult,
    TopologicalOrderError,
    compute_build_hashes,
    compute_service_def_hash,
    compute_service_def_hash_graph,
    hash_definition,
)
from .normalize import normalize

__all__ = [
    "DefinitionInput",
    "GraphHashResult",
    "TopologicalOrderError",
    "compute_build_hashes",
    "compute_service_def_hash",
    "compute_service_def_hash_graph",
    "extract_definition",
    "hash_definition",
    "normalize",
]
