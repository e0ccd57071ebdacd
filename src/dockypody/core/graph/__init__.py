# src/dockypody/core/graph/__init__.py
"""
Grafo de build do DockyPody.

Componentes:
    - node    → `BuildNode` e o formato de chave `service:version[:platform]`
    - planner → resolução de dependências e ordem topológica determinística
"""

from .node import BuildNode, InvalidNodeKeyError
from .planner import (
    CycleDetectedError,
    UnknownDependencyError,
    expand_roots,
    plan_build_order,
    resolve_dependency_node,
)

__all__ = [
    "BuildNode",
    "CycleDetectedError",
    "InvalidNodeKeyError",
    "UnknownDependencyError",
    "expand_roots",
    "plan_build_order",
    "resolve_dependency_node",
]
