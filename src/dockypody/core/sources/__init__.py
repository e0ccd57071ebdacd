# src/dockypody/core/sources/__init__.py
"""
Fontes de build do DockyPody.

Componentes:
    - resolver   → classificação git/local e resolução de SHAs curtos
    - build_args → convenção de build args consumida pelos Dockerfiles
"""

from .build_args import generate_build_args
from .resolver import (
    SOURCE_GIT,
    SOURCE_LOCAL,
    GitLsRemote,
    SourceResolutionError,
    detect_source_type,
    detect_source_types,
    extract_source_sha,
    resolve_source_shas,
)

__all__ = [
    "SOURCE_GIT",
    "SOURCE_LOCAL",
    "GitLsRemote",
    "SourceResolutionError",
    "detect_source_type",
    "detect_source_types",
    "extract_source_sha",
    "generate_build_args",
    "resolve_source_shas",
]
