# src/dockypody/core/sources/build_args.py
"""
Geração de build args de fontes para Dockerfiles.

Convenção consumida pelos Dockerfiles:
    - fonte git:   `{KEY}_REF`, `{KEY}_URL`, `{KEY}_SHA`
    - fonte local: `{KEY}_PATH`, `{KEY}_MODE=local`

Build args estáticos declarados no manifest (`build_args`) são incluídos
antes dos args de fonte; em caso de colisão, o arg de fonte prevalece.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from dockypody.core.config.schema import ServiceConfig

from .resolver import SOURCE_LOCAL


def _as_arg(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def generate_build_args(
    config: ServiceConfig,
    source_types: Mapping[str, str],
    shas: Mapping[str, str],
    overrides: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Gera o mapa completo de build args de um nó de build.

    Args:
        config: Configuração concreta do nó.
        source_types: Tipo efetivo de cada fonte (`git`/`local`).
        shas: SHAs resolvidos (`{KEY}_SHA`).
        overrides: Overrides de operador; `{KEY}_PATH` substitui o `path`
            declarado no manifest.

    Returns:
        Dict[str, str]: Build args em ordem estável (estáticos, depois fontes).
    """
    overrides = overrides or {}
    args: Dict[str, str] = {str(k): _as_arg(v) for k, v in config.build_args.items()}

    for key, source in config.sources.items():
        prefix = source.env_key
        if source_types.get(key) == SOURCE_LOCAL:
            args[f"{prefix}_PATH"] = overrides.get(f"{prefix}_PATH") or source.path or ""
            args[f"{prefix}_MODE"] = SOURCE_LOCAL
        else:
            args[f"{prefix}_REF"] = source.ref or ""
            args[f"{prefix}_URL"] = source.url or ""
            args[f"{prefix}_SHA"] = shas.get(f"{prefix}_SHA", "")

    return args
