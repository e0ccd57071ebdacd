# src/dockypody/core/hashing/definition.py
"""
Extração da Definition Input de um nó de build.

A Definition Input é a projeção mínima da configuração de um nó que afeta
a imagem produzida. Tudo o que não altera a imagem (caminho local das
fontes, tags, flags de `latest`, seções não relacionadas) fica de fora,
para que o hash permaneça estável diante de mudanças irrelevantes.

Campos projetados:
    - identidade: service, version, platform
    - dockerfile: caminho declarado e conteúdo lido do disco
    - sources: `{type: local, sentinel: local}` ou `{type: git, sha, ref, url}`
    - external_images, build_args (estáticos)
    - tls: enabled + mode
    - dependencies: chave do nó de dependência -> hash, ordenado por chave

Decisões arquiteturais:
    - O conteúdo do Dockerfile entra no hash; editar o Dockerfile invalida
      o cache mesmo sem mudança de manifest
    - Dockerfiles que não são UTF-8 válido entram pelo hex dos bytes
      (`contents_hex`), sem perda
    - Fontes locais contribuem apenas com o sentinela, nunca com o caminho
    - Apenas dependências já presentes no mapa de hashes são incluídas
    - A extração é total: campos ausentes viram valores vazios
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dockypody.core.config.errors import DockerfileReadError
from dockypody.core.config.schema import ServiceConfig
from dockypody.core.graph.node import BuildNode
from dockypody.core.sources.resolver import SOURCE_GIT, SOURCE_LOCAL


LOCAL_SENTINEL = "local"


@dataclass(frozen=True)
class DefinitionInput:
    """Projeção canônica e relevante para hash de um nó de build."""

    service: str
    version: str
    platform: Optional[str]
    dockerfile: Dict[str, str] = field(default_factory=dict)
    sources: Dict[str, Dict[str, str]] = field(default_factory=dict)
    external_images: Dict[str, Any] = field(default_factory=dict)
    build_args: Dict[str, Any] = field(default_factory=dict)
    tls: Dict[str, Any] = field(default_factory=dict)
    dependencies: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.service,
            "version": self.version,
            "platform": self.platform,
            "dockerfile": dict(self.dockerfile),
            "sources": {k: dict(v) for k, v in self.sources.items()},
            "external_images": dict(self.external_images),
            "build_args": dict(self.build_args),
            "tls": dict(self.tls),
            "dependencies": dict(self.dependencies),
        }


def read_dockerfile(root: Optional[Path], dockerfile: Optional[str]) -> bytes:
    """
    Bytes do Dockerfile, ou b"" se o caminho não estiver definido ou não existir.

    Raises:
        DockerfileReadError: Se o arquivo existir mas não puder ser lido.
    """
    if not dockerfile:
        return b""
    path = Path(dockerfile)
    if root is not None and not path.is_absolute():
        path = root / path
    if not path.is_file():
        return b""
    try:
        return path.read_bytes()
    except OSError as e:
        raise DockerfileReadError(f"Dockerfile ilegível {path}: {e}") from e


def dockerfile_contribution(dockerfile: Optional[str], data: bytes) -> Dict[str, str]:
    try:
        return {"path": dockerfile or "", "contents": data.decode("utf-8")}
    except UnicodeDecodeError:
        return {"path": dockerfile or "", "contents_hex": data.hex()}


def source_contributions(
    config: ServiceConfig,
    source_types: Mapping[str, str],
    shas: Mapping[str, str],
) -> Dict[str, Dict[str, str]]:
    contributions: Dict[str, Dict[str, str]] = {}
    for key, source in config.sources.items():
        if source_types.get(key) == SOURCE_LOCAL or source.declares_path:
            contributions[key] = {"type": SOURCE_LOCAL, "sentinel": LOCAL_SENTINEL}
        else:
            contributions[key] = {
                "type": SOURCE_GIT,
                "sha": shas.get(f"{source.env_key}_SHA", ""),
                "ref": source.ref or "",
                "url": source.url or "",
            }
    return contributions


def extract_definition(
    node: BuildNode,
    config: ServiceConfig,
    *,
    source_types: Mapping[str, str],
    shas: Mapping[str, str],
    dependency_hashes: Mapping[str, str],
    root: Optional[Path] = None,
) -> DefinitionInput:
    """
    Projeta a configuração concreta de um nó na sua Definition Input.

    Args:
        node: Nó de build (identidade).
        config: Configuração concreta do nó.
        source_types: Tipo efetivo de cada fonte.
        shas: SHAs resolvidos (`{KEY}_SHA`); ausentes viram "".
        dependency_hashes: Hashes já calculados das dependências diretas.
        root: Raiz do repositório, base de caminhos relativos de Dockerfile.
    """
    return DefinitionInput(
        service=node.service,
        version=node.version,
        platform=node.platform,
        dockerfile=dockerfile_contribution(
            config.dockerfile, read_dockerfile(root, config.dockerfile)
        ),
        sources=source_contributions(config, source_types, shas),
        external_images=dict(config.external_images),
        build_args=dict(config.build_args),
        tls={"enabled": config.tls.enabled, "mode": config.tls.mode},
        dependencies={key: dependency_hashes[key] for key in sorted(dependency_hashes)},
    )
