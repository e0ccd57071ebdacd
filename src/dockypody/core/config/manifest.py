# src/dockypody/core/config/manifest.py
"""
Config Loader de serviços do DockyPody.

Este módulo resolve a configuração concreta de um nó de build
`(service, version, platform)` a partir dos manifests declarativos do
repositório:

    services/<service>.yaml                manifest base (obrigatório)
    services/<service>/versions.yaml       manifest de versões (obrigatório)
    services/<service>/platforms.yaml      manifest de plataformas (opcional)

Política de resolução (ordem de precedência crescente):
    1. manifest base
    2. entrada da plataforma no manifest de plataformas (sem `name`)
    3. `overrides` da versão
    4. `platforms[<platform>]` da versão

Cada camada pode declarar `dependencies`; todas passam por `deep_merge`.

Defaults:
    - versão: `default` do manifest de versões, senão a marcada
      `latest: true`, senão a primeira listada
    - plataforma: `default` do manifest de plataformas, senão a primeira

Decisões arquiteturais:
    - A presença do manifest de plataformas torna o serviço multi-plataforma
    - Manifests são lidos uma única vez por instância do loader
    - Nenhum estado global é mantido

Limites explícitos:
    - Não resolve SHAs nem tipos efetivos de fonte
    - Não resolve dependências para nós concretos (ver `graph.planner`)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import (
    InvalidManifestRootTypeError,
    InvalidServiceConfigError,
    PlatformNotFoundError,
    PlatformsManifestError,
    ServiceManifestNotFoundError,
    UnsupportedManifestFormatError,
    VersionNotFoundError,
    VersionsManifestNotFoundError,
)
from .loader import find_manifest, load_manifest_file
from .merge import deep_merge
from .schema import ServiceConfig
from .settings import Settings


VERSIONS_STEM = "versions"
PLATFORMS_STEM = "platforms"


@dataclass(frozen=True)
class VersionSpec:
    """Entrada do manifest de versões."""

    name: str
    latest: bool = False
    tags: List[str] = field(default_factory=list)
    overrides: Dict[str, Any] = field(default_factory=dict)
    platforms: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class VersionsManifest:
    service: str
    versions: Dict[str, VersionSpec]
    default: Optional[str] = None

    def default_version(self) -> str:
        if self.default:
            return self.default
        for spec in self.versions.values():
            if spec.latest:
                return spec.name
        return next(iter(self.versions))


@dataclass(frozen=True)
class PlatformsManifest:
    service: str
    platforms: Dict[str, Dict[str, Any]]
    default: Optional[str] = None

    @property
    def names(self) -> List[str]:
        return list(self.platforms)

    def default_platform(self) -> str:
        return self.default or self.names[0]


def _parse_versions(service: str, data: Mapping[str, Any], path: Path) -> VersionsManifest:
    entries = data.get("versions")
    if not isinstance(entries, list) or not entries:
        raise InvalidServiceConfigError(f"'versions' deve ser uma lista não vazia: {path}")

    versions: Dict[str, VersionSpec] = {}
    for entry in entries:
        if not isinstance(entry, Mapping) or not entry.get("name"):
            raise InvalidServiceConfigError(f"Entrada de versão sem 'name' em {path}")
        name = str(entry["name"])
        if name in versions:
            raise InvalidServiceConfigError(f"Versão duplicada '{name}' em {path}")

        overrides = entry.get("overrides") or {}
        per_platform = entry.get("platforms") or {}
        if not isinstance(overrides, Mapping) or not isinstance(per_platform, Mapping):
            raise InvalidServiceConfigError(
                f"'overrides'/'platforms' da versão '{name}' devem ser mapas: {path}"
            )

        versions[name] = VersionSpec(
            name=name,
            latest=bool(entry.get("latest", False)),
            tags=[str(t) for t in (entry.get("tags") or [])],
            overrides=dict(overrides),
            platforms={str(k): dict(v or {}) for k, v in per_platform.items()},
        )

    default = data.get("default")
    if default is not None and str(default) not in versions:
        raise InvalidServiceConfigError(
            f"Versão default '{default}' não declarada em {path}"
        )
    return VersionsManifest(
        service=service,
        versions=versions,
        default=str(default) if default is not None else None,
    )


def _parse_platforms(service: str, data: Mapping[str, Any], path: Path) -> PlatformsManifest:
    entries = data.get("platforms")
    if not isinstance(entries, list) or not entries:
        raise PlatformsManifestError(f"'platforms' deve ser uma lista não vazia: {path}")

    platforms: Dict[str, Dict[str, Any]] = {}
    for entry in entries:
        if not isinstance(entry, Mapping) or not entry.get("name"):
            raise PlatformsManifestError(f"Entrada de plataforma sem 'name' em {path}")
        name = str(entry["name"])
        if name in platforms:
            raise PlatformsManifestError(f"Plataforma duplicada '{name}' em {path}")
        platforms[name] = {k: v for k, v in entry.items() if k != "name"}

    default = data.get("default")
    if default is not None and str(default) not in platforms:
        raise PlatformsManifestError(f"Plataforma default '{default}' não declarada em {path}")
    return PlatformsManifest(
        service=service,
        platforms=platforms,
        default=str(default) if default is not None else None,
    )


class ManifestLoader:
    """
    Carrega e mescla manifests de serviço em configurações concretas.

    Interface consumida pelo core de hashing e pelo planner:
        load(service, version, platform) -> (config, version_spec, platforms_manifest)
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._base: Dict[str, Dict[str, Any]] = {}
        self._versions: Dict[str, VersionsManifest] = {}
        self._platforms: Dict[str, Optional[PlatformsManifest]] = {}

    @property
    def root(self) -> Path:
        return self.settings.root

    @property
    def services_path(self) -> Path:
        return self.settings.services_path

    # -----------------------------
    # Manifests individuais
    # -----------------------------
    def has_service(self, service: str) -> bool:
        return find_manifest(self.services_path, service) is not None

    def load_base(self, service: str) -> Dict[str, Any]:
        if service not in self._base:
            path = find_manifest(self.services_path, service)
            if path is None:
                raise ServiceManifestNotFoundError(
                    f"Manifest do serviço '{service}' não encontrado em {self.services_path}"
                )
            data = load_manifest_file(path, not_found=ServiceManifestNotFoundError)
            declared = data.get("name")
            if declared is not None and str(declared) != service:
                raise InvalidServiceConfigError(
                    f"Manifest {path} declara name '{declared}', esperado '{service}'"
                )
            self._base[service] = data
        return self._base[service]

    def load_versions(self, service: str) -> VersionsManifest:
        if service not in self._versions:
            path = find_manifest(self.services_path / service, VERSIONS_STEM)
            if path is None:
                raise VersionsManifestNotFoundError(
                    f"Manifest de versões do serviço '{service}' não encontrado"
                )
            data = load_manifest_file(path, not_found=VersionsManifestNotFoundError)
            self._versions[service] = _parse_versions(service, data, path)
        return self._versions[service]

    def load_platforms(self, service: str) -> Optional[PlatformsManifest]:
        if service not in self._platforms:
            path = find_manifest(self.services_path / service, PLATFORMS_STEM)
            if path is None:
                self._platforms[service] = None
            else:
                try:
                    data = load_manifest_file(path)
                except (InvalidManifestRootTypeError, UnsupportedManifestFormatError) as e:
                    raise PlatformsManifestError(str(e)) from e
                self._platforms[service] = _parse_platforms(service, data, path)
        return self._platforms[service]

    def is_multi_platform(self, service: str) -> bool:
        return self.load_platforms(service) is not None

    def default_version(self, service: str) -> str:
        return self.load_versions(service).default_version()

    def default_platform(self, service: str) -> Optional[str]:
        platforms = self.load_platforms(service)
        return platforms.default_platform() if platforms is not None else None

    # -----------------------------
    # Resolução concreta
    # -----------------------------
    def resolve_version(self, service: str, version: Optional[str]) -> VersionSpec:
        versions = self.load_versions(service)
        name = version or versions.default_version()
        if name not in versions.versions:
            raise VersionNotFoundError(
                f"Versão '{name}' não encontrada para o serviço '{service}'"
            )
        return versions.versions[name]

    def resolve_platform(self, service: str, platform: Optional[str]) -> Optional[str]:
        platforms = self.load_platforms(service)
        if platforms is None:
            if platform:
                raise PlatformNotFoundError(
                    f"Serviço '{service}' é de plataforma única; plataforma '{platform}' inválida"
                )
            return None
        name = platform or platforms.default_platform()
        if name not in platforms.platforms:
            raise PlatformNotFoundError(
                f"Plataforma '{name}' não encontrada para o serviço '{service}' "
                f"(disponíveis: {', '.join(platforms.names)})"
            )
        return name

    def load(
        self,
        service: str,
        version: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> Tuple[ServiceConfig, VersionSpec, Optional[PlatformsManifest]]:
        """
        Resolve a configuração concreta de um nó de build.

        Args:
            service: Nome do serviço.
            version: Versão pedida (None usa a versão default).
            platform: Plataforma pedida (None usa a default em serviços
                multi-plataforma).

        Returns:
            Tupla `(config, version_spec, platforms_manifest)`; o último
            elemento é None para serviços de plataforma única.

        Raises:
            ServiceManifestNotFoundError: Manifest base ausente.
            VersionsManifestNotFoundError: Manifest de versões ausente.
            VersionNotFoundError: Versão não declarada.
            PlatformNotFoundError: Plataforma não declarada.
            PlatformsManifestError: Manifest de plataformas malformado.
            ConfigTypeConflictError: Conflito de tipos entre camadas.
            InvalidServiceConfigError: Configuração fora do schema.
        """
        base = self.load_base(service)
        version_spec = self.resolve_version(service, version)
        platforms = self.load_platforms(service)
        platform_name = self.resolve_platform(service, platform)

        merged = dict(base)
        if platforms is not None and platform_name is not None:
            merged = deep_merge(merged, platforms.platforms[platform_name])
        merged = deep_merge(merged, version_spec.overrides)
        if platform_name is not None and platform_name in version_spec.platforms:
            merged = deep_merge(merged, version_spec.platforms[platform_name])

        return ServiceConfig.from_dict(service, merged), version_spec, platforms
