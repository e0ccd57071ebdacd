# src/dockypody/core/config/schema.py
"""
Schema tipado da configuração concreta de um serviço.

A configuração mesclada de um nó de build é um dicionário livre vindo dos
manifests. Este módulo projeta esse dicionário em estruturas tipadas com
defaults explícitos, de modo que a ausência de um campo seja um caso
modelado (valor vazio) e não uma exceção capturada.

Componentes principais:
    - SourceSpec      → fonte declarada (git ou local)
    - DependencySpec  → dependência declarada para outro serviço
    - TlsSpec         → flags de TLS relevantes para a imagem
    - ServiceConfig   → visão tipada completa do serviço

Invariantes:
    - Chaves de fonte seguem `^[a-z0-9_]+$`
    - Uma fonte nunca possui `path` e `url`/`ref` ao mesmo tempo
    - Uma fonte git possui `url` e `ref`
    - Campos opcionais ausentes assumem valores vazios

Limites explícitos:
    - Não carrega arquivos
    - Não resolve SHAs nem tipos efetivos de fonte
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidServiceConfigError, SourceValidationError


SOURCE_KEY_PATTERN = re.compile(r"^[a-z0-9_]+$")


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _mapping(value: Any, *, where: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidServiceConfigError(
            f"'{where}' deve ser um mapa, recebido: {type(value).__name__}"
        )
    return dict(value)


@dataclass(frozen=True)
class SourceSpec:
    """Fonte declarada por um serviço (git `{url, ref}` ou local `{path}`)."""

    key: str
    url: Optional[str] = None
    ref: Optional[str] = None
    path: Optional[str] = None

    @property
    def env_key(self) -> str:
        """Prefixo dos build args e overrides (`REVAD` para `revad`)."""
        return self.key.upper()

    @property
    def declares_path(self) -> bool:
        return self.path is not None

    @classmethod
    def from_dict(cls, key: str, data: Any) -> "SourceSpec":
        if not isinstance(data, Mapping):
            raise SourceValidationError(
                f"Fonte '{key}' deve ser um mapa, recebido: {type(data).__name__}"
            )
        source = cls(
            key=key,
            url=_optional_str(data.get("url")),
            ref=_optional_str(data.get("ref")),
            path=_optional_str(data.get("path")),
        )
        validate_source(source)
        return source


def validate_source(source: SourceSpec) -> None:
    """
    Valida uma fonte declarada.

    Raises:
        SourceValidationError: Se a chave for inválida, se a fonte
            misturar `path` com `url`/`ref`, ou se uma fonte git estiver
            incompleta.
    """
    if not SOURCE_KEY_PATTERN.match(source.key or ""):
        raise SourceValidationError(
            f"Chave de fonte inválida '{source.key}': deve seguir {SOURCE_KEY_PATTERN.pattern}"
        )
    if source.path is not None and (source.url is not None or source.ref is not None):
        raise SourceValidationError(
            f"Fonte '{source.key}' declara 'path' junto com 'url'/'ref'; escolha apenas um modo"
        )
    if source.path is None and (source.url is None or source.ref is None):
        raise SourceValidationError(
            f"Fonte git '{source.key}' requer 'url' e 'ref'"
        )


@dataclass(frozen=True)
class DependencySpec:
    """
    Dependência de build declarada por um serviço.

    Campos:
        - key: chave da dependência no manifest
        - service: serviço alvo (default: a própria chave)
        - version: versão fixada (None herda a versão do dependente)
        - single_platform: força a dependência a não usar sufixo de plataforma
    """

    key: str
    service: str
    version: Optional[str] = None
    single_platform: bool = False

    @classmethod
    def from_dict(cls, key: str, data: Any) -> "DependencySpec":
        if data is None:
            data = {}
        if isinstance(data, str):
            # forma curta: `common-tools: v1.0.0`
            data = {"version": data}
        if not isinstance(data, Mapping):
            raise InvalidServiceConfigError(
                f"Dependência '{key}' deve ser um mapa, recebido: {type(data).__name__}"
            )
        return cls(
            key=key,
            service=_optional_str(data.get("service")) or key,
            version=_optional_str(data.get("version")),
            single_platform=bool(data.get("single_platform", False)),
        )


@dataclass(frozen=True)
class TlsSpec:
    enabled: bool = False
    mode: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "TlsSpec":
        if isinstance(data, bool):
            return cls(enabled=data)
        tls = _mapping(data, where="tls")
        return cls(
            enabled=bool(tls.get("enabled", False)),
            mode=str(tls.get("mode") or ""),
        )


@dataclass(frozen=True)
class ServiceConfig:
    """
    Visão tipada da configuração concreta de um nó de build.

    `raw` mantém o dicionário mesclado original; todos os demais campos
    são projeções com defaults explícitos.
    """

    name: str
    dockerfile: Optional[str] = None
    sources: Dict[str, SourceSpec] = field(default_factory=dict)
    external_images: Dict[str, Any] = field(default_factory=dict)
    build_args: Dict[str, Any] = field(default_factory=dict)
    tls: TlsSpec = field(default_factory=TlsSpec)
    dependencies: Dict[str, DependencySpec] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "ServiceConfig":
        """
        Projeta um dicionário mesclado em `ServiceConfig`, validando fontes.

        Raises:
            InvalidServiceConfigError: Se uma seção tiver tipo inválido.
            SourceValidationError: Se alguma fonte for inválida.
        """
        sources = {
            str(key): SourceSpec.from_dict(str(key), value)
            for key, value in _mapping(data.get("sources"), where="sources").items()
        }
        dependencies = {
            str(key): DependencySpec.from_dict(str(key), value)
            for key, value in _mapping(data.get("dependencies"), where="dependencies").items()
        }
        return cls(
            name=name,
            dockerfile=_optional_str(data.get("dockerfile")),
            sources=sources,
            external_images=_mapping(data.get("external_images"), where="external_images"),
            build_args=_mapping(data.get("build_args"), where="build_args"),
            tls=TlsSpec.from_dict(data.get("tls")),
            dependencies=dependencies,
            raw=dict(data),
        )
