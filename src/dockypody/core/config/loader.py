# src/dockypody/core/config/loader.py
"""
Loader canônico de arquivos de manifest do DockyPody.

Este módulo é responsável por localizar e ler, a partir do disco, os
arquivos declarativos do repositório (manifest base de serviço, manifest
de versões, manifest de plataformas e settings da ferramenta).

Responsabilidades do módulo:
    - Localizar um manifest pelo nome-base, independente da extensão
    - Carregar arquivos em YAML ou JSON
    - Validar requisitos estruturais mínimos (tipo raiz)

Princípios fundamentais:
    - O formato é inferido exclusivamente pela extensão
    - Arquivos vazios são interpretados como dicionários vazios
    - Erros estruturais são tratados como falhas explícitas

Invariantes:
    - O retorno de `load_manifest_file` é sempre um dicionário puro
    - A busca por extensão segue sempre a mesma ordem

Limites explícitos:
    - Não realiza merge de camadas
    - Não valida o schema de serviço
    - Não interpreta versões ou plataformas
"""

from pathlib import Path
from typing import Any, Dict, Optional, Type
import json

import yaml  # PyYAML

from .errors import (
    ConfigError,
    InvalidManifestRootTypeError,
    ManifestNotFoundError,
    UnsupportedManifestFormatError,
)


MANIFEST_SUFFIXES = (".yaml", ".yml", ".json")

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class ManifestYamlLoader(yaml.SafeLoader):
    """
    `SafeLoader` sem o resolver implícito de timestamps.

    Valores como `2024-01-01` permanecem strings, como os build args do
    Docker os recebem, em vez de virarem `datetime.date`.
    """


ManifestYamlLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def find_manifest(directory: Path, stem: str) -> Optional[Path]:
    """
    Localiza `<directory>/<stem>.<ext>` para as extensões suportadas.

    A ordem de busca é a de `MANIFEST_SUFFIXES`; o primeiro arquivo
    existente vence.

    Returns:
        Optional[Path]: Caminho encontrado, ou None se nenhum existir.
    """
    for suffix in MANIFEST_SUFFIXES:
        candidate = directory / f"{stem}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def load_manifest_file(
    path: Path,
    *,
    not_found: Type[ConfigError] = ManifestNotFoundError,
) -> Dict[str, Any]:
    """
    Carrega um manifest e valida sua estrutura básica.

    Formatos suportados:
        - YAML (.yaml, .yml)
        - JSON (.json)

    Decisões arquiteturais:
        - O arquivo deve existir no momento do carregamento
        - O conteúdo raiz deve ser um dicionário (`dict`)
        - O chamador escolhe a exceção de ausência, para que cada tipo
          de manifest falhe com um erro distinto

    Args:
        path (Path): Caminho do arquivo.
        not_found (Type[ConfigError]): Exceção levantada se o arquivo
            não existir.

    Returns:
        Dict[str, Any]: Conteúdo do arquivo.

    Raises:
        ConfigError: Subtipo indicado em `not_found` se o arquivo não existir.
        UnsupportedManifestFormatError: Se a extensão não for suportada.
        InvalidManifestRootTypeError: Se o conteúdo raiz não for um dicionário
            ou se o parsing falhar.
    """
    if not path.is_file():
        raise not_found(f"Manifest não encontrado: {path}")

    suffix = path.suffix.lower()

    try:
        if suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.load(f, Loader=ManifestYamlLoader)

        elif suffix == ".json":
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)

        else:
            raise UnsupportedManifestFormatError(f"Formato não suportado: {path.suffix}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise InvalidManifestRootTypeError(f"Falha ao parsear {path}: {e}") from e

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidManifestRootTypeError(
            f"Manifest root deve ser dict, recebido: {type(data).__name__} ({path})"
        )

    return data
