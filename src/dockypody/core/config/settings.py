# src/dockypody/core/config/settings.py
"""
Settings da ferramenta DockyPody.

A configuração efetiva é resolvida a partir de:
    - defaults embutidos (`DEFAULT_SETTINGS`)
    - `dockypody.yaml` na raiz do repositório (opcional)
    - `dockypody.local.yaml` na raiz do repositório (opcional, não versionado)

Política de resolução:
    - Cada camada presente é aplicada via `deep_merge`, nesta ordem
    - O arquivo local sempre tem prioridade sobre o arquivo versionado
    - Qualquer extensão de `MANIFEST_SUFFIXES` é aceita

Limites explícitos:
    - Não lê variáveis de ambiente (responsabilidade da CLI)
    - Não carrega manifests de serviço
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from .loader import find_manifest, load_manifest_file
from .merge import deep_merge


SETTINGS_STEM = "dockypody"
LOCAL_SETTINGS_STEM = "dockypody.local"

DEFAULT_SETTINGS: Dict[str, Any] = {
    "services_dir": "services",
    "git": {
        "executable": "git",
        "timeout": 30,
    },
}


@dataclass(frozen=True)
class Settings:
    """Settings efetivos de uma execução da ferramenta."""

    root: Path
    services_dir: str = "services"
    git_executable: str = "git"
    git_timeout: float = 30.0
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def services_path(self) -> Path:
        return self.root / self.services_dir


def load_settings(root: str | Path) -> Settings:
    """
    Carrega e resolve os settings da ferramenta para um repositório.

    Args:
        root: Raiz do repositório de serviços.

    Returns:
        Settings: Settings efetivos (defaults + arquivos opcionais).

    Raises:
        UnsupportedManifestFormatError: Se um arquivo tiver extensão inválida.
        InvalidManifestRootTypeError: Se um arquivo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito de tipo durante o merge.
    """
    root_path = Path(root)
    effective = deepcopy(DEFAULT_SETTINGS)

    for stem in (SETTINGS_STEM, LOCAL_SETTINGS_STEM):
        path = find_manifest(root_path, stem)
        if path is not None:
            effective = deep_merge(effective, load_manifest_file(path))

    git_cfg = effective.get("git") or {}
    return Settings(
        root=root_path,
        services_dir=str(effective.get("services_dir") or "services"),
        git_executable=str(git_cfg.get("executable") or "git"),
        git_timeout=float(git_cfg.get("timeout") or 30),
        raw=effective,
    )
