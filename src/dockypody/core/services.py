# src/dockypody/core/services.py
"""Descoberta de serviços declarados em `services/`."""

from __future__ import annotations

from pathlib import Path
from typing import List

from .config.loader import MANIFEST_SUFFIXES


def list_service_names(services_path: Path) -> List[str]:
    """
    Lista os serviços declarados, em ordem lexicográfica.

    Um serviço é qualquer arquivo `services/<name>.<ext>` com extensão
    suportada; diretórios auxiliares (`services/<name>/`) não contam.
    """
    if not services_path.is_dir():
        return []
    names = {
        entry.stem
        for entry in services_path.iterdir()
        if entry.is_file() and entry.suffix.lower() in MANIFEST_SUFFIXES
    }
    return sorted(names)


def service_exists(services_path: Path, name: str) -> bool:
    return name in list_service_names(services_path)
