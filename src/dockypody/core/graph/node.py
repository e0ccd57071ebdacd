# src/dockypody/core/graph/node.py
"""
Nó de build do DockyPody.

Um nó identifica uma unidade construível `(service, version, platform)` e
é serializado como `"service:version"` ou `"service:version:platform"`.
A chave é usada tanto como entrada de CLI/CI quanto como chave dos mapas
de hash.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


KEY_SEPARATOR = ":"


class InvalidNodeKeyError(ValueError):
    """Chave de nó malformada (menos de 2 ou mais de 3 componentes, ou componente vazio)."""


@dataclass(frozen=True)
class BuildNode:
    service: str
    version: str
    platform: Optional[str] = None

    @property
    def key(self) -> str:
        parts = [self.service, self.version]
        if self.platform:
            parts.append(self.platform)
        return KEY_SEPARATOR.join(parts)

    def __str__(self) -> str:
        return self.key

    @classmethod
    def parse(cls, key: str) -> "BuildNode":
        """
        Converte uma chave `service:version[:platform]` em `BuildNode`.

        Raises:
            InvalidNodeKeyError: Se a chave for malformada.
        """
        parts = str(key).strip().split(KEY_SEPARATOR)
        if len(parts) not in (2, 3) or not all(p.strip() for p in parts):
            raise InvalidNodeKeyError(
                f"Invalid node key '{key}': expected 'service:version' or 'service:version:platform'"
            )
        parts = [p.strip() for p in parts]
        return cls(service=parts[0], version=parts[1], platform=parts[2] if len(parts) == 3 else None)
