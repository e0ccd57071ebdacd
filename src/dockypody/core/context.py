# src/dockypody/core/context.py
"""
BuildContext — contexto canônico de uma execução de cálculo de hashes.

Este módulo define o **BuildContext**, a estrutura compartilhada passada ao
resolvedor de fontes e à engine de hash durante uma passada sobre o grafo.

O BuildContext é o meio explícito de:
- carregar overrides de operador (ex.: `REVAD_PATH`) já lidos na borda do processo
- compartilhar o cache de SHAs (`"url:ref" -> sha curto`) entre nós
- registrar logs estruturados de execução
- coletar warnings não fatais agrupados por nó

Princípios fundamentais:
- Isolamento por execução (cada passada possui seu próprio contexto)
- Nenhum módulo do core lê `os.environ` ou mantém estado global
- Todo warning também é emitido via `logging`
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional


logger = logging.getLogger(__name__)

# Chave usada para sinais que não pertencem a nenhum nó específico.
GLOBAL_SCOPE = "*"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def overrides_from_environ(environ: Mapping[str, str]) -> Dict[str, str]:
    """
    Extrai os overrides de fonte (`*_PATH`) de um mapeamento de ambiente.

    Deve ser chamado uma única vez, na borda do processo (CLI); o resultado
    é passado adiante como dado puro.
    """
    return {
        key: value
        for key, value in environ.items()
        if key.endswith("_PATH") and value
    }


@dataclass
class BuildContext:
    """
    Contexto de execução de uma passada de hash.

    Campos canônicos:
    - run_id: identificador único da execução
    - created_at: timestamp UTC de criação do contexto
    - overrides: overrides de operador (`{KEY}_PATH` -> caminho)
    - sha_cache: cache `"url:ref"` -> sha curto ("" indica falha de resolução)
    - warnings: warnings por chave de nó
    - events: log estruturado de eventos
    """

    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    overrides: Dict[str, str] = field(default_factory=dict)
    sha_cache: Dict[str, str] = field(default_factory=dict)

    warnings: Dict[str, List[str]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, node: Optional[str], level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "node": node or GLOBAL_SCOPE,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)
        logger.log(_LEVELS.get(level.upper(), logging.INFO), "[%s] %s", event["node"], message)

    def add_warning(self, *, node: Optional[str], message: str, **extra: Any) -> None:
        scope = node or GLOBAL_SCOPE
        self.warnings.setdefault(scope, []).append(message)
        self.log(node=scope, level="WARNING", message=message, **extra)

    def warnings_for(self, node: str) -> List[str]:
        return list(self.warnings.get(node, []))
