# src/dockypody/core/hashing/normalize.py
"""
Normalização canônica de valores de configuração.

Este módulo converte qualquer valor aninhado de configuração em um texto
determinístico, adequado para hashing por conteúdo.

Política de normalização:
    - mapas → chaves ordenadas lexicograficamente, valores normalizados
      recursivamente
    - sequências (list/tuple) → a ordem é semanticamente significativa e
      preservada
    - None → literal `null` (nunca string vazia)
    - escalares → literais JSON (`true`/`false`, inteiros, floats, strings)
    - Enum → seu valor; PurePath → caminho POSIX
    - date/datetime/time → ISO 8601 (`isoformat()`)
    - serialização JSON compacta (`separators=(",", ":")`, UTF-8)

Invariantes:
    - `normalize(a) == normalize(b)` se e somente se `a` e `b` são iguais
      sob igualdade insensível à ordem de chaves e sensível à ordem de
      sequências
    - O mesmo valor produz sempre o mesmo texto
    - Nenhuma mutação ocorre sobre o input

Limites explícitos:
    - Chaves de mapa devem ser strings
    - NaN e infinitos não são aceitos
    - Conjuntos e objetos arbitrários não são aceitos
"""

from __future__ import annotations

import json
from datetime import date, time
from enum import Enum
from pathlib import PurePath
from typing import Any, Mapping


def canonicalize(value: Any) -> Any:
    """
    Converte `value` em uma estrutura composta apenas de tipos JSON.

    Raises:
        TypeError: Se houver chave de mapa não-string ou tipo não suportado.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return canonicalize(value.value)
    if isinstance(value, PurePath):
        return value.as_posix()
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(
                    f"Chaves de mapa devem ser strings para normalização, recebido: {type(key).__name__}"
                )
            result[key] = canonicalize(item)
        return result
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]
    raise TypeError(f"Tipo não suportado para normalização: {type(value).__name__}")


def normalize(value: Any) -> str:
    """
    Gera o texto canônico de um valor de configuração.

    Raises:
        TypeError: Se o valor contiver tipos não suportados.
        ValueError: Se o valor contiver NaN ou infinito.
    """
    return json.dumps(
        canonicalize(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
