# src/dockypody/core/config/merge.py
"""
Utilitário canônico de deep-merge de manifests.

Este módulo implementa a política de deep-merge utilizada pelo DockyPody
para resolver a configuração concreta de um serviço a partir das camadas
declaradas nos manifests:

    base → plataforma → overrides da versão → overrides da versão por plataforma

Política de merge:
    - dict → merge recursivo por chave
    - list → sobrescrita total (sem merge elemento a elemento)
    - escalar → sobrescrita direta
    - null no override → a chave passa a valer None (desliga o valor da base)
    - null na base → qualquer override é aceito
    - conflito de tipos → erro estrutural explícito

Princípios fundamentais:
    - O merge é determinístico e puramente funcional
    - Nenhum input é mutado durante o processo
    - A ordem de inserção das chaves da base é preservada; chaves novas
      entram ao final, na ordem do override

Limites explícitos:
    - Não carrega arquivos
    - Não valida o schema do serviço
    - Não realiza coerção de tipos
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _same_kind(base_value: Any, override_value: Any) -> bool:
    # bool é subclasse de int; nenhum dos dois aceita o outro
    if isinstance(base_value, bool) or isinstance(override_value, bool):
        return type(base_value) is type(override_value)
    numbers = (int, float)
    if isinstance(base_value, numbers) and isinstance(override_value, numbers):
        return True
    return type(base_value) is type(override_value)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any], *, _path: str = "") -> Dict[str, Any]:
    """
    Realiza um deep-merge determinístico entre duas camadas de manifest.

    Args:
        base (Dict[str, Any]): Camada de menor precedência.
        override (Dict[str, Any]): Camada de maior precedência.

    Returns:
        Dict[str, Any]: Novo dicionário resultante do merge.

    Raises:
        ConfigTypeConflictError: Se uma mesma chave possuir tipos
            incompatíveis nas duas camadas.
    """

    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)

    for key, override_value in override.items():
        where = f"{_path}.{key}" if _path else str(key)

        if key not in result or result[key] is None or override_value is None:
            result[key] = deepcopy(override_value)
            continue

        base_value = result[key]

        # dict -> merge recursivo
        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = deep_merge(base_value, override_value, _path=where)
            continue

        # list -> sobrescrita total
        if isinstance(base_value, list) and isinstance(override_value, list):
            result[key] = deepcopy(override_value)
            continue

        if not _same_kind(base_value, override_value):
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{where}': "
                f"{type(base_value).__name__} vs {type(override_value).__name__}"
            )

        # escalar -> sobrescrita
        result[key] = deepcopy(override_value)

    return result
