# tests/core/graph/test_graph_invalid.py
"""
Testes de validação estrutural do grafo de build.

Os testes asseguram que:
- ciclos são detectados e nomeados
- dependências para serviços sem manifest são rejeitadas
- nenhuma ordem parcial é produzida em grafos inválidos

Invariantes:
    - Qualquer ciclo invalida o planejamento inteiro
    - As exceções são específicas e subclasses de `ValueError`
"""

import pytest

from dockypody.core.graph.node import BuildNode
from dockypody.core.graph.planner import (
    CycleDetectedError,
    UnknownDependencyError,
    plan_build_order,
)


def test_cycle_detected_and_named(write_service, make_loader):
    """
    Verifica que o ciclo a → b → a é detectado e nomeado na exceção.

    O atributo `cycle` repete o nó inicial ao final, e a mensagem mostra
    o caminho completo para facilitar a correção do manifest.
    """
    write_service("a", base={"name": "a", "dependencies": {"b": None}})
    write_service("b", base={"name": "b", "dependencies": {"a": None}})
    with pytest.raises(CycleDetectedError) as exc:
        plan_build_order(make_loader(), [BuildNode("a", "v1")])
    assert exc.value.cycle == ["a:v1", "b:v1", "a:v1"]
    assert "a:v1 -> b:v1 -> a:v1" in str(exc.value)


def test_self_dependency_is_cycle(write_service, make_loader):
    write_service("a", base={"name": "a", "dependencies": {"a": None}})
    with pytest.raises(CycleDetectedError):
        plan_build_order(make_loader(), [BuildNode("a", "v1")])


def test_long_cycle_from_inner_node(write_service, make_loader):
    write_service("root", base={"name": "root", "dependencies": {"a": None}})
    write_service("a", base={"name": "a", "dependencies": {"b": None}})
    write_service("b", base={"name": "b", "dependencies": {"c": None}})
    write_service("c", base={"name": "c", "dependencies": {"a": None}})
    with pytest.raises(CycleDetectedError) as exc:
        plan_build_order(make_loader(), [BuildNode("root", "v1")])
    assert exc.value.cycle == ["a:v1", "b:v1", "c:v1", "a:v1"]


def test_unknown_dependency(write_service, make_loader):
    write_service("a", base={"name": "a", "dependencies": {"ghost": None}})
    with pytest.raises(UnknownDependencyError, match="ghost"):
        plan_build_order(make_loader(), [BuildNode("a", "v1")])


def test_graph_errors_are_value_errors():
    assert issubclass(CycleDetectedError, ValueError)
    assert issubclass(UnknownDependencyError, ValueError)
