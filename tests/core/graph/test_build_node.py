# tests/core/graph/test_build_node.py
"""Testes de serialização e parsing de chaves de nó de build."""

import pytest

from dockypody.core.graph.node import BuildNode, InvalidNodeKeyError


def test_key_without_platform():
    assert BuildNode("tools", "v1").key == "tools:v1"


def test_key_with_platform():
    node = BuildNode("web", "v2", "alpine")
    assert node.key == "web:v2:alpine"
    assert str(node) == "web:v2:alpine"


@pytest.mark.parametrize("key", ["tools:v1", "web:v2:alpine"])
def test_parse_roundtrip(key):
    assert BuildNode.parse(key).key == key


@pytest.mark.parametrize("key", ["tools", "a:b:c:d", "tools:", ":v1", "web:v1:", ""])
def test_parse_malformed(key):
    with pytest.raises(InvalidNodeKeyError):
        BuildNode.parse(key)


def test_invalid_key_is_value_error():
    assert issubclass(InvalidNodeKeyError, ValueError)
