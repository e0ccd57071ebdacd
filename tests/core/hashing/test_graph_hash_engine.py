# tests/core/hashing/test_graph_hash_engine.py
"""
Testes da passada de hash sobre o grafo de build.

Este módulo valida `compute_service_def_hash_graph` e
`compute_build_hashes`, responsáveis por calcular os hashes de todos os
nós em ordem topológica e propagá-los pelas dependências.

Os testes asseguram que:
- mudanças em uma dependência transitiva alteram todos os hashes a jusante
- falhas de um nó não abortam os demais
- chaves malformadas são puladas com warning
- a ordem recebida é verificada por padrão
- `PlatformsManifestError` é sempre propagado
- o cache de SHAs é compartilhado entre nós
- a passada pode ser cancelada entre nós

Decisões arquiteturais:
    - Todo acesso à rede é substituído por `FakeLsRemote`
    - Cada cenário escreve seus próprios manifests em `tmp_path`

Invariantes:
    - O resultado parcial de uma passada é sempre válido
    - O hash de um nó no grafo coincide com o cálculo isolado usando
      os mesmos hashes de dependência
"""

import threading
from pathlib import Path

import pytest

from dockypody.core.config.errors import PlatformsManifestError
from dockypody.core.context import BuildContext
from dockypody.core.graph.node import BuildNode
from dockypody.core.graph.planner import CycleDetectedError
from dockypody.core.hashing.engine import (
    TopologicalOrderError,
    compute_build_hashes,
    compute_service_def_hash,
    compute_service_def_hash_graph,
)


URL = "https://example.org/shared.git"


def _chain(write_service, c_args=None):
    write_service("a", base={"name": "a", "dependencies": {"b": None}})
    write_service("b", base={"name": "b", "dependencies": {"c": None}})
    write_service("c", base={"name": "c", "build_args": c_args or {"LEVEL": "1"}})


def test_merkle_propagation(write_service, make_loader, FakeLsRemote):
    """
    Verifica a propagação de mudanças pela cadeia de dependências.

    Alterar apenas o manifest de `c` deve mudar os hashes de `c`, `b` e
    `a`, pois cada nó embute o hash de suas dependências diretas.
    """
    _chain(write_service)
    order = ["c:v1", "b:v1", "a:v1"]
    before = compute_service_def_hash_graph(make_loader(), order, ls_remote=FakeLsRemote()).hashes

    _chain(write_service, c_args={"LEVEL": "2"})
    after = compute_service_def_hash_graph(make_loader(), order, ls_remote=FakeLsRemote()).hashes

    assert set(before) == set(after) == set(order)
    for key in order:
        assert before[key] != after[key]


def test_unrelated_change_does_not_propagate(write_service, make_loader, FakeLsRemote):
    _chain(write_service)
    write_service("other")
    order = ["c:v1", "b:v1", "a:v1"]
    before = compute_service_def_hash_graph(make_loader(), order, ls_remote=FakeLsRemote()).hashes
    write_service("other", base={"name": "other", "build_args": {"X": "1"}})
    after = compute_service_def_hash_graph(make_loader(), order, ls_remote=FakeLsRemote()).hashes
    assert before == after


def test_graph_hash_matches_single_node(write_service, make_loader, FakeLsRemote):
    _chain(write_service)
    loader = make_loader()
    result = compute_service_def_hash_graph(loader, ["c:v1", "b:v1", "a:v1"], ls_remote=FakeLsRemote())
    single = compute_service_def_hash(
        loader, "b:v1", dependency_hashes={"c:v1": result.hashes["c:v1"]}, ls_remote=FakeLsRemote()
    )
    assert result.hashes["b:v1"] == single


def test_partial_failure_is_contained(write_service, make_loader, FakeLsRemote):
    """
    Verifica a contenção de falhas por nó.

    O manifest de versões de `b` está ausente; `c` e `a` ainda recebem
    hash, `b` é pulado e `a` registra que a dependência foi omitida.
    """
    write_service("a", base={"name": "a", "dependencies": {"b": None}})
    write_service("b", base={"name": "b", "dependencies": {"c": None}}, versions=False)
    write_service("c")
    result = compute_service_def_hash_graph(
        make_loader(), ["c:v1", "b:v1", "a:v1"], ls_remote=FakeLsRemote()
    )
    assert len(result.hashes) == 2
    assert set(result.hashes) == {"c:v1", "a:v1"}
    assert result.skipped == ["b:v1"]
    assert result.warnings["b:v1"]
    assert any("b:v1" in w for w in result.warnings["a:v1"])


def test_malformed_key_is_skipped(write_service, make_loader, FakeLsRemote):
    write_service("c")
    result = compute_service_def_hash_graph(
        make_loader(), ["c:v1", "not-a-node", "x:y:z:w"], ls_remote=FakeLsRemote()
    )
    assert list(result.hashes) == ["c:v1"]
    assert result.skipped == ["not-a-node", "x:y:z:w"]
    assert "not-a-node" in result.warnings


def test_duplicate_key_computed_once(write_service, make_loader, FakeLsRemote):
    write_service("c")
    result = compute_service_def_hash_graph(make_loader(), ["c:v1", "c:v1"], ls_remote=FakeLsRemote())
    assert list(result.hashes) == ["c:v1"]


def test_out_of_order_input_rejected(write_service, make_loader, FakeLsRemote):
    write_service("a", base={"name": "a", "dependencies": {"b": None}})
    write_service("b")
    with pytest.raises(TopologicalOrderError):
        compute_service_def_hash_graph(make_loader(), ["a:v1", "b:v1"], ls_remote=FakeLsRemote())


def test_out_of_order_without_verification_omits_dependency(write_service, make_loader, FakeLsRemote):
    write_service("a", base={"name": "a", "dependencies": {"b": None}})
    write_service("b")
    loader = make_loader()
    result = compute_service_def_hash_graph(
        loader, ["a:v1", "b:v1"], ls_remote=FakeLsRemote(), verify_order=False
    )
    alone = compute_service_def_hash(loader, "a:v1", ls_remote=FakeLsRemote())
    assert result.hashes["a:v1"] == alone
    assert set(result.hashes) == {"a:v1", "b:v1"}


def test_cycle_computes_nothing(write_service, make_loader, FakeLsRemote):
    write_service("a", base={"name": "a", "dependencies": {"b": None}})
    write_service("b", base={"name": "b", "dependencies": {"a": None}})
    fake = FakeLsRemote()
    with pytest.raises(CycleDetectedError):
        compute_build_hashes(make_loader(), [BuildNode("a", "v1")], ls_remote=fake)
    assert fake.calls == []


def test_platforms_manifest_error_propagates(write_service, make_loader, FakeLsRemote):
    write_service("c")
    write_service("d", platforms={"platforms": "alpine"})
    with pytest.raises(PlatformsManifestError):
        compute_service_def_hash_graph(make_loader(), ["c:v1", "d:v1"], ls_remote=FakeLsRemote())


def test_sha_cache_shared_between_nodes(write_service, make_loader, FakeLsRemote):
    source = {"shared": {"url": URL, "ref": "main"}}
    write_service("a", base={"name": "a", "sources": source})
    write_service("b", base={"name": "b", "sources": source})
    fake = FakeLsRemote({URL: f"{'e' * 40}\trefs/heads/main\n"})
    result = compute_service_def_hash_graph(make_loader(), ["a:v1", "b:v1"], ls_remote=fake)
    assert len(fake.calls) == 1
    assert result.sha_cache == {f"{URL}:main": "eeeeeee"}


def test_preloaded_cache_avoids_network(write_service, make_loader, FakeLsRemote):
    write_service("a", base={"name": "a", "sources": {"shared": {"url": URL, "ref": "main"}}})
    fake = FakeLsRemote()
    ctx = BuildContext(sha_cache={f"{URL}:main": "1234567"})
    compute_service_def_hash_graph(make_loader(), ["a:v1"], ctx=ctx, ls_remote=fake)
    assert fake.calls == []


def test_cancellation_returns_partial_result(write_service, make_loader, FakeLsRemote):
    write_service("c")
    cancel = threading.Event()
    cancel.set()
    result = compute_service_def_hash_graph(
        make_loader(), ["c:v1"], ls_remote=FakeLsRemote(), cancel=cancel
    )
    assert result.cancelled is True
    assert result.hashes == {}


def test_compute_build_hashes_from_roots(write_service, make_loader, FakeLsRemote):
    _chain(write_service)
    result = compute_build_hashes(make_loader(), [BuildNode("a", "v1")], ls_remote=FakeLsRemote())
    assert list(result.hashes) == ["c:v1", "b:v1", "a:v1"]
    assert result.skipped == []


def test_unquoted_date_build_arg_is_hashed(write_service, make_loader, FakeLsRemote, tmp_path):
    """
    Verifica a totalidade da extração para valores de data em YAML.

    `BUILD_DATE: 2024-01-01` sem aspas é um manifest válido e o nó deve
    receber hash, sem warning de normalização.
    """
    write_service("c")
    (tmp_path / "services" / "c.yaml").write_text(
        "name: c\nbuild_args:\n  BUILD_DATE: 2024-01-01\n", encoding="utf-8"
    )
    result = compute_service_def_hash_graph(make_loader(), ["c:v1"], ls_remote=FakeLsRemote())
    assert list(result.hashes) == ["c:v1"]
    assert result.skipped == []


def test_non_utf8_dockerfile_does_not_abort_pass(write_service, make_loader, FakeLsRemote, tmp_path):
    write_service("c", base={"name": "c", "dockerfile": "dockerfiles/c.Dockerfile"})
    write_service("d")
    dockerfiles = tmp_path / "dockerfiles"
    dockerfiles.mkdir()
    (dockerfiles / "c.Dockerfile").write_bytes(b"FROM x\n\xff\xfe\n")
    result = compute_service_def_hash_graph(make_loader(), ["c:v1", "d:v1"], ls_remote=FakeLsRemote())
    assert set(result.hashes) == {"c:v1", "d:v1"}

    (dockerfiles / "c.Dockerfile").write_bytes(b"FROM x\n\xff\xfd\n")
    changed = compute_service_def_hash_graph(make_loader(), ["c:v1"], ls_remote=FakeLsRemote())
    assert changed.hashes["c:v1"] != result.hashes["c:v1"]


def test_unreadable_dockerfile_skips_only_that_node(write_service, make_loader, FakeLsRemote, tmp_path, monkeypatch):
    """
    Verifica a contenção de erros de I/O ao ler o Dockerfile.

    O Dockerfile de `c` não pode ser lido; `c` é pulado com warning e `d`
    ainda recebe hash.
    """
    write_service("c", base={"name": "c", "dockerfile": "dockerfiles/c.Dockerfile"})
    write_service("d")
    dockerfiles = tmp_path / "dockerfiles"
    dockerfiles.mkdir()
    (dockerfiles / "c.Dockerfile").write_text("FROM x\n", encoding="utf-8")

    original = Path.read_bytes

    def _read_bytes(self):
        if self.name == "c.Dockerfile":
            raise PermissionError(13, "Permission denied", str(self))
        return original(self)

    monkeypatch.setattr(Path, "read_bytes", _read_bytes)
    result = compute_service_def_hash_graph(make_loader(), ["c:v1", "d:v1"], ls_remote=FakeLsRemote())
    assert list(result.hashes) == ["d:v1"]
    assert result.skipped == ["c:v1"]
    assert result.warnings["c:v1"]


def test_platformless_key_is_stored_under_default_platform(write_service, make_loader, FakeLsRemote):
    """
    Verifica que `web:v1` de um serviço multi-plataforma é registrado sob a
    chave completa, a mesma resolvida pelos dependentes.
    """
    write_service("web", platforms={"platforms": [{"name": "debian"}, {"name": "alpine"}]})
    write_service("app", base={"name": "app", "dependencies": {"web": None}})
    ctx = BuildContext()
    result = compute_service_def_hash_graph(
        make_loader(), ["web:v1", "app:v1"], ctx=ctx, ls_remote=FakeLsRemote()
    )
    assert list(result.hashes) == ["web:v1:debian", "app:v1"]
    assert ctx.warnings_for("app:v1") == []

    explicit = compute_service_def_hash(make_loader(), "web:v1:debian", ls_remote=FakeLsRemote())
    assert result.hashes["web:v1:debian"] == explicit
    assert compute_service_def_hash(make_loader(), "web:v1", ls_remote=FakeLsRemote()) == explicit
