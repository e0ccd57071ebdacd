# tests/conftest.py
"""
Fixtures compartilhados para testes do DockyPody.

Este módulo define fixtures reutilizáveis que fornecem:
- um repositório de serviços temporário (manifests YAML em `tmp_path`)
- um Config Loader apontando para esse repositório
- um executor falso de `git ls-remote`, sem rede

Decisões arquiteturais:
    - Manifests são escritos em disco, pois o loader é parte do contrato testado
    - O acesso à rede é sempre substituído por `FakeLsRemote`
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture acessa a rede
    - Nenhuma fixture lê variáveis de ambiente
    - Cada teste recebe um repositório isolado

Limites explícitos:
    - Não substituir testes de integração com git real
    - Não validar semântica dos manifests
"""

import pytest
import yaml


@pytest.fixture
def write_service(tmp_path):
    """
    Fixture factory que escreve os manifests de um serviço em `tmp_path`.

    Estrutura produzida:
        services/<name>.yaml
        services/<name>/versions.yaml
        services/<name>/platforms.yaml   (apenas se `platforms` for informado)

    Quando `versions` não é informado, um manifest mínimo com a versão
    `v1` é gerado, para que o serviço seja carregável.

    Returns:
        Callable: `write(name, base=None, versions=None, platforms=None) -> Path`
    """

    def _write(name, base=None, versions=None, platforms=None):
        services = tmp_path / "services"
        service_dir = services / name
        service_dir.mkdir(parents=True, exist_ok=True)

        (services / f"{name}.yaml").write_text(
            yaml.safe_dump(base or {"name": name}, sort_keys=False), encoding="utf-8"
        )
        if versions is not False:
            (service_dir / "versions.yaml").write_text(
                yaml.safe_dump(versions or {"versions": [{"name": "v1", "latest": True}]}, sort_keys=False),
                encoding="utf-8",
            )
        if platforms is not None:
            (service_dir / "platforms.yaml").write_text(
                yaml.safe_dump(platforms, sort_keys=False), encoding="utf-8"
            )
        return services / f"{name}.yaml"

    return _write


@pytest.fixture
def make_loader(tmp_path):
    """
    Fixture factory que cria um `ManifestLoader` novo para `tmp_path`.

    Um loader novo deve ser criado após alterar manifests, pois cada
    instância lê os arquivos uma única vez.
    """
    from dockypody.core.config.manifest import ManifestLoader
    from dockypody.core.config.settings import load_settings

    def _make():
        return ManifestLoader(load_settings(tmp_path))

    return _make


@pytest.fixture
def FakeLsRemote():
    """
    Fixture que fornece uma classe de executor falso de `git ls-remote`.

    A instância recebe um mapa `url -> saída` (ou `url -> exceção`) e
    registra todas as chamadas em `calls`, permitindo verificar que
    nenhuma consulta remota foi feita quando não deveria.

    Returns:
        type: Classe `_FakeLsRemote`.
    """
    from dockypody.core.sources.resolver import SourceResolutionError

    class _FakeLsRemote:
        def __init__(self, responses=None):
            self.responses = dict(responses or {})
            self.calls = []

        def __call__(self, url, ref):
            self.calls.append((url, ref))
            response = self.responses.get(url, "")
            if isinstance(response, Exception):
                raise response
            if response is None:
                raise SourceResolutionError(f"unreachable: {url}")
            return response

    return _FakeLsRemote
