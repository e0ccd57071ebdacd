# src/dockypody/core/hashing/engine.py
"""
Engine de hash de definição de serviços do DockyPody.

Este módulo calcula um hash SHA-256 por nó de build e o propaga pelo grafo
de dependências: a Definition Input de cada nó embute os hashes de suas
dependências diretas, de modo que qualquer mudança em uma dependência
transitiva altera o hash de todos os nós a jusante (cadeia de Merkle).

Máquina de estados por passada (`compute_service_def_hash_graph`):
    1. hashes = {}, cache de SHAs do contexto (fornecido ou vazio)
    2. para cada nó, em ordem topológica:
        a. parse da chave (chaves malformadas são puladas) e, em serviços
           multi-plataforma, preenchimento da plataforma default
        b. carga da configuração (falhas recuperáveis pulam o nó)
        c. classificação das fontes (git/local)
        d. resolução de SHAs apenas para fontes git
        e. resolução das dependências em chaves concretas e busca dos
           hashes já calculados
        f. extração, normalização e SHA-256 da Definition Input
        g. registro do hash no mapa
    3. retorno do mapa final

Decisões arquiteturais:
    - Processamento estritamente sequencial: nós posteriores dependem dos
      hashes dos anteriores
    - Por padrão a ordem recebida é verificada; uma dependência que aparece
      depois do dependente gera `TopologicalOrderError`
    - Falhas de um nó não abortam os demais; o resultado parcial é válido
    - `PlatformsManifestError` é sempre propagado
    - O cálculo de um único nó é estrito e propaga erros de configuração

Invariantes:
    - O hash é uma string hexadecimal minúscula de 64 caracteres
    - O mapa de hashes só cresce durante a passada
"""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Union

from dockypody.core.config.errors import ConfigError, InvalidServiceConfigError, PlatformsManifestError
from dockypody.core.config.manifest import ManifestLoader
from dockypody.core.context import BuildContext
from dockypody.core.graph.node import BuildNode, InvalidNodeKeyError
from dockypody.core.graph.planner import plan_build_order, resolve_dependency_node
from dockypody.core.sources.resolver import (
    GitLsRemote,
    LsRemote,
    detect_source_types,
    resolve_source_shas,
)

from .definition import DefinitionInput, extract_definition
from .normalize import normalize


NodeRef = Union[BuildNode, str]


class TopologicalOrderError(ValueError):
    """
    Exceção levantada quando a ordem recebida não é topológica.

    Indica que uma dependência aparece na entrada depois do nó que depende
    dela; sem esta verificação o hash do dependente seria calculado sem o
    hash da dependência.
    """


@dataclass(frozen=True)
class GraphHashResult:
    """Resultado agregado de uma passada de hash sobre o grafo."""

    hashes: Dict[str, str] = field(default_factory=dict)
    sha_cache: Dict[str, str] = field(default_factory=dict)
    warnings: Dict[str, List[str]] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    cancelled: bool = False


def hash_definition(definition: DefinitionInput) -> str:
    """SHA-256 (hex minúsculo) do texto normalizado da Definition Input."""
    try:
        text = normalize(definition.to_dict())
    except (TypeError, ValueError) as e:
        raise InvalidServiceConfigError(
            f"Definition of '{definition.service}:{definition.version}' cannot be normalized: {e}"
        ) from e
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _default_ls_remote(loader: ManifestLoader) -> LsRemote:
    return GitLsRemote(
        executable=loader.settings.git_executable,
        timeout=loader.settings.git_timeout,
    )


def _as_node(ref: NodeRef) -> BuildNode:
    return ref if isinstance(ref, BuildNode) else BuildNode.parse(ref)


def canonical_node(loader: ManifestLoader, node: BuildNode) -> BuildNode:
    """
    Completa a plataforma de um nó sem sufixo de serviço multi-plataforma.

    `web:v1` carrega a plataforma default de `web`; o hash é registrado sob
    `web:v1:<default>`, a mesma chave que os dependentes resolvem.
    """
    if node.platform is None and loader.is_multi_platform(node.service):
        return BuildNode(node.service, node.version, loader.default_platform(node.service))
    return node


def build_definition(
    loader: ManifestLoader,
    node: BuildNode,
    *,
    available_hashes: Mapping[str, str],
    ctx: BuildContext,
    ls_remote: LsRemote,
    positions: Optional[Mapping[str, int]] = None,
) -> DefinitionInput:
    """
    Executa os passos b–f da máquina de estados para um nó.

    Args:
        positions: Posição de cada chave na ordem de entrada; quando
            presente, dependências posteriores ao nó são rejeitadas.

    Raises:
        ConfigError: Se a configuração do nó não puder ser carregada.
        TopologicalOrderError: Se `positions` revelar ordem não topológica.
    """
    config, _, _ = loader.load(node.service, node.version, node.platform)

    source_types = detect_source_types(config.sources, ctx.overrides)
    shas = resolve_source_shas(
        config.sources,
        source_types,
        ctx.sha_cache,
        ls_remote=ls_remote,
        ctx=ctx,
        node=node.key,
    )

    dependency_hashes: Dict[str, str] = {}
    for dependency in config.dependencies.values():
        dep_key = resolve_dependency_node(loader, node, dependency).key
        if positions is not None and positions.get(dep_key, -1) > positions.get(node.key, -1):
            raise TopologicalOrderError(
                f"Dependency '{dep_key}' of '{node.key}' appears later in the build order"
            )
        if dep_key in available_hashes:
            dependency_hashes[dep_key] = available_hashes[dep_key]
        else:
            ctx.add_warning(
                node=node.key,
                message=f"Dependency '{dep_key}' has no computed hash; omitted from definition",
            )

    return extract_definition(
        node,
        config,
        source_types=source_types,
        shas=shas,
        dependency_hashes=dependency_hashes,
        root=loader.root,
    )


def compute_service_def_hash(
    loader: ManifestLoader,
    node: NodeRef,
    *,
    dependency_hashes: Optional[Mapping[str, str]] = None,
    ctx: Optional[BuildContext] = None,
    ls_remote: Optional[LsRemote] = None,
) -> str:
    """
    Calcula o hash de definição de um único nó.

    Todas as entradas são explícitas: os hashes das dependências devem ser
    fornecidos pelo chamador. Dependências ausentes são omitidas (com
    warning).

    Raises:
        InvalidNodeKeyError: Se `node` for uma chave malformada.
        ConfigError: Se a configuração do nó não puder ser carregada.
    """
    ctx = ctx or BuildContext()
    build_node = canonical_node(loader, _as_node(node))
    definition = build_definition(
        loader,
        build_node,
        available_hashes=dependency_hashes or {},
        ctx=ctx,
        ls_remote=ls_remote or _default_ls_remote(loader),
    )
    return hash_definition(definition)


def compute_service_def_hash_graph(
    loader: ManifestLoader,
    order: Iterable[NodeRef],
    *,
    ctx: Optional[BuildContext] = None,
    ls_remote: Optional[LsRemote] = None,
    verify_order: bool = True,
    cancel: Optional[threading.Event] = None,
) -> GraphHashResult:
    """
    Calcula os hashes de todos os nós de uma ordem topológica.

    Pré-condição: `order` é topológica (dependências antes de dependentes).
    Com `verify_order=True` a pré-condição é verificada e violações geram
    `TopologicalOrderError`; com `verify_order=False` dependências ainda não
    calculadas são apenas omitidas.

    Args:
        loader: Config Loader.
        order: Nós ou chaves em ordem topológica.
        ctx: Contexto da execução (overrides, cache de SHAs, warnings).
        ls_remote: Executor de `git ls-remote`.
        verify_order: Verifica a pré-condição de ordem.
        cancel: Evento que, quando sinalizado, encerra a passada antes do
            próximo nó e devolve o resultado parcial.

    Returns:
        GraphHashResult: hashes por chave de nó, cache de SHAs, warnings e
        chaves puladas.

    Raises:
        PlatformsManifestError: Se algum manifest de plataformas for malformado.
        TopologicalOrderError: Se `verify_order` e a ordem não for topológica.
    """
    ctx = ctx or BuildContext()
    runner = ls_remote or _default_ls_remote(loader)

    nodes: List[Union[BuildNode, str]] = []
    for ref in order:
        try:
            nodes.append(canonical_node(loader, _as_node(ref)))
        except InvalidNodeKeyError as e:
            nodes.append(str(ref))
            ctx.add_warning(node=str(ref), message=str(e))

    positions: Optional[Dict[str, int]] = None
    if verify_order:
        positions = {}
        for index, item in enumerate(nodes):
            if isinstance(item, BuildNode):
                positions.setdefault(item.key, index)

    hashes: Dict[str, str] = {}
    skipped: List[str] = []
    cancelled = False

    ctx.log(node=None, level="INFO", message=f"Computing definition hashes for {len(nodes)} node(s)")

    for item in nodes:
        if cancel is not None and cancel.is_set():
            cancelled = True
            ctx.log(node=None, level="WARNING", message="Hash computation cancelled; returning partial result")
            break

        if not isinstance(item, BuildNode):
            skipped.append(item)
            continue

        node = item
        if node.key in hashes:
            continue

        try:
            definition = build_definition(
                loader,
                node,
                available_hashes=hashes,
                ctx=ctx,
                ls_remote=runner,
                positions=positions,
            )
            digest = hash_definition(definition)
        except PlatformsManifestError:
            raise
        except ConfigError as e:
            ctx.add_warning(node=node.key, message=f"Skipping node: {e}")
            skipped.append(node.key)
            continue

        hashes[node.key] = digest
        ctx.log(node=node.key, level="DEBUG", message="Definition hash computed", hash=digest)

    return GraphHashResult(
        hashes=hashes,
        sha_cache=dict(ctx.sha_cache),
        warnings={k: list(v) for k, v in ctx.warnings.items()},
        skipped=skipped,
        cancelled=cancelled,
    )


def compute_build_hashes(
    loader: ManifestLoader,
    roots: Iterable[BuildNode],
    **kwargs,
) -> GraphHashResult:
    """Planeja a ordem de build a partir de `roots` e calcula todos os hashes."""
    order = plan_build_order(loader, roots)
    return compute_service_def_hash_graph(loader, order, **kwargs)
