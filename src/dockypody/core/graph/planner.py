# src/dockypody/core/graph/planner.py
"""
Planejador da ordem de build (grafo de dependências entre serviços).

Este módulo resolve as dependências declaradas por cada nó de build em
nós concretos e produz uma ordem topológica determinística, na qual todo
nó aparece depois de todos os nós dos quais depende.

Regra de resolução de dependência:
    - versão: a versão fixada pela dependência, ou a do dependente
    - plataforma: se o serviço da dependência for multi-plataforma e a
      dependência não se declarar `single_platform`, herda a plataforma do
      dependente (ou a default do serviço, se o dependente não tiver);
      caso contrário, nenhum sufixo de plataforma é usado

Decisões arquiteturais:
    - Busca em profundidade acumulando pós-ordem (dependências primeiro)
    - Empates são resolvidos por ordem de descoberta (raízes, depois a
      ordem declarada das dependências)
    - Ciclos são falhas fatais e a exceção nomeia o ciclo
    - Dependências para serviços sem manifest são falhas fatais

Invariantes:
    - Nenhum nó aparece antes de suas dependências
    - Cada nó aparece exatamente uma vez
    - A mesma entrada produz sempre a mesma ordem

Limites explícitos:
    - Não calcula hashes
    - Não tolera falhas de carregamento (o planejamento é estrito)
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from dockypody.core.config.manifest import ManifestLoader
from dockypody.core.config.schema import DependencySpec

from .node import BuildNode


class UnknownDependencyError(ValueError):
    """
    Exceção levantada quando um nó depende de um serviço sem manifest.

    Invariantes:
        - O grafo é considerado inválido nesta condição
        - Nenhuma ordem parcial é produzida
    """


class CycleDetectedError(ValueError):
    """
    Exceção levantada quando o grafo de dependências contém um ciclo.

    O atributo `cycle` contém as chaves dos nós do ciclo, com o nó inicial
    repetido ao final (ex.: `["a:v1", "b:v1", "a:v1"]`).
    """

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__(f"Cycle detected in build dependency graph: {' -> '.join(self.cycle)}")


def resolve_dependency_node(
    loader: ManifestLoader,
    parent: BuildNode,
    dependency: DependencySpec,
) -> BuildNode:
    """Resolve uma dependência declarada por `parent` para um nó concreto."""
    version = dependency.version or parent.version
    platform: Optional[str] = None
    if not dependency.single_platform and loader.is_multi_platform(dependency.service):
        platform = parent.platform or loader.default_platform(dependency.service)
    return BuildNode(service=dependency.service, version=version, platform=platform)


def dependency_nodes(loader: ManifestLoader, node: BuildNode) -> List[BuildNode]:
    """Dependências diretas de `node`, na ordem declarada e sem repetição."""
    config, _, _ = loader.load(node.service, node.version, node.platform)
    resolved: List[BuildNode] = []
    for dependency in config.dependencies.values():
        if not loader.has_service(dependency.service):
            raise UnknownDependencyError(
                f"Node '{node.key}' depends on unknown service '{dependency.service}'"
            )
        dep_node = resolve_dependency_node(loader, node, dependency)
        if dep_node not in resolved:
            resolved.append(dep_node)
    return resolved


def expand_roots(
    loader: ManifestLoader,
    services: Iterable[str],
    *,
    version: Optional[str] = None,
    platform: Optional[str] = None,
    all_versions: bool = False,
) -> List[BuildNode]:
    """
    Expande nomes de serviço em nós raiz.

    - `all_versions` → todas as versões declaradas; senão `version` ou a default
    - serviços multi-plataforma → todas as plataformas, ou apenas `platform`
    - serviços de plataforma única ignoram `platform`
    """
    roots: List[BuildNode] = []
    for service in services:
        if all_versions:
            versions = list(loader.load_versions(service).versions)
        else:
            versions = [version or loader.default_version(service)]

        platforms_manifest = loader.load_platforms(service)
        if platforms_manifest is None:
            platforms: List[Optional[str]] = [None]
        elif platform:
            platforms = [platform]
        else:
            platforms = list(platforms_manifest.names)

        for ver in versions:
            for plat in platforms:
                node = BuildNode(service=service, version=ver, platform=plat)
                if node not in roots:
                    roots.append(node)
    return roots


def plan_build_order(loader: ManifestLoader, roots: Iterable[BuildNode]) -> List[BuildNode]:
    """
    Produz a ordem topológica de build a partir de um conjunto de raízes.

    Args:
        loader: Config Loader usado para descobrir dependências.
        roots: Nós raiz, na ordem de descoberta desejada.

    Returns:
        List[BuildNode]: Nós em ordem topológica (dependências primeiro).

    Raises:
        CycleDetectedError: Se algum nó for alcançável a partir de si mesmo.
        UnknownDependencyError: Se uma dependência apontar para serviço inexistente.
        ConfigError: Se a configuração de algum nó não puder ser carregada.
    """
    order: List[BuildNode] = []
    done: Set[BuildNode] = set()
    path: List[BuildNode] = []
    on_path: Set[BuildNode] = set()
    edges: Dict[BuildNode, List[BuildNode]] = {}

    def visit(node: BuildNode) -> None:
        if node in done:
            return
        if node in on_path:
            start = path.index(node)
            raise CycleDetectedError([n.key for n in path[start:]] + [node.key])

        path.append(node)
        on_path.add(node)
        if node not in edges:
            edges[node] = dependency_nodes(loader, node)
        for dep in edges[node]:
            visit(dep)
        path.pop()
        on_path.discard(node)

        done.add(node)
        order.append(node)

    for root in roots:
        visit(root)

    return order


def build_edges(loader: ManifestLoader, order: Sequence[BuildNode]) -> List[Tuple[str, str]]:
    """Arestas `(dependente, dependência)` de uma ordem já planejada."""
    return [
        (node.key, dep.key)
        for node in order
        for dep in dependency_nodes(loader, node)
    ]
