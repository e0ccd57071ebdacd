# src/dockypody/core/sources/resolver.py
"""
Classificação de fontes e resolução de SHAs git.

Este módulo decide se cada fonte declarada por um serviço é `git` ou
`local`, e resolve refs git (branch, tag ou SHA) para SHAs curtos de 7
caracteres.

Política de classificação:
    1. override de operador `{KEY}_PATH` presente → local
    2. fonte declara `path` → local
    3. caso contrário → git

Política de resolução de SHA:
    - ref que já é um SHA literal (`^[0-9a-f]{7,40}$`) → 7 primeiros
      caracteres, sem chamada de rede
    - caso contrário → `git ls-remote <url> <ref>`, com timeout
    - preferência: primeiro match exato não "peeled", depois match
      "peeled" (`^{}`), depois a primeira linha retornada
    - o valor resolvido deve ter exatamente 40 caracteres hexadecimais

Falhas de resolução (git ausente, timeout, ref inexistente, resposta
malformada) são recuperáveis: geram warning e resultam em SHA vazio.
Resultados, inclusive falhas, ficam no cache sob a chave `"url:ref"`.

Limites explícitos:
    - Não clona nem faz fetch de repositórios
    - Não lê variáveis de ambiente (overrides chegam como dado)
"""

from __future__ import annotations

import logging
import re
import subprocess
from typing import Callable, Dict, List, Mapping, MutableMapping, Optional, Tuple

from dockypody.core.config.schema import SourceSpec
from dockypody.core.context import BuildContext


logger = logging.getLogger(__name__)

SOURCE_GIT = "git"
SOURCE_LOCAL = "local"

SHORT_SHA_LENGTH = 7
LITERAL_SHA_PATTERN = re.compile(r"^[0-9a-f]{7,40}$")
FULL_SHA_PATTERN = re.compile(r"^[0-9a-f]{40}$")
PEELED_SUFFIX = "^{}"

DEFAULT_GIT_TIMEOUT = 30.0

# (url, ref) -> saída bruta do `git ls-remote`
LsRemote = Callable[[str, str], str]


class SourceResolutionError(RuntimeError):
    """Falha ao consultar o repositório remoto de uma fonte git."""


class GitLsRemote:
    """Executa `git ls-remote` com timeout limitado."""

    def __init__(self, executable: str = "git", timeout: float = DEFAULT_GIT_TIMEOUT):
        self.executable = executable
        self.timeout = timeout

    def __call__(self, url: str, ref: str) -> str:
        cmd = [self.executable, "ls-remote", url, ref]
        logger.debug("Running command: %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise SourceResolutionError(f"git executable not found: {self.executable}") from e
        except subprocess.TimeoutExpired as e:
            raise SourceResolutionError(
                f"git ls-remote timed out after {self.timeout}s for {url}"
            ) from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise SourceResolutionError(
                f"git ls-remote failed with code {e.returncode} for {url}: {stderr}"
            ) from e
        return proc.stdout


def _warn(ctx: Optional[BuildContext], node: Optional[str], message: str) -> None:
    if ctx is not None:
        ctx.add_warning(node=node, message=message)
    else:
        logger.warning(message)


def detect_source_type(
    source: SourceSpec,
    key: str,
    overrides: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Classifica uma fonte como `local` ou `git`.

    O override `{KEY}_PATH` tem precedência sobre o manifest, permitindo ao
    operador forçar o modo local sem editar o manifest.
    """
    if (overrides or {}).get(f"{key.upper()}_PATH"):
        return SOURCE_LOCAL
    if source.declares_path:
        return SOURCE_LOCAL
    return SOURCE_GIT


def detect_source_types(
    sources: Mapping[str, SourceSpec],
    overrides: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    return {key: detect_source_type(source, key, overrides) for key, source in sources.items()}


def _parse_ls_remote(output: str) -> List[Tuple[str, str]]:
    entries = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split(None, 1)
        sha = parts[0]
        name = parts[1].strip() if len(parts) > 1 else ""
        entries.append((sha, name))
    return entries


def select_ls_remote_sha(output: str, ref: str) -> Optional[str]:
    """
    Escolhe o SHA completo de uma saída de `git ls-remote` para `ref`.

    Returns:
        Optional[str]: SHA escolhido (ainda não validado), ou None se a
        saída não tiver linhas.
    """
    entries = _parse_ls_remote(output)
    if not entries:
        return None

    exact = {ref, f"refs/heads/{ref}", f"refs/tags/{ref}"}
    for sha, name in entries:
        if name in exact:
            return sha
    peeled = {name + PEELED_SUFFIX for name in exact}
    for sha, name in entries:
        if name in peeled:
            return sha
    return entries[0][0]


def extract_source_sha(
    url: str,
    ref: str,
    cache: MutableMapping[str, str],
    *,
    ls_remote: Optional[LsRemote] = None,
    ctx: Optional[BuildContext] = None,
    node: Optional[str] = None,
) -> str:
    """
    Resolve `ref` de `url` para um SHA curto de 7 caracteres.

    Args:
        url: URL do repositório git.
        ref: Branch, tag ou SHA.
        cache: Cache compartilhado `"url:ref" -> sha`; atualizado in-place.
        ls_remote: Executor de `git ls-remote` (default: `GitLsRemote()`).
        ctx: Contexto para registrar warnings.
        node: Chave do nó, usada apenas nos warnings.

    Returns:
        str: SHA curto, ou "" se a resolução falhar.
    """
    if LITERAL_SHA_PATTERN.match(ref or ""):
        return ref[:SHORT_SHA_LENGTH]

    cache_key = f"{url}:{ref}"
    if cache_key in cache:
        return cache[cache_key]

    runner = ls_remote or GitLsRemote()
    try:
        output = runner(url, ref)
    except SourceResolutionError as e:
        _warn(ctx, node, f"Could not resolve ref '{ref}' of {url}: {e}")
        cache[cache_key] = ""
        return ""

    full_sha = select_ls_remote_sha(output, ref)
    if full_sha is None:
        _warn(ctx, node, f"Ref '{ref}' not found in {url}")
        cache[cache_key] = ""
        return ""

    if not FULL_SHA_PATTERN.match(full_sha):
        _warn(ctx, node, f"Malformed SHA '{full_sha}' returned for ref '{ref}' of {url}")
        cache[cache_key] = ""
        return ""

    short = full_sha[:SHORT_SHA_LENGTH]
    cache[cache_key] = short
    return short


def resolve_source_shas(
    sources: Mapping[str, SourceSpec],
    source_types: Mapping[str, str],
    cache: MutableMapping[str, str],
    *,
    ls_remote: Optional[LsRemote] = None,
    ctx: Optional[BuildContext] = None,
    node: Optional[str] = None,
) -> Dict[str, str]:
    """
    Resolve `{KEY}_SHA` para as fontes classificadas como git.

    Fontes locais são descartadas antes de qualquer lógica git, mesmo que
    também carreguem `url`/`ref`.
    """
    shas: Dict[str, str] = {}
    for key, source in sources.items():
        if source_types.get(key) == SOURCE_LOCAL or source.declares_path:
            continue
        if not source.url or not source.ref:
            _warn(ctx, node, f"Git source '{key}' has no url/ref; SHA left empty")
            shas[f"{source.env_key}_SHA"] = ""
            continue
        shas[f"{source.env_key}_SHA"] = extract_source_sha(
            source.url,
            source.ref,
            cache,
            ls_remote=ls_remote,
            ctx=ctx,
            node=node,
        )
    return shas
