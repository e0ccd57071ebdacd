# src/dockypody/core/config/errors.py
"""
Exceções canônicas da camada de configuração do DockyPody.

Este módulo define a hierarquia oficial de exceções utilizadas durante
o carregamento de manifests, a resolução de versões e plataformas e a
validação estrutural da configuração de um serviço.

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Cada falha de carregamento possui um tipo distinto
    - Mensagens de erro são claras e direcionadas ao operador

Classificação de severidade:
    - `PlatformsManifestError` é sempre fatal (manifest malformado)
    - As demais falhas de carregamento são recuperáveis no cálculo do
      grafo inteiro (o nó é pulado), mas fatais no cálculo de um único nó

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
"""


class ConfigError(Exception):
    """
    Exceção base para erros de configuração do DockyPody.

    Permite captura genérica de falhas de carregamento e validação,
    distinguindo-as de falhas do grafo de dependências.
    """


class ManifestNotFoundError(ConfigError):
    """Manifest obrigatório ausente no repositório."""


class ServiceManifestNotFoundError(ManifestNotFoundError):
    """
    Exceção levantada quando o manifest base `services/<service>.yaml`
    não existe.
    """


class VersionsManifestNotFoundError(ManifestNotFoundError):
    """
    Exceção levantada quando o manifest de versões
    `services/<service>/versions.yaml` não existe.

    Decisões arquiteturais:
        - Sem manifest de versões não existe configuração concreta
        - O erro é distinto de `VersionNotFoundError` para que o chamador
          saiba se o serviço inteiro está incompleto ou apenas a versão
    """


class UnsupportedManifestFormatError(ConfigError):
    """
    Exceção levantada quando a extensão do manifest não é suportada.

    Formatos suportados:
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidManifestRootTypeError(ConfigError):
    """O conteúdo raiz de um manifest não é um dicionário."""


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"tls": {"enabled": true}}
        - override: {"tls": "on"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """


class VersionNotFoundError(ConfigError):
    """A versão pedida não está declarada no manifest de versões."""


class PlatformNotFoundError(ConfigError):
    """
    Exceção levantada quando a plataforma pedida não existe, ou quando uma
    plataforma é pedida para um serviço de plataforma única.
    """


class PlatformsManifestError(ConfigError):
    """
    Exceção levantada quando o manifest de plataformas é estruturalmente
    inválido (ex.: `platforms` não é lista, entrada sem `name`, nomes
    duplicados).

    Decisões arquiteturais:
        - Um manifest de plataformas malformado afeta todos os nós do
          serviço, portanto é tratado como falha fatal mesmo no cálculo
          do grafo inteiro
    """


class InvalidServiceConfigError(ConfigError):
    """A configuração mesclada viola o schema de serviço."""


class SourceValidationError(InvalidServiceConfigError):
    """
    Exceção levantada quando uma fonte declarada é inválida.

    Casos cobertos:
        - chave fora do padrão `^[a-z0-9_]+$`
        - fonte com `path` e `url`/`ref` ao mesmo tempo
        - fonte git sem `url` ou sem `ref`
    """


class DockerfileReadError(InvalidServiceConfigError):
    """
    Exceção levantada quando o Dockerfile declarado existe mas não pode ser
    lido (permissão, erro de I/O).

    No cálculo do grafo inteiro o nó é pulado; os demais nós seguem.
    """
