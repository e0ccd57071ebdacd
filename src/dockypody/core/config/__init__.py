# src/dockypody/core/config/__init__.py
"""
Camada de configuração do DockyPody.

Este pacote contém as estruturas e utilitários responsáveis por carregar,
mesclar e validar estruturalmente os manifests de serviço e os settings
da ferramenta.

Responsabilidades do pacote:
    - Carregamento de manifests em YAML ou JSON (`loader`)
    - Deep-merge determinístico entre camadas (`merge`)
    - Resolução de `(service, version, platform)` em configuração concreta (`manifest`)
    - Visão tipada e validada da configuração (`schema`)
    - Settings da ferramenta (`settings`)

Princípios fundamentais:
    - Configuração é declarativa e explícita
    - A mesma entrada sempre produz a mesma configuração final
    - Conflitos estruturais são tratados como erro

Limites explícitos:
    - Não resolve SHAs de fontes git
    - Não calcula hashes de definição
    - Não planeja a ordem de build
"""
