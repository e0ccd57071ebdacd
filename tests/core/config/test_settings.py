# tests/core/config/test_settings.py
"""
Testes de resolução dos settings da ferramenta.

Os testes asseguram que:
- sem arquivos, os defaults embutidos são usados
- `dockypody.yaml` sobrescreve os defaults
- `dockypody.local.yaml` sobrescreve o arquivo versionado
- os defaults embutidos nunca são mutados
"""

from dockypody.core.config.settings import DEFAULT_SETTINGS, load_settings


def test_defaults_without_files(tmp_path):
    settings = load_settings(tmp_path)
    assert settings.root == tmp_path
    assert settings.services_path == tmp_path / "services"
    assert settings.git_executable == "git"
    assert settings.git_timeout == 30.0


def test_project_file_overrides_defaults(tmp_path):
    (tmp_path / "dockypody.yaml").write_text(
        "services_dir: images\ngit:\n  timeout: 5\n", encoding="utf-8"
    )
    settings = load_settings(tmp_path)
    assert settings.services_path == tmp_path / "images"
    assert settings.git_timeout == 5.0
    assert settings.git_executable == "git"


def test_local_file_has_priority(tmp_path):
    (tmp_path / "dockypody.yaml").write_text("git:\n  executable: git\n", encoding="utf-8")
    (tmp_path / "dockypody.local.yaml").write_text(
        "git:\n  executable: /opt/git/bin/git\n", encoding="utf-8"
    )
    assert load_settings(tmp_path).git_executable == "/opt/git/bin/git"


def test_defaults_not_mutated(tmp_path):
    (tmp_path / "dockypody.yaml").write_text("git:\n  timeout: 1\n", encoding="utf-8")
    load_settings(tmp_path)
    assert DEFAULT_SETTINGS["git"]["timeout"] == 30
