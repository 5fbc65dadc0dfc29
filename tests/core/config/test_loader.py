# tests/core/config/test_loader.py
"""
Testes do loader canônico de configuração.

Os testes asseguram que:
- `DEFAULT_CONFIG` é sempre a base da configuração resolvida
- arquivos YAML e JSON são carregados e mesclados na ordem correta
- a ausência do arquivo local é tolerada
- erros estruturais são reportados por exceções tipadas

Decisões arquiteturais:
    - Configuração é tratada como contrato explícito
    - Arquivos são criados em `tmp_path`; nenhum estado global é usado
"""

import json
import pytest
from pathlib import Path

try:
    from planguard.core.config.defaults import DEFAULT_CONFIG
    from planguard.core.config.loader import load_config, resolve_config
    from planguard.core.config.errors import (
        DefaultsNotFoundError,
        InvalidConfigRootTypeError,
        UnsupportedConfigFormatError,
    )
except Exception as e:  # noqa: BLE001
    load_config = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing config loader. Implement:\n"
            "- src/planguard/core/config/loader.py (load_config, resolve_config)\n"
            f"Import error: {_IMPORT_ERR}"
        )


DEFAULTS_YAML = """\
engine:
  fail_fast: false
executor:
  poll_interval_seconds: 2
steps:
  dedup.read_only:
    enabled: false
"""

LOCAL_YAML = """\
executor:
  dry_run: true
steps:
  dedup.read_only:
    enabled: true
"""


def test_resolve_config_without_overrides_equals_defaults():
    _require_imports()
    cfg = resolve_config()
    assert cfg == DEFAULT_CONFIG
    cfg["engine"]["fail_fast"] = False
    assert DEFAULT_CONFIG["engine"]["fail_fast"] is True


def test_resolve_config_rejects_non_dict():
    _require_imports()
    with pytest.raises(InvalidConfigRootTypeError):
        resolve_config(["not", "a", "dict"])


def test_missing_defaults_raises(tmp_path: Path):
    _require_imports()
    with pytest.raises(DefaultsNotFoundError):
        load_config(defaults_path=str(tmp_path / "missing.yaml"))


def test_missing_local_is_ok(tmp_path: Path):
    """
    Verifica que um arquivo local ausente é ignorado.

    Invariantes:
        - O resultado equivale a carregar apenas os defaults do projeto
    """
    _require_imports()
    defaults = tmp_path / "planguard.defaults.yaml"
    defaults.write_text(DEFAULTS_YAML, encoding="utf-8")

    cfg = load_config(defaults_path=str(defaults), local_path=str(tmp_path / "nope.yaml"))
    assert cfg["engine"]["fail_fast"] is False
    assert cfg["executor"]["poll_interval_seconds"] == 2
    assert cfg["executor"]["binary"] == "aws"


def test_load_defaults_and_local(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "planguard.defaults.yaml"
    local = tmp_path / "planguard.local.yaml"
    defaults.write_text(DEFAULTS_YAML, encoding="utf-8")
    local.write_text(LOCAL_YAML, encoding="utf-8")

    cfg = load_config(defaults_path=str(defaults), local_path=str(local))
    assert cfg["executor"]["dry_run"] is True
    assert cfg["executor"]["poll_interval_seconds"] == 2
    assert cfg["steps"]["dedup.read_only"]["enabled"] is True
    assert cfg["steps"]["dedup.exact"]["enabled"] is True


def test_load_json_local(tmp_path: Path):
    _require_imports()
    local = tmp_path / "planguard.local.json"
    local.write_text(json.dumps({"executor": {"log_truncate": 80}}), encoding="utf-8")

    cfg = load_config(local_path=str(local))
    assert cfg["executor"]["log_truncate"] == 80


def test_empty_file_is_empty_dict(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "empty.yaml"
    defaults.write_text("", encoding="utf-8")
    assert load_config(defaults_path=str(defaults)) == DEFAULT_CONFIG


def test_invalid_root_type_raises(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "list.yaml"
    defaults.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(InvalidConfigRootTypeError):
        load_config(defaults_path=str(defaults))


def test_unsupported_extension_raises(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "config.toml"
    defaults.write_text("a = 1\n", encoding="utf-8")
    with pytest.raises(UnsupportedConfigFormatError):
        load_config(defaults_path=str(defaults))
