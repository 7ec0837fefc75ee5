# server/tests/test_config.py
"""
Tests for configuration loading, merging and lookup.
"""

import pytest
from pathlib import Path
import sys

# Add the server directory to the path for importing
server_dir = Path(__file__).parent.parent
sys.path.insert(0, str(server_dir))

from engine.config import (
    DEFAULTS, find_config_file, get_default_config, get_rule_severity, load_config,
    rule_context_config, save_config
)


def test_defaults():
    config = get_default_config()

    assert config.enabled_rules == ["*"]
    assert config.rule_configs["imports.order"] == {
        "groups": ["builtin", "external", "parent", "sibling", "index"],
        "newlines-between": "ignore",
    }
    assert config.language_configs["javascript"]["external_module_folders"] == ["node_modules"]
    assert get_rule_severity("imports.order", config) == "warn"


def test_defaults_are_not_shared():
    config = get_default_config()
    config.language_configs["javascript"]["core_modules"].append("electron")

    assert get_default_config().language_configs["javascript"]["core_modules"] == []
    assert config.language_configs["typescript"]["core_modules"] == []
    assert DEFAULTS["language_configs"]["javascript"]["core_modules"] == []


def test_yaml_overrides_merge_with_defaults(tmp_path):
    path = tmp_path / ".import-order.yml"
    path.write_text(
        "max_findings_per_file: 5\n"
        "rule_severities:\n"
        "  imports.order: error\n"
        "rule_configs:\n"
        "  imports.order:\n"
        "    newlines-between: always\n"
        "language_configs:\n"
        "  javascript:\n"
        "    core_modules: [electron]\n"
    )

    config = load_config(str(path))

    assert config.max_findings_per_file == 5
    assert config.max_total_findings == 1000
    assert get_rule_severity("imports.order", config) == "error"
    assert config.rule_configs["imports.order"]["newlines-between"] == "always"
    assert config.rule_configs["imports.order"]["groups"][0] == "builtin"
    assert config.language_configs["javascript"]["core_modules"] == ["electron"]
    assert config.language_configs["javascript"]["external_module_folders"] == ["node_modules"]


def test_broken_yaml_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / ".import-order.yml"
    path.write_text("rule_configs: [unclosed\n")

    config = load_config(str(path))

    assert config.rule_configs == get_default_config().rule_configs
    assert "Failed to load config" in caplog.text


def test_non_mapping_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "import-order.yaml"
    path.write_text("- just\n- a list\n")

    assert load_config(str(path)).enabled_rules == ["*"]


def test_missing_file_uses_defaults(tmp_path):
    assert load_config(str(tmp_path / "nope.yml")).enabled_rules == ["*"]


def test_find_config_file_walks_up(tmp_path):
    config_path = tmp_path / ".import-order.yml"
    config_path.write_text("enabled_rules: ['imports.*']\n")
    nested = tmp_path / "src" / "components"
    nested.mkdir(parents=True)
    source = nested / "app.js"
    source.write_text("")

    assert find_config_file(str(nested)) == str(config_path)
    assert find_config_file(str(source)) == str(config_path)


def test_save_and_reload(tmp_path):
    config = get_default_config()
    config.rule_configs["imports.order"]["newlines-between"] = "never"
    path = tmp_path / "conf" / "import-order.yml"

    save_config(config, str(path))
    reloaded = load_config(str(path))

    assert reloaded.rule_configs["imports.order"]["newlines-between"] == "never"


def test_rule_context_config_flattens_language_and_rule():
    config = get_default_config()
    merged = rule_context_config(config, "typescript", "imports.order")

    assert merged["external_module_folders"] == ["node_modules"]
    assert merged["newlines-between"] == "ignore"

    merged["core_modules"].append("x")
    assert config.language_configs["typescript"]["core_modules"] == []
