# server/tests/test_registry.py
"""
Tests for rule and adapter registration and discovery.
"""

import pytest
from pathlib import Path
import sys

# Add the server directory to the path for importing
server_dir = Path(__file__).parent.parent
sys.path.insert(0, str(server_dir))

from engine.registry import Registry
from engine.javascript_adapter import JavaScriptAdapter
from engine.typescript_adapter import TypeScriptAdapter
from rules.imports_order import ImportsOrderRule


def test_discover_rules_from_package():
    registry = Registry()

    assert registry.discover_rules(["rules"]) == 1
    assert registry.get_rule_ids() == ["imports.order"]
    # A second discovery finds nothing new
    assert registry.discover_rules(["rules"]) == 0


def test_discover_unknown_package_is_skipped(caplog):
    registry = Registry()

    assert registry.discover_rules(["no_such_rules_package"]) == 0
    assert "Could not import package" in caplog.text


def test_duplicate_rule_ids_keep_first():
    registry = Registry()
    first, second = ImportsOrderRule(), ImportsOrderRule()
    registry.register_rule(first)
    registry.register_rule(second)

    assert registry.get_rule("imports.order") is first
    assert len(registry.get_all_rules()) == 1


def test_enabled_rules_by_pattern_and_language():
    registry = Registry()
    registry.register_rule(ImportsOrderRule())

    assert len(registry.get_enabled_rules(["*"], "javascript")) == 1
    assert len(registry.get_enabled_rules(["imports.*"], "typescript")) == 1
    assert registry.get_enabled_rules(["style.*"], "javascript") == []
    assert registry.get_enabled_rules([], "javascript") == []
    assert registry.get_enabled_rules(["*"], "python") == []


def test_adapter_for_file():
    registry = Registry()
    registry.register_adapter("javascript", JavaScriptAdapter())
    registry.register_adapter("typescript", TypeScriptAdapter())

    assert registry.get_adapter_for_file("src/app.mjs").language_id == "javascript"
    assert registry.get_adapter_for_file("src/App.tsx").language_id == "typescript"
    assert registry.get_adapter_for_file("README.md") is None
    assert sorted(registry.list_supported_languages()) == ["javascript", "typescript"]
