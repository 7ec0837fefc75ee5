"""
Import-order engine package.

Tree-sitter based host for the import-order rules: language adapters, module
resolution and classification, configuration, fix application and the CLI.
"""

from .types import (
    Finding, RuleMeta, Rule, RuleContext, Edit, Requires,
    LanguageAdapter, Severity, NodeRange
)

from .registry import (
    register_rule, register_adapter, get_adapter, get_rule,
    get_all_rules, get_rules_for_language, get_enabled_rules,
    list_supported_languages, clear
)

from .config import (
    ConfigError, EngineConfig, load_config, get_default_config, save_config, find_config_file,
    get_rule_severity
)

from .autofix import FixResult, apply_edits, apply_fixes, fix_text

__all__ = [
    # Types
    "Finding", "RuleMeta", "Rule", "RuleContext", "Edit", "Requires",
    "LanguageAdapter", "Severity", "NodeRange",

    # Registry
    "register_rule", "register_adapter", "get_adapter", "get_rule",
    "get_all_rules", "get_rules_for_language", "get_enabled_rules",
    "list_supported_languages", "clear",

    # Config
    "ConfigError", "EngineConfig", "load_config", "get_default_config", "save_config", "find_config_file",
    "get_rule_severity",

    # Fixes
    "FixResult", "apply_edits", "apply_fixes", "fix_text"
]
