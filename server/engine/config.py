"""
Configuration management for the import-order engine.

This module provides configuration loading with sensible defaults for
limits, severities, module classification settings and rule options.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Any
import copy
import logging
import os

import yaml

logger = logging.getLogger(__name__)

CONFIG_NAMES = [".import-order.yml", ".import-order.yaml", "import-order.yml", "import-order.yaml"]


class ConfigError(ValueError):
    """Raised when rule options cannot be turned into a working configuration."""


@dataclass
class EngineConfig:
    """Configuration for the import-order engine."""

    # Rule execution settings
    enabled_rules: List[str]
    max_findings_per_file: int = 50
    max_total_findings: int = 1000

    # Rule severity overrides (rule_id -> severity)
    rule_severities: Dict[str, str] = None

    # Language-specific settings
    language_configs: Dict[str, Dict[str, Any]] = None

    # Rule-specific configuration
    rule_configs: Dict[str, Dict[str, Any]] = None

    def __post_init__(self):
        if self.language_configs is None:
            object.__setattr__(self, 'language_configs', {})
        if self.rule_severities is None:
            object.__setattr__(self, 'rule_severities', {})
        if self.rule_configs is None:
            object.__setattr__(self, 'rule_configs', {})


def _js_language_defaults() -> Dict[str, Any]:
    return {
        "core_modules": [],
        "external_module_folders": ["node_modules"],
        "resolver": {
            "extra_paths": []
        }
    }


DEFAULTS: Dict[str, Any] = {
    "enabled_rules": ["*"],
    "max_findings_per_file": 50,
    "max_total_findings": 1000,
    "rule_severities": {
        "imports.order": "warn",
    },
    "language_configs": {
        "javascript": _js_language_defaults(),
        "typescript": _js_language_defaults(),
    },
    "rule_configs": {
        "imports.order": {
            "groups": ["builtin", "external", "parent", "sibling", "index"],
            "newlines-between": "ignore",
        },
    },
}


def _merge_section(merged: Dict[str, Any], overrides: Dict[str, Any], key: str) -> None:
    """Merge a dict-of-dicts section one level deep."""
    for name, section in (overrides.get(key) or {}).items():
        if name in merged[key] and isinstance(section, dict):
            merged[key][name].update(section)
        else:
            merged[key][name] = section


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Path to config file (YAML). If None, uses defaults.

    Returns:
        EngineConfig instance
    """
    defaults = copy.deepcopy(DEFAULTS)

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f) or {}

            if not isinstance(file_config, dict):
                raise ValueError("top-level YAML value must be a mapping")

            merged_config = copy.deepcopy(defaults)
            for key, value in file_config.items():
                if key not in ("language_configs", "rule_severities", "rule_configs"):
                    merged_config[key] = value

            # Deep merge language and rule configs
            _merge_section(merged_config, file_config, "language_configs")
            _merge_section(merged_config, file_config, "rule_configs")
            merged_config["rule_severities"].update(file_config.get("rule_severities") or {})

            return EngineConfig(**merged_config)

        except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
            logger.warning("Failed to load config from %s: %s; using default configuration", config_path, e)

    return EngineConfig(**defaults)


def get_default_config() -> EngineConfig:
    """Get default configuration without loading from file."""
    return load_config(None)


def save_config(config: EngineConfig, config_path: str) -> None:
    """
    Save configuration to file.

    Args:
        config: EngineConfig to save
        config_path: Path where to save the config
    """
    config_dict = {
        "enabled_rules": config.enabled_rules,
        "max_findings_per_file": config.max_findings_per_file,
        "max_total_findings": config.max_total_findings,
        "rule_severities": config.rule_severities,
        "rule_configs": config.rule_configs,
        "language_configs": config.language_configs
    }

    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2)


def find_config_file(start_path: str = ".") -> Optional[str]:
    """
    Find configuration file by walking up the directory tree.

    Looks for the names in CONFIG_NAMES, in order, in each directory.

    Args:
        start_path: File or directory to start searching from

    Returns:
        Path to config file or None if not found
    """
    current_path = os.path.abspath(start_path)
    if os.path.isfile(current_path):
        current_path = os.path.dirname(current_path)

    while True:
        for config_name in CONFIG_NAMES:
            config_path = os.path.join(current_path, config_name)
            if os.path.exists(config_path):
                return config_path

        parent_path = os.path.dirname(current_path)
        if parent_path == current_path:
            # Reached the root directory
            break
        current_path = parent_path

    return None


def get_rule_severity(rule_id: str, config: EngineConfig, default_severity: str = "warn") -> str:
    """
    Get the configured severity for a rule, falling back to default.

    Args:
        rule_id: Rule identifier (e.g., "imports.order")
        config: Engine configuration
        default_severity: Fallback severity if not configured

    Returns:
        Severity level ("info", "warn", or "error")
    """
    if config.rule_severities and rule_id in config.rule_severities:
        return config.rule_severities[rule_id]
    return default_severity


def rule_context_config(config: EngineConfig, language: str, rule_id: str) -> Dict[str, Any]:
    """Flatten language settings and one rule's options into the dict a rule sees."""
    merged = copy.deepcopy(config.language_configs.get(language, {}))
    merged.update(copy.deepcopy(config.rule_configs.get(rule_id, {})))
    return merged
