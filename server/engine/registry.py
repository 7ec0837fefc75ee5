"""
Registry for rules and language adapters.

This module provides a central registry to register and discover rules
and language adapters in the import-order engine.
"""

import fnmatch
import importlib
import logging
import os
import pkgutil
from typing import Dict, List, Optional

from .types import Rule, LanguageAdapter

logger = logging.getLogger(__name__)


class Registry:
    """Central registry for rules and adapters."""

    def __init__(self):
        self._rules: List[Rule] = []
        self._adapters: Dict[str, LanguageAdapter] = {}
        self._rule_index: Dict[str, Rule] = {}  # id -> rule

    def register_rule(self, rule: Rule) -> None:
        """Register a rule in the registry. Later registrations of the same id are ignored."""
        if rule.meta.id in self._rule_index:
            return

        self._rules.append(rule)
        self._rule_index[rule.meta.id] = rule

    def register_adapter(self, language: str, adapter: LanguageAdapter) -> None:
        """Register a language adapter. Silently skips if already registered."""
        if language in self._adapters:
            return

        self._adapters[language] = adapter

    def get_adapter(self, language: str) -> Optional[LanguageAdapter]:
        """Get adapter for a language."""
        return self._adapters.get(language)

    def get_adapter_for_file(self, file_path: str) -> Optional[LanguageAdapter]:
        """Get adapter for a file based on its extension."""
        ext = os.path.splitext(file_path)[1].lower()

        for adapter in self._adapters.values():
            if ext in adapter.file_extensions:
                return adapter
        return None

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Get rule by id."""
        return self._rule_index.get(rule_id)

    def get_all_rules(self) -> List[Rule]:
        """Get all registered rules."""
        return self._rules.copy()

    def get_rule_ids(self) -> List[str]:
        """Get all registered rule IDs."""
        return list(self._rule_index.keys())

    def get_rules_for_language(self, language: str) -> List[Rule]:
        """Get all rules that support a specific language."""
        return [rule for rule in self._rules if language in rule.meta.langs]

    def get_enabled_rules(self, enabled_patterns: List[str], language: str) -> List[Rule]:
        """Get rules for language whose id matches any of the fnmatch patterns."""
        if not enabled_patterns:
            return []

        enabled_rules = []
        for rule in self.get_rules_for_language(language):
            if any(fnmatch.fnmatch(rule.meta.id, pattern) for pattern in enabled_patterns):
                enabled_rules.append(rule)
        return enabled_rules

    def list_supported_languages(self) -> List[str]:
        """List all supported languages."""
        return list(self._adapters.keys())

    def discover_rules(self, entry_packages: List[str]) -> int:
        """
        Auto-discover and register rules from packages.

        Args:
            entry_packages: List of package names to discover from

        Returns:
            Number of rules discovered and registered
        """
        initial_count = len(self._rules)

        for package_name in entry_packages:
            try:
                package = importlib.import_module(package_name)
            except ImportError as e:
                logger.warning("Could not import package %s: %s", package_name, e)
                continue

            if not hasattr(package, '__path__'):
                self._extract_rules_from_module(package)
                continue

            for _, modname, _ in pkgutil.walk_packages(package.__path__, package.__name__ + "."):
                try:
                    module = importlib.import_module(modname)
                except ImportError as e:
                    logger.warning("Failed to import %s: %s", modname, e)
                    continue
                self._extract_rules_from_module(module)

        return len(self._rules) - initial_count

    def _extract_rules_from_module(self, module) -> None:
        """Register every entry of a module-level RULES list; classes are instantiated."""
        rules = getattr(module, 'RULES', None)
        if not isinstance(rules, list):
            return

        for rule in rules:
            self.register_rule(rule() if isinstance(rule, type) else rule)

    def clear(self) -> None:
        """Clear all registered rules and adapters (mainly for testing)."""
        self._rules.clear()
        self._adapters.clear()
        self._rule_index.clear()


# Global registry instance
_global_registry = Registry()


def load_default_adapters() -> None:
    """Register the JavaScript and TypeScript adapters."""
    from .javascript_adapter import default_javascript_adapter
    from .typescript_adapter import default_typescript_adapter

    _global_registry.register_adapter("javascript", default_javascript_adapter)
    _global_registry.register_adapter("typescript", default_typescript_adapter)


# Convenience functions that operate on the global registry
def register_rule(rule: Rule) -> None:
    """Register a rule in the global registry."""
    _global_registry.register_rule(rule)


def register_adapter(language: str, adapter: LanguageAdapter) -> None:
    """Register a language adapter in the global registry."""
    _global_registry.register_adapter(language, adapter)


def get_adapter(language: str) -> Optional[LanguageAdapter]:
    """Get adapter for a language from the global registry."""
    return _global_registry.get_adapter(language)


def get_adapter_for_file(file_path: str) -> Optional[LanguageAdapter]:
    """Get adapter for a file based on its extension from the global registry."""
    return _global_registry.get_adapter_for_file(file_path)


def get_rule(rule_id: str) -> Optional[Rule]:
    """Get rule by id from the global registry."""
    return _global_registry.get_rule(rule_id)


def get_all_rules() -> List[Rule]:
    """Get all registered rules from the global registry."""
    return _global_registry.get_all_rules()


def get_rule_ids() -> List[str]:
    """Get all registered rule IDs."""
    return _global_registry.get_rule_ids()


def get_rules_for_language(language: str) -> List[Rule]:
    """Get all rules that support a specific language from the global registry."""
    return _global_registry.get_rules_for_language(language)


def get_enabled_rules(enabled_patterns: List[str], language: str) -> List[Rule]:
    """Get rules enabled by patterns for a specific language."""
    return _global_registry.get_enabled_rules(enabled_patterns, language)


def list_supported_languages() -> List[str]:
    """List all supported languages from the global registry."""
    return _global_registry.list_supported_languages()


def discover_rules(entry_packages: List[str]) -> int:
    """Auto-discover and register rules from packages."""
    return _global_registry.discover_rules(entry_packages)


def clear() -> None:
    """Clear the global registry (mainly for testing)."""
    _global_registry.clear()
