"""
Core types for the import-order engine.

This module provides shared dataclasses and types used across the engine,
adapters, and rules.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Literal, Optional, Protocol, Tuple
from abc import ABC, abstractmethod


# Type aliases for clarity
Severity = Literal["info", "warn", "error"]
Priority = Literal["P0", "P1", "P2"]
Tier = Literal[0, 1, 2]
NodeRange = Tuple[int, int]  # (start_byte, end_byte) 0-based
WalkEvent = Tuple[Literal["enter", "exit"], Any]


@dataclass(frozen=True)
class Edit:
    """A suggested edit to fix an issue."""
    start_byte: int
    end_byte: int
    replacement: str


@dataclass(frozen=True)
class Finding:
    """A finding represents an issue detected by a rule."""
    rule: str
    message: str
    file: str
    start_byte: int
    end_byte: int
    severity: Severity
    autofix: Optional[List[Edit]] = None
    meta: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class RuleMeta:
    """Metadata about a rule.

    Attributes:
        id: Unique rule identifier (e.g., "imports.order")
        category: Rule category for grouping
        tier: Analysis tier (0=syntax, 1=needs module resolution)
        priority: P0/P1/P2 priority level
        autofix_safety: Whether autofix is safe/caution/suggest-only
        description: Human-readable description
        langs: List of supported languages
    """
    id: str
    category: str
    tier: Tier
    priority: Priority
    autofix_safety: Literal["safe", "caution", "suggest-only"]
    description: str = ""
    langs: List[str] = None  # ["javascript", "typescript"]

    def __post_init__(self):
        if self.langs is None:
            object.__setattr__(self, 'langs', [])


@dataclass(frozen=True)
class Requires:
    """Represents requirements that a rule needs to run."""
    raw_text: bool = False
    syntax: bool = True
    resolver: bool = False


@dataclass
class RuleContext:
    """Context passed to rules during execution."""
    file_path: str
    text: str
    tree: Any
    adapter: 'LanguageAdapter'  # Forward reference
    config: Dict[str, Any]
    # Module resolver, wired by the runner when a rule asks for it
    resolver: Any = None

    @property
    def language(self):
        """Get language from adapter."""
        return self.adapter.language_id if self.adapter else None


class Rule(Protocol):
    """Protocol for all rules in the engine.

    Rules analyze code and return findings. Per-file state must not outlive
    a single call to visit().
    """
    meta: RuleMeta
    requires: Requires

    def visit(self, ctx: RuleContext) -> Iterable[Finding]:
        """Visit a file and return findings.

        Args:
            ctx: Rule context containing file path, text, tree, adapter, and config

        Returns:
            Iterable of findings for this file
        """
        ...


class LanguageAdapter(ABC):
    """Abstract base class for language adapters."""

    @property
    @abstractmethod
    def language_id(self) -> str:
        """Return the language identifier (e.g., 'typescript', 'javascript')."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> Tuple[str, ...]:
        """Return supported file extensions (e.g., ('.ts', '.tsx'))."""
        pass

    @abstractmethod
    def parse(self, text: str, file_path: Optional[str] = None) -> Any:
        """Parse text and return a Tree-sitter tree."""
        pass

    @abstractmethod
    def list_files(self, paths: List[str]) -> List[str]:
        """List all files matching this adapter's extensions in the given paths."""
        pass

    @abstractmethod
    def walk(self, tree: Any) -> Iterator[WalkEvent]:
        """Yield ("enter", node) and ("exit", node) events in source order."""
        pass
