"""
TypeScript language adapter for tree-sitter.

Import statements and require calls share their node shapes with the
JavaScript grammar, so only parser selection differs.
"""
import logging
from typing import Optional, Tuple

import tree_sitter

from .javascript_adapter import JavaScriptAdapter

logger = logging.getLogger(__name__)


class TypeScriptAdapter(JavaScriptAdapter):
    """Tree-sitter adapter for TypeScript language."""

    @property
    def language_id(self) -> str:
        """Return the language identifier."""
        return "typescript"

    @property
    def file_extensions(self) -> Tuple[str, ...]:
        """Return supported file extensions."""
        return (".ts", ".tsx", ".mts", ".cts")

    def _get_ts_parser(self):
        """Get or create the TypeScript parser for .ts files."""
        parser = getattr(self._local, "ts_parser", None)
        if parser is None:
            from tree_sitter_typescript import language_typescript

            parser = self._local.ts_parser = tree_sitter.Parser(tree_sitter.Language(language_typescript()))
            logger.debug("TypeScript parser initialized")
        return parser

    def _get_tsx_parser(self):
        """Get or create the TSX parser for .tsx files."""
        parser = getattr(self._local, "tsx_parser", None)
        if parser is None:
            from tree_sitter_typescript import language_tsx

            parser = self._local.tsx_parser = tree_sitter.Parser(tree_sitter.Language(language_tsx()))
            logger.debug("TSX parser initialized")
        return parser

    def _get_parser(self, file_path: Optional[str] = None):
        """Get the appropriate parser based on file extension."""
        if file_path and file_path.endswith('.tsx'):
            return self._get_tsx_parser()
        return self._get_ts_parser()


default_typescript_adapter = TypeScriptAdapter()
