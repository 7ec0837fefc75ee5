"""
JavaScript language adapter for tree-sitter.
"""
import logging
import os
import threading
from typing import Any, Iterator, List, Optional, Tuple

import tree_sitter

from .types import LanguageAdapter, WalkEvent

logger = logging.getLogger(__name__)

# Directories never worth descending into when collecting sources
IGNORED_DIRS = {'node_modules', '__pycache__', 'dist', 'build', 'coverage'}


def _node_text_to_str(node_text: Any) -> str:
    """Helper to convert tree-sitter node.text to string, handling bytes/str."""
    if node_text is None:
        return ""
    if isinstance(node_text, bytes):
        return node_text.decode('utf-8', errors='ignore')
    return str(node_text)


def string_value(string_node) -> str:
    """Return the unquoted value of a tree-sitter string literal node."""
    text = _node_text_to_str(string_node.text)
    if len(text) >= 2 and text[0] in ('"', "'", '`') and text[-1] == text[0]:
        return text[1:-1]
    return text


class JavaScriptAdapter(LanguageAdapter):
    """Tree-sitter adapter for JavaScript language."""

    def __init__(self):
        """Initialize JavaScript adapter; parsers are created lazily, one per thread."""
        self._local = threading.local()

    @property
    def language_id(self) -> str:
        """Return the language identifier."""
        return "javascript"

    @property
    def file_extensions(self) -> Tuple[str, ...]:
        """Return supported file extensions."""
        return (".js", ".jsx", ".mjs", ".cjs")

    def _get_parser(self, file_path: Optional[str] = None):
        """Get or create this thread's tree-sitter parser."""
        parser = getattr(self._local, "parser", None)
        if parser is None:
            from tree_sitter_javascript import language

            parser = self._local.parser = tree_sitter.Parser(tree_sitter.Language(language()))
            logger.debug("JavaScript parser initialized")
        return parser

    def parse(self, text: str, file_path: Optional[str] = None) -> Any:
        """Parse text and return a Tree-sitter tree."""
        parser = self._get_parser(file_path)

        # Handle both str and bytes input
        if isinstance(text, bytes):
            text_bytes = text
        else:
            text_bytes = text.encode('utf-8')

        return parser.parse(text_bytes)

    def list_files(self, paths: List[str]) -> List[str]:
        """List all files with this adapter's extensions in the given paths."""
        found = []

        for path in paths:
            if os.path.isfile(path):
                if path.endswith(self.file_extensions):
                    found.append(path)
            elif os.path.isdir(path):
                for root, dirs, files in os.walk(path):
                    # Skip hidden and vendored directories
                    dirs[:] = sorted(d for d in dirs if not d.startswith('.') and d not in IGNORED_DIRS)

                    for file in sorted(files):
                        if file.endswith(self.file_extensions):
                            found.append(os.path.join(root, file))
            else:
                logger.warning("Path '%s' does not exist", path)

        return found

    def walk(self, tree: Any) -> Iterator[WalkEvent]:
        """
        Walk the tree depth-first, yielding enter and exit events.

        Exit events arrive after every descendant has been entered and
        exited, mirroring the visitor callbacks rules are written against.
        """
        if tree is None:
            return
        root = tree.root_node if hasattr(tree, 'root_node') else tree

        stack = [(root, False)]
        while stack:
            node, visited = stack.pop()
            if visited:
                yield ("exit", node)
                continue
            yield ("enter", node)
            stack.append((node, True))
            for child in reversed(node.children):
                stack.append((child, False))


default_javascript_adapter = JavaScriptAdapter()
