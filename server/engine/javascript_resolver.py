"""
JavaScript/Node.js module resolver.

Resolves import specifiers to files so the import classifier can tell an
installed package apart from a project module that happens to share the
bare-name syntax. Handles:
- Relative imports (./x, ../x) with extension and index probing
- node_modules package resolution (package.json main/module, subpaths)
- Extra search directories for bare names (aliases, baseUrl-style roots)
- Node.js built-in modules
"""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolveResult:
    """Result of resolving an import specifier."""
    module: str              # specifier, or file name once resolved
    file_path: Optional[str] # resolved file path if it maps to a file
    kind: str                # "module_file"|"package_main"|"builtin"|"third_party"|"missing"
    meta: dict = field(default_factory=dict)  # extra info (tried_paths, package_dir, ...)


# Node.js built-in modules (core modules)
NODE_BUILTIN_MODULES = frozenset({
    'assert', 'assert/strict', 'async_hooks', 'buffer', 'child_process',
    'cluster', 'console', 'constants', 'crypto', 'dgram', 'diagnostics_channel',
    'dns', 'dns/promises', 'domain', 'events', 'fs', 'fs/promises', 'http',
    'http2', 'https', 'inspector', 'module', 'net', 'os', 'path', 'path/posix',
    'path/win32', 'perf_hooks', 'process', 'punycode', 'querystring',
    'readline', 'readline/promises', 'repl', 'stream', 'stream/consumers',
    'stream/promises', 'stream/web', 'string_decoder', 'sys', 'timers',
    'timers/promises', 'tls', 'trace_events', 'tty', 'url', 'util',
    'util/types', 'v8', 'vm', 'wasi', 'worker_threads', 'zlib',
})

# Probed in order; '' lets an exact filename win
FILE_EXTENSIONS = ['.js', '.jsx', '.mjs', '.cjs', '.ts', '.tsx', '.json', '']
INDEX_NAMES = ['index.js', 'index.jsx', 'index.mjs', 'index.cjs', 'index.ts', 'index.tsx']


def is_builtin_module(module: str) -> bool:
    """Check if module is a Node.js built-in, with or without the node: prefix."""
    if module.startswith('node:'):
        module = module[len('node:'):]
    return module in NODE_BUILTIN_MODULES


class JavaScriptResolver:
    """Resolves JavaScript import specifiers to modules and files."""

    def __init__(self, project_roots: List[str], extra_paths: Optional[List[str]] = None):
        """
        Initialize resolver with project roots and optional extra paths.

        Args:
            project_roots: Directories that hold project modules
            extra_paths: Additional directories searched for bare specifiers
        """
        self.project_roots = [os.path.abspath(root) for root in project_roots]
        self.extra_paths = [os.path.abspath(path) for path in (extra_paths or [])]

        # Cache for performance
        self._resolve_cache: Dict[tuple, ResolveResult] = {}
        self._package_json_cache: Dict[str, dict] = {}

    def resolve(self, from_file: str, module: str) -> ResolveResult:
        """
        Resolve an import specifier to a module/file.

        Args:
            from_file: Path to file containing the import
            module: Module specifier (e.g., "lodash", "./utils", "../config")

        Returns:
            ResolveResult with resolution information
        """
        cache_key = (os.path.dirname(os.path.abspath(from_file)), module)
        if cache_key in self._resolve_cache:
            return self._resolve_cache[cache_key]

        result = self._resolve_uncached(from_file, module)
        logger.debug("resolve %r from %s -> %s (%s)", module, from_file, result.file_path, result.kind)
        self._resolve_cache[cache_key] = result
        return result

    def resolve_path(self, from_file: str, module: str) -> Optional[str]:
        """Resolve a specifier and return only the file path (None when unresolved)."""
        return self.resolve(from_file, module).file_path

    def _resolve_uncached(self, from_file: str, module: str) -> ResolveResult:
        """Perform uncached resolution."""
        tried_paths: List[str] = []

        if is_builtin_module(module):
            return ResolveResult(module=module, file_path=None, kind="builtin", meta={"builtin": True})

        if module.startswith('./') or module.startswith('../') or module in ('.', '..'):
            result = self._resolve_relative(from_file, module, tried_paths)
        elif module.startswith('/'):
            result = self._resolve_file_or_directory(module, tried_paths)
        else:
            result = (self._resolve_node_modules(from_file, module, tried_paths)
                      or self._resolve_extra_paths(module, tried_paths))

        if result:
            return result

        return ResolveResult(module=module, file_path=None, kind="missing", meta={"tried_paths": tried_paths})

    def _resolve_relative(self, from_file: str, module: str, tried_paths: List[str]) -> Optional[ResolveResult]:
        """Resolve a relative import."""
        from_dir = os.path.dirname(os.path.abspath(from_file))
        target_path = os.path.normpath(os.path.join(from_dir, module))
        return self._resolve_file_or_directory(target_path, tried_paths)

    def _resolve_file_or_directory(self, target_path: str, tried_paths: List[str]) -> Optional[ResolveResult]:
        """Try target_path as a file, then as a directory with an index file."""
        return (self._try_file_extensions(target_path, tried_paths)
                or self._try_directory_index(target_path, tried_paths))

    def _resolve_extra_paths(self, module: str, tried_paths: List[str]) -> Optional[ResolveResult]:
        """Resolve a bare specifier against the configured extra search directories."""
        for search_root in self.extra_paths:
            result = self._resolve_file_or_directory(os.path.join(search_root, module), tried_paths)
            if result:
                return result
        return None

    def _resolve_node_modules(self, from_file: str, module: str, tried_paths: List[str]) -> Optional[ResolveResult]:
        """Resolve a package from node_modules, walking up from the importing file."""
        if module.startswith('@'):
            parts = module.split('/', 2)
            package_name = '/'.join(parts[:2])
            subpath = parts[2] if len(parts) > 2 else None
        else:
            parts = module.split('/', 1)
            package_name = parts[0]
            subpath = parts[1] if len(parts) > 1 else None

        current_dir = os.path.dirname(os.path.abspath(from_file))
        while True:
            package_dir = os.path.join(current_dir, 'node_modules', package_name)

            if os.path.isdir(package_dir):
                if subpath:
                    result = self._resolve_file_or_directory(os.path.join(package_dir, subpath), tried_paths)
                    if result:
                        return result
                else:
                    result = self._resolve_package_main(package_dir, tried_paths)
                    if result:
                        return result

                # Package exists but the entry point could not be located
                return ResolveResult(
                    module=module,
                    file_path=None,
                    kind="third_party",
                    meta={"package_dir": package_dir}
                )

            parent = os.path.dirname(current_dir)
            if parent == current_dir:
                # Reached root
                break
            current_dir = parent

        return None

    def _resolve_package_main(self, package_dir: str, tried_paths: List[str]) -> Optional[ResolveResult]:
        """Resolve a package directory through package.json main/module, then index."""
        package_json_path = os.path.join(package_dir, 'package.json')
        if os.path.isfile(package_json_path):
            package_json = self._load_package_json(package_json_path)
            for entry_field in ('main', 'module'):
                entry = package_json.get(entry_field)
                if isinstance(entry, str) and entry:
                    result = self._resolve_file_or_directory(os.path.join(package_dir, entry), tried_paths)
                    if result:
                        return replace(result, kind="package_main")

        return self._try_directory_index(package_dir, tried_paths)

    def _try_file_extensions(self, base_path: str, tried_paths: List[str]) -> Optional[ResolveResult]:
        """Try to find file with various extensions."""
        for ext in FILE_EXTENSIONS:
            file_path = base_path + ext
            tried_paths.append(file_path)

            if os.path.isfile(file_path):
                return self._file_result(file_path, {"extension": ext})

        return None

    def _try_directory_index(self, dir_path: str, tried_paths: List[str]) -> Optional[ResolveResult]:
        """Try to find index file in directory."""
        if not os.path.isdir(dir_path):
            return None

        for index_name in INDEX_NAMES:
            index_path = os.path.join(dir_path, index_name)
            tried_paths.append(index_path)

            if os.path.isfile(index_path):
                return self._file_result(index_path, {"is_index": True})

        return None

    def _file_result(self, file_path: str, meta: dict) -> ResolveResult:
        """Build a result for a located file, telling project files from installed ones."""
        in_node_modules = f"{os.sep}node_modules{os.sep}" in file_path
        is_project = not in_node_modules and any(
            file_path.startswith(root + os.sep) for root in self.project_roots
        )
        return ResolveResult(
            module=os.path.basename(file_path),
            file_path=file_path,
            kind="module_file" if is_project else "third_party",
            meta=meta
        )

    def _load_package_json(self, path: str) -> dict:
        """Load and cache package.json file."""
        if path in self._package_json_cache:
            return self._package_json_cache[path]

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s: %s", path, e)
            data = {}

        if not isinstance(data, dict):
            data = {}
        self._package_json_cache[path] = data
        return data

    def clear_caches(self):
        """Clear all internal caches."""
        self._resolve_cache.clear()
        self._package_json_cache.clear()
