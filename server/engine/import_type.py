"""
Module specifier classification.

Maps an import specifier ("fs", "lodash", "@babel/core", "../x", "./y")
to the category describing where the module comes from. The checks run
top to bottom and the first matching predicate wins; the order of
CLASSIFIERS is part of the contract.
"""

import os
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from .javascript_resolver import is_builtin_module

ABSOLUTE = "absolute"
BUILTIN = "builtin"
EXTERNAL = "external"
INTERNAL = "internal"
PARENT = "parent"
INDEX = "index"
SIBLING = "sibling"
UNKNOWN = "unknown"

IMPORT_TYPES = (ABSOLUTE, BUILTIN, EXTERNAL, INTERNAL, PARENT, INDEX, SIBLING, UNKNOWN)

DEFAULT_EXTERNAL_MODULE_FOLDERS = ["node_modules"]

_EXTERNAL_MODULE_RE = re.compile(r"^\w")
_SCOPED_RE = re.compile(r"^@\w+/\w+")
_INDEX_FILES = {".", "./", "./index", "./index.js"}

Settings = Optional[Dict[str, Any]]
Predicate = Callable[[str, Settings, Optional[str]], bool]


def is_absolute(name: str, settings: Settings = None, path: Optional[str] = None) -> bool:
    return name.startswith("/")


def is_builtin(name: str, settings: Settings = None, path: Optional[str] = None) -> bool:
    extras = (settings or {}).get("core_modules") or []
    return is_builtin_module(name) or name in extras


def _external_folders(settings: Settings) -> List[str]:
    return (settings or {}).get("external_module_folders") or DEFAULT_EXTERNAL_MODULE_FOLDERS


def is_external_path(path: Optional[str], name: str, settings: Settings = None) -> bool:
    """True when resolution failed or the resolved file lives under an external folder."""
    if not path:
        return True
    return any(os.path.join(folder, name) in path for folder in _external_folders(settings))


def is_external_module(name: str, settings: Settings = None, path: Optional[str] = None) -> bool:
    return bool(_EXTERNAL_MODULE_RE.match(name)) and is_external_path(path, name, settings)


def is_scoped(name: str, settings: Settings = None, path: Optional[str] = None) -> bool:
    return bool(_SCOPED_RE.match(name))


def is_internal_module(name: str, settings: Settings = None, path: Optional[str] = None) -> bool:
    return bool(_EXTERNAL_MODULE_RE.match(name)) and not is_external_path(path, name, settings)


def is_relative_to_parent(name: str, settings: Settings = None, path: Optional[str] = None) -> bool:
    return name.startswith("../")


def is_index(name: str, settings: Settings = None, path: Optional[str] = None) -> bool:
    return name in _INDEX_FILES


def is_relative_to_sibling(name: str, settings: Settings = None, path: Optional[str] = None) -> bool:
    return name.startswith("./")


CLASSIFIERS: List[Tuple[Predicate, str]] = [
    (is_absolute, ABSOLUTE),
    (is_builtin, BUILTIN),
    (is_external_module, EXTERNAL),
    (is_scoped, EXTERNAL),
    (is_internal_module, INTERNAL),
    (is_relative_to_parent, PARENT),
    (is_index, INDEX),
    (is_relative_to_sibling, SIBLING),
]


def classify(name: str, settings: Settings = None, path: Optional[str] = None) -> str:
    """
    Classify a module specifier.

    Args:
        name: Specifier exactly as written in the import
        settings: Optional dict with "core_modules" and "external_module_folders"
        path: Resolved file path, or None when resolution failed or was skipped

    Returns:
        One of IMPORT_TYPES; "unknown" when nothing matches
    """
    for predicate, import_type in CLASSIFIERS:
        if predicate(name, settings, path):
            return import_type
    return UNKNOWN


def resolve_import_type(name: str, file_path: str, settings: Settings = None, resolver: Any = None) -> str:
    """Resolve name relative to file_path (when a resolver is wired) and classify it."""
    path = resolver.resolve_path(file_path, name) if resolver is not None else None
    return classify(name, settings, path)
