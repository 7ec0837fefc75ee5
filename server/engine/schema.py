"""
JSON output contract for the import-order runner.

This module provides JSON schema definitions and the helpers that turn
Finding objects into protocol dictionaries, plus validation of the
finished document with jsonschema.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import jsonschema

# Current protocol version
PROTOCOL_VERSION = "1"
ENGINE_VERSION = "0.1.0"

_RANGE_SCHEMA = {
    "type": "object",
    "properties": {
        "startLine": {"type": "integer", "minimum": 1},
        "startCol": {"type": "integer", "minimum": 0},
        "endLine": {"type": "integer", "minimum": 1},
        "endCol": {"type": "integer", "minimum": 0}
    },
    "required": ["startLine", "startCol", "endLine", "endCol"],
    "additionalProperties": False,
    "description": "Line/column range (1-based lines, 0-based columns)"
}

# JSON Schema for a single Finding
FINDING_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "rule_id": {"type": "string"},
        "message": {"type": "string"},
        "file_path": {
            "type": "string",
            "description": "Absolute native file path where the issue was found"
        },
        "uri": {"type": "string"},
        "start_byte": {"type": "integer", "minimum": 0},
        "end_byte": {"type": "integer", "minimum": 0},
        "range": _RANGE_SCHEMA,
        "severity": {
            "type": "string",
            "enum": ["info", "warn", "error"]
        },
        "autofix": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "start_byte": {"type": "integer", "minimum": 0},
                    "end_byte": {"type": "integer", "minimum": 0},
                    "replacement": {"type": "string"},
                    "range": _RANGE_SCHEMA
                },
                "required": ["start_byte", "end_byte", "replacement", "range"],
                "additionalProperties": False
            },
            "description": "Edits that together fix the issue"
        },
        "meta": {"type": "object"}
    },
    "required": ["rule_id", "message", "file_path", "uri", "start_byte", "end_byte", "range", "severity"],
    "additionalProperties": False
}

# JSON Schema for the full runner output
RUNNER_OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "import-order.protocol": {"type": "string"},
        "engine_version": {"type": "string"},
        "files_scanned": {"type": "integer", "minimum": 0},
        "files_fixed": {"type": "integer", "minimum": 0},
        "rules_run": {"type": "integer", "minimum": 0},
        "findings": {
            "type": "array",
            "items": FINDING_JSON_SCHEMA
        },
        "metrics": {
            "type": "object",
            "properties": {
                "parse_ms": {"type": "number", "minimum": 0},
                "rules_ms": {"type": "number", "minimum": 0},
                "total_ms": {"type": "number", "minimum": 0}
            },
            "required": ["parse_ms", "rules_ms", "total_ms"],
            "additionalProperties": False
        }
    },
    "required": ["import-order.protocol", "engine_version", "files_scanned", "rules_run", "findings", "metrics"],
    "additionalProperties": False
}


def normalize_path_for_protocol(file_path: str) -> Tuple[str, str]:
    """Return (absolute_native_path, file_uri) for file_path."""
    path = Path(file_path).resolve()
    return str(path), path.as_uri()


def byte_to_line_col(text: str, byte_offset: int) -> Tuple[int, int]:
    """
    Convert byte offset to 1-based line, 0-based column.

    The column counts characters, not bytes, so it lines up with what an
    editor shows for non-ASCII lines.
    """
    data = text.encode('utf-8')
    byte_offset = max(0, min(byte_offset, len(data)))

    line = data.count(b'\n', 0, byte_offset) + 1
    line_start = data.rfind(b'\n', 0, byte_offset) + 1
    col = len(data[line_start:byte_offset].decode('utf-8', errors='ignore'))
    return line, col


def create_range_from_bytes(text: str, start_byte: int, end_byte: int) -> dict:
    """Create a protocol range object from byte offsets."""
    start_line, start_col = byte_to_line_col(text, start_byte)
    end_line, end_col = byte_to_line_col(text, end_byte)

    return {
        "startLine": start_line,
        "startCol": start_col,
        "endLine": end_line,
        "endCol": end_col
    }


def validate_runner_output(output: Dict[str, Any]) -> List[str]:
    """
    Validate runner output against RUNNER_OUTPUT_SCHEMA.

    Returns:
        List of validation errors (empty if valid)
    """
    validator = jsonschema.Draft7Validator(RUNNER_OUTPUT_SCHEMA)
    errors = []
    for error in sorted(validator.iter_errors(output), key=lambda e: list(e.path)):
        location = "/".join(str(part) for part in error.path) or "<root>"
        errors.append(f"{location}: {error.message}")
    return errors


def findings_to_json(findings: List[Any], text_cache: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
    """
    Convert Finding objects to JSON-serializable dictionaries.

    Args:
        findings: List of Finding objects
        text_cache: Optional cache of absolute file path -> text for range conversion

    Returns:
        List of finding dictionaries conforming to FINDING_JSON_SCHEMA
    """
    if text_cache is None:
        text_cache = {}

    result = []
    for finding in findings:
        abs_path, uri = normalize_path_for_protocol(finding.file)
        text = text_cache.get(abs_path, "")

        finding_dict = {
            "rule_id": finding.rule,
            "message": finding.message,
            "file_path": abs_path,
            "uri": uri,
            "start_byte": finding.start_byte,
            "end_byte": finding.end_byte,
            "range": create_range_from_bytes(text, finding.start_byte, finding.end_byte),
            "severity": finding.severity
        }

        if finding.autofix:
            finding_dict["autofix"] = [
                {
                    "start_byte": edit.start_byte,
                    "end_byte": edit.end_byte,
                    "replacement": edit.replacement,
                    "range": create_range_from_bytes(text, edit.start_byte, edit.end_byte)
                }
                for edit in finding.autofix
            ]

        if finding.meta:
            finding_dict["meta"] = finding.meta

        result.append(finding_dict)

    return result
