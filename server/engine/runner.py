"""
CLI runner for the import-order engine.

This module provides the main CLI entry point for loading adapters,
parsing files, running rules, applying fixes and outputting results.
"""

import argparse
import concurrent.futures
import dataclasses
import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .autofix import fix_text
from .config import ConfigError, EngineConfig, find_config_file, load_config, rule_context_config
from .javascript_resolver import JavaScriptResolver
from .registry import discover_rules, get_adapter, get_enabled_rules, get_rule_ids, load_default_adapters
from .schema import (ENGINE_VERSION, PROTOCOL_VERSION, byte_to_line_col, findings_to_json,
                     validate_runner_output)
from .suppressions import filter_suppressed_findings
from .types import Finding, RuleContext

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ["javascript", "typescript"]


def setup_adapters():
    """Set up and register language adapters."""
    load_default_adapters()


def collect_files(paths: List[str], language: str) -> List[str]:
    """Collect absolute paths of files the language adapter handles, sorted and deduplicated."""
    adapter = get_adapter(language)
    if not adapter:
        print(f"Error: No adapter found for language '{language}'", file=sys.stderr)
        return []

    return sorted({os.path.abspath(path) for path in adapter.list_files(paths)})


def build_resolver(files: List[str], language: str, config: EngineConfig) -> Optional[JavaScriptResolver]:
    """Build one resolver for a run, rooted at the common directory of files."""
    if not files:
        return None

    project_roots = sorted({os.path.dirname(path) for path in files})
    if len(project_roots) > 1:
        common_root = os.path.commonpath(project_roots)
        if common_root and common_root != os.path.dirname(common_root):  # Not filesystem root
            project_roots = [common_root]

    resolver_config = config.language_configs.get(language, {}).get("resolver", {})
    return JavaScriptResolver(project_roots, resolver_config.get("extra_paths", []))


def configure_rules(rules: List, config: EngineConfig) -> List[str]:
    """
    Hand every rule its options from config once, before any file is read.

    Returns:
        Configuration error messages, one per misconfigured rule
    """
    errors = []
    for rule in rules:
        configure = getattr(rule, 'configure', None)
        if configure is None:
            continue
        try:
            configure(config.rule_configs.get(rule.meta.id))
        except ConfigError as e:
            errors.append(f"{rule.meta.id}: {e}")
    return errors


def analyze_text(file_path: str, content: str, language: str, rules: List, config: EngineConfig,
                 resolver: Any = None) -> Tuple[List[Finding], float]:
    """Parse content and run rules on it; returns findings and parse time in ms."""
    adapter = get_adapter(language)
    if not adapter:
        return [], 0.0

    parse_start = time.time()
    tree = adapter.parse(content, file_path=file_path)
    parse_time = (time.time() - parse_start) * 1000

    findings: List[Finding] = []
    for rule in rules:
        context = RuleContext(
            file_path=file_path,
            text=content,
            tree=tree,
            adapter=adapter,
            config=rule_context_config(config, language, rule.meta.id),
            resolver=resolver if rule.requires.resolver else None
        )

        try:
            rule_findings = list(rule.visit(context))
        except Exception as e:
            logger.warning("Rule '%s' failed on %s: %s", rule.meta.id, file_path, e)
            continue

        # Apply severity overrides from config
        for finding in rule_findings:
            if finding.rule in config.rule_severities and finding.severity != "error":
                finding = dataclasses.replace(finding, severity=config.rule_severities[finding.rule])
            findings.append(finding)

        # Apply per-file limit
        if len(findings) >= config.max_findings_per_file:
            findings = findings[:config.max_findings_per_file]
            break

    return filter_suppressed_findings(findings, content), parse_time


def analyze_file(file_path: str, language: str, rules: List, config: EngineConfig,
                 resolver: Any = None, fix: bool = False) -> Tuple[List[Finding], float, bool]:
    """
    Analyze a single file, optionally rewriting it with all applicable fixes.

    Returns:
        (findings, parse time in ms, whether the file was rewritten). With
        fix=True the findings are those left after fixing.
    """
    try:
        with open(file_path, 'r', encoding='utf-8', newline='') as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read %s: %s", file_path, e)
        return [], 0.0, False

    findings, parse_time = analyze_text(file_path, content, language, rules, config, resolver)
    if not fix or not any(f.autofix for f in findings):
        return findings, parse_time, False

    result = fix_text(content, lambda text: analyze_text(file_path, text, language, rules, config, resolver)[0])
    if result.output == content:
        return result.remaining, parse_time, False

    with open(file_path, 'w', encoding='utf-8', newline='') as f:
        f.write(result.output)
    logger.info("Fixed %s (%d fixes applied)", file_path, len(result.applied))
    return result.remaining, parse_time, True


def run_analysis_parallel(files: List[str], language: str, rules: List, config: EngineConfig,
                          jobs: int, resolver: Any = None,
                          fix: bool = False) -> Tuple[List[Finding], float, int]:
    """Run analysis on files with optional parallelization; results keep file order."""
    def analyze(file_path: str) -> Tuple[List[Finding], float, bool]:
        return analyze_file(file_path, language, rules, config, resolver, fix)

    if jobs <= 1:
        file_results = map(analyze, files)
        return _collect_results(file_results, config)

    with concurrent.futures.ThreadPoolExecutor(max_workers=jobs) as executor:
        return _collect_results(list(executor.map(analyze, files)), config)


def _collect_results(file_results, config: EngineConfig) -> Tuple[List[Finding], float, int]:
    all_findings: List[Finding] = []
    total_parse_time = 0.0
    files_fixed = 0

    for findings, parse_time, fixed in file_results:
        all_findings.extend(findings)
        total_parse_time += parse_time
        files_fixed += int(fixed)

        # Apply total findings limit
        if len(all_findings) >= config.max_total_findings:
            all_findings = all_findings[:config.max_total_findings]
            break

    return all_findings, total_parse_time, files_fixed


def read_text_cache(files: List[str]) -> Dict[str, str]:
    """Map absolute path -> current file text for line/column conversion."""
    text_cache = {}
    for file_path in files:
        try:
            with open(file_path, 'r', encoding='utf-8', newline='') as f:
                text_cache[str(Path(file_path).resolve())] = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Skipping %s for ranges: %s", file_path, e)
    return text_cache


def build_output(findings: List[Finding], files_count: int, rules_count: int, metrics: Dict[str, float],
                 text_cache: Dict[str, str], files_fixed: int = 0) -> Dict[str, Any]:
    """Build the JSON protocol document."""
    return {
        "import-order.protocol": PROTOCOL_VERSION,
        "engine_version": ENGINE_VERSION,
        "files_scanned": files_count,
        "files_fixed": files_fixed,
        "rules_run": rules_count,
        "findings": findings_to_json(findings, text_cache),
        "metrics": metrics
    }


def format_output(findings: List[Finding], files_count: int, rules_count: int, metrics: Dict[str, float],
                  format_type: str = "json", text_cache: Optional[Dict[str, str]] = None,
                  files_fixed: int = 0) -> str:
    """Format findings for output."""
    text_cache = text_cache or {}

    if format_type == "json":
        output = build_output(findings, files_count, rules_count, metrics, text_cache, files_fixed)
        return json.dumps(output, indent=2)

    elif format_type == "pretty":
        lines = [f"Scanned {files_count} files with {rules_count} rules"]
        if files_fixed:
            lines.append(f"Fixed {files_fixed} files")
        lines.append(f"Found {len(findings)} issues")
        lines.append("")

        # Group findings by file
        by_file: Dict[str, List[Finding]] = {}
        for finding in findings:
            by_file.setdefault(finding.file, []).append(finding)

        for file_path, file_findings in sorted(by_file.items()):
            text = text_cache.get(str(Path(file_path).resolve()), "")
            lines.append(file_path)
            for finding in file_findings:
                line, col = byte_to_line_col(text, finding.start_byte)
                fixable = " [fixable]" if finding.autofix else ""
                lines.append(f"  {line}:{col + 1}  {finding.severity:<5}  {finding.message} ({finding.rule}){fixable}")
            lines.append("")

        lines.append("Metrics:")
        lines.append(f"  Parse time: {metrics['parse_ms']:.1f}ms")
        lines.append(f"  Rules time: {metrics['rules_ms']:.1f}ms")
        lines.append(f"  Total time: {metrics['total_ms']:.1f}ms")

        return "\n".join(lines)

    else:
        raise ValueError(f"Unknown format: {format_type}")


def analyze_paths(paths: List[str], languages: Optional[List[str]] = None,
                  rule_patterns: Optional[List[str]] = None, config_path: Optional[str] = None,
                  jobs: int = 1, fix: bool = False,
                  discovery_packages: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Library function to analyze paths.

    Args:
        paths: List of file/directory paths to analyze
        languages: Languages to analyze (default: javascript and typescript)
        rule_patterns: Rule patterns to run (default: ["*"])
        config_path: Path to config file (default: auto-detect)
        jobs: Number of worker threads
        fix: Rewrite files with every applicable fix
        discovery_packages: Packages to discover rules from (default: ["rules"])

    Returns:
        Dictionary in the JSON protocol format, plus "config_errors"
    """
    total_start = time.time()
    setup_adapters()
    discover_rules(discovery_packages or ["rules"])

    if not config_path:
        config_path = find_config_file(paths[0] if paths else ".")
    config = load_config(config_path)

    all_findings: List[Finding] = []
    all_files: List[str] = []
    config_errors: List[str] = []
    parse_ms = 0.0
    rules_run = set()
    files_fixed = 0

    rules_start = time.time()
    for language in languages or SUPPORTED_LANGUAGES:
        rules = get_enabled_rules(rule_patterns or config.enabled_rules, language)
        files = collect_files(paths, language)
        if not rules or not files:
            continue

        for error in configure_rules(rules, config):
            if error not in config_errors:
                config_errors.append(error)
        rules_run.update(rule.meta.id for rule in rules)

        findings, parse_time, fixed = run_analysis_parallel(
            files, language, rules, config, jobs, build_resolver(files, language, config), fix
        )
        all_findings.extend(findings)
        all_files.extend(files)
        parse_ms += parse_time
        files_fixed += fixed

    metrics = {
        "parse_ms": parse_ms,
        "rules_ms": (time.time() - rules_start) * 1000,
        "total_ms": (time.time() - total_start) * 1000
    }

    all_findings = all_findings[:config.max_total_findings]
    output = build_output(all_findings, len(all_files), len(rules_run), metrics,
                          read_text_cache(all_files), files_fixed)
    output["config_errors"] = config_errors
    return output


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit status."""
    parser = argparse.ArgumentParser(
        prog="import-order",
        description="Check and fix the order of import statements in JavaScript and TypeScript files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  import-order --paths src/
  import-order --paths src/ --lang typescript --format pretty
  import-order --paths src/ --fix --jobs 4
        """
    )

    parser.add_argument(
        "--paths",
        nargs="+",
        required=True,
        help="Paths to files or directories to analyze"
    )

    parser.add_argument(
        "--lang", "--language",
        choices=SUPPORTED_LANGUAGES,
        help="Language to analyze (default: both)"
    )

    parser.add_argument(
        "--discover",
        default="rules",
        help="Comma-separated packages to discover rules from (default: rules)"
    )

    parser.add_argument(
        "--rules",
        help="Rule patterns to run: comma-separated IDs/patterns (default: enabled_rules from config)"
    )

    parser.add_argument(
        "--jobs",
        type=int,
        default=0,
        help="Number of parallel jobs (0=auto, 1=sequential, N=parallel)"
    )

    parser.add_argument(
        "--fix",
        action="store_true",
        help="Rewrite files with all fixes that apply cleanly"
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate JSON output against schema"
    )

    parser.add_argument(
        "--format",
        choices=["json", "pretty"],
        default="json",
        help="Output format: json (protocol v1) or pretty (human-readable)"
    )

    parser.add_argument(
        "--config",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr
    )

    total_start = time.time()

    setup_adapters()

    # Load configuration
    config_path = args.config
    if config_path and not os.path.isfile(config_path):
        print(f"Error: Config file '{config_path}' not found", file=sys.stderr)
        return 2
    if not config_path:
        config_path = find_config_file(args.paths[0])
    config = load_config(config_path)

    if args.verbose:
        print(f"Using config: {config_path or 'defaults'}", file=sys.stderr)

    discovery_packages = [pkg.strip() for pkg in args.discover.split(",")]
    rules_discovered = discover_rules(discovery_packages)

    if args.verbose:
        print(f"Discovered {rules_discovered} rules from {discovery_packages}", file=sys.stderr)
        print(f"Available rule IDs: {get_rule_ids()}", file=sys.stderr)

    if args.rules:
        rule_patterns = [pattern.strip() for pattern in args.rules.split(",") if pattern.strip()]
    else:
        rule_patterns = config.enabled_rules

    languages = [args.lang] if args.lang else SUPPORTED_LANGUAGES
    plan = []
    for language in languages:
        files = collect_files(args.paths, language)
        rules = get_enabled_rules(rule_patterns, language)
        if files:
            plan.append((language, files, rules))

    if not plan:
        print("No files found to analyze", file=sys.stderr)
        return 2

    reported_errors = set()
    findings: List[Finding] = []
    all_files: List[str] = []
    rules_run = set()
    parse_time_ms = 0.0
    files_fixed = 0

    rules_start = time.time()
    for language, files, rules in plan:
        for error in configure_rules(rules, config):
            if error not in reported_errors:
                print(f"Configuration error in {error}", file=sys.stderr)
                reported_errors.add(error)

        if args.verbose:
            print(f"Running {len(rules)} rules on {len(files)} {language} files: "
                  f"{[r.meta.id for r in rules]}", file=sys.stderr)

        # Determine number of jobs
        jobs = args.jobs
        if jobs == 0:
            jobs = min(4, len(files), os.cpu_count() or 1)

        language_findings, parse_time, fixed = run_analysis_parallel(
            files, language, rules, config, jobs, build_resolver(files, language, config), args.fix
        )
        findings.extend(language_findings)
        all_files.extend(files)
        rules_run.update(rule.meta.id for rule in rules)
        parse_time_ms += parse_time
        files_fixed += fixed

    findings = findings[:config.max_total_findings]
    rules_time_ms = (time.time() - rules_start) * 1000
    total_time_ms = (time.time() - total_start) * 1000

    metrics = {
        "parse_ms": parse_time_ms,
        "rules_ms": rules_time_ms,
        "total_ms": total_time_ms
    }

    text_cache = read_text_cache(all_files)
    output = format_output(findings, len(all_files), len(rules_run), metrics, args.format, text_cache, files_fixed)

    # Validate output if requested
    if args.validate and args.format == "json":
        errors = validate_runner_output(json.loads(output))
        if errors:
            print("JSON validation errors:", file=sys.stderr)
            for error in errors:
                print(f"  {error}", file=sys.stderr)
            return 2

    print(output)
    return 1 if findings else 0


if __name__ == "__main__":
    sys.exit(main())
