# server/tests/test_runner.py
"""
End-to-end tests for the CLI runner on small on-disk projects.
"""

import json
import pytest
from pathlib import Path
import sys

# Add the server directory to the path for importing
server_dir = Path(__file__).parent.parent
sys.path.insert(0, str(server_dir))

from engine import registry
from engine.runner import analyze_paths, collect_files, main, setup_adapters
from engine.schema import validate_runner_output

UNSORTED = "import a from './a';\nimport fs from 'fs';\n"
SORTED = "import fs from 'fs';\nimport a from './a';\n"


@pytest.fixture
def project(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.js").write_text("export default 1;\n")
    (src / "unsorted.js").write_text(UNSORTED)
    (src / "sorted.js").write_text(SORTED)
    (src / "types.ts").write_text("import { A } from './a';\nimport path from 'path';\n")
    vendored = tmp_path / "node_modules" / "pkg"
    vendored.mkdir(parents=True)
    (vendored / "index.js").write_text(UNSORTED)
    return tmp_path


def test_collect_files_skips_node_modules(project):
    setup_adapters()
    files = collect_files([str(project)], "javascript")

    assert [Path(f).name for f in files] == ["a.js", "sorted.js", "unsorted.js"]
    assert all(Path(f).is_absolute() for f in files)


def test_analyze_paths_reports_findings(project):
    output = analyze_paths([str(project)])

    assert output["files_scanned"] == 4
    assert output["rules_run"] == 1
    assert output["config_errors"] == []
    assert validate_runner_output({k: v for k, v in output.items() if k != "config_errors"}) == []

    by_file = {Path(f["file_path"]).name: f for f in output["findings"]}
    assert set(by_file) == {"unsorted.js", "types.ts"}
    finding = by_file["unsorted.js"]
    assert finding["message"] == "`fs` import should occur before import of `./a`"
    assert finding["range"] == {"startLine": 2, "startCol": 0, "endLine": 2, "endCol": 20}
    assert finding["severity"] == "warn"
    assert len(finding["autofix"]) == 2


def test_analyze_paths_single_language(project):
    output = analyze_paths([str(project)], languages=["typescript"])

    assert output["files_scanned"] == 1
    assert [Path(f["file_path"]).name for f in output["findings"]] == ["types.ts"]


def test_fix_rewrites_files(project):
    output = analyze_paths([str(project / "src")], languages=["javascript"], fix=True)

    assert output["findings"] == []
    assert output["files_fixed"] == 1
    assert (project / "src" / "unsorted.js").read_text() == SORTED
    assert (project / "node_modules" / "pkg" / "index.js").read_text() == UNSORTED


def test_config_file_options_are_used(project):
    (project / ".import-order.yml").write_text(
        "rule_severities:\n"
        "  imports.order: error\n"
        "rule_configs:\n"
        "  imports.order:\n"
        "    newlines-between: always\n"
    )
    output = analyze_paths([str(project / "src")], languages=["javascript"])

    messages = sorted(f["message"] for f in output["findings"])
    assert messages == [
        "There should be at least one empty line between import groups",
        "There should be at least one empty line between import groups",
        "`fs` import should occur before import of `./a`",
    ]
    assert {f["severity"] for f in output["findings"]} == {"error"}


def test_bad_config_is_reported_once_and_per_file(project):
    (project / ".import-order.yml").write_text(
        "rule_configs:\n"
        "  imports.order:\n"
        "    groups: [builtin, builtin]\n"
    )
    output = analyze_paths([str(project / "src")], languages=["javascript"])

    assert output["config_errors"] == ["imports.order: Incorrect configuration of the rule: `builtin` is duplicated"]
    assert len(output["findings"]) == 3
    assert {f["severity"] for f in output["findings"]} == {"error"}


def test_main_json_output_and_exit_code(project, capsys):
    status = main(["--paths", str(project / "src"), "--lang", "javascript", "--jobs", "2", "--validate"])

    assert status == 1
    output = json.loads(capsys.readouterr().out)
    assert output["import-order.protocol"] == "1"
    assert len(output["findings"]) == 1


def test_main_clean_project_exits_zero(project, capsys):
    status = main(["--paths", str(project / "src" / "sorted.js"), "--format", "pretty"])

    assert status == 0
    assert "Found 0 issues" in capsys.readouterr().out


def test_main_pretty_output(project, capsys):
    main(["--paths", str(project / "src"), "--lang", "javascript", "--format", "pretty"])
    out = capsys.readouterr().out

    assert "unsorted.js" in out
    assert "2:1  warn   `fs` import should occur before import of `./a` (imports.order) [fixable]" in out


def test_main_fix(project, capsys):
    status = main(["--paths", str(project / "src"), "--lang", "javascript", "--fix"])

    assert status == 0
    assert (project / "src" / "unsorted.js").read_text() == SORTED


def test_main_no_files(tmp_path, capsys):
    assert main(["--paths", str(tmp_path / "missing")]) == 2
    assert "No files found" in capsys.readouterr().err


def test_main_rules_filter(project, capsys):
    status = main(["--paths", str(project / "src"), "--rules", "style.*"])

    assert status == 0
    assert json.loads(capsys.readouterr().out)["rules_run"] == 0
