# server/tests/test_source_code.py
"""
Tests for SourceCode, Fixer and statement root lookup.
"""

import pytest
from pathlib import Path
import sys

# Add the server directory to the path for importing
server_dir = Path(__file__).parent.parent
sys.path.insert(0, str(server_dir))

from engine.javascript_adapter import JavaScriptAdapter
from engine.source_code import Fixer, SourceCode, find_root_node, is_statement_container, same_node
from engine.types import Edit

adapter = JavaScriptAdapter()


def parse(code: str):
    return adapter.parse(code).root_node


def first_call(node):
    """Depth-first search for the first call_expression under node."""
    for event, current in adapter.walk(node):
        if event == "enter" and current.type == "call_expression":
            return current
    return None


class TestFindRootNode:

    def test_import_statement_is_its_own_root(self):
        root = parse("import fs from 'fs';\n")
        statement = root.named_children[0]

        assert same_node(find_root_node(statement), statement)

    def test_require_call_roots_at_declaration(self):
        root = parse("const fs = require('fs');\n")
        call = first_call(root)

        found = find_root_node(call)
        assert found.type == "lexical_declaration"
        assert same_node(found, root.named_children[0])

    def test_require_in_function_body_roots_inside_block(self):
        root = parse("function load() {\n  const fs = require('fs');\n}\n")
        call = first_call(root)

        found = find_root_node(call)
        assert found.type == "lexical_declaration"
        assert found.parent.type == "statement_block"

    def test_exported_declaration_roots_at_export(self):
        root = parse("export const fs = require('fs');\n")
        assert find_root_node(first_call(root)).type == "export_statement"

    def test_tree_root_has_no_statement_root(self):
        root = parse("import fs from 'fs';\n")
        assert find_root_node(root) is None
        assert find_root_node(None) is None

    def test_statement_containers(self):
        root = parse("function f() { return 1; }\n")
        function = root.named_children[0]

        assert is_statement_container(root)
        assert is_statement_container(function)  # owns a body field
        assert not is_statement_container(function.child_by_field_name("name"))


class TestSourceCode:

    def test_lines_and_offsets(self):
        source = SourceCode("a;\n\nbb;\n")

        assert source.lines == ["a;", "", "bb;", ""]
        assert source.line_start_byte(2) == 4
        assert source.line_end_byte(2) == 7
        assert source.line_start_byte(10) == 8
        assert source.is_blank_line(1)
        assert not source.is_blank_line(2)

    def test_multibyte_offsets(self):
        text = "const s = 'é';\nconst t = 1;\n"
        source = SourceCode(text)

        assert source.line_start_byte(1) == len("const s = 'é';\n".encode('utf-8'))
        assert source.slice(source.line_start_byte(1), source.line_end_byte(1)) == "const t = 1;"

    def test_crlf(self):
        source = SourceCode("a;\r\nb;\r\n")

        assert source.line_terminator == "\r\n"
        assert source.line_end_byte(0) == 2
        assert source.line_start_byte(1) == 4
        assert SourceCode("a;\nb;\n").line_terminator == "\n"

    def test_get_text(self):
        code = "import fs from 'fs';\n"
        statement = parse(code).named_children[0]
        assert SourceCode(code).get_text(statement) == "import fs from 'fs';"

    def test_blank_rows_between(self):
        code = "import a from 'a';\n\n  \n// note\nimport b from 'b';\n"
        root = parse(code)
        first, second = root.named_children[0], root.named_children[-1]

        assert SourceCode(code).blank_rows_between(first, second) == [1, 2]

    def test_get_token_before(self):
        code = "import a from 'a';\nimport b from 'b';\n"
        root = parse(code)
        source = SourceCode(code)

        assert source.get_token_before(root.named_children[0]) is None
        token = source.get_token_before(root.named_children[1])
        assert token.type == ";"
        assert token.end_point[0] == 0

    def test_removal_range_takes_whole_line(self):
        code = "import a from 'a';\n  import b from 'b';\nimport c from 'c';\n"
        root = parse(code)
        source = SourceCode(code)

        start, end = source.statement_removal_range(root.named_children[1])
        assert code.encode()[start:end] == b"  import b from 'b';\n"

    def test_removal_range_shared_line(self):
        code = "import a from 'a'; import b from 'b';\n"
        root = parse(code)
        source = SourceCode(code)
        first, second = root.named_children[0], root.named_children[1]

        assert not source.owns_lines(second)
        start, end = source.statement_removal_range(second)
        assert code.encode()[start:end] == b" import b from 'b';"
        start, end = source.statement_removal_range(first)
        assert code.encode()[start:end] == b"import a from 'a'; "

    def test_trailing_comment_belongs_to_statement(self):
        code = "import a from 'a';\nimport b from 'b'; // note\n"
        root = parse(code)
        source = SourceCode(code)
        second = root.named_children[1]

        assert source.owns_lines(second)
        start, end = source.statement_text_range(second)
        assert code[start:end] == "import b from 'b'; // note"
        start, end = source.statement_removal_range(second)
        assert code[start:end] == "import b from 'b'; // note\n"

    def test_inline_space(self):
        source = SourceCode("a;  \tb;\n")

        assert source.inline_space_after(2) == 5
        assert source.inline_space_before(5) == 2
        assert source.inline_space_after(7) == 7

    def test_statement_line_end(self):
        code = "import a from 'a'; // note\nimport b from 'b'; import c from 'c';\n"
        root = parse(code)
        source = SourceCode(code)
        a, b = root.named_children[0], root.named_children[2]

        assert source.statement_line_end(a) == len("import a from 'a'; // note")
        assert source.statement_line_end(b) == b.end_byte


class TestFixer:

    def test_edits(self):
        code = "import fs from 'fs';\n"
        statement = parse(code).named_children[0]
        fixer = Fixer()

        assert fixer.remove(statement) == Edit(0, 20, "")
        assert fixer.insert_text_before(statement, "x") == Edit(0, 0, "x")
        assert fixer.insert_text_after(statement, "x") == Edit(20, 20, "x")
        assert fixer.remove_range(3, 5) == Edit(3, 5, "")
        assert fixer.insert_text_at(7, "y") == Edit(7, 7, "y")
        assert fixer.replace_range(3, 5, "z") == Edit(3, 5, "z")
