"""
Source text access and fix construction over tree-sitter trees.

Rules never slice raw text or compute offsets by hand; they ask SourceCode
for node text, lines and neighbouring tokens, and ask Fixer for Edit
objects. All offsets are byte offsets into the original, unedited text.
"""

from typing import Any, List, Optional, Tuple

from .types import Edit

# Node types whose children form a statement list
STATEMENT_LIST_TYPES = frozenset({
    "program",
    "statement_block",
    "class_body",
    "switch_case",
    "switch_default",
})


def is_statement_container(node: Any) -> bool:
    """True when node holds statements directly (a list type or a node with a body field)."""
    if node.type in STATEMENT_LIST_TYPES:
        return True
    return node.child_by_field_name("body") is not None


def find_root_node(node: Any) -> Optional[Any]:
    """
    Return the whole statement that contains node.

    Walks up parents until the current node's parent is a statement
    container. Returns None when no such ancestor exists (node is the
    tree root, or the tree shape is not one we understand).
    """
    if node is None:
        return None

    result = node
    while result.parent is not None and not is_statement_container(result.parent):
        result = result.parent

    if result.parent is None:
        return None
    return result


def same_node(a: Any, b: Any) -> bool:
    """Compare tree-sitter nodes by span and type."""
    return (a.start_byte, a.end_byte, a.type) == (b.start_byte, b.end_byte, b.type)


class SourceCode:
    """Read-only view of one file's text, indexed by bytes and rows."""

    def __init__(self, text: str):
        self.text = text
        self._bytes = text.encode('utf-8')
        self.lines: List[str] = text.split('\n')  # 0-indexed rows, '\r' kept on CRLF files
        self.line_terminator = "\r\n" if "\r\n" in text else "\n"

        self._line_starts = [0]
        for index, byte in enumerate(self._bytes):
            if byte == 0x0A:
                self._line_starts.append(index + 1)

    def get_text(self, node: Any) -> str:
        """Return the source text spanned by node."""
        return self.slice(node.start_byte, node.end_byte)

    def slice(self, start_byte: int, end_byte: int) -> str:
        return self._bytes[start_byte:end_byte].decode('utf-8')

    def line_start_byte(self, row: int) -> int:
        """Byte offset where 0-based row begins; rows past the end map to EOF."""
        if row < len(self._line_starts):
            return self._line_starts[row]
        return len(self._bytes)

    def line_end_byte(self, row: int) -> int:
        """Byte offset of the line terminator ending row (EOF for the last row)."""
        if row + 1 < len(self._line_starts):
            end = self._line_starts[row + 1] - 1
            if end > 0 and self._bytes[end - 1:end] == b"\r":
                end -= 1
            return end
        return len(self._bytes)

    def is_blank_line(self, row: int) -> bool:
        return 0 <= row < len(self.lines) and not self.lines[row].strip()

    def blank_rows_between(self, first: Any, second: Any) -> List[int]:
        """Rows strictly between first's last row and second's first row that hold only whitespace."""
        return [
            row for row in range(first.end_point[0] + 1, second.start_point[0])
            if self.is_blank_line(row)
        ]

    def get_token_before(self, node: Any) -> Optional[Any]:
        """Return the last leaf token (comments included) that precedes node."""
        current = node
        while current is not None:
            sibling = current.prev_sibling
            if sibling is not None:
                while sibling.child_count:
                    sibling = sibling.children[-1]
                return sibling
            current = current.parent
        return None

    def _rest_of_row(self, node: Any) -> str:
        return self.slice(node.end_byte, self.line_end_byte(node.end_point[0])).strip()

    def owns_lines(self, node: Any) -> bool:
        """True when nothing but whitespace or a trailing line comment shares node's rows."""
        before = self.get_token_before(node)
        if before is not None and before.end_point[0] == node.start_point[0]:
            return False
        if self.slice(self.line_start_byte(node.start_point[0]), node.start_byte).strip():
            return False
        rest = self._rest_of_row(node)
        return not rest or rest.startswith("//")

    def inline_space_after(self, offset: int) -> int:
        """Offset past the spaces and tabs that start at offset."""
        end = offset
        while end < len(self._bytes) and self._bytes[end] in b" \t":
            end += 1
        return end

    def inline_space_before(self, offset: int) -> int:
        """Offset of the first space or tab in the run that ends at offset."""
        start = offset
        while start > 0 and self._bytes[start - 1] in b" \t":
            start -= 1
        return start

    def statement_line_end(self, node: Any) -> int:
        """
        Offset just past node and any trailing line comment on its last row.

        Falls back to node's own end when other code follows it on that row.
        """
        line_end = self.line_end_byte(node.end_point[0])
        rest = self._rest_of_row(node)
        if not rest or rest.startswith("//"):
            return line_end
        return node.end_byte

    def statement_text_range(self, node: Any) -> Tuple[int, int]:
        """Range of node's text, extended over a trailing line comment on its last row."""
        if self._rest_of_row(node).startswith("//"):
            return node.start_byte, self.inline_space_before(self.line_end_byte(node.end_point[0]))
        return node.start_byte, node.end_byte

    def statement_removal_range(self, node: Any) -> Tuple[int, int]:
        """
        Range that deletes node cleanly.

        A statement alone on its rows is removed with its indentation, any
        trailing line comment and one line terminator. A statement sharing a
        row is removed with the spaces on one side of it.
        """
        if self.owns_lines(node):
            return self.line_start_byte(node.start_point[0]), self.line_start_byte(node.end_point[0] + 1)

        start, end = self.statement_text_range(node)
        line_end = self.line_end_byte(node.end_point[0])
        if self.slice(end, line_end).strip():
            return start, self.inline_space_after(end)
        return self.inline_space_before(start), line_end


class Fixer:
    """Builds Edit objects; edits never touch the text themselves."""

    def remove(self, node: Any) -> Edit:
        return Edit(node.start_byte, node.end_byte, "")

    def remove_range(self, start_byte: int, end_byte: int) -> Edit:
        return Edit(start_byte, end_byte, "")

    def insert_text_before(self, node: Any, text: str) -> Edit:
        return Edit(node.start_byte, node.start_byte, text)

    def insert_text_after(self, node: Any, text: str) -> Edit:
        return Edit(node.end_byte, node.end_byte, text)

    def insert_text_at(self, offset: int, text: str) -> Edit:
        return Edit(offset, offset, text)

    def replace_range(self, start_byte: int, end_byte: int, text: str) -> Edit:
        return Edit(start_byte, end_byte, text)
