# server/rules/imports_order.py
"""
Rule: imports.order

Enforces a configurable ordering of import groups in JavaScript and
TypeScript files. Each top-level ``import ... from '<x>'`` and
``const x = require('<x>')`` is classified (builtin, external, parent, ...)
and ranked by the position of its group in the ``groups`` option; require
calls rank after every import statement. Out-of-order statements are moved
next to the import they should precede or follow, and the optional
``newlines-between`` policy normalizes blank lines between groups.

Options:
    groups: list of group names or lists of names sharing one rank.
        Default ["builtin", "external", "parent", "sibling", "index"].
    newlines-between: "ignore" (default), "always",
        "always-and-inside-groups" or "never".
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

import jsonschema

from engine.config import ConfigError
from engine.import_type import IMPORT_TYPES, resolve_import_type
from engine.javascript_adapter import string_value
from engine.source_code import Fixer, SourceCode, find_root_node, same_node
from engine.types import Edit, Finding, Requires, RuleContext, RuleMeta

DEFAULT_GROUPS = ["builtin", "external", "parent", "sibling", "index"]

NEWLINES_BETWEEN = ("ignore", "always", "always-and-inside-groups", "never")

# require() calls sort after every import statement
REQUIRE_RANK_OFFSET = 100

# Entering any of these means we are no longer at module top level
SCOPE_NODE_TYPES = frozenset({
    "function_declaration",
    "function_expression",
    "function",
    "generator_function_declaration",
    "generator_function",
    "arrow_function",
    "statement_block",
    "object",
})

OPTIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "groups": {
            "type": "array",
            "items": {
                "anyOf": [
                    {"type": "string"},
                    {"type": "array", "items": {"type": "string"}},
                ]
            },
        },
        "newlines-between": {"enum": list(NEWLINES_BETWEEN)},
    },
    "additionalProperties": False,
}

_CONFIG_ERROR_PREFIX = "Incorrect configuration of the rule: "


@dataclass(frozen=True)
class ImportRecord:
    """One collected import: its specifier, its rank and the node to report on."""
    name: str
    rank: int
    node: Any


@dataclass(frozen=True)
class MoveOperation:
    """Move `move` directly before or after `relative_to`."""
    move: ImportRecord
    relative_to: ImportRecord
    order: str  # "before" | "after"

    @property
    def message(self) -> str:
        return (f"`{self.move.name}` import should occur {self.order} "
                f"import of `{self.relative_to.name}`")


def validate_options(options: Dict[str, Any]) -> None:
    """Check rule options against OPTIONS_SCHEMA, raising ConfigError."""
    try:
        jsonschema.validate(instance=options, schema=OPTIONS_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ConfigError(_CONFIG_ERROR_PREFIX + e.message) from e


def convert_groups_to_ranks(groups: List[Any]) -> Dict[str, int]:
    """
    Build the category -> rank table from the ``groups`` option.

    A group is a category name or a list of names sharing one rank. Every
    category missing from groups is ranked after all listed ones.

    Example:
        >>> convert_groups_to_ranks(["index", ["sibling", "parent"]])["parent"]
        1

    Raises:
        ConfigError: on an unknown category or one listed twice
    """
    ranks: Dict[str, int] = {}

    for index, group in enumerate(groups):
        members = [group] if isinstance(group, str) else group
        for member in members:
            if member not in IMPORT_TYPES:
                raise ConfigError(_CONFIG_ERROR_PREFIX + f"Unknown type `{json.dumps(member)}`")
            if member in ranks:
                raise ConfigError(_CONFIG_ERROR_PREFIX + f"`{member}` is duplicated")
            ranks[member] = index

    for import_type in IMPORT_TYPES:
        ranks.setdefault(import_type, len(groups))

    return ranks


def find_out_of_order(records: List[ImportRecord]) -> List[ImportRecord]:
    """Records ranked below the highest rank seen before them."""
    if not records:
        return []

    max_seen = records[0]
    out_of_order = []
    for record in records:
        if record.rank < max_seen.rank:
            out_of_order.append(record)
        if max_seen.rank < record.rank:
            max_seen = record
    return out_of_order


def reverse_ranks(records: List[ImportRecord]) -> List[ImportRecord]:
    """Reversed copy of records with every rank negated."""
    return [ImportRecord(r.name, -r.rank, r.node) for r in reversed(records)]


def _moves_for(sequence: List[ImportRecord], out_of_order: List[ImportRecord],
               order: str) -> List[MoveOperation]:
    moves = []
    for record in out_of_order:
        anchor = next(candidate for candidate in sequence if candidate.rank > record.rank)
        moves.append(MoveOperation(move=record, relative_to=anchor, order=order))
    return moves


def plan_moves(records: List[ImportRecord]) -> List[MoveOperation]:
    """
    Choose the smaller set of moves that puts records in rank order.

    Scanning forward, each violator moves before the first record that
    outranks it. Scanning the reversed, negated sequence, each violator
    moves after its anchor instead. The direction with fewer violations
    wins; a tie keeps the forward plan.
    """
    forward = find_out_of_order(records)
    if not forward:
        return []

    reversed_records = reverse_ranks(records)
    backward = find_out_of_order(reversed_records)
    if len(backward) < len(forward):
        return _moves_for(reversed_records, backward, "after")
    return _moves_for(records, forward, "before")


def is_static_require(node: Any) -> bool:
    """True for ``require('<literal>')`` with exactly one plain string argument."""
    if node.type != "call_expression":
        return False
    function = node.child_by_field_name("function")
    if function is None or function.type != "identifier" or function.text != b"require":
        return False
    arguments = node.child_by_field_name("arguments")
    if arguments is None or arguments.named_child_count != 1:
        return False
    return arguments.named_children[0].type == "string"


def is_in_variable_declarator(node: Any) -> bool:
    while node is not None:
        if node.type == "variable_declarator":
            return True
        node = node.parent
    return False


class _FileState:
    """Collects one file's import records; discarded after the file."""

    def __init__(self, ctx: RuleContext, ranks: Dict[str, int]):
        self.ctx = ctx
        self.ranks = ranks
        self.depth = 0
        self.records: List[ImportRecord] = []

    def enter(self, node: Any) -> None:
        if node.type == "import_statement":
            self._handle_import(node)
        elif node.type == "call_expression":
            self._handle_require(node)

        if node.type in SCOPE_NODE_TYPES:
            self.depth += 1

    def exit(self, node: Any) -> None:
        if node.type in SCOPE_NODE_TYPES:
            self.depth -= 1

    def _handle_import(self, node: Any) -> None:
        # Side-effect imports (`import './polyfill'`) have no clause and are not ordered
        if not any(child.type == "import_clause" for child in node.named_children):
            return
        source = node.child_by_field_name("source")
        if source is None:
            return
        self._register(node, string_value(source), 0)

    def _handle_require(self, node: Any) -> None:
        if self.depth != 0 or not is_static_require(node) or not is_in_variable_declarator(node.parent):
            return
        argument = node.child_by_field_name("arguments").named_children[0]
        self._register(node, string_value(argument), REQUIRE_RANK_OFFSET)

    def _register(self, node: Any, name: str, offset: int) -> None:
        import_type = resolve_import_type(name, self.ctx.file_path, self.ctx.config, self.ctx.resolver)
        self.records.append(ImportRecord(name=name, rank=self.ranks[import_type] + offset, node=node))


class ImportsOrderRule:
    """Enforce a convention in the order of import statements."""

    meta = RuleMeta(
        id="imports.order",
        category="imports",
        tier=1,  # Classification uses module resolution
        priority="P2",
        autofix_safety="safe",
        description="Enforce a configurable order of import groups and blank lines between them.",
        langs=["javascript", "typescript"]
    )

    requires = Requires(
        raw_text=True,
        syntax=True,
        resolver=True
    )

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.options: Dict[str, Any] = {}
        self.ranks: Optional[Dict[str, int]] = None
        self.newlines_between = "ignore"
        self.config_error: Optional[str] = None
        self.configure(options)

    def configure(self, options: Optional[Dict[str, Any]]) -> None:
        """
        Validate options and build the rank table.

        Raises ConfigError on bad options; the rule then reports the error
        on every file it visits instead of checking order.
        """
        self.options = dict(options or {})
        try:
            validate_options(self.options)
            self.ranks = convert_groups_to_ranks(self.options.get("groups") or DEFAULT_GROUPS)
        except ConfigError as e:
            self.ranks = None
            self.config_error = str(e)
            raise
        self.config_error = None
        self.newlines_between = self.options.get("newlines-between") or "ignore"

    def visit(self, ctx: RuleContext) -> Iterator[Finding]:
        if self.config_error is not None:
            yield Finding(
                rule=self.meta.id,
                message=self.config_error,
                file=ctx.file_path,
                start_byte=0,
                end_byte=0,
                severity="error"
            )
            return

        if ctx.tree is None:
            return

        state = _FileState(ctx, self.ranks)
        for event, node in ctx.adapter.walk(ctx.tree):
            if event == "enter":
                state.enter(node)
            else:
                state.exit(node)

        if not state.records:
            return

        source = SourceCode(ctx.text)
        fixer = Fixer()

        for move in plan_moves(state.records):
            yield self._finding(ctx, move.move.node, move.message, self._move_fix(source, fixer, move))

        if self.newlines_between != "ignore":
            yield from self._check_newlines_between(ctx, source, fixer, state.records)

    def _finding(self, ctx: RuleContext, node: Any, message: str,
                 autofix: Optional[List[Edit]]) -> Finding:
        return Finding(
            rule=self.meta.id,
            message=message,
            file=ctx.file_path,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            severity="warn",
            autofix=autofix or None
        )

    def _move_fix(self, source: SourceCode, fixer: Fixer, move: MoveOperation) -> Optional[List[Edit]]:
        """Remove the moved statement and re-insert its text next to the anchor statement."""
        moved_root = find_root_node(move.move.node)
        anchor_root = find_root_node(move.relative_to.node)
        if moved_root is None or anchor_root is None or same_node(moved_root, anchor_root):
            return None

        code = source.slice(*source.statement_text_range(moved_root))
        eol = source.line_terminator
        start, end = source.statement_removal_range(moved_root)

        if move.order == "before":
            insert = fixer.insert_text_before(anchor_root, code + eol)
        else:
            offset = source.statement_line_end(anchor_root)
            if offset == source.line_end_byte(anchor_root.end_point[0]):
                insert = fixer.insert_text_at(offset, eol + code)
            else:
                # Code follows the anchor on its row; the moved statement gets a row of its own
                insert = fixer.replace_range(offset, source.inline_space_after(offset), eol + code + eol)

        return [fixer.remove_range(start, end), insert]

    def _check_newlines_between(self, ctx: RuleContext, source: SourceCode, fixer: Fixer,
                                records: List[ImportRecord]) -> Iterator[Finding]:
        policy = self.newlines_between

        for previous, current in zip(records, records[1:]):
            previous_root = find_root_node(previous.node)
            current_root = find_root_node(current.node)
            if previous_root is None or current_root is None or same_node(previous_root, current_root):
                continue

            blank_rows = source.blank_rows_between(previous_root, current_root)

            if policy in ("always", "always-and-inside-groups"):
                if current.rank != previous.rank and not blank_rows:
                    offset = source.statement_line_end(previous_root)
                    insert = fixer.replace_range(offset, source.inline_space_after(offset), source.line_terminator)
                    yield self._finding(ctx, previous.node,
                                        "There should be at least one empty line between import groups",
                                        [insert])
                elif current.rank == previous.rank and blank_rows and policy != "always-and-inside-groups":
                    yield self._finding(ctx, previous.node,
                                        "There should be no empty line within import group",
                                        self._blank_row_removals(source, fixer, blank_rows))
            elif blank_rows:
                yield self._finding(ctx, previous.node,
                                    "There should be no empty line between import groups",
                                    self._blank_row_removals(source, fixer, blank_rows))

    def _blank_row_removals(self, source: SourceCode, fixer: Fixer, rows: List[int]) -> List[Edit]:
        """One removal per run of consecutive blank rows, terminators included."""
        spans: List[Tuple[int, int]] = []
        for row in rows:
            start, end = source.line_start_byte(row), source.line_start_byte(row + 1)
            if spans and spans[-1][1] == start:
                spans[-1] = (spans[-1][0], end)
            else:
                spans.append((start, end))
        return [fixer.remove_range(start, end) for start, end in spans]


RULES = [ImportsOrderRule()]
