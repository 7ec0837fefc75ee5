# server/tests/test_import_ranks.py
"""
Tests for the rank table and the out-of-order planning helpers.

These work on plain ImportRecord values, so no parsing is involved.
"""

import pytest
from pathlib import Path
import sys

# Add the server directory to the path for importing
server_dir = Path(__file__).parent.parent
sys.path.insert(0, str(server_dir))

from rules.imports_order import (
    DEFAULT_GROUPS, ImportRecord, MoveOperation, convert_groups_to_ranks, find_out_of_order,
    plan_moves, reverse_ranks, validate_options
)
from engine.config import ConfigError
from engine.import_type import IMPORT_TYPES


def records(*pairs):
    return [ImportRecord(name=name, rank=rank, node=None) for name, rank in pairs]


class TestConvertGroupsToRanks:

    def test_default_groups(self):
        ranks = convert_groups_to_ranks(DEFAULT_GROUPS)

        assert ranks == {
            "builtin": 0,
            "external": 1,
            "parent": 2,
            "sibling": 3,
            "index": 4,
            "internal": 5,
            "absolute": 5,
            "unknown": 5,
        }

    def test_every_category_gets_a_rank(self):
        assert set(convert_groups_to_ranks(["index"])) == set(IMPORT_TYPES)

    def test_nested_groups_share_rank(self):
        ranks = convert_groups_to_ranks(["index", ["sibling", "parent"], "external"])

        assert ranks["index"] == 0
        assert ranks["sibling"] == ranks["parent"] == 1
        assert ranks["external"] == 2
        assert ranks["builtin"] == 3

    def test_absolute_and_unknown_can_be_placed(self):
        ranks = convert_groups_to_ranks(["unknown", "absolute"])

        assert ranks["unknown"] == 0
        assert ranks["absolute"] == 1

    def test_empty_groups(self):
        assert set(convert_groups_to_ranks([]).values()) == {0}

    def test_unknown_type(self):
        with pytest.raises(ConfigError) as excinfo:
            convert_groups_to_ranks(["builtin", ["sibling", "vendor"]])
        assert str(excinfo.value) == 'Incorrect configuration of the rule: Unknown type `"vendor"`'

    def test_duplicate_type(self):
        with pytest.raises(ConfigError) as excinfo:
            convert_groups_to_ranks(["builtin", "builtin"])
        assert str(excinfo.value) == "Incorrect configuration of the rule: `builtin` is duplicated"

    def test_duplicate_across_nested_group(self):
        with pytest.raises(ConfigError, match="`parent` is duplicated"):
            convert_groups_to_ranks(["parent", ["sibling", "parent"]])

    @pytest.mark.parametrize("groups", [
        DEFAULT_GROUPS,
        ["index", ["sibling", "parent"], "external"],
        [["builtin", "external"], "unknown"],
        [],
    ])
    def test_rebuilding_from_ranks_is_stable(self, groups):
        ranks = convert_groups_to_ranks(groups)

        rebuilt = [
            sorted(name for name, rank in ranks.items() if rank == level)
            for level in sorted(set(ranks.values()))
        ]

        assert convert_groups_to_ranks(rebuilt) == ranks


class TestValidateOptions:

    @pytest.mark.parametrize("options", [
        {},
        {"groups": ["builtin", ["parent", "sibling"]]},
        {"newlines-between": "always-and-inside-groups"},
    ])
    def test_valid(self, options):
        validate_options(options)

    @pytest.mark.parametrize("options", [
        {"newlines-between": "sometimes"},
        {"groups": "builtin"},
        {"groups": [1]},
        {"order": "asc"},
    ])
    def test_invalid(self, options):
        with pytest.raises(ConfigError, match="^Incorrect configuration of the rule: "):
            validate_options(options)


class TestFindOutOfOrder:

    def test_empty(self):
        assert find_out_of_order([]) == []

    def test_sorted(self):
        assert find_out_of_order(records(("a", 0), ("b", 0), ("c", 2))) == []

    def test_running_maximum(self):
        seq = records(("a", 1), ("b", 3), ("c", 0), ("d", 2), ("e", 4))
        assert [r.name for r in find_out_of_order(seq)] == ["c", "d"]

    def test_reverse_ranks(self):
        seq = records(("a", 1), ("b", 3))
        assert [(r.name, r.rank) for r in reverse_ranks(seq)] == [("b", -3), ("a", -1)]
        # The input is left untouched
        assert [(r.name, r.rank) for r in seq] == [("a", 1), ("b", 3)]


class TestPlanMoves:

    def test_nothing_to_do(self):
        assert plan_moves(records(("fs", 0), ("lodash", 1))) == []

    def test_forward_anchor_is_first_higher_rank(self):
        seq = records(("fs", 0), ("./a", 4), ("lodash", 1))
        moves = plan_moves(seq)

        assert moves == [MoveOperation(move=seq[2], relative_to=seq[1], order="before")]
        assert moves[0].message == "`lodash` import should occur before import of `./a`"

    def test_backward_when_it_needs_fewer_moves(self):
        seq = records(("./a", 3), ("fs", 0), ("path", 0))
        moves = plan_moves(seq)

        assert len(moves) == 1
        assert moves[0].order == "after"
        assert moves[0].move.name == "./a"
        assert moves[0].relative_to.name == "path"

    def test_tie_goes_forward(self):
        moves = plan_moves(records(("./a", 3), ("fs", 0)))

        assert [(m.move.name, m.order, m.relative_to.name) for m in moves] == [("fs", "before", "./a")]

    def test_sorted_sequence_stays_sorted(self):
        seq = records(("fs", 0), ("path", 0), ("lodash", 1), ("./a", 3))
        assert plan_moves(seq) == []
