"""Tests for row view models."""

from rulelist_core.rules import ColumnKind, build_rows
from rulelist_core.rules.view import HIDDEN_VALUE


def cell(row, title, schema):
    index = [column.title for column in schema.columns].index(title)
    return row.cells[index]


class TestBuildRows:
    """Tests for build_rows."""

    def test_one_row_per_rule(self, sample_rules, schema):
        rows = build_rows(sample_rules, schema)
        assert [row.index for row in rows] == [0, 1, 2, 3]
        assert [row.is_final for row in rows] == [False, False, False, True]
        assert all(len(row.cells) == len(schema.columns) for row in rows)

    def test_labels_and_index(self, sample_rules, schema):
        row = build_rows(sample_rules, schema)[2]
        assert cell(row, "#", schema).text == "3"
        assert cell(row, "Type", schema).text == "IP CIDR"
        assert cell(row, "Action", schema).text == "Drop"
        assert cell(row, "Match", schema).text == "10.0.0.0/8"
        assert cell(row, "Match", schema).title == "10.0.0.0/8"

    def test_final_row(self, sample_rules, schema):
        row = build_rows(sample_rules, schema)[3]
        assert cell(row, "Type", schema).text == "FINAL"
        assert cell(row, "Match", schema).text == HIDDEN_VALUE
        assert cell(row, "Match", schema).title == ""
        checkbox = cell(row, "Enabled", schema)
        assert checkbox.kind is ColumnKind.CHECKBOX
        assert checkbox.checked and checkbox.disabled
        assert not row.can_delete
        assert not row.draggable
        assert not row.can_move_up and not row.can_move_down
        assert row.can_edit

    def test_move_flags(self, sample_rules, schema):
        rows = build_rows(sample_rules, schema)
        assert [row.can_move_up for row in rows] == [False, True, True, False]
        assert [row.can_move_down for row in rows] == [True, True, False, False]

    def test_disabled_features(self, sample_rules, schema):
        rows = build_rows(sample_rules, schema, allow_move=False, allow_delete=False, allow_toggle=False)
        assert not any(row.can_move_up or row.can_move_down or row.draggable for row in rows)
        assert not any(row.can_delete for row in rows)
        assert all(cell(row, "Enabled", schema).disabled for row in rows)

    def test_disabled_rule_checkbox(self, sample_rules, schema):
        row = build_rows(sample_rules, schema)[2]
        checkbox = cell(row, "Enabled", schema)
        assert not checkbox.checked
        assert not checkbox.disabled

    def test_empty_list(self, schema):
        assert build_rows([], schema) == []
