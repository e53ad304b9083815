"""Terminal renderer for rulelist CLI."""

from typing import Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from rulelist_core.rules import ColumnKind, Rule, RuleRow, RuleSchema, build_rows
from rulelist_core.rules.view import EMPTY_MESSAGE
from rulelist_cli.colors import COLORS, DISABLED_MARK, ENABLED_MARK, MAX_VALUE_LENGTH


def truncate_value(value: str, max_length: int = MAX_VALUE_LENGTH) -> str:
    """Truncate a string value if it exceeds max_length."""
    if len(value) > max_length:
        return value[:max_length] + "..."
    return value


def _command_hints(row: RuleRow) -> str:
    hints = ["edit"]
    if row.can_move_up:
        hints.append("up")
    if row.can_move_down:
        hints.append("down")
    if row.can_delete:
        hints.append("delete")
    return " ".join(hints)


class TerminalRenderer:
    """Renders the rule list as a rich table."""

    def __init__(
        self,
        console: Console,
        schema: RuleSchema,
        *,
        allow_move: bool = True,
        allow_delete: bool = True,
        allow_toggle: bool = True,
    ) -> None:
        self.console = console
        self.schema = schema
        self.allow_move = allow_move
        self.allow_delete = allow_delete
        self.allow_toggle = allow_toggle

    def build_table(self, rules: Sequence[Rule]) -> Table:
        table = Table(show_header=True, header_style="bold", box=box.SIMPLE)
        for column in self.schema.columns:
            justify = "right" if column.kind is ColumnKind.INDEX else "left"
            table.add_column(column.title, justify=justify)

        rows = build_rows(
            rules,
            self.schema,
            allow_move=self.allow_move,
            allow_delete=self.allow_delete,
            allow_toggle=self.allow_toggle,
        )
        for row in rows:
            cells = []
            for cell in row.cells:
                if cell.kind is ColumnKind.CHECKBOX:
                    cells.append(ENABLED_MARK if cell.checked else DISABLED_MARK)
                elif cell.kind is ColumnKind.ACTIONS:
                    cells.append(_command_hints(row))
                else:
                    cells.append(truncate_value(cell.text))
            style = None
            if row.is_final:
                style = COLORS["final"]
            elif not rules[row.index].enabled:
                style = COLORS["disabled"]
            table.add_row(*cells, style=style)
        return table

    def render(self, rules: Sequence[Rule]) -> None:
        if not rules:
            self.console.print(EMPTY_MESSAGE, style=COLORS["dim"])
            return
        self.console.print(self.build_table(rules))
