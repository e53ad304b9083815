"""Main entry point for rulelist CLI."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.prompt import Confirm

from rulelist_core.config import EditorSettings
from rulelist_core.manager import CommandResult, CommandStatus, RuleManager
from rulelist_core.persistence import HttpPersister, JsonFilePersister, Persister, SQLitePersister
from rulelist_core.rules import PersistFailure, default_schema, default_transformer, default_validator

from rulelist_cli.colors import COLORS
from rulelist_cli.renderer import TerminalRenderer


console = Console(highlight=False)

# CLI option name -> rule field name
RULE_OPTIONS = {
    "type": "type",
    "match": "match_value",
    "action": "action",
    "header": "rewrite_header",
    "rewrite": "rewrite_value",
    "description": "description",
}


def _add_rule_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--type", help="Rule type (e.g. HEADER-KEYWORD)")
    parser.add_argument("--match", help="Match value")
    parser.add_argument("--action", help="Action (e.g. REPLACE, DIRECT)")
    parser.add_argument("--header", help="Header to rewrite")
    parser.add_argument("--rewrite", help="Rewrite value")
    parser.add_argument("--description", help="Description")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rulelist",
        description="Edit an ordered list of rewrite rules",
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=Path("rules.json"),
        help="JSON file holding the rules (default: rules.json)",
    )
    parser.add_argument("--db", type=Path, help="Store rules in this SQLite database instead")
    parser.add_argument("--url", help="Save rules by POSTing them to this URL instead")
    parser.add_argument("--load-url", help="Load rules from this URL (default: the --url endpoint)")
    parser.add_argument("--config", type=Path, help="Editor settings JSON file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show the rule list")

    add = sub.add_parser("add", help="Add a rule")
    _add_rule_options(add)

    edit = sub.add_parser("edit", help="Edit the rule at a position")
    edit.add_argument("position", type=int, help="1-based rule position")
    _add_rule_options(edit)

    delete = sub.add_parser("delete", help="Delete the rule at a position")
    delete.add_argument("position", type=int, help="1-based rule position")
    delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    for name, help_text in (("up", "Move a rule up"), ("down", "Move a rule down")):
        move = sub.add_parser(name, help=help_text)
        move.add_argument("position", type=int, help="1-based rule position")

    move = sub.add_parser("move", help="Move a rule next to another rule")
    move.add_argument("source", type=int, help="1-based position of the rule to move")
    move.add_argument("target", type=int, help="1-based position to drop it on")
    move.add_argument("--after", action="store_true", help="Drop after the target instead of before")

    toggle = sub.add_parser("toggle", help="Enable or disable a rule")
    toggle.add_argument("position", type=int, help="1-based rule position")
    toggle.add_argument("state", choices=["on", "off"])

    return parser


def build_persister(args: argparse.Namespace, settings: EditorSettings) -> Persister:
    if args.url or (settings.save_url and not args.db):
        url = args.url or settings.save_url
        return HttpPersister(url, load_url=args.load_url or settings.load_url)
    if args.db:
        return SQLitePersister(db_path=args.db, list_name=settings.rule_key)
    return JsonFilePersister(args.file)


def rule_values(args: argparse.Namespace) -> dict[str, Any]:
    values = {}
    for option, field_name in RULE_OPTIONS.items():
        value = getattr(args, option, None)
        if value is not None:
            values[field_name] = value
    return values


def report(result: CommandResult) -> int:
    """Print a command result and return the process exit code."""
    if result.status is CommandStatus.OK:
        console.print("✓ Saved", style=COLORS["primary"])
        return 0
    if result.status is CommandStatus.NOOP:
        console.print(result.message or "Nothing to do", style=COLORS["dim"])
        return 0
    console.print(f"[bold red]Error:[/bold red] {result.message}")
    return 1


async def run_command(args: argparse.Namespace, settings: EditorSettings) -> int:
    schema = default_schema()
    persister = build_persister(args, settings)
    try:
        try:
            manager = await RuleManager.from_persister(
                persister,
                settings=settings,
                schema=schema,
                validator=default_validator,
                transformer=default_transformer,
                on_notice=lambda message: console.print(message, style=COLORS["error"]),
            )
        except PersistFailure as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            return 1
        manager.attach_renderer(TerminalRenderer(
            console,
            schema,
            allow_move=settings.allow_move,
            allow_delete=settings.allow_delete,
            allow_toggle=settings.allow_toggle,
        ))

        if args.command == "list":
            manager.render()
            return 0
        if args.command == "add":
            return report(await manager.add_rule(rule_values(args)))
        if args.command == "edit":
            return report(await manager.update_rule(args.position - 1, rule_values(args)))
        if args.command == "delete":
            confirm = None if args.yes else (
                lambda: Confirm.ask("Are you sure you want to delete this rule?", console=console)
            )
            return report(await manager.delete_rule(args.position - 1, confirm=confirm))
        if args.command == "up":
            return report(await manager.move_rule_up(args.position - 1))
        if args.command == "down":
            return report(await manager.move_rule_down(args.position - 1))
        if args.command == "move":
            return report(await manager.relocate_rule(args.source - 1, args.target - 1, args.after))
        if args.command == "toggle":
            return report(await manager.toggle_rule_enabled(args.position - 1, args.state == "on"))
        return 2
    finally:
        await persister.close()


def cli_main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = EditorSettings.from_environment()
    if args.config:
        settings = EditorSettings.from_json_file(args.config)

    try:
        return asyncio.run(run_command(args, settings))
    except KeyboardInterrupt:
        console.print("\nCancelled", style=COLORS["dim"])
        return 130


if __name__ == "__main__":
    sys.exit(cli_main())
