"""
Privilege Commit Check — validate a proposed commit from the command line.

Loads a before and an after snapshot (JSON node trees), validates every
change the commit makes to the privileges node and reports the decision.

Snapshot format:
    {"properties": {...}, "children": {"jcr:system": {...}}}

Usage:
    python -m privilege_integrity.check before.json after.json
    python -m privilege_integrity.check before.json after.json --verbose
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

import structlog
from rich.console import Console
from rich.table import Table

from privilege_integrity.config import PrivilegeSettings, settings
from privilege_integrity.privilege.definitions import PrivilegeDefinitionReader, read_bits
from privilege_integrity.tree.snapshot import Snapshot
from privilege_integrity.validation.dispatcher import ValidationResult, validate_commit

console = Console()


def configure_logging(config: PrivilegeSettings = settings) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.dev.ConsoleRenderer()
                if config.log_format != "json"
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(level=config.log_level, stream=sys.stderr)


def render_definitions(snapshot: Snapshot, config: PrivilegeSettings = settings) -> Table:
    """Table of the privilege definitions registered in a snapshot."""
    table = Table(show_lines=True)
    table.add_column("Name", style="cyan")
    table.add_column("Bits", style="dim")
    table.add_column("Declared aggregates", style="green")
    table.add_column("Abstract", width=9)

    privileges = snapshot.get_node(config.privileges_path)
    definitions = PrivilegeDefinitionReader(privileges).read_definitions()
    for name in sorted(definitions):
        definition = definitions[name]
        table.add_row(
            name,
            f"{read_bits(privileges.get_child(name)).value:#x}",
            ", ".join(sorted(definition.declared_aggregate_names)) or "—",
            "yes" if definition.is_abstract else "—",
        )
    return table


def run_check(before: Snapshot, after: Snapshot, verbose: bool = False) -> ValidationResult:
    """
    Validate a commit and print the outcome.

    Args:
        before: Snapshot before the commit.
        after: Proposed snapshot after the commit.
        verbose: Print the definitions of the after snapshot if True.

    Returns:
        The ValidationResult of the commit.
    """
    log = structlog.get_logger()
    console.print("\n[bold blue]═══ Privilege Commit Check ═══[/bold blue]")

    start_time = time.time()
    result = validate_commit(before, after)
    elapsed = time.time() - start_time

    if result.is_accepted:
        console.print("  Decision: [bold green]✓ ACCEPTED[/bold green]")
        log.info(
            "privilege_integrity.check.accepted",
            events_checked=result.events_checked,
        )
    else:
        console.print("  Decision: [bold red]✗ REJECTED[/bold red]")
        console.print(f"  Violation: {result.violation}")
        log.warning(
            "privilege_integrity.check.rejected",
            code=int(result.code),
            message=result.violation.message,
            events_checked=result.events_checked,
        )
    console.print(f"  Events checked: [bold]{result.events_checked}[/bold]")
    console.print(f"  Check time: {elapsed:.3f}s")

    if verbose:
        console.print("\n[bold]Privilege definitions after commit:[/bold]")
        console.print(render_definitions(after))

    return result


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Validate a proposed commit against the privilege integrity rules"
    )
    parser.add_argument("before", help="JSON snapshot before the commit")
    parser.add_argument("after", help="JSON snapshot proposed by the commit")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show the privilege definitions of the after snapshot",
    )
    args = parser.parse_args(argv)

    configure_logging()
    result = run_check(
        Snapshot.from_file(args.before),
        Snapshot.from_file(args.after),
        verbose=args.verbose,
    )
    sys.exit(0 if result.is_accepted else 1)


if __name__ == "__main__":
    main()
