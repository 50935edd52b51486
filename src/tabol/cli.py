from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Optional

import typer

from tabol import build
from tabol.config import settings
from tabol.core import TabolError, TableRegistry, roll_formula
from tabol.utils.logging import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Generate text from weighted random tables.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    """Weighted random table generator."""
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_file=settings.log_file,
        enable_color=settings.enable_color,
    )


def _make_rng(seed: Optional[int]) -> random.Random:
    seed = settings.seed if seed is None else seed
    return random.Random(seed) if seed is not None else random.Random()


def _load_registry(definition: str, file: Optional[Path]) -> TableRegistry:
    """Read a definition file and build its registry, exiting with code 1 on failure."""
    path = file or settings.definition_path(definition)
    logger.debug('Filepath: "%s"', path)

    try:
        source = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        typer.echo(f"ERROR: could not read table definitions from {path}: {e}", err=True)
        raise typer.Exit(code=1)

    try:
        return build(source, max_depth=settings.max_depth)
    except TabolError as e:
        typer.echo(f"ERROR: {path}: {e}", err=True)
        raise typer.Exit(code=1)


@app.command()
def gen(
    definition: str = typer.Argument(..., help="Definition name, read from <tables_dir>/<name>.tbl"),
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Table id to generate (default: the definition name)"),
    count: Optional[int] = typer.Option(None, "--count", "-c", min=0, help="Number of results (default: TABOL_DEFAULT_COUNT)"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible output"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read definitions from this path instead"),
):
    """
    Generate results from a table and print each one followed by a blank line.
    """
    registry = _load_registry(definition, file)
    table_id = table or definition
    count = settings.default_count if count is None else count

    try:
        results = registry.generate_many(table_id, count, _make_rng(seed))
    except TabolError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=1)

    for result in results:
        typer.echo(f"{result}\n")


@app.command()
def tables(
    definition: str = typer.Argument(..., help="Definition name, read from <tables_dir>/<name>.tbl"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read definitions from this path instead"),
):
    """
    List the tables in a definition file with their reference structure.
    """
    registry = _load_registry(definition, file)
    graph = registry.graph
    non_terminating = graph.non_terminating()

    for table in registry.tables():
        notes = []
        if graph.in_cycle(table.id):
            notes.append("cyclic")
        if table.id in non_terminating:
            notes.append("never terminates")
        references = graph.references(table.id)
        if references:
            notes.append(f"uses {', '.join(references)}")
        users = [source for source in graph.referenced_by(table.id) if source != table.id]
        if users:
            notes.append(f"used by {', '.join(users)}")
        suffix = f"  [{'; '.join(notes)}]" if notes else ""
        typer.echo(f"{table.id}: {table.title} ({len(table.rules)} rules){suffix}")

    stats = graph.get_stats()
    typer.echo(
        f"\n{stats['total_tables']} tables, {stats['total_references']} references, "
        f"{stats['cycles']} cycles; entry points: {', '.join(stats['roots']) or '-'}"
    )


@app.command()
def dice(
    formula: str = typer.Argument(..., help="Dice formula such as 2d6 or d20"),
    count: int = typer.Option(1, "--count", "-c", min=1, help="Number of rolls"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible output"),
):
    """
    Roll dice outside of any table.
    """
    rng = _make_rng(seed)
    try:
        results = [roll_formula(formula, rng) for _ in range(count)]
    except ValueError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=1)

    for result in results:
        typer.echo(str(result))
