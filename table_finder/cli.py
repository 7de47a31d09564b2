"""
Table Finder CLI

Command-line front end for the table finder.

Commands:
    table-finder extract report.pdf --pages 1,3-5 --format csv -o tables.csv
    table-finder from-json page.json --format json
    table-finder debug page.json
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from loguru import logger
from rich.console import Console
from rich.table import Table as RichTable

from . import __version__
from .adapters import PagePrimitives, iter_pdf_pages, load_page_primitives
from .exceptions import TableFinderError
from .tables.finder import TableFinder
from .tables.models import Table
from .tables.settings import Strategy, TableSettings, load_settings

OUTPUT_FORMATS = ('text', 'json', 'csv', 'markdown')
STRATEGY_NAMES = [s.value for s in Strategy]


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None):
    """Configure loguru logging."""
    # Remove default handler
    logger.remove()

    # Console logging
    log_level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=log_level,
        colorize=True
    )

    # File logging
    if log_file:
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
            level="DEBUG",
            rotation="10 MB"
        )


def build_settings(
    config_path: Optional[Path],
    vertical_strategy: Optional[str],
    horizontal_strategy: Optional[str],
    borderless: Optional[bool],
    nested: Optional[bool],
) -> TableSettings:
    """Settings from an optional YAML file with command-line overrides on top."""
    settings = load_settings(config_path) if config_path else TableSettings()

    overrides: Dict[str, Any] = {}
    if vertical_strategy:
        overrides['vertical_strategy'] = vertical_strategy
    if horizontal_strategy:
        overrides['horizontal_strategy'] = horizontal_strategy
    if borderless is not None:
        overrides['detect_borderless'] = borderless
    if nested is not None:
        overrides['detect_nested'] = nested

    return settings.evolve(**overrides) if overrides else settings


def find_page_tables(page: PagePrimitives, settings: TableSettings) -> List[Table]:
    finder = TableFinder(
        page.chars, page.lines, page.rects,
        page_number=page.page_number,
        options=settings,
        words=page.words,
    )
    return finder.extract_tables()


def render_text(tables: List[Table], console: Console):
    """Print each table as a rich table."""
    if not tables:
        console.print("[yellow]No tables found[/]")
        return

    for i, table in enumerate(tables, start=1):
        title = (
            f"Page {table.page_number} - table {i} "
            f"({table.detection_method.value}, {table.confidence:.0%})"
        )
        grid = RichTable(title=title, show_header=False, show_lines=True)
        for _ in range(table.col_count):
            grid.add_column()
        for row in table.rows:
            grid.add_row(*row)
        console.print(grid)

        for nested in table.nested_tables:
            r, c = nested.parent_cell_ref or (0, 0)
            console.print(
                f"  [dim]nested {nested.row_count}x{nested.col_count} table in cell ({r}, {c})[/]"
            )


def render(tables: List[Table], output_format: str) -> str:
    """Serialise tables for json, csv and markdown output."""
    if output_format == 'json':
        return json.dumps([t.to_dict() for t in tables], indent=2)
    if output_format == 'csv':
        return '\n'.join(t.to_csv() for t in tables)
    return '\n\n'.join(
        f"### Page {t.page_number}, table {i}\n\n{t.to_markdown()}"
        for i, t in enumerate(tables, start=1)
    ) + '\n'


def write_output(
    tables: List[Table],
    output_format: str,
    output_path: Optional[Path],
    console: Console,
):
    if output_format == 'text':
        if output_path is None:
            render_text(tables, console)
            return
        with open(output_path, 'w', encoding='utf-8') as f:
            render_text(tables, Console(file=f, width=120))
        console.print(f"[green]✓ Output written to: {output_path}[/]")
        return

    if output_path is None:
        click.echo(render(tables, output_format), nl=False)
        return

    if output_format == 'csv' and len(tables) > 1:
        # One file per table next to the requested path
        for i, table in enumerate(tables, start=1):
            path = output_path.with_name(
                f"{output_path.stem}_p{table.page_number}_t{i}{output_path.suffix}"
            )
            table.to_csv(path)
            console.print(f"[green]✓ Table written to: {path}[/]")
        return

    output_path.write_text(render(tables, output_format), encoding='utf-8')
    console.print(f"[green]✓ Output written to: {output_path}[/]")


def table_options(func):
    """Options shared by the extraction commands."""
    options = [
        click.option('--format', '-f', 'output_format', type=click.Choice(OUTPUT_FORMATS),
                     default='text', show_default=True, help='Output format'),
        click.option('--output', '-o', 'output_path', type=click.Path(path_type=Path),
                     default=None, help='Write output to file instead of stdout'),
        click.option('--config', '-c', 'config_path', type=click.Path(exists=True, path_type=Path),
                     default=None, help='YAML file with table settings'),
        click.option('--vertical-strategy', type=click.Choice(STRATEGY_NAMES), default=None,
                     help='Edge source for column separators'),
        click.option('--horizontal-strategy', type=click.Choice(STRATEGY_NAMES), default=None,
                     help='Edge source for row separators'),
        click.option('--borderless/--no-borderless', default=None,
                     help='Fall back to projection profiles on pages without ruling'),
        click.option('--nested/--no-nested', default=None,
                     help='Search cells for nested tables'),
        click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging'),
        click.option('--log-file', type=click.Path(path_type=Path), default=None,
                     help='Write logs to file'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(__version__, prog_name='table-finder')
def cli():
    """Table Finder - reconstruct tables from page geometry."""


@cli.command()
@click.argument('pdf_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--pages', '-p', default=None, help='Pages to scan, e.g. "1,3-5" (default: all)')
@table_options
def extract(
    pdf_path: Path,
    pages: Optional[str],
    output_format: str,
    output_path: Optional[Path],
    config_path: Optional[Path],
    vertical_strategy: Optional[str],
    horizontal_strategy: Optional[str],
    borderless: Optional[bool],
    nested: Optional[bool],
    verbose: bool,
    log_file: Optional[Path],
):
    """
    Extract tables from a PDF decoded with pdfplumber.

    Examples:

        # All pages, printed as tables
        table-finder extract report.pdf

        # Pages 2-4 as CSV, with borderless fallback
        table-finder extract report.pdf -p 2-4 -f csv -o tables.csv --borderless
    """
    setup_logging(verbose=verbose, log_file=log_file)
    console = Console(stderr=True)

    try:
        settings = build_settings(config_path, vertical_strategy, horizontal_strategy, borderless, nested)
        tables: List[Table] = []
        for page in iter_pdf_pages(pdf_path, pages):
            tables.extend(find_page_tables(page, settings))
    except TableFinderError as e:
        console.print(f"[bold red]Error: {e}[/]")
        raise SystemExit(1)

    logger.info(f"Found {len(tables)} tables in {pdf_path.name}")
    write_output(tables, output_format, output_path, console if output_format != 'text' else Console())


@cli.command('from-json')
@click.argument('page_files', nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False, path_type=Path))
@table_options
def from_json(
    page_files: List[Path],
    output_format: str,
    output_path: Optional[Path],
    config_path: Optional[Path],
    vertical_strategy: Optional[str],
    horizontal_strategy: Optional[str],
    borderless: Optional[bool],
    nested: Optional[bool],
    verbose: bool,
    log_file: Optional[Path],
):
    """
    Extract tables from page-primitive JSON documents.

    Each file holds one page: {"page_number", "chars", "lines", "rects", "words"}.
    """
    setup_logging(verbose=verbose, log_file=log_file)
    console = Console(stderr=True)

    try:
        settings = build_settings(config_path, vertical_strategy, horizontal_strategy, borderless, nested)
        tables: List[Table] = []
        for page_file in page_files:
            tables.extend(find_page_tables(load_page_primitives(page_file), settings))
    except TableFinderError as e:
        console.print(f"[bold red]Error: {e}[/]")
        raise SystemExit(1)

    logger.info(f"Found {len(tables)} tables in {len(page_files)} page files")
    write_output(tables, output_format, output_path, console if output_format != 'text' else Console())


@cli.command()
@click.argument('page_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True, path_type=Path),
              default=None, help='YAML file with table settings')
@click.option('--edges', 'show_edges', is_flag=True, help='List every canonical edge')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def debug(page_file: Path, config_path: Optional[Path], show_edges: bool, verbose: bool):
    """Show the edges, intersections and tables found on one JSON page."""
    setup_logging(verbose=verbose)
    console = Console()

    try:
        settings = load_settings(config_path) if config_path else TableSettings()
        page = load_page_primitives(page_file)
        result = TableFinder(
            page.chars, page.lines, page.rects,
            page_number=page.page_number, options=settings, words=page.words,
        ).find_tables()
    except TableFinderError as e:
        console.print(f"[bold red]Error: {e}[/]")
        raise SystemExit(1)

    console.print(f"[bold]Edges:[/] {len(result.edges)}")
    console.print(f"[bold]Intersections:[/] {len(result.intersections)}")
    console.print(f"[bold]Tables:[/] {len(result.tables)}")

    if show_edges and result.edges:
        edge_table = RichTable(title="Edges")
        edge_table.add_column("Orientation", style="cyan")
        edge_table.add_column("Position", justify="right")
        edge_table.add_column("Span", justify="right")
        edge_table.add_column("Style")
        for edge in result.edges:
            edge_table.add_row(
                edge.orientation.value,
                f"{edge.position:.1f}",
                f"{edge.start:.1f}-{edge.end:.1f}",
                edge.style.value,
            )
        console.print(edge_table)

    if result.tables:
        summary = RichTable(title="Detected Tables")
        summary.add_column("#", justify="right")
        summary.add_column("BBox", style="cyan")
        summary.add_column("Size", justify="right")
        summary.add_column("Method", style="bold")
        summary.add_column("Confidence", justify="right")
        summary.add_column("Nested", justify="right")
        for i, table in enumerate(result.tables, start=1):
            b = table.bbox
            summary.add_row(
                str(i),
                f"({b.x0:.0f}, {b.y0:.0f}, {b.x1:.0f}, {b.y1:.0f})",
                f"{table.row_count}x{table.col_count}",
                table.detection_method.value,
                f"{table.confidence:.0%}",
                str(len(table.nested_tables)),
            )
        console.print()
        console.print(summary)


def main():
    cli()


if __name__ == "__main__":
    main()
