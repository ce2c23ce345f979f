"""Typer-based CLI for the CasiLocal content bot."""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import CasiConfig
from .errors import CasiLocalError, FormatError
from .ingest import run_ingestion
from .ledger import open_processed_ledger, open_refined_ledger
from .llm import get_text_generator
from .mdx import read_mdx_text, venue_record_from_mdx
from .models.results import ItemResult, ItemStatus
from .paths import SitePaths
from .places import PlacesClient
from .refine import run_refinement

app = typer.Typer(
    name="casilocal",
    help="CasiLocal content bot - seed and refine Madrid laptop-friendly café spots",
    add_completion=False,
)

console = Console()

SITE_HELP = "Path to the site checkout (default: .casilocal/config.toml, CASILOCAL_SITE, or discovery)"
ENGINE_HELP = "Text generation engine: groq, fake, or auto (groq if GROQ_API_KEY is set)"


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """Seed and refine CasiLocal spot files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(site_path: Optional[str]) -> CasiConfig:
    try:
        return CasiConfig.from_env(site_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1)


def _print_ingest_item(result: ItemResult) -> None:
    if result.status == ItemStatus.WRITTEN:
        console.print(f"[green]+[/green] {result.name} -> {result.slug}.mdx")
    elif result.status == ItemStatus.SKIPPED:
        console.print(f"[dim]= {result.name} (already processed)[/dim]")
    elif result.status == ItemStatus.PLANNED:
        console.print(f"[cyan]?[/cyan] {result.name} [dim](would enrich)[/dim]")
    else:
        console.print(f"[red]x[/red] {result.name}: {result.reason}")


def _print_refine_item(result: ItemResult) -> None:
    if result.ok:
        console.print(f"[green]+[/green] {result.key} [dim](author: {result.author})[/dim]")
    else:
        console.print(f"[red]x[/red] {result.key}: {result.reason}")


@app.command()
def seed(
    query: Optional[str] = typer.Argument(
        None,
        help="Discovery query (default: seed.default_query, 'Laptop friendly specialty coffee madrid')",
    ),
    site_path: str = typer.Option(None, "--site", "-s", help=SITE_HELP),
    engine: str = typer.Option("groq", "--engine", help=ENGINE_HELP),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Search and dedup only; no generation calls and no writes",
    ),
):
    """Discover cafés and write a spot file for each new one.

    Already-processed places (bot/processed-spots.json) are skipped. When most
    results are duplicates, a new query is suggested and tried.
    """
    config = _load_config(site_path)
    paths = SitePaths.from_config(config)
    query = query or config.seed.default_query

    try:
        places_client = PlacesClient(language_code=config.seed.language_code)
        generator = None
        if not dry_run:
            generator = get_text_generator(
                engine, model=config.llm.model, timeout_seconds=config.llm.timeout_seconds
            )

        ledger = open_processed_ledger(paths.processed_file)
        console.print(f"[cyan]Seeding spots into:[/cyan] {paths.spots}")
        console.print(f"[dim]Ledger has {len(ledger)} processed place(s)[/dim]")
        if dry_run:
            console.print("[yellow]Dry run - nothing will be written[/yellow]")

        summary = run_ingestion(
            query=query,
            places_client=places_client,
            generator=generator,
            ledger=ledger,
            paths=paths,
            seed_config=config.seed,
            dry_run=dry_run,
            on_item=_print_ingest_item,
        )
    except (CasiLocalError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    console.print()
    if summary.dry_run:
        planned = sum(1 for item in summary.items if item.status == ItemStatus.PLANNED)
        console.print(f"[bold]Would enrich {planned} place(s), {summary.skipped} already processed[/bold]")
        return

    console.print(
        f"[bold green]Done![/bold green] Added {summary.new} new spot(s), "
        f"skipped {summary.skipped} already processed"
    )
    if summary.failed:
        console.print(f"[yellow]{summary.failed} place(s) failed, see log above[/yellow]")
    if summary.retries:
        console.print(f"[dim]Used {summary.retries} query refinement(s): {', '.join(summary.queries[1:])}[/dim]")
    console.print(f"[dim]Total in processed list: {summary.ledger_size}[/dim]")


@app.command()
def refine(
    filename: Optional[str] = typer.Argument(
        None,
        help="Refine only this spot file (e.g. malasana-pastora[.mdx]); ignores the ledger",
    ),
    site_path: str = typer.Option(None, "--site", "-s", help=SITE_HELP),
    engine: str = typer.Option("groq", "--engine", help=ENGINE_HELP),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Refine at most N files"),
    delay: Optional[float] = typer.Option(
        None,
        "--delay",
        help="Seconds to wait between files (default: refine.rate_limit_seconds, 600)",
    ),
):
    """Rewrite spot reviews in a local voice and assign an author.

    Refined files are recorded in bot/refined-spots.json and skipped next time.
    """
    config = _load_config(site_path)
    paths = SitePaths.from_config(config)
    refine_config = config.refine
    if delay is not None:
        refine_config = refine_config.model_copy(update={"rate_limit_seconds": max(delay, 0.0)})

    try:
        generator = get_text_generator(
            engine, model=config.llm.model, timeout_seconds=config.llm.timeout_seconds
        )
        ledger = open_refined_ledger(paths.refined_file)
        summary = run_refinement(
            paths=paths,
            generator=generator,
            ledger=ledger,
            refine_config=refine_config,
            filename=filename,
            limit=limit,
            on_item=_print_refine_item,
        )
    except (CasiLocalError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    console.print()
    if summary.selected == 0:
        console.print("[green]All files already refined![/green]")
        return
    console.print(f"[bold green]Done![/bold green] Refined {summary.refined} review(s)")
    if summary.failed:
        console.print(f"[yellow]{summary.failed} file(s) failed, see log above[/yellow]")


@app.command()
def check(
    site_path: str = typer.Option(None, "--site", "-s", help=SITE_HELP),
):
    """Validate every spot file against the content schema.

    Exits with status 1 if any file is malformed.
    """
    config = _load_config(site_path)
    paths = SitePaths.from_config(config)
    files = paths.list_spot_files()

    if not files:
        console.print(f"[yellow]No spot files found in {paths.spots}[/yellow]")
        return

    problems: list[tuple[str, str]] = []
    for file_path in files:
        try:
            venue_record_from_mdx(read_mdx_text(file_path), slug=file_path.stem)
        except (FormatError, OSError) as e:
            problems.append((file_path.name, str(e)))

    if problems:
        table = Table(title=f"{len(problems)} invalid spot file(s)")
        table.add_column("File", style="cyan")
        table.add_column("Problem", style="red")
        for name, problem in problems:
            table.add_row(name, problem)
        console.print(table)
        raise typer.Exit(code=1)

    console.print(f"[green]All {len(files)} spot file(s) are valid[/green]")


ledger_app = typer.Typer(help="Ledger commands")
app.add_typer(ledger_app, name="ledger")


@ledger_app.command("show")
def ledger_show(
    which: str = typer.Argument(..., help="Which ledger: processed or refined"),
    n: int = typer.Option(20, "--n", min=1, help="Number of most recent entries to display"),
    site_path: str = typer.Option(None, "--site", "-s", help=SITE_HELP),
):
    """Display the last N entries of a ledger."""
    if which not in ("processed", "refined"):
        console.print(f"[red]Error: unknown ledger '{which}' (use processed or refined)[/red]")
        raise typer.Exit(code=1)

    config = _load_config(site_path)
    paths = SitePaths.from_config(config)

    if which == "processed":
        store = open_processed_ledger(paths.processed_file)
        table = Table(title=f"Processed spots ({len(store)} total)")
        table.add_column("Processed", style="dim")
        table.add_column("Name")
        table.add_column("Neighborhood", style="magenta")
        table.add_column("Slug", style="cyan")
        for entry in store.entries[-n:]:
            table.add_row(
                entry.processed_at.strftime("%Y-%m-%d %H:%M"),
                entry.name,
                entry.neighborhood,
                entry.slug,
            )
    else:
        store = open_refined_ledger(paths.refined_file)
        table = Table(title=f"Refined spots ({len(store)} total)")
        table.add_column("Refined", style="dim")
        table.add_column("File", style="cyan")
        table.add_column("Spot")
        for entry in store.entries[-n:]:
            table.add_row(entry.refined_at.strftime("%Y-%m-%d %H:%M"), entry.filename, entry.spot_name)

    if len(store) == 0:
        console.print("[dim]No entries in ledger[/dim]")
        return
    console.print(table)


@app.command()
def version():
    """Show CasiLocal bot version."""
    from . import __version__
    console.print(f"CasiLocal bot v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
