"""plotrecon CLI -- Rich-formatted plot reconciliation from the terminal."""

import json
import logging

import click


def _console():
    from rich.console import Console

    return Console()


def _print_errors(console, errors):
    if not errors:
        return
    from rich.table import Table

    table = Table(title="Errors")
    table.add_column("Id", style="cyan")
    table.add_column("Error", style="red", overflow="fold")
    for err in errors:
        table.add_row(err["id"], err["error"])
    console.print(table)


def _save(console, store, dry_run, output, quiet=False):
    if dry_run:
        if not quiet:
            console.print("\n[dim]Dry run: no changes written.[/dim]")
        return
    saved = store.save(output)
    if not quiet:
        console.print(f"\nSaved to: [bold]{saved}[/bold]")


@click.group()
@click.version_option(package_name="plotrecon-core")
@click.option("--verbose", "-v", is_flag=True, help="Log reconciliation decisions.")
def cli(verbose):
    """plotrecon -- Plot deduplication and gap-fill reconciliation."""
    if verbose:
        from rich.logging import RichHandler

        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
        )


@cli.command()
@click.argument("plot_number")
@click.option("--row", "-r", default="", help="Row label (e.g. A-107).")
@click.option("--strategies", "-s", default="staging",
              type=click.Choice(["staging", "gap-fill", "digits"]),
              help="Strategy set (default: staging).")
def canonicalize(plot_number, row, strategies):
    """Show the canonical number for a plot identifier."""
    from .reconciler import (
        DIGITS_ONLY_STRATEGIES,
        GAP_FILL_STRATEGIES,
        STAGING_STRATEGIES,
        match_strategy,
    )

    sets = {
        "staging": STAGING_STRATEGIES,
        "gap-fill": GAP_FILL_STRATEGIES,
        "digits": DIGITS_ONLY_STRATEGIES,
    }
    console = _console()
    number, name = match_strategy(plot_number, row, sets[strategies])

    if number is None:
        console.print(f"[yellow]No match[/yellow] for plot {plot_number!r} row {row!r}")
        return
    console.print(f"[bold]{number}[/bold]  [dim]({name})[/dim]")


@cli.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--variant", default="section", type=click.Choice(["section", "strict", "exact"]),
              help="section: loose Section 1 cleanup; strict: per-section status-first; "
                   "exact: exact plot_number match.")
@click.option("--section", default="", help="Target section (default depends on variant).")
@click.option("--dry-run", is_flag=True, help="Plan only; do not modify the file.")
@click.option("--output", "-o", default="", help="Write results here instead of FILE.")
def dedupe(file, variant, section, dry_run, output):
    """Remove duplicate plots from a CSV/JSON export."""
    from rich.panel import Panel
    from rich.table import Table

    from .reconciler import cleanup_duplicates, cleanup_section_duplicates, deduplicate_plots
    from .store import FileRecordStore

    console = _console()
    store = FileRecordStore(file, entity="Plot")

    with console.status("Deduplicating..."):
        if variant == "section":
            result = cleanup_section_duplicates(store, section=section or "1", dry_run=dry_run)
        elif variant == "strict":
            result = deduplicate_plots(store, section=section or "Section 1", dry_run=dry_run)
        else:
            result = cleanup_duplicates(store, section=section or "Section 1", dry_run=dry_run)

    console.print(Panel(result["message"], title=f"Dedup ({result['policy']})"))

    if result["details"]:
        table = Table(title="Duplicate Groups")
        table.add_column("Key", style="cyan")
        table.add_column("Keeping", style="green")
        table.add_column("Status")
        table.add_column("Deleting", style="red", overflow="fold")
        for d in result["details"]:
            table.add_row(
                d["key"],
                d["keeping"]["id"],
                d["keeping"]["status"] or "-",
                ", ".join(d["deleting"]),
            )
        console.print(table)

    _print_errors(console, result["errors"])
    _save(console, store, dry_run, output)


@cli.command("dedupe-deceased")
@click.argument("file", type=click.Path(exists=True))
@click.option("--dry-run", is_flag=True, help="Plan only; do not modify the file.")
@click.option("--output", "-o", default="", help="Write results here instead of FILE.")
def dedupe_deceased(file, dry_run, output):
    """Remove duplicate Deceased rows (same name and dates)."""
    from .reconciler import cleanup_deceased_duplicates
    from .store import FileRecordStore

    console = _console()
    store = FileRecordStore(file, entity="Deceased")

    with console.status("Deduplicating..."):
        result = cleanup_deceased_duplicates(store, dry_run=dry_run)

    console.print(result["message"])
    console.print(f"Unique records: [bold]{result['unique_records']}[/bold]")
    _print_errors(console, result["errors"])
    _save(console, store, dry_run, output)


@cli.command("gap-fill")
@click.argument("plots", type=click.Path(exists=True))
@click.argument("staging", type=click.Path(exists=True))
@click.option("--lo", default=101, help="First canonical number (default 101).")
@click.option("--hi", default=132, help="Last canonical number (default 132).")
@click.option("--dry-run", is_flag=True, help="Plan only; do not modify PLOTS.")
@click.option("--output", "-o", default="", help="Write plots here instead of PLOTS.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw report as JSON.")
def gap_fill(plots, staging, lo, hi, dry_run, output, as_json):
    """Fill missing plot numbers in PLOTS from STAGING rows."""
    from rich.table import Table

    from .reconciler import populate_missing_plots
    from .store import FileRecordStore

    if lo > hi:
        raise click.BadParameter(f"--lo ({lo}) must not exceed --hi ({hi})")

    console = _console()
    plot_store = FileRecordStore(plots, entity="Plot")
    staging_store = FileRecordStore(staging, entity="NewPlot")

    if as_json:
        result = populate_missing_plots(plot_store, staging_store, (lo, hi), dry_run=dry_run)
    else:
        with console.status("Reconciling..."):
            result = populate_missing_plots(plot_store, staging_store, (lo, hi), dry_run=dry_run)

    if as_json:
        click.echo(json.dumps(result, indent=2, default=str))
    else:
        console.print(f"\n[bold]{result['message']}[/bold]\n")
        if result.get("plan"):
            table = Table(title="Planned Plots")
            table.add_column("Number", justify="right", style="cyan")
            table.add_column("Source", style="dim")
            table.add_column("Score", justify="right")
            table.add_column("Status")
            table.add_column("Name", style="green")
            for c in result["plan"]:
                f = c["fields"]
                table.add_row(
                    str(c["number"]),
                    c["source_id"],
                    str(c["score"]),
                    f["status"],
                    f"{f['first_name']} {f['last_name']}".strip() or "-",
                )
            console.print(table)

        if result["still_missing"]:
            console.print(
                "[yellow]Still missing:[/yellow] "
                + ", ".join(str(n) for n in result["still_missing"])
            )
        _print_errors(console, result.get("errors"))

    if result["created"] or dry_run:
        _save(console, plot_store, dry_run, output, quiet=as_json)


@cli.command("purge-unplaced")
@click.argument("staging", type=click.Path(exists=True))
@click.option("--lo", default=101, help="First canonical number (default 101).")
@click.option("--hi", default=132, help="Last canonical number (default 132).")
@click.option("--dry-run", is_flag=True, help="Plan only; do not modify STAGING.")
@click.option("--output", "-o", default="", help="Write results here instead of STAGING.")
def purge_unplaced(staging, lo, hi, dry_run, output):
    """Delete A-1 staging rows that cannot be placed in the target range."""
    from rich.table import Table

    from .reconciler import purge_unplaced_staging
    from .store import FileRecordStore

    console = _console()
    store = FileRecordStore(staging, entity="NewPlot")

    with console.status("Scanning..."):
        result = purge_unplaced_staging(store, (lo, hi), dry_run=dry_run)

    console.print(f"\n[bold]{result['message']}[/bold]\n")

    if result["sample_labels"]:
        table = Table(title="Sample Labels")
        table.add_column("Plot number", style="cyan")
        table.add_column("Row", style="magenta")
        for s in result["sample_labels"]:
            table.add_row(s["plot_number"] or "-", s["row_number"] or "-")
        console.print(table)

    _print_errors(console, result["errors"])
    _save(console, store, dry_run, output)


def main():
    cli()


if __name__ == "__main__":
    main()
