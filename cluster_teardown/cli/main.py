"""Main CLI entry point using Typer."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..aws.client import AwsClients
from ..catalog import Enricher, ForcedStrategy, InteractiveStrategy, MalformedInventory, Selector, load_inventory
from ..models.manifest import DeletionManifest, ManifestError
from ..teardown.audit import AuditStorage
from ..teardown.deleter import ResourceDeleter
from ..teardown.engine import TeardownEngine
from ..teardown.registry import ProcedureRegistry
from ..teardown.reporter import TeardownReporter
from ..teardown.scheduler import PhaseScheduler
from ..teardown.sweeper import OrphanSweeper
from ..utils.logging import setup_logging
from .config import Config

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="cluster-teardown",
    help="Cluster Teardown - select and delete the AWS resources of a decommissioned cluster",
    add_completion=False,
)

# Create Rich console for output
console = Console()

# Global config
config: Optional[Config] = None
verbose_output = False


@app.callback()
def main(
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="AWS profile name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress output except errors"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
):
    """Cluster Teardown - select and delete the AWS resources of a decommissioned cluster."""
    global config, verbose_output

    # Load configuration
    config = Config.load()

    # Override with CLI options
    if profile:
        config.aws_profile = profile
    verbose_output = verbose

    # Setup logging
    log_level = "ERROR" if quiet else ("DEBUG" if verbose else config.log_level)
    try:
        setup_logging(level=log_level, verbose=verbose, log_file=config.log_file)
    except OSError as e:
        setup_logging(level=log_level, verbose=verbose)
        console.print(f"⚠ Log file disabled: {e}", style="yellow")

    # Disable colors if requested
    if no_color:
        console.no_color = True


@app.command()
def version():
    """Show version information."""
    import boto3

    from .. import __version__

    console.print(f"cluster-teardown version {__version__}")
    console.print(f"Python {sys.version.split()[0]}")
    console.print(f"boto3 {boto3.__version__}")


def default_manifest_path() -> Path:
    """Manifest path used when --output is not given."""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    directory = Path(config.manifest_dir) if config.manifest_dir else Path(".")
    return directory / f"teardown-manifest-{timestamp}.json"


def print_schedule(manifest: DeletionManifest) -> None:
    """Render a manifest as one table per phase, types in deletion order."""
    details = {entry.record.key: entry.details for entry in manifest.entries}

    for scheduled in PhaseScheduler().schedule(manifest):
        if scheduled.is_empty:
            continue

        table = Table(title=f"Phase: {scheduled.phase.name}")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Type", style="cyan")
        table.add_column("Resource")
        table.add_column("Details")

        position = 0
        for type_name, records in scheduled.groups:
            for record in records:
                position += 1
                table.add_row(str(position), type_name, record.resource_id, details.get(record.key, "unknown"))

        console.print(table)


def open_audit_storage() -> Optional[AuditStorage]:
    """Audit storage from config, or None when the directory cannot be created."""
    try:
        return AuditStorage(config.audit_dir)
    except OSError as e:
        console.print(f"⚠ Audit log disabled: {e}", style="yellow")
        return None


def run_teardown(
    manifest: DeletionManifest,
    clients: AwsClients,
    registry: ProcedureRegistry,
    export: Optional[Path] = None,
) -> None:
    """Execute a manifest and print the outcome report."""
    engine = TeardownEngine(
        deleter=ResourceDeleter(registry),
        sweeper=OrphanSweeper(clients),
        audit_storage=open_audit_storage(),
        drain_seconds=config.drain_seconds,
        aws_profile=config.aws_profile,
    )

    console.print(f"\n🗑  Deleting {len(manifest.entries)} resource(s) in [bold]{manifest.region}[/bold]\n")
    run = engine.execute(manifest)

    reporter = TeardownReporter(run.outcomes)
    console.out(reporter.format_terminal(verbose=verbose_output, console=console), highlight=False)

    if export:
        reporter.export_json(export, run)
        console.print(f"✓ Exported outcomes to: [cyan]{export}[/cyan] (JSON)")

    summary = reporter.summarize()
    if summary["failed"]:
        console.print(
            f"⚠ {summary['failed']} resource(s) could not be deleted; re-run the manifest after fixing the cause",
            style="bold yellow",
        )
    else:
        console.print(f"✓ Teardown {run.status.value}", style="bold green")
    console.print(f"Run ID: [cyan]{run.run_id}[/cyan]")


@app.command()
def plan(
    inventory: Path = typer.Argument(..., help="Inventory file (JSON, or YAML by suffix)"),
    force: bool = typer.Option(False, "--force", "-f", help="Select every resource without prompting"),
    execute: bool = typer.Option(False, "--execute", "-x", help="Delete the selection right away"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Manifest output path"),
    region: Optional[str] = typer.Option(None, "--region", help="Override the inventory region"),
    no_details: bool = typer.Option(False, "--no-details", help="Skip AWS description lookups"),
    export: Optional[Path] = typer.Option(None, "--export", help="Export outcomes to a JSON file (with --execute)"),
):
    """Select resources from an inventory and write a deletion manifest.

    Each resource is shown with a short AWS description and a yes/no prompt
    (empty answer means no). The manifest can be reviewed with 'show' and
    executed later with 'apply'.

    Examples:
        # Pick resources interactively
        cluster-teardown plan inventory.json

        # Select everything and delete immediately
        cluster-teardown plan inventory.json --force --execute
    """
    try:
        catalog = load_inventory(inventory)
        if region:
            catalog.region = region

        console.print(
            f"📋 Loaded [bold]{len(catalog)}[/bold] resource(s) of {len(catalog.type_names)} type(s) "
            f"in [bold]{catalog.region}[/bold]"
        )

        clients = AwsClients(region=catalog.region, profile_name=config.aws_profile)
        registry = ProcedureRegistry(clients)

        enricher = Enricher(None if no_details else registry)
        strategy = ForcedStrategy() if force else InteractiveStrategy(console=console)
        manifest = Selector(strategy, enricher=enricher).build_manifest(catalog)

        if manifest.is_empty:
            console.print("No resources selected", style="yellow")
            raise typer.Exit(code=0)

        manifest_path = manifest.save(output or default_manifest_path())
        console.print(f"✓ Selected {len(manifest.entries)} resource(s)", style="green")
        console.print(f"  Manifest: [cyan]{manifest_path}[/cyan]")

        if execute:
            run_teardown(manifest, clients, registry, export=export)
        else:
            console.print(f"\nReview it with: cluster-teardown show {manifest_path}")
            console.print(f"Execute it with: cluster-teardown apply {manifest_path}")

    except typer.Exit:
        # Re-raise Exit exceptions (normal exit codes)
        raise
    except (MalformedInventory, ManifestError) as e:
        console.print(f"✗ {e}", style="bold red")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"✗ Error during planning: {e}", style="bold red")
        logger.exception("Error in plan command")
        raise typer.Exit(code=2)


@app.command()
def apply(
    manifest_file: Path = typer.Argument(..., help="Deletion manifest written by 'plan'"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the deletion schedule without deleting"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    export: Optional[Path] = typer.Option(None, "--export", help="Export outcomes to a JSON file"),
):
    """Delete the resources of a reviewed manifest.

    Resources are deleted in two phases (services, then networking and
    identity). Individual failures are reported but do not stop the run.

    Examples:
        # Preview the schedule
        cluster-teardown apply teardown-manifest.json --dry-run

        # Execute without prompting
        cluster-teardown apply teardown-manifest.json --yes

        # Keep a JSON copy of the outcomes
        cluster-teardown apply teardown-manifest.json --yes --export outcomes.json
    """
    try:
        manifest = DeletionManifest.load(manifest_file)

        if manifest.is_empty:
            console.print("Manifest selects no resources, nothing to do", style="yellow")
            raise typer.Exit(code=0)

        clients = AwsClients(region=manifest.region, profile_name=config.aws_profile)
        registry = ProcedureRegistry(clients)

        if dry_run:
            print_schedule(manifest)
            engine = TeardownEngine(
                deleter=ResourceDeleter(registry),
                audit_storage=open_audit_storage(),
                aws_profile=config.aws_profile,
            )
            run = engine.preview(manifest)
            console.print(
                Panel(
                    f"{run.total_resources} resource(s) would be deleted in {run.region}\n"
                    f"{run.skipped_count} resource(s) of unsupported types would be skipped",
                    title="[bold cyan]Dry run[/bold cyan]",
                    border_style="cyan",
                )
            )
            return

        if not yes:
            console.print(
                f"⚠ About to delete {len(manifest.entries)} resource(s) in [bold]{manifest.region}[/bold]. "
                "This cannot be undone.",
                style="yellow",
            )
            confirm = typer.confirm("Proceed with deletion?", default=False)
            if not confirm:
                console.print("Cancelled")
                raise typer.Exit(code=0)

        run_teardown(manifest, clients, registry, export=export)

    except typer.Exit:
        # Re-raise Exit exceptions (normal exit codes)
        raise
    except ManifestError as e:
        console.print(f"✗ {e}", style="bold red")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"✗ Error during teardown: {e}", style="bold red")
        logger.exception("Error in apply command")
        raise typer.Exit(code=2)


@app.command()
def show(
    manifest_file: Path = typer.Argument(..., help="Deletion manifest written by 'plan'"),
):
    """Show a manifest grouped by deletion phase."""
    try:
        manifest = DeletionManifest.load(manifest_file)

        console.print(f"\n[bold]Manifest:[/bold] {manifest_file}")
        console.print(f"Source: {manifest.source or '-'}")
        console.print(f"Region: {manifest.region}")
        if manifest.cluster_name:
            console.print(f"Cluster: {manifest.cluster_name}")
        console.print(f"Generated: {manifest.generated_at.strftime('%Y-%m-%d %H:%M:%S %Z')}")
        console.print(f"Selected: {len(manifest.entries)} resource(s)\n")

        if manifest.is_empty:
            console.print("No resources selected", style="yellow")
            return

        print_schedule(manifest)

    except ManifestError as e:
        console.print(f"✗ {e}", style="bold red")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"✗ Error showing manifest: {e}", style="bold red")
        logger.exception("Error in show command")
        raise typer.Exit(code=2)


@app.command()
def history(
    since: Optional[datetime] = typer.Option(None, "--since", help="Only runs on or after this date (UTC)"),
    run_id: Optional[str] = typer.Option(None, "--run", help="Show the outcomes of one run"),
):
    """List teardown runs (executed and dry runs) from the audit log."""
    try:
        storage = AuditStorage(config.audit_dir)

        if run_id:
            audit_data = storage.get_run(run_id)
            if audit_data is None:
                console.print(f"✗ Run not found: {run_id}", style="bold red")
                raise typer.Exit(code=1)

            table = Table(show_header=True, title=f"Run {run_id} ({audit_data['run']['status']})")
            table.add_column("Phase", style="dim")
            table.add_column("Type", style="cyan")
            table.add_column("Resource")
            table.add_column("Status")
            table.add_column("Attempts", justify="right")
            table.add_column("Message")
            for outcome in audit_data.get("outcomes", []):
                table.add_row(
                    outcome.get("phase") or "-",
                    outcome["type"],
                    outcome["id"],
                    outcome["status"],
                    str(outcome.get("attempts", 0)),
                    outcome.get("message") or "",
                )
            console.print(table)
            return

        runs = storage.query_runs(since=since)
        if not runs:
            console.print("No teardown runs found.", style="yellow")
            return

        table = Table(show_header=True, title="Teardown Runs")
        table.add_column("Run ID", style="cyan")
        table.add_column("Started", style="green")
        table.add_column("Region")
        table.add_column("Status")
        table.add_column("Deleted", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Skipped", justify="right")

        for audit_data in runs:
            run = audit_data["run"]
            table.add_row(
                run["run_id"],
                datetime.fromisoformat(run["timestamp"]).strftime("%Y-%m-%d %H:%M"),
                run["region"],
                run["status"],
                str(run["succeeded_count"]),
                str(run["failed_count"]),
                str(run["skipped_count"]),
            )

        console.print(table)
        console.print(f"\nTotal runs: {len(runs)}")

    except typer.Exit:
        raise
    except OSError as e:
        console.print(f"✗ Cannot read audit log: {e}", style="bold red")
        raise typer.Exit(code=1)


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    cli_main()
