"""Teardown outcome reporter with terminal and JSON output."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from rich.console import Console
from rich.table import Table

from ..models.outcome import DeletionOutcome, DeletionStatus
from ..models.run import TeardownRun

STATUS_STYLES = {
    DeletionStatus.SUCCEEDED: "green",
    DeletionStatus.FAILED: "red",
    DeletionStatus.SKIPPED: "yellow",
}


class TeardownReporter:
    """Accumulates deletion outcomes and reports them (terminal, JSON)."""

    def __init__(self, outcomes: Optional[Iterable[DeletionOutcome]] = None) -> None:
        self.outcomes: List[DeletionOutcome] = list(outcomes or [])

    def record(self, outcome: DeletionOutcome) -> None:
        self.outcomes.append(outcome)

    def failures(self) -> List[DeletionOutcome]:
        return [outcome for outcome in self.outcomes if outcome.failed]

    def summarize(self) -> Dict[str, int]:
        """Count outcomes by status.

        Returns:
            Dictionary with succeeded, failed, skipped and total counts
        """
        counts = {status: 0 for status in DeletionStatus}
        for outcome in self.outcomes:
            counts[outcome.status] += 1

        return {
            "succeeded": counts[DeletionStatus.SUCCEEDED],
            "failed": counts[DeletionStatus.FAILED],
            "skipped": counts[DeletionStatus.SKIPPED],
            "total": len(self.outcomes),
        }

    def format_terminal(self, verbose: bool = False, console: Optional[Console] = None) -> str:
        """Format outcomes for terminal output using Rich.

        Without verbose only failed and skipped resources are listed; the
        summary line is always included.

        Args:
            verbose: List every outcome with its message and attempt count
            console: Console whose color and width settings are used (optional)

        Returns:
            Formatted string for terminal display
        """
        if not self.outcomes:
            return "No resources were processed."

        shown = self.outcomes if verbose else [o for o in self.outcomes if o.status != DeletionStatus.SUCCEEDED]

        console = console or Console()
        with console.capture() as capture:
            if shown:
                table = Table(title="Teardown Results")
                table.add_column("Status", style="bold")
                table.add_column("Type")
                table.add_column("Resource")
                if verbose:
                    table.add_column("Attempts", justify="right")
                table.add_column("Message")

                for outcome in shown:
                    style = STATUS_STYLES[outcome.status]
                    message = outcome.message
                    if not verbose and len(message) > 80:
                        message = message[:77] + "..."

                    row = [
                        f"[{style}]{outcome.status.value.upper()}[/{style}]",
                        outcome.record.type_name,
                        outcome.record.resource_id,
                    ]
                    if verbose:
                        row.append(str(outcome.attempts))
                    row.append(message)
                    table.add_row(*row)

                console.print(table)

            summary = self.summarize()
            console.print(
                f"[green]{summary['succeeded']} succeeded[/green], "
                f"[red]{summary['failed']} failed[/red], "
                f"[yellow]{summary['skipped']} skipped[/yellow] "
                f"of {summary['total']} resource(s)"
            )

        return capture.get()

    def export_json(self, filepath: str | Path, run: Optional[TeardownRun] = None) -> None:
        """Export outcomes and summary to JSON.

        Args:
            filepath: Output file path
            run: Run whose metadata is included (optional)
        """
        output: Dict[str, object] = {
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "summary": self.summarize(),
        }
        if run is not None:
            output["run"] = {
                "run_id": run.run_id,
                "manifest_source": run.manifest_source,
                "region": run.region,
                "mode": run.mode.value,
                "status": run.status.value,
                "orphans_removed": run.orphans_removed,
                "duration_seconds": run.duration_seconds,
            }

        output_path = Path(filepath)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w") as f:
            json.dump(output, f, indent=2)
