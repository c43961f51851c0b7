"""Resource selection.

Walks a catalog, enriches each record with a best-effort description, asks a
selection strategy for a verdict and folds the chosen records into a manifest.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Optional, TextIO

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from ..models.manifest import DeletionManifest
from ..models.record import UNKNOWN_DETAILS, EnrichedRecord, ResourceRecord, SelectionDecision
from .inventory import Catalog

if TYPE_CHECKING:
    from ..teardown.registry import ProcedureRegistry

logger = logging.getLogger(__name__)


class Enricher:
    """Best-effort descriptive lookups, delegated to each type's procedure."""

    def __init__(self, registry: Optional[ProcedureRegistry] = None) -> None:
        self.registry = registry

    def enrich(self, record: ResourceRecord) -> EnrichedRecord:
        """Describe a record, rendering "unknown" on any failure."""
        if self.registry is None:
            return EnrichedRecord(record=record)

        procedure = self.registry.get(record.type_name)
        if procedure is None:
            return EnrichedRecord(record=record)

        try:
            details = procedure.describe(record)
        except Exception as e:
            # Missing permissions or an already-deleted resource must not stop selection
            logger.debug(f"Could not describe {record}: {e}")
            details = None

        return EnrichedRecord(record=record, details=details or UNKNOWN_DETAILS)


class SelectionStrategy(ABC):
    """Decides whether one enriched record goes into the manifest."""

    @abstractmethod
    def decide(self, entry: EnrichedRecord) -> bool:
        pass


class ForcedStrategy(SelectionStrategy):
    """Selects every record without prompting."""

    def decide(self, entry: EnrichedRecord) -> bool:
        return True


class PredicateStrategy(SelectionStrategy):
    """Selects records matching an externally supplied predicate."""

    def __init__(self, predicate: Callable[[EnrichedRecord], bool]) -> None:
        self.predicate = predicate

    def decide(self, entry: EnrichedRecord) -> bool:
        return bool(self.predicate(entry))


class InteractiveStrategy(SelectionStrategy):
    """Asks the operator about each record on the terminal.

    Empty input answers "no". A failing input stream skips the record instead
    of aborting the walk.
    """

    def __init__(self, console: Optional[Console] = None, stream: Optional[TextIO] = None) -> None:
        self.console = console or Console()
        self.stream = stream

    def decide(self, entry: EnrichedRecord) -> bool:
        record = entry.record

        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column(style="bold cyan")
        table.add_column()
        table.add_row("Type", record.type_name)
        table.add_row("ID", record.resource_id)
        table.add_row("Raw", ", ".join(str(value) for value in record.attributes))
        table.add_row("Details", entry.details)
        self.console.print()
        self.console.print(table)

        try:
            return Confirm.ask(
                f"Delete [bold]{record.resource_id}[/bold]?",
                console=self.console,
                default=False,
                stream=self.stream,
            )
        except (EOFError, OSError) as e:
            logger.warning(f"Could not read answer for {record}, skipping it: {e}")
            return False


class Selector:
    """Builds a DeletionManifest from a catalog.

    Attributes:
        strategy: Selection strategy (interactive, forced, or predicate)
        enricher: Description lookup used before each decision
    """

    def __init__(self, strategy: SelectionStrategy, enricher: Optional[Enricher] = None) -> None:
        self.strategy = strategy
        self.enricher = enricher or Enricher()

    def select(self, record: ResourceRecord) -> SelectionDecision:
        """Enrich one record and decide whether it is deleted."""
        entry = self.enricher.enrich(record)
        selected = self.strategy.decide(entry)
        logger.debug(f"{'Selected' if selected else 'Declined'} {record}")
        return SelectionDecision(record=entry, selected=selected)

    def build_manifest(self, catalog: Catalog) -> DeletionManifest:
        """Walk every type of the catalog and collect selected records.

        The result may be empty; callers treat that as "nothing to do", not failure.
        """
        manifest = DeletionManifest(
            source=catalog.source,
            region=catalog.region,
            cluster_name=catalog.cluster_name,
        )

        for type_name in catalog.type_names:
            for record in catalog.for_each_type(type_name):
                decision = self.select(record)
                if decision.selected:
                    manifest = manifest.add(decision.record)

        logger.info(f"Selected {len(manifest.entries)} of {len(catalog)} resources")
        return manifest
