"""Deletion procedure registry."""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from typing import Any, Dict, List, Optional

from ..models.resource_type import ResourceType
from .procedures.base import DeletionProcedure
from .retry import Sleeper

logger = logging.getLogger(__name__)


class ProcedureRegistry:
    """Maps each ResourceType to its deletion procedure.

    Procedures are discovered automatically from the procedures package: every
    concrete DeletionProcedure subclass is instantiated once per registry.
    """

    def __init__(self, clients: Any, sleep: Optional[Sleeper] = None) -> None:
        self.clients = clients
        self.sleep = sleep
        self.procedures: Dict[ResourceType, DeletionProcedure] = {}
        self._load_procedures()

        missing = self.missing_types()
        if missing:
            logger.warning(f"No deletion procedure for: {', '.join(t.value for t in missing)}")

    def _load_procedures(self) -> None:
        """Import every module of the procedures package and register its procedures."""
        from . import procedures

        for _, modname, _ in pkgutil.iter_modules(procedures.__path__):
            if modname == "base":
                continue

            module = importlib.import_module(f".procedures.{modname}", package=__package__)

            for _, obj in inspect.getmembers(module, inspect.isclass):
                if not issubclass(obj, DeletionProcedure) or inspect.isabstract(obj):
                    continue
                if obj.__module__ != module.__name__:
                    continue

                procedure = obj(self.clients, sleep=self.sleep)
                if procedure.resource_type in self.procedures:
                    raise ValueError(f"Duplicate deletion procedure for {procedure.resource_type.value}")
                self.procedures[procedure.resource_type] = procedure

    def get(self, type_name: str) -> Optional[DeletionProcedure]:
        """Return the procedure for an inventory type key, None if unsupported."""
        resource_type = ResourceType.parse(type_name)
        if resource_type is None:
            return None
        return self.procedures.get(resource_type)

    def missing_types(self) -> List[ResourceType]:
        """ResourceTypes that have no registered procedure."""
        return [t for t in ResourceType if t not in self.procedures]
