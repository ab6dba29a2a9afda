"""
Schema document loader.
Reads an application schema from disk and keeps the graph built from it.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from depgraph.config import settings
from depgraph.services.builder import build_graph
from depgraph.services.graph_engine import DependencyGraph

logger = logging.getLogger(__name__)


def unwrap_application(document: Any) -> Dict[str, Any]:
    """
    Accept either a bare application or one wrapped as ``{"application": {...}}``.
    """
    if isinstance(document, Mapping) and isinstance(document.get("application"), Mapping):
        document = document["application"]
    if not isinstance(document, Mapping):
        raise ValueError("Invalid schema: expected a JSON object")
    return dict(document)


@dataclass(frozen=True)
class SchemaSnapshot:
    """A schema document together with the graph built from it."""
    application: Dict[str, Any]
    graph: DependencyGraph
    loaded_at: str


class SchemaLoader:
    """
    Holds the schema and the graph built from it.

    ``reload`` builds a new graph and swaps the whole snapshot in one
    assignment; callers that already hold the previous snapshot keep using it.
    """

    def __init__(self):
        self._snapshot: Optional[SchemaSnapshot] = None

    def load(self, schema_path: Optional[Path] = None) -> DependencyGraph:
        """
        Load the schema file and build the graph.
        Returns the current graph if already loaded.
        """
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot.graph
        return self._build(schema_path)

    def load_document(self, document: Any) -> DependencyGraph:
        """Build from an already-parsed schema document."""
        application = unwrap_application(document)
        graph = build_graph(application)
        self._snapshot = SchemaSnapshot(application=application, graph=graph, loaded_at=datetime.now().isoformat())
        return graph

    def _build(self, schema_path: Optional[Path]) -> DependencyGraph:
        if schema_path is None:
            schema_path = Path(settings.SCHEMA_FILE_PATH)

        logger.info(f"Loading application schema from {schema_path}")

        if not schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_path}")

        with open(schema_path, "r") as f:
            document = json.load(f)

        graph = self.load_document(document)
        logger.info(f"Schema loaded successfully: {graph.node_count} nodes, {graph.edge_count} edges")
        return graph

    def reload(self, schema_path: Optional[Path] = None) -> DependencyGraph:
        """Force a rebuild from disk."""
        return self._build(schema_path)

    @property
    def snapshot(self) -> Optional[SchemaSnapshot]:
        return self._snapshot

    @property
    def graph(self) -> Optional[DependencyGraph]:
        snapshot = self._snapshot
        return snapshot.graph if snapshot else None

    @property
    def application(self) -> Optional[Dict[str, Any]]:
        snapshot = self._snapshot
        return snapshot.application if snapshot else None

    @property
    def loaded_at(self) -> Optional[str]:
        """Get the time when the schema was loaded."""
        snapshot = self._snapshot
        return snapshot.loaded_at if snapshot else None


# Global instance
_schema_loader: Optional[SchemaLoader] = None


def get_schema_loader() -> SchemaLoader:
    """Get the shared loader used by the HTTP layer."""
    global _schema_loader
    if _schema_loader is None:
        _schema_loader = SchemaLoader()
    return _schema_loader


class SchemaNotLoadedError(RuntimeError):
    """Raised when the graph is requested before any schema was loaded."""


def get_schema_snapshot() -> SchemaSnapshot:
    """Dependency injection helper for FastAPI: one consistent schema version."""
    snapshot = get_schema_loader().snapshot
    if snapshot is None:
        raise SchemaNotLoadedError("No application schema has been loaded")
    return snapshot


def get_dependency_graph() -> DependencyGraph:
    """Dependency injection helper for FastAPI."""
    return get_schema_snapshot().graph
