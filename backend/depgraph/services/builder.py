"""
Assemble a DependencyGraph from a whole application schema.
"""
import logging
from typing import Any, Mapping

from depgraph.services.extractors.objects import extract_from_object
from depgraph.services.extractors.views import extract_from_scene, extract_from_view
from depgraph.services.graph_engine import DependencyGraph
from depgraph.services.resolvers import Resolvers, build_resolvers

logger = logging.getLogger(__name__)


def build_graph(application: Mapping[str, Any]) -> DependencyGraph:
    """
    Build a fresh graph: objects first, then scenes and their views.

    Every call returns an independent instance; the schema is only read.
    Time complexity: O(size of the schema document)
    """
    graph = DependencyGraph()
    resolvers = build_resolvers(application)

    _add_object_edges(graph, application, resolvers)
    _add_scene_and_view_edges(graph, application, resolvers)

    logger.info(f"Dependency graph built: {graph.node_count} nodes, {graph.edge_count} edges")
    return graph


def _add_object_edges(graph: DependencyGraph, application: Mapping[str, Any], resolvers: Resolvers) -> None:
    for object_index, obj in enumerate(application.get("objects") or []):
        if not isinstance(obj, Mapping):
            continue
        graph.add_edges(extract_from_object(obj, object_index, resolvers))


def _add_scene_and_view_edges(
    graph: DependencyGraph, application: Mapping[str, Any], resolvers: Resolvers
) -> None:
    for scene_index, scene in enumerate(application.get("scenes") or []):
        if not isinstance(scene, Mapping):
            continue
        graph.add_edges(extract_from_scene(scene, scene_index))

        for view_index, view in enumerate(scene.get("views") or []):
            if not isinstance(view, Mapping):
                continue
            graph.add_edges(extract_from_view(view, scene_index, view_index, resolvers))
