#!/usr/bin/env python3
"""
Print a dependency report for an exported application schema.

Usage:
    python analyze_field.py schema.json
    python analyze_field.py schema.json --field field_136 --object object_4 --top 20
"""
import argparse
import json
from pathlib import Path

from depgraph.models.domain import EdgeType, EntityKind, NodeRef
from depgraph.services.builder import build_graph
from depgraph.services.complexity import compute_complexity, compute_object_complexity_rollup, rank_fields_by_complexity
from depgraph.services.ripple import build_field_ripple, build_object_ripple, summarize_field_ripple
from depgraph.services.schema_loader import unwrap_application
from depgraph.services.stats import compute_stats


def describe(node) -> str:
    return f"{node.key} ({node.name})" if node.name else str(node.key)


def main():
    parser = argparse.ArgumentParser(description="Analyze dependencies in an application schema")
    parser.add_argument("schema", help="Path to the exported schema JSON")
    parser.add_argument("--field", help="Field key to run ripple and complexity analysis on")
    parser.add_argument("--object", help="Object key to run an object ripple and complexity rollup on")
    parser.add_argument("--top", type=int, default=10, help="Number of most referenced fields to list")
    parser.add_argument("--max-depth", type=int, default=50, help="Ripple traversal depth limit")
    args = parser.parse_args()

    with open(Path(args.schema)) as f:
        application = unwrap_application(json.load(f))

    graph = build_graph(application)
    stats = compute_stats(graph, args.top)

    print(f"Nodes: {stats.node_count}")
    print(f"Edges: {stats.edge_count}")
    for kind, count in sorted(stats.nodes_by_kind.items()):
        print(f"  {kind}: {count}")

    print(f"\nTop {args.top} referenced fields:")
    for ref in stats.top_referenced_fields:
        label = f"{ref.field_key} ({ref.name})" if ref.name else ref.field_key
        print(f"  {label}: {ref.references}")

    print(f"\nTop {args.top} fields by complexity:")
    for result in rank_fields_by_complexity(graph, args.top):
        print(f"  {describe(result.node)}: {result.score:g}")

    cycles = graph.find_cycles([EdgeType.DERIVES_FROM])
    print(f"\nFormula cycles: {len(cycles)}")
    for cycle in cycles:
        print("  " + " -> ".join(describe(n) for n in cycle))

    if args.field:
        ripple = build_field_ripple(graph, args.field, max_depth=args.max_depth)
        print(f"\nRipple for {args.field}: {summarize_field_ripple(ripple)}")
        print("  Impacted fields (first 20):", [describe(n) for n in ripple.impacted_fields[:20]])
        print("  Impacted views (first 20):", [describe(n) for n in ripple.impacted_views[:20]])
        complexity = compute_complexity(graph, NodeRef(kind=EntityKind.FIELD, key=args.field))
        print(f"Complexity for {args.field}: {complexity.score:g}")
        for item in complexity.breakdown:
            if item.raw:
                print(f"  {item.label}: {item.raw:g} x {item.weight:g} = {item.weighted:g}")

    if args.object:
        ripple = build_object_ripple(graph, args.object, max_depth=args.max_depth)
        print(f"\nObject ripple for {args.object}: {len(ripple.nodes)} nodes, {len(ripple.edges)} edges")
        rollup = compute_object_complexity_rollup(graph, args.object)
        print(f"Object complexity for {args.object}: {rollup.total_score:g} over {len(rollup.field_results)} fields")


if __name__ == "__main__":
    main()
