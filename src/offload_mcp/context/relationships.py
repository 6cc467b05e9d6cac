"""Per-file relationship edges derived from structural facts."""

from __future__ import annotations

from offload_mcp.context.models import FileRecord, RelationshipEdge


def derive_edges(record: FileRecord) -> list[RelationshipEdge]:
    """Build import, extends and implements edges originating from one record."""
    edges: list[RelationshipEdge] = [
        RelationshipEdge(source=record.path, target=dependency, kind="import")
        for dependency in record.facts.dependencies
    ]
    for entity in record.facts.classes:
        source = f"{record.path}:{entity.name}"
        if entity.superclass:
            edges.append(RelationshipEdge(source=source, target=entity.superclass, kind="extends"))
        for interface in entity.interfaces:
            edges.append(RelationshipEdge(source=source, target=interface, kind="implements"))
    return edges


class RelationshipIndex:
    """Edge lists keyed by the file that produced them.

    Reverse lookups scan every edge list; no reverse index is maintained.
    """

    def __init__(self) -> None:
        self._edges: dict[str, list[RelationshipEdge]] = {}

    def replace(self, record: FileRecord) -> list[RelationshipEdge]:
        """Replace the record's edge list wholesale and return the new edges."""
        edges = derive_edges(record)
        self._edges[record.path] = edges
        return list(edges)

    def edges_from(self, path: str) -> list[RelationshipEdge]:
        """Return a copy of the edges produced by one file."""
        return list(self._edges.get(path, ()))

    def dependents_of(self, path: str) -> list[str]:
        """Return files owning any edge whose target equals `path`, deduplicated."""
        dependents: list[str] = []
        for owner, edges in self._edges.items():
            if owner in dependents:
                continue
            if any(edge.target == path for edge in edges):
                dependents.append(owner)
        return dependents

    def evict(self, path: str) -> None:
        """Drop one file's edges."""
        self._edges.pop(path, None)

    def clear(self) -> None:
        """Drop every edge."""
        self._edges.clear()

    def total(self) -> int:
        """Return the number of edges across all files."""
        return sum(len(edges) for edges in self._edges.values())
