"""
ReferenceGraph: NetworkX-based graph of which tables interpolate which.

Tables are nodes; an edge A -> B means some rule of A contains `{{B}}`.
Cycles are legal table definitions (a rule may recurse into its own table),
so the graph is used for inspection and diagnostics, never for rejection.
"""

from typing import Iterable, List, Set

import networkx as nx

from tabol.models import TableDefinition


class ReferenceGraph:
    """
    Directed graph over table ids.

    Node attributes: `title`, `rule_count`, and `rules`, a list of
    (weight, referenced ids) pairs used for the termination analysis.
    Edge attributes: `rules`, indices of the source table's rules that make
    the reference.
    """

    def __init__(self):
        """Initialize empty reference graph."""
        self._graph: nx.DiGraph = nx.DiGraph()

    @classmethod
    def from_tables(cls, tables: Iterable[TableDefinition]) -> "ReferenceGraph":
        """Build the graph for a full set of tables."""
        graph = cls()
        tables = list(tables)
        for table in tables:
            graph.add_table(table)
        for table in tables:
            for index, rule in enumerate(table.rules):
                for target_id in sorted(rule.references):
                    graph.add_reference(table.id, target_id, index)
        return graph

    @property
    def graph(self) -> nx.DiGraph:
        """Access underlying NetworkX graph."""
        return self._graph

    # =========================================================================
    # NODE & EDGE OPERATIONS
    # =========================================================================

    def add_table(self, table: TableDefinition) -> None:
        self._graph.add_node(
            table.id,
            title=table.title,
            rule_count=len(table.rules),
            rules=[(rule.weight, frozenset(rule.references)) for rule in table.rules],
        )

    def add_reference(self, source_id: str, target_id: str, rule_index: int) -> bool:
        """
        Record that rule `rule_index` of `source_id` interpolates `target_id`.

        Returns:
            False if either table is unknown, True otherwise.
        """
        if source_id not in self._graph or target_id not in self._graph:
            return False

        if self._graph.has_edge(source_id, target_id):
            self._graph[source_id][target_id]["rules"].append(rule_index)
        else:
            self._graph.add_edge(source_id, target_id, rules=[rule_index])
        return True

    def references(self, table_id: str) -> List[str]:
        """Tables directly interpolated by `table_id`."""
        if table_id not in self._graph:
            return []
        return sorted(self._graph.successors(table_id))

    def referenced_by(self, table_id: str) -> List[str]:
        """Tables that directly interpolate `table_id`."""
        if table_id not in self._graph:
            return []
        return sorted(self._graph.predecessors(table_id))

    # =========================================================================
    # ANALYSIS
    # =========================================================================

    def find_cycles(self) -> List[List[str]]:
        """All elementary reference cycles, each rotated to start at its smallest id."""
        cycles = []
        for cycle in nx.simple_cycles(self._graph):
            pivot = cycle.index(min(cycle))
            cycles.append(cycle[pivot:] + cycle[:pivot])
        return sorted(cycles)

    def in_cycle(self, table_id: str) -> bool:
        if table_id not in self._graph:
            return False
        return any(
            successor == table_id or nx.has_path(self._graph, successor, table_id)
            for successor in self._graph.successors(table_id)
        )

    def non_terminating(self) -> Set[str]:
        """
        Tables whose every generation recurses forever.

        A table terminates if some rule with non-zero weight only interpolates
        tables that terminate. Anything left after the fixed point is reached
        can never produce a finished string.
        """
        terminating: Set[str] = set()
        changed = True
        while changed:
            changed = False
            for table_id, rules in self._graph.nodes(data="rules"):
                if table_id in terminating:
                    continue
                if any(weight > 0 and targets <= terminating for weight, targets in rules):
                    terminating.add(table_id)
                    changed = True
        return set(self._graph.nodes) - terminating

    def roots(self) -> List[str]:
        """Tables no other table interpolates: the natural entry points."""
        return sorted(
            table_id for table_id in self._graph.nodes
            if not any(source != table_id for source in self._graph.predecessors(table_id))
        )

    # =========================================================================
    # STATISTICS
    # =========================================================================

    @property
    def node_count(self) -> int:
        """Total number of tables."""
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        """Total number of distinct table-to-table references."""
        return self._graph.number_of_edges()

    def get_stats(self) -> dict:
        """Get graph statistics."""
        return {
            "total_tables": self.node_count,
            "total_references": self.edge_count,
            "cycles": len(self.find_cycles()),
            "roots": self.roots(),
            "non_terminating": sorted(self.non_terminating()),
        }

    def __repr__(self) -> str:
        return f"ReferenceGraph(tables={self.node_count}, references={self.edge_count})"
