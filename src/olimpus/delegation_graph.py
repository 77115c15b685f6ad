"""
Delegation graph and depth-bounded cycle detector.

Edges come from each meta-agent's delegates_to list and from every routing
rule target. The search is bounded by max_delegation_depth, so a clean
result only means "no cycle within the configured depth"; longer cycles
can go unreported.
"""

import logging
from typing import Mapping

from olimpus.models import MetaAgentDefinition

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3


class DelegationGraph:
    """
    Directed identity -> identity graph.

    Edges are deduplicated per (from, to) pair; the number of times each
    edge was tracked is kept for diagnostics only.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth
        self._delegations: dict[tuple[str, str], int] = {}

    def track_delegation(self, source: str, target: str) -> None:
        """Record a delegation edge source -> target."""
        key = (source, target)
        self._delegations[key] = self._delegations.get(key, 0) + 1

    def edges(self) -> list[tuple[str, str]]:
        """Distinct edges in insertion order."""
        return list(self._delegations)

    def delegation_count(self, source: str, target: str) -> int:
        """How many times source -> target was tracked (0 if never)."""
        return self._delegations.get((source, target), 0)

    def successors(self, node: str) -> list[str]:
        return [to for (frm, to) in self._delegations if frm == node]

    def nodes(self) -> set[str]:
        result: set[str] = set()
        for frm, to in self._delegations:
            result.add(frm)
            result.add(to)
        return result

    def check_circular(
        self, start: str, target: str, max_depth: int | None = None
    ) -> bool:
        """
        Check whether target is reachable from start within max_depth hops.

        Returns True if circular, False if safe.
        """
        return self.find_circular_path(start, target, max_depth) is not None

    def find_circular_path(
        self, start: str, target: str, max_depth: int | None = None
    ) -> list[str] | None:
        """
        Find a delegation path from start that reaches target or loops.

        Args:
            start: Node the search begins at
            target: Node whose reachability is being tested
            max_depth: Hop budget (defaults to the graph's max_depth)

        Returns:
            The discovered path starting at start, or None
        """
        depth = self.max_depth if max_depth is None else max_depth
        return self._search(start, target, depth, set(), [])

    def _search(
        self,
        current: str,
        target: str,
        depth: int,
        visited: set[str],
        path: list[str],
    ) -> list[str] | None:
        if depth <= 0:
            return None

        # Revisiting a node on this branch means a loop; counted as circular
        # even when the loop does not pass through target.
        if current in visited:
            return path + [current]

        if current == target:
            return path + [current]

        visited.add(current)
        for next_node in self.successors(current):
            # Each branch gets its own copy so siblings never prune each other
            found = self._search(
                next_node, target, depth - 1, set(visited), path + [current]
            )
            if found is not None:
                return found

        return None

    def max_tracked_depth(self) -> int:
        """
        Length of the longest chain found by following first successors.

        Chains are capped at the node count so cyclic graphs terminate.
        """
        limit = len(self.nodes())
        longest = 0

        for _, first_hop in self._delegations:
            depth = 1
            current = first_hop
            while depth < limit:
                next_nodes = self.successors(current)
                if not next_nodes:
                    break
                depth += 1
                current = next_nodes[0]
            longest = max(longest, depth)

        return longest


def build_delegation_graph(
    meta_agents: Mapping[str, MetaAgentDefinition],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> DelegationGraph:
    """Build the graph from delegates_to entries and routing rule targets."""
    graph = DelegationGraph(max_depth)

    for name, definition in meta_agents.items():
        for delegate in definition.delegates_to:
            graph.track_delegation(name, delegate)
        for rule in definition.routing_rules:
            graph.track_delegation(name, rule.target_agent)

    logger.debug(
        f"Delegation graph built: {len(meta_agents)} meta-agents, "
        f"{len(graph.edges())} edges"
    )
    return graph
