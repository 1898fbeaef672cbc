"""
Implication graphs and unique-implication-point discovery.

Nodes are either assigned literals or the conflict sentinel. Each node maps
to the ordered list of nodes that forced it (its parents).

UIP candidates are the nodes shared by every path from the level's
decisions to the sentinel. This is path intersection rather than the
single-dominator textbook definition, so a conflict can have zero, one or
several candidates; the last one is used as the first UIP.
"""

from typing import Dict, Iterable, List, Sequence, Union

from .formula import Literal
from .history import SENTINEL_LABEL


class Sentinel:
    """The synthetic conflict node. Use the SENTINEL singleton."""

    label = SENTINEL_LABEL

    def __repr__(self) -> str:
        return "SENTINEL"

    def __str__(self) -> str:
        return self.label


SENTINEL = Sentinel()

Node = Union[Literal, Sentinel]


def node_label(node: Node) -> str:
    return node.label


class ImplicationGraph:
    """
    Node -> parents adjacency, preserving insertion order.

    Parents that are not themselves nodes of the graph are allowed; they
    behave as nodes without parents when traversed.
    """

    def __init__(self):
        self._parents: Dict[Node, List[Node]] = {}

    def add(self, node: Node, parents: Iterable[Node] = ()) -> None:
        self._parents[node] = list(parents)

    def parents(self, node: Node) -> List[Node]:
        return list(self._parents.get(node, []))

    def nodes(self) -> List[Node]:
        return list(self._parents)

    def leaves(self) -> List[Node]:
        """Nodes with no parents, i.e. the decisions the graph starts from."""
        return [node for node, parents in self._parents.items() if not parents]

    def children(self) -> Dict[Node, List[Node]]:
        """The reversed graph (parent -> children), in insertion order."""
        reversed_edges: Dict[Node, List[Node]] = {}
        for node, parents in self._parents.items():
            for parent in parents:
                reversed_edges.setdefault(parent, []).append(node)
        return reversed_edges

    def to_dict(self) -> Dict[str, List[str]]:
        """Label form, for display and export."""
        return {
            node_label(node): [node_label(p) for p in parents]
            for node, parents in self._parents.items()
        }

    def __contains__(self, node) -> bool:
        return node in self._parents

    def __len__(self) -> int:
        return len(self._parents)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ImplicationGraph):
            return NotImplemented
        return self._parents == other._parents

    def __repr__(self) -> str:
        return f"ImplicationGraph({self.to_dict()})"


def _collect_paths(
    node: Node,
    children: Dict[Node, List[Node]],
    path: List[Node],
    paths: List[List[Node]],
) -> None:
    path.append(node)
    following = [child for child in children.get(node, []) if child not in path]
    if not following:
        paths.append(list(path))
    else:
        for child in following:
            _collect_paths(child, children, path, paths)
    path.pop()


def find_paths(graph: ImplicationGraph) -> List[List[Node]]:
    """Every maximal path of the reversed graph starting at a leaf."""
    children = graph.children()
    paths: List[List[Node]] = []
    for leaf in graph.leaves():
        _collect_paths(leaf, children, [], paths)
    return paths


def find_uip_candidates(graph: ImplicationGraph) -> List[Literal]:
    """
    Nodes common to all leaf-to-end paths, ordered as on the first path.

    The sentinel is never a candidate. Returns an empty list when there are
    no paths or they share nothing.
    """
    paths = find_paths(graph)
    if not paths:
        return []
    common = [node for node in paths[0] if all(node in path for path in paths[1:])]
    return [node for node in common if node is not SENTINEL]


def has_blacklisted_parent(graph: ImplicationGraph, node: Node, blacklist: Sequence[Node]) -> bool:
    return any(parent in blacklist for parent in graph.parents(node))


def find_grandparents(graph: ImplicationGraph, blacklist: Sequence[Node]) -> List[Node]:
    """
    Grandparents of the sentinel that are usable as a learning literal.

    A grandparent is skipped when it is also a direct parent of the
    sentinel, when it is blacklisted (a UIP candidate), or when any of its
    own parents is blacklisted.
    """
    direct = graph.parents(SENTINEL)
    grandparents: List[Node] = []
    for parent in direct:
        for grandparent in graph.parents(parent):
            if grandparent in direct or grandparent in blacklist:
                continue
            if has_blacklisted_parent(graph, grandparent, blacklist):
                continue
            if grandparent not in grandparents:
                grandparents.append(grandparent)
    return grandparents
