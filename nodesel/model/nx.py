"""NetworkX graph conversion utilities.

Build graphs are commonly held as a ``networkx.DiGraph`` keyed by node unique
id, with node attributes describing each artifact. This module turns such a
graph into a ``NodeUniverse`` for selection, and back.

Example:
    >>> import networkx as nx
    >>> from nodesel.model.nx import universe_from_networkx
    >>>
    >>> G = nx.DiGraph()
    >>> G.add_node("model.shop.orders", path="models/orders.sql", tags=["daily"])
    >>> G.add_node("model.shop.customers", path="models/customers.sql")
    >>> G.add_edge("model.shop.customers", "model.shop.orders")
    >>>
    >>> universe = universe_from_networkx(G)
    >>> universe.ids
    ('model.shop.orders', 'model.shop.customers')

Edges are ignored: selection by expression only looks at node attributes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Hashable, List, Literal, Mapping

import networkx as nx

from nodesel.model.universe import Node, NodeUniverse

if TYPE_CHECKING:
    NxGraph = nx.DiGraph
else:
    NxGraph = Any

# Node attributes mapped onto Node fields; everything else lands in Node.attrs
_NODE_FIELDS = ("name", "resource_type", "path", "package_name", "fqn", "tags", "config")


def node_from_attrs(unique_id: Hashable, data: Mapping[str, Any]) -> Node:
    """Build a Node from a graph node id and its attribute dict.

    A missing ``name`` defaults to the last dot-separated segment of the id,
    so ``model.shop.orders`` is named ``orders``.
    """
    uid = str(unique_id)
    kwargs: Dict[str, Any] = {k: data[k] for k in _NODE_FIELDS if data.get(k) is not None}
    kwargs.setdefault("name", uid.rsplit(".", 1)[-1])
    extra = {k: v for k, v in data.items() if k not in _NODE_FIELDS}
    return Node(unique_id=uid, attrs=extra, **kwargs)


def universe_from_networkx(
    G: NxGraph,
    *,
    order: Literal["graph", "sorted"] = "graph",
) -> NodeUniverse:
    """Convert a NetworkX graph's nodes into a NodeUniverse.

    Args:
        G: Any NetworkX graph whose node keys are unique ids.
        order: "graph" keeps the graph's node insertion order as canonical
            order; "sorted" sorts by unique id so the canonical order does not
            depend on how the graph was assembled.

    Returns:
        NodeUniverse containing one Node per graph node.

    Raises:
        ValueError: If order is unknown, or two graph keys stringify to the
            same unique id.
    """
    if order not in ("graph", "sorted"):
        raise ValueError(f"Unknown order '{order}'. Expected 'graph' or 'sorted'.")

    nodes: List[Node] = [node_from_attrs(n, data) for n, data in G.nodes(data=True)]
    if order == "sorted":
        nodes.sort(key=lambda node: node.unique_id)
    return NodeUniverse(nodes)


def universe_to_networkx(universe: NodeUniverse) -> nx.DiGraph:
    """Convert a NodeUniverse into an edgeless ``networkx.DiGraph``.

    Node order and all Node fields are preserved as node attributes, so
    ``universe_from_networkx(universe_to_networkx(u))`` yields equal nodes.
    """
    G = nx.DiGraph()
    for node in universe:
        attrs: Dict[str, Any] = dict(node.attrs)
        attrs.update(
            name=node.name,
            resource_type=node.resource_type.value,
            path=node.path,
            package_name=node.package_name,
            fqn=list(node.fqn),
            tags=sorted(node.tags),
            config=dict(node.config),
        )
        G.add_node(node.unique_id, **attrs)
    return G
