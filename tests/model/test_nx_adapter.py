"""Tests for the NetworkX universe adapter."""

import networkx as nx
import pytest

from nodesel.model.nx import node_from_attrs, universe_from_networkx, universe_to_networkx
from nodesel.model.universe import ResourceType
from nodesel.selectors import evaluate, exclude, intersection


@pytest.fixture
def graph() -> nx.DiGraph:
    G = nx.DiGraph()
    G.add_node(
        "model.shop.orders",
        path="models/marts/orders.sql",
        package_name="shop",
        tags=["daily"],
        owner="finance",
    )
    G.add_node("seed.shop.codes", resource_type="seed", path="seeds/codes.csv")
    G.add_node("model.shop.customers", path="models/marts/customers.sql", tags=None)
    G.add_edge("seed.shop.codes", "model.shop.customers")
    G.add_edge("model.shop.customers", "model.shop.orders")
    return G


def test_node_from_attrs_defaults_name_and_collects_extras() -> None:
    node = node_from_attrs("model.shop.orders", {"owner": "finance", "tags": ["a"]})
    assert node.name == "orders"
    assert node.tags == frozenset({"a"})
    assert node.attrs == {"owner": "finance"}


def test_graph_order_preserved(graph) -> None:
    universe = universe_from_networkx(graph)
    assert universe.ids == ("model.shop.orders", "seed.shop.codes", "model.shop.customers")
    assert universe.get("seed.shop.codes").resource_type is ResourceType.SEED
    assert universe.get("model.shop.customers").tags == frozenset()


def test_sorted_order(graph) -> None:
    universe = universe_from_networkx(graph, order="sorted")
    assert universe.ids == ("model.shop.customers", "model.shop.orders", "seed.shop.codes")


def test_unknown_order_raises(graph) -> None:
    with pytest.raises(ValueError, match="Unknown order"):
        universe_from_networkx(graph, order="random")  # type: ignore[arg-type]


def test_round_trip(graph) -> None:
    universe = universe_from_networkx(graph)
    again = universe_from_networkx(universe_to_networkx(universe))
    assert list(again) == list(universe)
    assert again.get("model.shop.orders").attrs["owner"] == "finance"


def test_selection_over_graph(graph) -> None:
    universe = universe_from_networkx(graph)
    expr = intersection("path:models/marts", exclude("tag:daily"))
    assert evaluate(expr, universe).unique_ids == ("model.shop.customers",)
