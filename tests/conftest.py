"""Global pytest configuration and shared universes.

Universes mirror small build projects: ids follow ``model.<package>.<name>``
and paths are relative to the project root.
"""

from __future__ import annotations

from typing import Iterable

import pytest

from nodesel.model.universe import Node, NodeUniverse


def make_universe(nodes: Iterable[Node]) -> NodeUniverse:
    return NodeUniverse(list(nodes))


@pytest.fixture
def bronze_universe() -> NodeUniverse:
    """Three bronze models under models/test_exclude/bronze."""
    return make_universe(
        Node(
            f"model.test.bronze_{i}",
            name=f"bronze_{i}",
            path=f"models/test_exclude/bronze/bronze_{i}",
            package_name="test",
        )
        for i in (1, 2, 3)
    )


@pytest.fixture
def production_universe() -> NodeUniverse:
    """prod_1 is also deprecated; prod_2 and prod_3 are production only."""
    return make_universe(
        [
            Node("model.test.prod_1", name="prod_1", tags={"production", "deprecated"}),
            Node("model.test.prod_2", name="prod_2", tags={"production"}),
            Node("model.test.prod_3", name="prod_3", tags={"production"}),
        ]
    )


@pytest.fixture
def schedule_universe() -> NodeUniverse:
    """Two daily models and one weekly model."""
    return make_universe(
        [
            Node("model.test.daily_1", name="daily_1", tags={"daily"}),
            Node("model.test.daily_2", name="daily_2", tags={"daily"}),
            Node("model.test.weekly_1", name="weekly_1", tags={"weekly"}),
        ]
    )


@pytest.fixture
def project_universe() -> NodeUniverse:
    """A mixed project with several resource types, packages and configs."""
    return make_universe(
        [
            Node(
                "model.shop.stg_orders",
                name="stg_orders",
                path="models/staging/stg_orders.sql",
                package_name="shop",
                fqn=("shop", "staging", "stg_orders"),
                tags={"staging", "daily"},
                config={"materialized": "view", "enabled": True},
            ),
            Node(
                "model.shop.stg_customers",
                name="stg_customers",
                path="models/staging/stg_customers.sql",
                package_name="shop",
                fqn=("shop", "staging", "stg_customers"),
                tags={"staging"},
                config={"materialized": "view"},
            ),
            Node(
                "model.shop.orders",
                name="orders",
                path="models/marts/orders.sql",
                package_name="shop",
                fqn=("shop", "marts", "orders"),
                tags={"daily", "finance"},
                config={"materialized": "table", "grants": ["analyst", "finance"]},
            ),
            Node(
                "seed.shop.country_codes",
                name="country_codes",
                resource_type="seed",
                path="seeds/country_codes.csv",
                package_name="shop",
                fqn=("shop", "country_codes"),
            ),
            Node(
                "model.audit.audit_log",
                name="audit_log",
                path="models/audit_log.py",
                package_name="audit",
                fqn=("audit", "audit_log"),
                tags={"deprecated"},
                config={"materialized": "incremental", "enabled": False},
            ),
        ]
    )
