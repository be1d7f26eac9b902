"""nodesel: selector expression evaluation for build graphs.

nodesel picks the subset of build artifacts ("nodes") that a boolean selector
expression describes. Atoms such as ``path:models/bronze/*`` or
``tag:production`` are combined with intersection, union and exclusion, and
evaluated against a node universe into a deterministically ordered result.

Primary API:
    Node, NodeUniverse - the nodes to select from
    SelectionCriteria, Atom, And, Or, Exclude - selector expressions
    intersection(), union(), exclude(), atom() - expression builders
    evaluate() - compute the selection

Example:
    from nodesel import Node, NodeUniverse, evaluate, exclude, intersection

    universe = NodeUniverse([
        Node("model.shop.bronze_1", name="bronze_1", package_name="shop",
             path="models/bronze/bronze_1.sql"),
        Node("model.shop.bronze_2", name="bronze_2", package_name="shop",
             path="models/bronze/bronze_2.sql"),
    ])
    expr = intersection("path:models/bronze/*", exclude("path:models/bronse/*"))
    evaluate(expr, universe).unique_ids
    # ('model.shop.bronze_1', 'model.shop.bronze_2')
"""

from __future__ import annotations

from nodesel import logging
from nodesel._version import __version__
from nodesel.config import SELECTION_CONFIG, SelectionConfig
from nodesel.model.nx import universe_from_networkx, universe_to_networkx
from nodesel.model.universe import Node, NodeUniverse, ResourceType
from nodesel.selectors import (
    And,
    Atom,
    Exclude,
    MethodName,
    Or,
    SelectionCache,
    SelectionCriteria,
    SelectionResult,
    SelectorError,
    atom,
    evaluate,
    exclude,
    intersection,
    select,
    select_nodes,
    union,
)

__all__ = [
    # Version
    "__version__",
    # Model
    "Node",
    "NodeUniverse",
    "ResourceType",
    # Expressions
    "MethodName",
    "SelectionCriteria",
    "Atom",
    "And",
    "Or",
    "Exclude",
    "SelectorError",
    "atom",
    "intersection",
    "union",
    "exclude",
    # Evaluation
    "evaluate",
    "select",
    "select_nodes",
    "SelectionResult",
    "SelectionCache",
    # Configuration
    "SelectionConfig",
    "SELECTION_CONFIG",
    # Library integrations (NetworkX)
    "universe_from_networkx",
    "universe_to_networkx",
    # Utilities
    "logging",
]
