"""Selector expressions and their evaluation.

Usage:
    from nodesel.selectors import evaluate, intersection, exclude

    expr = intersection("path:models/bronze/*", exclude("tag:deprecated"))
    result = evaluate(expr, universe)
    result.unique_ids  # ids in universe order
"""

from .evaluator import SelectionCache, SelectionResult, evaluate, select, select_nodes
from .methods import matches, select_atom
from .schema import (
    And,
    Atom,
    Exclude,
    MethodName,
    Or,
    SelectExpression,
    SelectionCriteria,
    SelectorError,
    atom,
    default_method_for,
    exclude,
    intersection,
    iter_atoms,
    render,
    union,
)

__all__ = [
    # Schema
    "SelectorError",
    "MethodName",
    "SelectionCriteria",
    "SelectExpression",
    "Atom",
    "And",
    "Or",
    "Exclude",
    "default_method_for",
    # Builders
    "atom",
    "intersection",
    "union",
    "exclude",
    # Inspection
    "iter_atoms",
    "render",
    # Matching
    "matches",
    "select_atom",
    # Evaluation
    "evaluate",
    "select",
    "select_nodes",
    "SelectionResult",
    "SelectionCache",
]
