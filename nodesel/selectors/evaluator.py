"""Selector expression evaluation.

Turns a selector expression tree into the set of universe nodes it selects.
Selections are integer bitsets over the universe's dense node indices, and
the composition operators are plain bitwise operations:

=================  ===============================  ==========================
Expression         Result                           Zero children
=================  ===============================  ==========================
``Atom(c)``        nodes matching ``c``             n/a
``And([..])``      AND of children                  whole universe
``Or([..])``       OR of children                   empty
``Exclude(e)``     ``full_mask & ~e``               n/a
=================  ===============================  ==========================

``And`` with no children selects the whole universe and ``Or`` with no
children selects nothing: each is the identity element of its operator, so
``And([])`` and ``Or([])`` compose without special cases.

Exclusion is subtraction from the universe of the current evaluation. An
exclude whose inner expression matches nothing therefore removes nothing, and
``And([A, Exclude(B)])`` is exactly ``A - B``. No step looks at how many nodes
an intermediate result holds.

Results are decoded in ascending index order, so output order is the
universe's listing order no matter how the tree is shaped or in which order
children were evaluated.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import reduce
from operator import and_, or_
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Set, Tuple

from nodesel.config import SELECTION_CONFIG, SelectionConfig
from nodesel.logging import get_logger
from nodesel.model.universe import Node, NodeUniverse

from .methods import select_atom
from .schema import (
    And,
    Atom,
    Exclude,
    Or,
    SelectExpression,
    SelectionCriteria,
    SelectorError,
    render,
)

LOGGER = get_logger(__name__)

__all__ = [
    "SelectionCache",
    "SelectionResult",
    "evaluate",
    "select",
    "select_nodes",
]

# Cached bitset and the no-match criteria of its subtree
_CacheEntry = Tuple[int, Tuple[SelectionCriteria, ...]]


class SelectionCache:
    """Memo of sub-expression bitsets for one universe.

    Expressions are frozen dataclasses, so equal subtrees share an entry. The
    cache binds to the generation of the first universe it sees; binding to a
    different universe drops every entry first, so a bitset computed for one
    universe is never reused against another.

    Each entry also keeps the criteria in its subtree that matched no node,
    so a hit reports the same ``empty_atoms`` as a fresh evaluation.
    """

    def __init__(self) -> None:
        self._generation: Optional[str] = None
        self._entries: Dict[SelectExpression, _CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    @property
    def generation(self) -> Optional[str]:
        """Generation of the universe the cache is bound to, if any."""
        return self._generation

    def bind(self, universe: NodeUniverse) -> None:
        """Bind to universe, invalidating entries from any other universe."""
        if self._generation == universe.generation:
            return
        if self._generation is not None:
            LOGGER.debug(
                "Selection cache rebound from universe %s to %s; dropping %d entries",
                self._generation,
                universe.generation,
                len(self._entries),
            )
        self._entries.clear()
        self._generation = universe.generation

    def get(self, expr: SelectExpression) -> Optional[_CacheEntry]:
        """Return ``(mask, empty_atoms)`` for expr, or None on a miss."""
        entry = self._entries.get(expr)
        if entry is None:
            self.misses += 1
        else:
            self.hits += 1
        return entry

    def put(
        self,
        expr: SelectExpression,
        mask: int,
        empty_atoms: Tuple[SelectionCriteria, ...] = (),
    ) -> None:
        self._entries[expr] = (mask, empty_atoms)

    def clear(self) -> None:
        """Drop all entries and unbind."""
        self._entries.clear()
        self._generation = None
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class SelectionResult:
    """Nodes selected by one evaluation.

    Attributes:
        unique_ids: Selected ids in universe listing order.
        mask: Bitset of selected node indices.
        universe_generation: Generation of the universe evaluated against.
        empty_atoms: Criteria that matched no node, in first-seen order. These
            are diagnostics only; an empty match is a valid outcome.
    """

    unique_ids: Tuple[str, ...]
    mask: int = field(repr=False)
    universe_generation: str = field(repr=False)
    empty_atoms: Tuple[SelectionCriteria, ...] = field(
        default=(), repr=False, compare=False
    )
    _id_set: FrozenSet[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_id_set", frozenset(self.unique_ids))

    def __len__(self) -> int:
        return len(self.unique_ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self.unique_ids)

    def __contains__(self, unique_id: object) -> bool:
        return unique_id in self._id_set

    @property
    def is_empty(self) -> bool:
        return not self.unique_ids

    def as_set(self) -> FrozenSet[str]:
        return self._id_set

    def nodes(self, universe: NodeUniverse) -> Tuple[Node, ...]:
        """Resolve the selection to Node objects of the evaluated universe.

        Raises:
            ValueError: If universe is not the one the result came from.
        """
        if universe.generation != self.universe_generation:
            raise ValueError(
                "SelectionResult belongs to universe "
                f"{self.universe_generation}, not {universe.generation}"
            )
        return universe.nodes_from_mask(self.mask)


class _Evaluation:
    """State of one evaluate() call: universe, cache and diagnostics."""

    def __init__(
        self,
        universe: NodeUniverse,
        cache: Optional[SelectionCache],
        config: SelectionConfig,
        quiet: bool = False,
    ) -> None:
        self.universe = universe
        self.cache = cache
        self.config = config
        self.quiet = quiet
        self.empty_atoms: List[SelectionCriteria] = []
        self._reported: Set[SelectionCriteria] = set()

    def run(self, expr: SelectExpression) -> int:
        if self.cache is None:
            return self._eval(expr)
        entry = self.cache.get(expr)
        if entry is not None:
            mask, empty_atoms = entry
            for criteria in empty_atoms:
                self._note_empty(criteria)
            return mask

        # Collect this subtree's no-match criteria on their own for the entry
        outer, self.empty_atoms = self.empty_atoms, []
        try:
            mask = self._eval(expr)
            empty_atoms = tuple(self.empty_atoms)
        finally:
            self.empty_atoms = outer
        self.cache.put(expr, mask, empty_atoms)
        for criteria in empty_atoms:
            self._note_empty(criteria)
        return mask

    def _note_empty(self, criteria: SelectionCriteria) -> None:
        if criteria not in self.empty_atoms:
            self.empty_atoms.append(criteria)
        if not self.quiet and criteria not in self._reported:
            self._reported.add(criteria)
            LOGGER.debug("Criteria '%s' matched no nodes", criteria.to_spec())

    def _eval(self, expr: SelectExpression) -> int:
        if isinstance(expr, Atom):
            return self._eval_atom(expr.criteria)
        if isinstance(expr, And):
            return reduce(and_, self._eval_children(expr.children), self.universe.full_mask)
        if isinstance(expr, Or):
            return reduce(or_, self._eval_children(expr.children), 0)
        if isinstance(expr, Exclude):
            return self.universe.full_mask & ~self.run(expr.inner)
        raise SelectorError(f"Not a selector expression: {type(expr).__name__}")

    def _eval_atom(self, criteria: SelectionCriteria) -> int:
        mask = select_atom(criteria, self.universe)
        if not mask:
            self._note_empty(criteria)
        if criteria.exclude is not None:
            mask &= ~self.run(criteria.exclude)
        return mask

    def _eval_children(self, children: Sequence[SelectExpression]) -> List[int]:
        if not self.config.should_parallelize(len(children)):
            return [self.run(child) for child in children]

        workers = min(self.config.max_workers, len(children))
        LOGGER.debug("Evaluating %d children on %d threads", len(children), workers)
        # Workers get their own uncached, quiet evaluations; only this thread
        # touches the cache and the log
        branches = [
            _Evaluation(self.universe, None, self.config, quiet=True) for _ in children
        ]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            masks = list(pool.map(_Evaluation.run, branches, children))
        for branch in branches:
            for criteria in branch.empty_atoms:
                self._note_empty(criteria)
        return masks


def evaluate(
    expression: SelectExpression,
    universe: NodeUniverse,
    *,
    cache: Optional[SelectionCache] = None,
    config: Optional[SelectionConfig] = None,
) -> SelectionResult:
    """Evaluate a selector expression against a node universe.

    Evaluation is total for well-formed inputs: an empty selection is a
    normal result, never an error.

    Args:
        expression: Expression tree to evaluate.
        universe: All nodes available for selection.
        cache: Optional sub-expression cache. It is bound to ``universe``
            before use and invalidated if it held another universe's entries.
        config: Evaluation settings. Defaults to ``SELECTION_CONFIG``.

    Returns:
        SelectionResult with ids in universe listing order.

    Raises:
        SelectorError: If expression is not a selector expression tree.
    """
    cfg = config if config is not None else SELECTION_CONFIG
    if cache is None and cfg.use_cache:
        cache = SelectionCache()
    if cache is not None:
        cache.bind(universe)

    if LOGGER.isEnabledFor(logging.DEBUG):
        LOGGER.debug("Evaluating %s against %d nodes", render(expression), len(universe))
    state = _Evaluation(universe, cache, cfg)
    mask = state.run(expression)
    result = SelectionResult(
        unique_ids=universe.ids_from_mask(mask),
        mask=mask,
        universe_generation=universe.generation,
        empty_atoms=tuple(state.empty_atoms),
    )
    LOGGER.debug("Selected %d of %d nodes", len(result), len(universe))
    return result


def select(
    expression: SelectExpression,
    universe: NodeUniverse,
    **kwargs,
) -> Tuple[str, ...]:
    """Evaluate and return only the selected ids, in universe order."""
    return evaluate(expression, universe, **kwargs).unique_ids


def select_nodes(
    expression: SelectExpression,
    universe: NodeUniverse,
    **kwargs,
) -> Tuple[Node, ...]:
    """Evaluate and return the selected Node objects, in universe order."""
    return evaluate(expression, universe, **kwargs).nodes(universe)
