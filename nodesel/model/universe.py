"""Selectable nodes and the universe they are selected from.

This module provides the read-only inputs of an evaluation: ``Node`` (one
build artifact), ``ResourceType`` and ``NodeUniverse`` (the ordered, indexed
collection of all nodes known to one evaluation pass).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
)

from nodesel.logging import get_logger
from nodesel.utils.ids import new_base64_uuid

LOGGER = get_logger(__name__)


class ResourceType(str, Enum):
    """Kinds of nodes found in a build graph."""

    MODEL = "model"
    SEED = "seed"
    SNAPSHOT = "snapshot"
    TEST = "test"
    UNIT_TEST = "unit_test"
    SOURCE = "source"
    ANALYSIS = "analysis"
    EXPOSURE = "exposure"
    METRIC = "metric"
    SEMANTIC_MODEL = "semantic_model"
    SAVED_QUERY = "saved_query"
    OPERATION = "operation"
    FUNCTION = "function"

    @classmethod
    def from_string(cls, value: str) -> "ResourceType":
        """Parse a string into a ResourceType.

        Args:
            value: Case-insensitive resource type (e.g., "model", "SEED").

        Returns:
            The corresponding ResourceType member.

        Raises:
            ValueError: If the string doesn't match any member.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(e.value for e in cls)
            raise ValueError(
                f"Invalid resource_type '{value}'. Valid values are: {valid}"
            ) from None


@dataclass(frozen=True)
class Node:
    """One selectable artifact.

    Attributes:
        unique_id (str): Identifier, unique within a universe
            (e.g. ``model.jaffle_shop.orders``).
        name (str): Short name of the node.
        resource_type (ResourceType): Kind of node. Strings are accepted.
        path (str): File path relative to the project root.
        package_name (str): Owning package.
        fqn (Tuple[str, ...]): Fully qualified name parts. Defaults to
            ``(package_name, name)``.
        tags (FrozenSet[str]): Tags attached to the node.
        config (Mapping[str, Any]): Resolved node config (materialized, ...).
        attrs (Mapping[str, Any]): Any other metadata.
    """

    unique_id: str
    name: str = ""
    resource_type: ResourceType = ResourceType.MODEL
    path: str = ""
    package_name: str = ""
    fqn: Tuple[str, ...] = ()
    tags: FrozenSet[str] = frozenset()
    config: Mapping[str, Any] = field(default_factory=dict, compare=False)
    attrs: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not self.unique_id:
            raise ValueError("Node unique_id must be a non-empty string")
        # Frozen dataclass: normalise through object.__setattr__
        if not isinstance(self.resource_type, ResourceType):
            object.__setattr__(
                self, "resource_type", ResourceType.from_string(self.resource_type)
            )
        if isinstance(self.tags, str):
            object.__setattr__(self, "tags", frozenset([self.tags]))
        elif not isinstance(self.tags, frozenset):
            object.__setattr__(self, "tags", frozenset(self.tags))
        if not self.fqn:
            fqn = (self.package_name, self.name) if self.package_name else (self.name,)
            object.__setattr__(self, "fqn", tuple(p for p in fqn if p))
        elif not isinstance(self.fqn, tuple):
            object.__setattr__(self, "fqn", tuple(self.fqn))
        object.__setattr__(self, "config", MappingProxyType(dict(self.config)))
        object.__setattr__(self, "attrs", MappingProxyType(dict(self.attrs)))


class NodeUniverse:
    """The complete, ordered set of nodes available to one evaluation.

    Each node receives a dense integer index in listing order. Selections are
    represented as integer bitsets over those indices: bit ``i`` set means the
    node at index ``i`` is selected. Decoding a bitset always walks indices in
    ascending order, which makes listing order the canonical output order.

    A universe is immutable. Each instance carries a random ``generation`` id
    so caches and results can refuse to mix universes.

    Args:
        nodes: Nodes in canonical order.

    Raises:
        ValueError: If two nodes share a unique_id.
    """

    __slots__ = ("_nodes", "_index", "_generation", "_full_mask")

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        node_list: List[Node] = []
        index: Dict[str, int] = {}
        for node in nodes:
            if node.unique_id in index:
                raise ValueError(
                    f"Node '{node.unique_id}' already exists in the universe."
                )
            index[node.unique_id] = len(node_list)
            node_list.append(node)

        self._nodes: Tuple[Node, ...] = tuple(node_list)
        self._index: Mapping[str, int] = MappingProxyType(index)
        self._generation = new_base64_uuid()
        self._full_mask = (1 << len(node_list)) - 1
        LOGGER.debug(
            "Built node universe %s with %d nodes", self._generation, len(node_list)
        )

    @property
    def generation(self) -> str:
        """Random id unique to this universe instance."""
        return self._generation

    @property
    def full_mask(self) -> int:
        """Bitset selecting every node."""
        return self._full_mask

    @property
    def ids(self) -> Tuple[str, ...]:
        """All unique ids in canonical order."""
        return tuple(n.unique_id for n in self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __contains__(self, unique_id: object) -> bool:
        return unique_id in self._index

    def __repr__(self) -> str:
        return f"NodeUniverse(nodes={len(self._nodes)}, generation={self._generation!r})"

    def get(self, unique_id: str) -> Optional[Node]:
        """Return the node with this id, or None."""
        idx = self._index.get(unique_id)
        return None if idx is None else self._nodes[idx]

    def index_of(self, unique_id: str) -> int:
        """Return the dense index of a node.

        Raises:
            KeyError: If the id is not in this universe.
        """
        return self._index[unique_id]

    def node_at(self, index: int) -> Node:
        """Return the node at a dense index."""
        return self._nodes[index]

    def mask_of(self, unique_ids: Iterable[str]) -> int:
        """Encode ids as a bitset.

        Raises:
            KeyError: If any id is not in this universe.
        """
        mask = 0
        for uid in unique_ids:
            mask |= 1 << self._index[uid]
        return mask

    def indices_from_mask(self, mask: int) -> Iterator[int]:
        """Yield the set bit positions of mask in ascending order."""
        mask &= self._full_mask
        while mask:
            low = mask & -mask
            yield low.bit_length() - 1
            mask ^= low

    def ids_from_mask(self, mask: int) -> Tuple[str, ...]:
        """Decode a bitset to unique ids in canonical order."""
        return tuple(self._nodes[i].unique_id for i in self.indices_from_mask(mask))

    def nodes_from_mask(self, mask: int) -> Tuple[Node, ...]:
        """Decode a bitset to nodes in canonical order."""
        return tuple(self._nodes[i] for i in self.indices_from_mask(mask))
