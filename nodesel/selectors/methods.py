"""Matching of single nodes against selection criteria.

Each ``MethodName`` has exactly one matcher in ``_MATCHERS``. Matchers are
pure functions of ``(criteria, node)``: glob patterns are compiled once when
the criteria is constructed, so matching never raises for valid criteria.

Pattern semantics per method:

- ``tag``: any tag matches the glob.
- ``path``: glob matches the node path, with or without its extension, after
  backslashes in both are read as ``/``; a plain directory value also selects
  everything below it.
- ``file``: glob matches the file name, with or without its extension.
- ``name``: glob matches the node name.
- ``fqn``: glob matches the dotted fqn, the dotted parts are a prefix of the
  fqn, or the value matches the node name.
- ``resource_type``: exact resource type.
- ``package``: glob matches the package name.
- ``config``: ``config.<key>:<glob>`` against the stringified config value;
  list values match if any element does.
"""

from __future__ import annotations

import fnmatch
import posixpath
from typing import TYPE_CHECKING, Any, Callable, Dict, Tuple

from nodesel.model.universe import Node, ResourceType

from .schema import MethodName, SelectionCriteria

if TYPE_CHECKING:
    from nodesel.model.universe import NodeUniverse

__all__ = [
    "matches",
    "select_atom",
]

_GLOB_CHARS = frozenset("*?[")


def _is_glob(value: str) -> bool:
    return any(ch in _GLOB_CHARS for ch in value)


def _strip_ext(path: str) -> str:
    root, _ext = posixpath.splitext(path)
    return root


def _normalize_path(path: str) -> str:
    return path.replace("\\", "/").rstrip("/")


def _match_tag(criteria: SelectionCriteria, node: Node) -> bool:
    pattern = criteria.pattern
    return any(pattern.match(tag) for tag in node.tags)


def _match_path(criteria: SelectionCriteria, node: Node) -> bool:
    if not node.path:
        return False
    path = _normalize_path(node.path)
    if _is_glob(criteria.value):
        pattern = criteria.pattern
        return bool(pattern.match(path) or pattern.match(_strip_ext(path)))
    value = _normalize_path(criteria.value)
    if path == value or _strip_ext(path) == value:
        return True
    # Directory selection: models/staging selects models/staging/**
    return path.startswith(value + "/")


def _match_file(criteria: SelectionCriteria, node: Node) -> bool:
    if not node.path:
        return False
    filename = posixpath.basename(_normalize_path(node.path))
    pattern = criteria.pattern
    return bool(pattern.match(filename) or pattern.match(_strip_ext(filename)))


def _match_name(criteria: SelectionCriteria, node: Node) -> bool:
    return bool(criteria.pattern.match(node.name))


def _match_fqn(criteria: SelectionCriteria, node: Node) -> bool:
    if not node.fqn:
        return False
    pattern = criteria.pattern
    if pattern.match(".".join(node.fqn)) or pattern.match(node.name):
        return True
    parts = criteria.value.split(".")
    if len(parts) > len(node.fqn):
        return False
    return all(
        fnmatch.fnmatchcase(fqn_part, part) for fqn_part, part in zip(node.fqn, parts)
    )


def _match_resource_type(criteria: SelectionCriteria, node: Node) -> bool:
    return node.resource_type is ResourceType.from_string(criteria.value)


def _match_package(criteria: SelectionCriteria, node: Node) -> bool:
    return bool(criteria.pattern.match(node.package_name))


def _config_strings(value: Any) -> Tuple[str, ...]:
    if isinstance(value, bool):
        return ("true" if value else "false",)
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(s for item in value for s in _config_strings(item))
    if value is None:
        return ()
    return (str(value),)


def _match_config(criteria: SelectionCriteria, node: Node) -> bool:
    key = criteria.method_args[0]
    if key not in node.config:
        return False
    pattern = criteria.pattern
    return any(pattern.match(s) for s in _config_strings(node.config[key]))


_MATCHERS: Dict[MethodName, Callable[[SelectionCriteria, Node], bool]] = {
    MethodName.TAG: _match_tag,
    MethodName.PATH: _match_path,
    MethodName.FILE: _match_file,
    MethodName.NAME: _match_name,
    MethodName.FQN: _match_fqn,
    MethodName.RESOURCE_TYPE: _match_resource_type,
    MethodName.PACKAGE: _match_package,
    MethodName.CONFIG: _match_config,
}

_missing = set(MethodName) - set(_MATCHERS)
if _missing:  # pragma: no cover
    raise RuntimeError(f"No matcher registered for: {sorted(m.value for m in _missing)}")


def matches(criteria: SelectionCriteria, node: Node) -> bool:
    """Return True if node satisfies criteria.

    Only the criteria's own method and value are considered; a nested
    ``criteria.exclude`` is applied by the evaluator.

    Args:
        criteria: Selection criteria.
        node: Node to test.

    Returns:
        True if the node matches.
    """
    return _MATCHERS[criteria.method](criteria, node)


def select_atom(criteria: SelectionCriteria, universe: "NodeUniverse") -> int:
    """Bitset of universe nodes matching criteria (nested exclude not applied)."""
    matcher = _MATCHERS[criteria.method]
    mask = 0
    for index, node in enumerate(universe):
        if matcher(criteria, node):
            mask |= 1 << index
    return mask
