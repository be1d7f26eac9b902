"""Schema definitions for selector expressions.

A selector expression is a tree of frozen, hashable dataclasses:

- ``Atom(criteria)``: nodes matching one ``SelectionCriteria``.
- ``And(children)``: intersection of the children.
- ``Or(children)``: union of the children.
- ``Exclude(inner)``: every node of the universe not selected by ``inner``.

Malformed criteria or trees raise ``SelectorError`` at construction time, so
an evaluator never receives an invalid atom.
"""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Sequence, Tuple, Union

from nodesel.model.universe import ResourceType

__all__ = [
    "SelectorError",
    "MethodName",
    "SelectionCriteria",
    "Atom",
    "And",
    "Or",
    "Exclude",
    "SelectExpression",
    "default_method_for",
    "iter_atoms",
    "render",
    "atom",
    "intersection",
    "union",
    "exclude",
]


class SelectorError(ValueError):
    """Raised when a selection criteria or expression is malformed."""


class MethodName(str, Enum):
    """Closed set of selection methods."""

    FQN = "fqn"
    TAG = "tag"
    PATH = "path"
    FILE = "file"
    NAME = "name"
    RESOURCE_TYPE = "resource_type"
    PACKAGE = "package"
    CONFIG = "config"

    @classmethod
    def from_string(cls, value: str) -> "MethodName":
        """Parse a method name (case-insensitive).

        Raises:
            SelectorError: If the method is unknown.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(e.value for e in cls)
            raise SelectorError(
                f"Unknown selection method '{value}'. Valid methods are: {valid}"
            ) from None


# Methods taking exactly one dotted argument (config.materialized:view)
_METHODS_WITH_ARGS = frozenset({MethodName.CONFIG})

_PATH_SUFFIXES = (".sql", ".py", ".csv", ".yml", ".yaml", ".md")


def default_method_for(value: str) -> MethodName:
    """Pick the method for a bare value without a ``method:`` prefix.

    Values that look like file system paths select by path; everything else
    selects by fully qualified name.
    """
    if "/" in value or "\\" in value or value.lower().endswith(_PATH_SUFFIXES):
        return MethodName.PATH
    return MethodName.FQN


def _compile_glob(value: str) -> re.Pattern[str]:
    try:
        return re.compile(fnmatch.translate(value))
    except re.error as exc:
        raise SelectorError(f"Invalid pattern '{value}': {exc}") from exc


@dataclass(frozen=True)
class SelectionCriteria:
    """An atomic ``method:value`` predicate.

    Attributes:
        method: Selection method.
        value: Pattern (glob for most methods, exact for resource_type).
        method_args: Dotted method arguments, e.g. ``("materialized",)`` for
            ``config.materialized:view``.
        exclude: Optional nested exclusion. The atom selects its own matches
            minus whatever this expression selects.
    """

    method: MethodName
    value: str
    method_args: Tuple[str, ...] = ()
    exclude: Optional["SelectExpression"] = None
    _pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.method, MethodName):
            object.__setattr__(self, "method", MethodName.from_string(str(self.method)))
        if not isinstance(self.value, str) or not self.value.strip():
            raise SelectorError(
                f"Selection method '{self.method.value}' requires a non-empty value"
            )
        if not isinstance(self.method_args, tuple):
            object.__setattr__(self, "method_args", tuple(self.method_args))

        if self.method in _METHODS_WITH_ARGS:
            if len(self.method_args) != 1 or not self.method_args[0]:
                raise SelectorError(
                    f"Selection method '{self.method.value}' requires exactly one "
                    f"argument (e.g. '{self.method.value}.materialized:view'), "
                    f"got {list(self.method_args)}"
                )
        elif self.method_args:
            raise SelectorError(
                f"Selection method '{self.method.value}' takes no arguments, "
                f"got {list(self.method_args)}"
            )

        if self.method is MethodName.RESOURCE_TYPE:
            try:
                ResourceType.from_string(self.value)
            except ValueError as exc:
                raise SelectorError(str(exc)) from None

        if self.exclude is not None and not isinstance(self.exclude, _EXPRESSION_TYPES):
            raise SelectorError(
                f"Nested exclude must be a selector expression, "
                f"got {type(self.exclude).__name__}"
            )

        glob = self.value
        if self.method is MethodName.PATH:
            # Node paths are matched with forward slashes
            glob = glob.replace("\\", "/")
        object.__setattr__(self, "_pattern", _compile_glob(glob))

    @property
    def pattern(self) -> re.Pattern[str]:
        """Compiled glob for the value."""
        return self._pattern

    @classmethod
    def from_spec(cls, spec: str) -> "SelectionCriteria":
        """Build criteria from the atomic ``method[.arg]:value`` form.

        Without a ``method:`` prefix the method comes from
        :func:`default_method_for`.

        Raises:
            SelectorError: If the method is unknown or the value is empty.
        """
        if not isinstance(spec, str):
            raise SelectorError(f"Selector spec must be a string, got {type(spec).__name__}")
        head, sep, value = spec.strip().partition(":")
        if not sep:
            value = head
            return cls(default_method_for(value), value)
        name, *args = head.split(".")
        return cls(MethodName.from_string(name), value, tuple(args))

    def to_spec(self) -> str:
        """Render as ``method[.args]:value``."""
        return ".".join((self.method.value, *self.method_args)) + ":" + self.value


@dataclass(frozen=True)
class Atom:
    """Leaf expression: nodes satisfying one criteria."""

    criteria: SelectionCriteria

    def __post_init__(self) -> None:
        if not isinstance(self.criteria, SelectionCriteria):
            raise SelectorError(
                f"Atom requires SelectionCriteria, got {type(self.criteria).__name__}"
            )


def _coerce_children(kind: str, children: Sequence["SelectExpression"]) -> Tuple:
    if isinstance(children, (str, bytes)) or not isinstance(children, (list, tuple)):
        raise SelectorError(f"{kind} children must be a list or tuple of expressions")
    for child in children:
        if not isinstance(child, _EXPRESSION_TYPES):
            raise SelectorError(
                f"{kind} child must be a selector expression, got {type(child).__name__}"
            )
    return tuple(children)


@dataclass(frozen=True)
class And:
    """Intersection of children. With no children, selects the whole universe."""

    children: Tuple["SelectExpression", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", _coerce_children("And", self.children))


@dataclass(frozen=True)
class Or:
    """Union of children. With no children, selects nothing."""

    children: Tuple["SelectExpression", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", _coerce_children("Or", self.children))


@dataclass(frozen=True)
class Exclude:
    """Complement of ``inner`` within the universe being evaluated."""

    inner: "SelectExpression"

    def __post_init__(self) -> None:
        if not isinstance(self.inner, _EXPRESSION_TYPES):
            raise SelectorError(
                f"Exclude requires a selector expression, got {type(self.inner).__name__}"
            )


SelectExpression = Union[Atom, And, Or, Exclude]
_EXPRESSION_TYPES = (Atom, And, Or, Exclude)


def iter_atoms(expr: SelectExpression) -> Iterator[SelectionCriteria]:
    """Yield every criteria in the tree depth-first, nested excludes included."""
    if isinstance(expr, Atom):
        yield expr.criteria
        if expr.criteria.exclude is not None:
            yield from iter_atoms(expr.criteria.exclude)
    elif isinstance(expr, (And, Or)):
        for child in expr.children:
            yield from iter_atoms(child)
    elif isinstance(expr, Exclude):
        yield from iter_atoms(expr.inner)
    else:
        raise SelectorError(f"Not a selector expression: {type(expr).__name__}")


def render(expr: SelectExpression) -> str:
    """Readable one-line form of an expression, for logs and error messages.

    ``And([tag:a, Exclude(tag:b)])`` renders as ``(tag:a & !tag:b)``.
    """
    if isinstance(expr, Atom):
        text = expr.criteria.to_spec()
        if expr.criteria.exclude is not None:
            text = f"({text} - {render(expr.criteria.exclude)})"
        return text
    if isinstance(expr, And):
        if not expr.children:
            return "<all>"
        return "(" + " & ".join(render(c) for c in expr.children) + ")"
    if isinstance(expr, Or):
        if not expr.children:
            return "<none>"
        return "(" + " | ".join(render(c) for c in expr.children) + ")"
    if isinstance(expr, Exclude):
        return "!" + render(expr.inner)
    raise SelectorError(f"Not a selector expression: {type(expr).__name__}")


def _as_expression(item: Union[str, SelectionCriteria, SelectExpression]) -> SelectExpression:
    if isinstance(item, str):
        return Atom(SelectionCriteria.from_spec(item))
    if isinstance(item, SelectionCriteria):
        return Atom(item)
    return item


def atom(spec: Union[str, SelectionCriteria]) -> Atom:
    """Atom from a ``method:value`` string or a criteria."""
    expr = _as_expression(spec)
    if not isinstance(expr, Atom):
        raise SelectorError(f"atom() requires a spec or criteria, got {type(spec).__name__}")
    return expr


def intersection(*children: Union[str, SelectionCriteria, SelectExpression]) -> And:
    """``And`` over children; strings are read as atomic specs."""
    return And(tuple(_as_expression(c) for c in children))


def union(*children: Union[str, SelectionCriteria, SelectExpression]) -> Or:
    """``Or`` over children; strings are read as atomic specs."""
    return Or(tuple(_as_expression(c) for c in children))


def exclude(inner: Union[str, SelectionCriteria, SelectExpression]) -> Exclude:
    """``Exclude`` of one child; a string is read as an atomic spec."""
    return Exclude(_as_expression(inner))
