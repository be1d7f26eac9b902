"""Node model: the nodes and universes that selectors evaluate against."""

from .universe import Node, NodeUniverse, ResourceType

__all__ = ["Node", "NodeUniverse", "ResourceType"]
