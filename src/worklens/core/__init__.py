# src/worklens/core/__init__.py

from .graph import NO_VALUE, DerivedNode, Graph, Node, NodeCache, SourceNode

__all__ = ["NO_VALUE", "DerivedNode", "Graph", "Node", "NodeCache", "SourceNode"]
