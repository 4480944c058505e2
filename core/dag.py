"""
Dependency-ordered stage runner behind the image and volume pipelines.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class DAGNode:
    """One pipeline stage: ``fn`` gets ``{dependency_name: result}`` and returns its own result."""
    name:        str
    fn:          Callable[[Dict[str, Any]], Any]
    depends_on:  Tuple[str, ...] = field(default_factory=tuple)


class SimpleDAGExecutor:
    """
    Runs nodes so that every node starts after all of its dependencies.

    Usage::

        dag = SimpleDAGExecutor()
        dag.add(DAGNode("load",   load_fn))
        dag.add(DAGNode("reduce", reduce_fn, depends_on=("load",)))
        dag.add(DAGNode("export", export_fn, depends_on=("reduce",)))
        results = dag.run(progress_callback)

    Nodes that become ready at the same time run in insertion order. Adding
    a node under an existing name replaces it.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, DAGNode] = {}

    def add(self, node: DAGNode) -> "SimpleDAGExecutor":
        self._nodes[node.name] = node
        return self

    @property
    def node_names(self) -> Tuple[str, ...]:
        return tuple(self._nodes)

    def execution_order(self) -> List[str]:
        """
        Kahn ordering of the nodes.

        Raises:
            KeyError: A node depends on a name that was never added.
            ValueError: The dependencies form a cycle.
        """
        pending: Dict[str, int] = {}
        for name, node in self._nodes.items():
            for dep in node.depends_on:
                if dep not in self._nodes:
                    raise KeyError(f"DAG node '{name}' depends on unknown node '{dep}'")
            pending[name] = len(set(node.depends_on))

        order: List[str] = []
        ready = [name for name, count in pending.items() if count == 0]
        while ready:
            current = ready.pop(0)
            order.append(current)
            for name, node in self._nodes.items():
                if current in node.depends_on:
                    pending[name] -= 1
                    if pending[name] == 0:
                        ready.append(name)

        if len(order) != len(self._nodes):
            stuck = sorted(set(self._nodes) - set(order))
            raise ValueError(f"DAG contains a cycle among: {', '.join(stuck)}")
        return order

    def run(self, progress: Optional[Callable[[int, str], None]] = None) -> Dict[str, Any]:
        order = self.execution_order()
        results: Dict[str, Any] = {}
        for i, name in enumerate(order):
            node = self._nodes[name]
            if progress:
                progress(100 * i // len(order), f"Running: {name}")
            started = time.perf_counter()
            results[name] = node.fn({dep: results[dep] for dep in node.depends_on})
            logger.debug("Stage '%s' finished in %.3fs", name, time.perf_counter() - started)
        if progress:
            progress(100, "Pipeline complete")
        return results
