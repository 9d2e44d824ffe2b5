"""Creation-order graph over a plan's logical names."""

from __future__ import annotations

import heapq
from typing import TYPE_CHECKING

from feature_env.planner.errors import DependencyCycleError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class DependencyGraph:
    """Resources keyed by logical name, each listing what must exist first.

    Dependencies on names outside the node set (``existing:<role>`` addresses)
    impose no ordering and are dropped on construction.
    """

    def __init__(
        self,
        nodes: Iterable[str],
        dependencies: Mapping[str, Iterable[str]],
        priorities: Mapping[str, int] | None = None,
    ) -> None:
        self._nodes = frozenset(nodes)
        self._priorities = dict(priorities or {})
        self._requires = {
            node: frozenset(d for d in dependencies.get(node, ()) if d in self._nodes)
            for node in self._nodes
        }
        # dependency -> nodes it unblocks, sorted for stable traversal
        unlocks: dict[str, list[str]] = {node: [] for node in self._nodes}
        for node, required in self._requires.items():
            for dep in required:
                unlocks[dep].append(node)
        self._unlocks = {node: sorted(children) for node, children in unlocks.items()}

    def _rank(self, node: str) -> tuple[int, str]:
        return self._priorities.get(node, 0), node

    def _pending(self) -> dict[str, int]:
        return {node: len(required) for node, required in self._requires.items()}

    def _cycle(self, placed: Iterable[str]) -> DependencyCycleError:
        return DependencyCycleError(sorted(self._nodes.difference(placed)))

    def topological_order(self) -> list[str]:
        """Creation order: among ready nodes the lowest priority goes first, then by name."""
        pending = self._pending()
        ready = [self._rank(node) for node, count in pending.items() if not count]
        heapq.heapify(ready)

        order: list[str] = []
        while ready:
            _, node = heapq.heappop(ready)
            order.append(node)
            for child in self._unlocks[node]:
                pending[child] -= 1
                if not pending[child]:
                    heapq.heappush(ready, self._rank(child))

        if len(order) < len(self._nodes):
            raise self._cycle(order)
        return order

    def reverse_topological_order(self) -> list[str]:
        """Teardown order."""
        return self.topological_order()[::-1]

    def layers(self) -> list[list[str]]:
        """Group nodes into stages; nodes within a stage have no edges between them."""
        pending = self._pending()
        stage = sorted(node for node, count in pending.items() if not count)
        stages: list[list[str]] = []
        while stage:
            stages.append(stage)
            unblocked: set[str] = set()
            for node in stage:
                for child in self._unlocks[node]:
                    pending[child] -= 1
                    if not pending[child]:
                        unblocked.add(child)
            stage = sorted(unblocked)

        placed = [node for s in stages for node in s]
        if len(placed) < len(self._nodes):
            raise self._cycle(placed)
        return stages
