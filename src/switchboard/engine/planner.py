"""Execution Planner - Chooses a pattern and stage layout for matched handlers."""

from __future__ import annotations

from collections.abc import Sequence

from switchboard.engine.registry import RegistrySnapshot
from switchboard.errors import CyclicDependency, NoMatch
from switchboard.models import ExecutionPlan, HandlerDescriptor, Match, Pattern


class ExecutionPlanner:
    """
    Builds deterministic execution plans.

    Decision order:
    1. Any match declares hand_off_to → HandOff (two stages, best such match leads)
    2. Any match requires aggregation → Hierarchical (dependency stages + aggregation step)
    3. Dependencies between matches → Sequential (topological stages)
    4. Several independent matches → Parallel (one stage)
    5. One match → Single
    """

    def plan(self, matches: Sequence[Match], snapshot: RegistrySnapshot) -> ExecutionPlan:
        """Plan execution for classifier output.

        Args:
            matches: Ordered matches (best first)
            snapshot: Registry snapshot the matches were produced from

        Returns:
            ExecutionPlan whose handler names all exist in the snapshot
        """
        if not matches:
            raise NoMatch("")

        names: list[str] = []
        for match in matches:
            if match.handler not in names:
                names.append(match.handler)
        descriptors = [snapshot.lookup(name) for name in names]

        source = next((d for d in descriptors if d.hand_off_to), None)
        if source is not None:
            return self._plan_handoff(source, names, snapshot)

        edges = self._dependency_edges(descriptors)
        stages = self._topological_stages(names, edges)

        if any(d.requires_aggregation for d in descriptors):
            return ExecutionPlan(
                pattern=Pattern.HIERARCHICAL, stages=stages, aggregation_step=True
            )
        if edges:
            return ExecutionPlan(pattern=Pattern.SEQUENTIAL, stages=stages)
        if len(names) > 1:
            return ExecutionPlan(pattern=Pattern.PARALLEL, stages=(tuple(names),))
        return ExecutionPlan(pattern=Pattern.SINGLE, stages=((names[0],),))

    def _plan_handoff(
        self, source: HandlerDescriptor, names: list[str], snapshot: RegistrySnapshot
    ) -> ExecutionPlan:
        target = source.hand_off_to
        assert target is not None
        if target == source.name:
            raise CyclicDependency([source.name, target])
        snapshot.lookup(target)  # raises UnknownHandler

        return ExecutionPlan(
            pattern=Pattern.HANDOFF,
            stages=((source.name,), (target,)),
            handoff=(source.name, target),
            skipped=tuple(n for n in names if n not in (source.name, target)),
        )

    @staticmethod
    def _dependency_edges(descriptors: Sequence[HandlerDescriptor]) -> list[tuple[str, str]]:
        """Edge (a, b) when b depends on one of a's domains."""
        edges: list[tuple[str, str]] = []
        for dependent in descriptors:
            if not dependent.depends_on:
                continue
            for provider in descriptors:
                if provider.name == dependent.name:
                    continue
                if dependent.depends_on & provider.domains:
                    edges.append((provider.name, dependent.name))
        return edges

    @staticmethod
    def _topological_stages(
        names: Sequence[str], edges: Sequence[tuple[str, str]]
    ) -> tuple[tuple[str, ...], ...]:
        """Layered topological sort; each layer keeps match order."""
        order = {name: idx for idx, name in enumerate(names)}
        in_degree: dict[str, int] = {name: 0 for name in names}
        children: dict[str, list[str]] = {name: [] for name in names}

        for from_node, to_node in edges:
            children[from_node].append(to_node)
            in_degree[to_node] += 1

        queue = [name for name in names if in_degree[name] == 0]
        stages: list[tuple[str, ...]] = []
        placed = 0

        while queue:
            stages.append(tuple(queue))
            placed += len(queue)

            next_queue: list[str] = []
            for node in queue:
                for child in children[node]:
                    in_degree[child] -= 1
                    if in_degree[child] == 0:
                        next_queue.append(child)

            queue = sorted(next_queue, key=order.__getitem__)

        if placed != len(names):
            raise CyclicDependency(n for n in names if in_degree[n] > 0)

        return tuple(stages)


def plan(matches: Sequence[Match], snapshot: RegistrySnapshot) -> ExecutionPlan:
    """Plan with a default planner."""
    return ExecutionPlanner().plan(matches, snapshot)
