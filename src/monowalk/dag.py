# dag.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set, Union

from .errors import CycleDetected
from .model import DependencyInclusion, Project

DependencyOrder = Union[bool, DependencyInclusion, None]


@dataclass
class DependencyGraph:
    """
    Projects keyed by name plus "depends on" edges.

    deps[a] holds the names a depends on; dependents[b] is the reverse
    adjacency (who depends on b). Only workspace projects are nodes.
    """
    nodes: Dict[str, Project] = field(default_factory=dict)
    deps: Dict[str, Set[str]] = field(default_factory=dict)
    dependents: Dict[str, Set[str]] = field(default_factory=dict)

    def add_node(self, project: Project) -> None:
        self.nodes[project.name] = project
        self.deps.setdefault(project.name, set())
        self.dependents.setdefault(project.name, set())

    def add_edge(self, dependent: str, dependency: str) -> None:
        self.deps[dependent].add(dependency)
        self.dependents[dependency].add(dependent)

    def dependencies_of(self, name: str) -> List[str]:
        return sorted(self.deps.get(name, set()))

    def dependents_of(self, name: str) -> List[str]:
        return sorted(self.dependents.get(name, set()))

    @property
    def edges(self) -> List[tuple[str, str]]:
        return sorted((a, b) for a, bs in self.deps.items() for b in bs)

    def __len__(self) -> int:
        return len(self.nodes)


def build_graph(projects: Sequence[Project], inclusion: DependencyInclusion) -> DependencyGraph:
    """
    Build the dependency graph for the selected dependency kinds.

    Names that match no project are external dependencies: no edge, no error.
    Cycles are not checked here; schedule_batches reports them.
    """
    graph = DependencyGraph()
    for project in projects:
        graph.add_node(project)

    for project in projects:
        for name in inclusion.names_for(project):
            if name in graph.nodes:
                graph.add_edge(project.name, name)

    return graph


def schedule_batches(graph: DependencyGraph) -> List[List[Project]]:
    """
    Convert the graph into batches (layered Kahn sort).

    Every project in a batch has all of its dependencies in earlier batches,
    so a batch can run in parallel. Batches are sorted by name.
    """
    indeg = {name: len(deps) for name, deps in graph.deps.items()}  # copy, we mutate it
    ready = sorted(n for n, d in indeg.items() if d == 0)

    levels: List[List[str]] = []
    processed = 0

    while ready:
        levels.append(ready)
        processed += len(ready)

        next_ready: List[str] = []
        for node in ready:
            for child in graph.dependents.get(node, set()):
                indeg[child] -= 1
                if indeg[child] == 0:
                    next_ready.append(child)
        ready = sorted(next_ready)

    if processed != len(indeg):
        remaining = sorted(n for n, d in indeg.items() if d > 0)
        raise CycleDetected(remaining=remaining)

    return [[graph.nodes[name] for name in level] for level in levels]


def schedule_linear(graph: DependencyGraph) -> List[Project]:
    """Flattened schedule_batches: one project per step."""
    return [project for batch in schedule_batches(graph) for project in batch]


def resolve_inclusion(dependency_order: DependencyOrder) -> DependencyInclusion | None:
    """
    Normalize the dependency_order option.

      False / None            -> None (no ordering, scheduler bypassed)
      True                    -> all four kinds
      DependencyInclusion     -> exactly that selection
    """
    if dependency_order is None or dependency_order is False:
        return None
    if dependency_order is True:
        return DependencyInclusion.all()
    if isinstance(dependency_order, DependencyInclusion):
        return dependency_order
    raise TypeError(f"dependency_order must be a bool or DependencyInclusion, got {type(dependency_order).__name__}")


def plan(
    projects: Sequence[Project],
    *,
    parallel: bool = True,
    dependency_order: DependencyOrder = False,
) -> List[List[Project]]:
    """
    Decide the batches a walk will execute.

    - no ordering, parallel:    one batch with every project (registry order)
    - no ordering, serial:      one project per batch (registry order)
    - ordering, parallel:       schedule_batches
    - ordering, serial:         schedule_linear, one project per batch
    """
    projects = list(projects)
    inclusion = resolve_inclusion(dependency_order)

    if inclusion is None:
        if parallel:
            return [projects] if projects else []
        return [[p] for p in projects]

    graph = build_graph(projects, inclusion)
    if parallel:
        return schedule_batches(graph)
    return [[p] for p in schedule_linear(graph)]
