"""Target graph for incremental builds.

Every output artifact is a ``BuildTarget``: an output path, the files it is
derived from, and an action that produces its bytes. Dependencies may be
plain input files or the outputs of other targets; the latter form the edges
of a DAG that is validated once, before anything is rendered.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError, CyclicDependencyError, MissingDependencyError


@dataclass(frozen=True)
class BuildTarget:
    output: Path
    dependencies: tuple[Path, ...]
    action: Callable[[], bytes] = field(compare=False, repr=False)
    kind: str = "file"
    source: Optional[Path] = None
    always: bool = False

    @property
    def origin(self) -> Path:
        """Path named in error messages for this target."""
        if self.source is not None:
            return self.source
        return self.output


def mtime_ns(path: Path) -> Optional[int]:
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None


def is_stale(target: BuildTarget) -> bool:
    """A target is stale when its output is missing or older than any dependency."""
    if target.always:
        return True
    output_time = mtime_ns(target.output)
    if output_time is None:
        return True
    for dep in target.dependencies:
        dep_time = mtime_ns(dep)
        if dep_time is not None and dep_time > output_time:
            return True
    return False


class DependencyGraph:
    """Validated DAG over build targets, keyed by output path."""

    def __init__(self, targets: Iterable[BuildTarget]) -> None:
        self._targets: dict[Path, BuildTarget] = {}
        for target in targets:
            if target.output in self._targets:
                raise ConfigurationError("declared by more than one target", target.output)
            self._targets[target.output] = target

        # Edges only between targets; plain input files are leaves.
        self._prerequisites: dict[Path, list[Path]] = {}
        self._dependents: dict[Path, list[Path]] = {output: [] for output in self._targets}
        for output, target in self._targets.items():
            prereqs = []
            for dep in target.dependencies:
                if dep in self._targets:
                    if dep not in prereqs:
                        prereqs.append(dep)
                elif not dep.is_file():
                    raise MissingDependencyError(f"dependency not found: {dep}", target.origin)
            self._prerequisites[output] = prereqs
            for dep in prereqs:
                self._dependents[dep].append(output)

        self._order = self._topological_order()

    def _topological_order(self) -> list[Path]:
        in_degree = {output: len(prereqs) for output, prereqs in self._prerequisites.items()}
        queue = deque(sorted((o for o, deg in in_degree.items() if deg == 0), key=_sort_key))
        result = []
        while queue:
            node = queue.popleft()
            result.append(node)
            for dep in sorted(self._dependents[node], key=_sort_key):
                in_degree[dep] -= 1
                if in_degree[dep] == 0:
                    queue.append(dep)

        if len(result) != len(self._targets):
            remaining = sorted((o for o, deg in in_degree.items() if deg > 0), key=_sort_key)
            names = ", ".join(str(o) for o in remaining)
            raise CyclicDependencyError(f"dependency cycle between targets: {names}", remaining[0])
        return result

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, output: object) -> bool:
        return output in self._targets

    def target(self, output: Path) -> BuildTarget:
        return self._targets[output]

    def targets(self) -> list[BuildTarget]:
        return [self._targets[output] for output in self._order]

    def order(self) -> list[Path]:
        """Return all outputs in a deterministic topological order."""
        return list(self._order)

    def prerequisites(self, output: Path) -> list[Path]:
        """Return the targets ``output`` directly depends on."""
        return list(self._prerequisites.get(output, []))

    def dependents(self, output: Path) -> list[Path]:
        """Return the targets that directly depend on ``output``."""
        return list(self._dependents.get(output, []))


def _sort_key(path: Path) -> str:
    return path.as_posix()
