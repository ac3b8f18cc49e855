from __future__ import annotations

from collections import deque
from collections.abc import Callable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import RenderError, SiteMakeError
from .graph import BuildTarget, DependencyGraph, is_stale
from .render import write_bytes

RENDERED = "rendered"
UNCHANGED = "unchanged"
SKIPPED = "skipped"


@dataclass
class BuildReport:
    rendered: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    completed: list[Path] = field(default_factory=list)

    def record(self, output: Path, status: str) -> None:
        self.completed.append(output)
        if status == RENDERED:
            self.rendered.append(output)
        elif status == UNCHANGED:
            self.unchanged.append(output)
        else:
            self.skipped.append(output)


def execute_target(target: BuildTarget) -> str:
    """Render ``target`` if it is stale and write its output."""
    try:
        stale = is_stale(target)
    except OSError as exc:
        raise RenderError(f"cannot check modification time: {exc}", target.origin) from exc
    if not stale:
        return SKIPPED
    try:
        data = target.action()
    except SiteMakeError:
        raise
    except Exception as exc:
        raise RenderError(f"{type(exc).__name__}: {exc}", target.origin) from exc
    try:
        if target.always and target.output.is_file() and target.output.read_bytes() == data:
            return UNCHANGED
        write_bytes(target.output, data)
    except OSError as exc:
        raise RenderError(f"cannot write output: {exc}", target.output) from exc
    return RENDERED


class Scheduler:
    """Runs the targets of a graph in dependency order.

    Targets whose prerequisites are all complete are submitted to a thread
    pool, so independent targets render concurrently. The first failure stops
    new submissions; targets already running are allowed to finish before the
    error is raised.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        workers: int = 1,
        on_complete: Optional[Callable[[BuildTarget, str], None]] = None,
    ) -> None:
        self.graph = graph
        self.workers = max(1, workers)
        self.on_complete = on_complete

    def run(self) -> BuildReport:
        report = BuildReport()
        graph = self.graph
        waiting = {output: len(graph.prerequisites(output)) for output in graph.order()}
        ready = deque(output for output in graph.order() if waiting[output] == 0)
        failure: Optional[SiteMakeError] = None

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            running: dict[Future, Path] = {}
            while ready or running:
                while ready and failure is None:
                    output = ready.popleft()
                    running[executor.submit(execute_target, graph.target(output))] = output
                if not running:
                    break
                done, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in sorted(done, key=lambda f: running[f].as_posix()):
                    output = running.pop(future)
                    try:
                        status = future.result()
                    except SiteMakeError as exc:
                        if failure is None:
                            failure = exc
                        continue
                    report.record(output, status)
                    if self.on_complete is not None:
                        self.on_complete(graph.target(output), status)
                    for dependent in graph.dependents(output):
                        waiting[dependent] -= 1
                        if waiting[dependent] == 0:
                            ready.append(dependent)

        if failure is not None:
            raise failure
        return report
