"""
Topology Orchestrator.

Runs the build phases strictly in order, keeps each phase's outputs so later
phases can read them, and owns the ledger of explicit dependency edges.

    logging-setup → storage-provision → compute-provision
        → network-scoping → edge-provision → logging-registration

A phase runs once. Asking for a phase's outputs before it has completed, or
running a phase out of turn, raises OrderingViolation. The first failure
aborts the pass; nothing after it may run.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from constructs import Construct

from .errors import DependencyCycleError, OrderingViolation

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Phase(str, Enum):
    LOGGING_SETUP = "logging-setup"
    STORAGE_PROVISION = "storage-provision"
    COMPUTE_PROVISION = "compute-provision"
    NETWORK_SCOPING = "network-scoping"
    EDGE_PROVISION = "edge-provision"
    LOGGING_REGISTRATION = "logging-registration"


PHASE_SEQUENCE: tuple[Phase, ...] = tuple(Phase)


@dataclass(frozen=True)
class DependencyEdge:
    dependent: str
    prerequisite: str
    reason: str = ""


class DependencyGraph:
    """Append-only set of (dependent, prerequisite) edges, kept acyclic."""

    def __init__(self) -> None:
        self._edges: list[DependencyEdge] = []
        self._prerequisites: dict[str, list[str]] = {}

    @property
    def edges(self) -> tuple[DependencyEdge, ...]:
        return tuple(self._edges)

    def prerequisites_of(self, name: str) -> tuple[str, ...]:
        return tuple(self._prerequisites.get(name, ()))

    def add(self, dependent: str, prerequisite: str, reason: str = "") -> DependencyEdge:
        for edge in self._edges:
            if edge.dependent == dependent and edge.prerequisite == prerequisite:
                return edge

        if dependent == prerequisite or self._reaches(prerequisite, dependent):
            raise DependencyCycleError(dependent, prerequisite)

        edge = DependencyEdge(dependent, prerequisite, reason)
        self._edges.append(edge)
        self._prerequisites.setdefault(dependent, []).append(prerequisite)
        return edge

    def _reaches(self, start: str, target: str) -> bool:
        stack = [start]
        seen: set[str] = set()
        while stack:
            node = stack.pop()
            if node == target:
                return True
            if node in seen:
                continue
            seen.add(node)
            stack.extend(self._prerequisites.get(node, ()))
        return False

    def activation_order(self) -> list[str]:
        """Every named node, prerequisites before dependents, ties in insertion order."""
        order: list[str] = []
        placed: set[str] = set()

        def place(node: str) -> None:
            if node in placed:
                return
            for prerequisite in self._prerequisites.get(node, ()):
                place(prerequisite)
            placed.add(node)
            order.append(node)

        for edge in self._edges:
            place(edge.dependent)
        return order


class TopologyOrchestrator:
    def __init__(self) -> None:
        self.dependencies = DependencyGraph()
        self._outputs: dict[Phase, Any] = {}
        self._running: Phase | None = None
        self._failed: Phase | None = None

    @property
    def completed(self) -> tuple[Phase, ...]:
        return tuple(phase for phase in PHASE_SEQUENCE if phase in self._outputs)

    @property
    def next_phase(self) -> Phase | None:
        done = len(self._outputs)
        return PHASE_SEQUENCE[done] if done < len(PHASE_SEQUENCE) else None

    @property
    def finished(self) -> bool:
        return self.next_phase is None

    def run(self, phase: Phase, build: Callable[[], T]) -> T:
        """Run `build` as `phase` and record what it returns as the phase outputs."""
        if self._failed is not None:
            raise OrderingViolation(f"Topology build aborted during {self._failed.value}")
        if self._running is not None:
            raise OrderingViolation(
                f"Cannot start {phase.value} while {self._running.value} is running"
            )
        if phase in self._outputs:
            raise OrderingViolation(f"Phase {phase.value} already ran")
        expected = self.next_phase
        if phase is not expected:
            raise OrderingViolation(
                f"Phase {phase.value} requested but next phase is "
                f"{expected.value if expected else 'none (build finished)'}"
            )

        logger.info("Phase %s: start", phase.value)
        self._running = phase
        try:
            outputs = build()
        except Exception:
            self._failed = phase
            logger.error("Phase %s: failed, aborting topology build", phase.value)
            raise
        finally:
            self._running = None

        self._outputs[phase] = outputs
        logger.info("Phase %s: done", phase.value)
        return outputs

    def outputs(self, phase: Phase) -> Any:
        try:
            return self._outputs[phase]
        except KeyError:
            raise OrderingViolation(
                f"Outputs of {phase.value} requested before that phase completed"
            ) from None

    def add_dependency(
        self, dependent: Construct, prerequisite: Construct, reason: str = ""
    ) -> DependencyEdge:
        """Record an explicit edge and hand it to the resource graph."""
        edge = self.dependencies.add(dependent.node.path, prerequisite.node.path, reason)
        dependent.node.add_dependency(prerequisite)
        logger.debug("Dependency %s -> %s (%s)", edge.dependent, edge.prerequisite, reason)
        return edge
