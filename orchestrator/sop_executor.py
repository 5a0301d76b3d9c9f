"""
SOP Executor

Purpose: Keep tree-build steps composable and testable with minimal abstraction.

Provides:
- SOPStep: Protocol for individual pipeline steps
- PipelineState: Dataclass holding build artifacts incrementally
- SOPExecutor: Runner that executes steps in sequence
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from core.crypto.field_hash import FieldHash
from core.merkle.base import AuthenticatedTree
from core.merkle.merkle_proofs import InclusionProof
from core.schemas.results import CircuitInputs, LeafResult
from core.schemas.verification import CheckResult

from orchestrator.dataset import DatasetEntry


logger = logging.getLogger(__name__)


@dataclass
class PipelineState:
    """
    Holds artifacts incrementally as a build progresses.

    Each step may read from and write to this state.
    Fields are Optional to allow incremental population.
    """

    # Input
    entries: list[DatasetEntry] = field(default_factory=list)
    field_hash: Optional[FieldHash] = None

    # Step 1: Tree construction
    tree: Optional[AuthenticatedTree] = None
    root: Optional[int] = None
    leaf_hashes: list[int] = field(default_factory=list)

    # Step 2: Proofs and self-checks, aligned with entries
    proofs: list[InclusionProof] = field(default_factory=list)
    proof_valid: list[bool] = field(default_factory=list)

    # Step 3: Output documents
    leaves: list[LeafResult] = field(default_factory=list)
    circuit_inputs: list[CircuitInputs] = field(default_factory=list)

    # Aggregated results
    checks: list[CheckResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    failure: Optional[Exception] = None
    ok: bool = True

    def add_check(self, check: CheckResult) -> None:
        """Add a check result; a failed check does not stop the build."""
        self.checks.append(check)

    def add_error(self, error: str) -> None:
        """Add an error message and mark state as not ok."""
        self.errors.append(error)
        self.ok = False


class SOPStep(Protocol):
    """
    Protocol for a single pipeline step.

    Each step has a name and a run method that transforms state.
    """

    @property
    def name(self) -> str:
        ...

    def run(self, state: PipelineState) -> PipelineState:
        ...


@dataclass
class FunctionStep:
    """
    Adapter to create SOPStep from a plain function.

    Example:
        step = FunctionStep("build_tree", lambda s: build(s))
    """

    _name: str
    _func: Callable[[PipelineState], PipelineState]

    @property
    def name(self) -> str:
        return self._name

    def run(self, state: PipelineState) -> PipelineState:
        return self._func(state)


class SOPExecutor:
    """
    Executor that runs a sequence of SOPSteps.

    Exceptions in a step are recorded on the state as errors; with
    stop_on_error the remaining steps are skipped.
    """

    def __init__(self, *, stop_on_error: bool = True):
        self.stop_on_error = stop_on_error
        self._step_results: list[tuple[str, bool, Optional[str]]] = []

    def execute(
        self,
        steps: list[SOPStep],
        state: PipelineState,
    ) -> PipelineState:
        self._step_results = []

        for step in steps:
            try:
                logger.debug("Running step %s", step.name)
                state = step.run(state)
                self._step_results.append((step.name, True, None))

                if self.stop_on_error and not state.ok:
                    break

            except Exception as e:
                logger.exception("Step %r failed", step.name)
                state.add_error(f"Step '{step.name}' failed: {e}")
                if state.failure is None:
                    state.failure = e
                self._step_results.append((step.name, False, str(e)))

                if self.stop_on_error:
                    break

        return state

    @property
    def step_results(self) -> list[tuple[str, bool, Optional[str]]]:
        """List of (step_name, success, error_message) tuples."""
        return self._step_results.copy()

    def get_failed_steps(self) -> list[str]:
        return [name for name, success, _ in self._step_results if not success]

    def all_steps_succeeded(self) -> bool:
        return all(success for _, success, _ in self._step_results)


def make_step(name: str, func: Callable[[PipelineState], PipelineState]) -> SOPStep:
    """Create a step from a function."""
    return FunctionStep(name, func)
