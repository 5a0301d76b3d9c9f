"""
Claim Tree Orchestration

Deterministic, in-process runner that turns a claim dataset into a tree,
per-entry proofs and the documents the circuit and claim service read.

Public API:
- load_dataset / DatasetEntry: CSV input
- ClaimTreePipeline: Main pipeline runner class
- PipelineResult: Complete result of a pipeline run
- SOPExecutor: Step executor for composable pipeline steps
- PipelineState: State container for pipeline execution
"""

from orchestrator.dataset import (
    DatasetEntry,
    load_dataset,
    parse_rows,
)
from orchestrator.pipeline import (
    ClaimTreePipeline,
    PipelineResult,
    create_pipeline,
    create_tree,
    field_hash_from_config,
)
from orchestrator.sop_executor import (
    FunctionStep,
    PipelineState,
    SOPExecutor,
    SOPStep,
    make_step,
)


__all__ = [
    # Dataset
    "DatasetEntry",
    "load_dataset",
    "parse_rows",
    # Main pipeline
    "ClaimTreePipeline",
    "PipelineResult",
    "create_pipeline",
    "create_tree",
    "field_hash_from_config",
    # SOP executor
    "FunctionStep",
    "PipelineState",
    "SOPExecutor",
    "SOPStep",
    "make_step",
]
