"""Derived visual state computed from execution telemetry."""

from graphsync.analysis.beads import recount, track_execution
from graphsync.analysis.execution_merger import (
    ExecutionMerger,
    MergeOutcome,
    merge_into_node,
)

__all__ = [
    "ExecutionMerger",
    "MergeOutcome",
    "merge_into_node",
    "recount",
    "track_execution",
]
