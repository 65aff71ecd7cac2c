"""Graph conversion, reconciliation and validation."""

from graphsync.sdk.conversion import (
    get_output_type,
    load_from_backend,
    node_from_block,
    prepare_node_input,
    to_backend_payload,
)
from graphsync.sdk.reconciler import IdentityReconciler, is_synced
from graphsync.sdk.save_gate import needs_save
from graphsync.sdk.tool_names import cleanup_source_name, normalize_tool_name
from graphsync.sdk.validation import ValidationIssue, validate_node, validate_nodes

__all__ = [
    "IdentityReconciler",
    "ValidationIssue",
    "cleanup_source_name",
    "get_output_type",
    "is_synced",
    "load_from_backend",
    "needs_save",
    "node_from_block",
    "normalize_tool_name",
    "prepare_node_input",
    "to_backend_payload",
    "validate_node",
    "validate_nodes",
]
