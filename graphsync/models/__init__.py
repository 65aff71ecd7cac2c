"""Core data models for graphsync."""

from graphsync.models.block import (
    Block,
    BlockUIType,
    BlockVariant,
    GraphMeta,
    SpecialBlockID,
)
from graphsync.models.execution import (
    GRAPH_EXECUTION_EVENT,
    NODE_EXECUTION_EVENT,
    ExecutionRecord,
    ExecutionStatus,
    GraphExecutionEvent,
    GraphExecutionInfo,
    NodeExecutionResult,
)
from graphsync.models.graph import (
    BackendLink,
    BackendNode,
    Connection,
    Edge,
    Graph,
    GraphPayload,
    Node,
    Position,
)
from graphsync.models.request_state import RequestKind, RequestPhase, RequestState

__all__ = [
    # Blocks
    "Block",
    "BlockUIType",
    "BlockVariant",
    "GraphMeta",
    "SpecialBlockID",
    # Execution telemetry
    "GRAPH_EXECUTION_EVENT",
    "NODE_EXECUTION_EVENT",
    "ExecutionRecord",
    "ExecutionStatus",
    "GraphExecutionEvent",
    "GraphExecutionInfo",
    "NodeExecutionResult",
    # Graph
    "BackendLink",
    "BackendNode",
    "Connection",
    "Edge",
    "Graph",
    "GraphPayload",
    "Node",
    "Position",
    # Request lifecycle
    "RequestKind",
    "RequestPhase",
    "RequestState",
]
