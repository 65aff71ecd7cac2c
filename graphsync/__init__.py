"""graphsync - client-side sync and run orchestration for agent graph editors."""

from graphsync.adapters.backend_api import BackendAPI
from graphsync.adapters.event_channel import EventChannel, InMemoryEventChannel
from graphsync.adapters.notices import ListNotifier, Notice, Notifier
from graphsync.config import EditorSettings
from graphsync.editor import AgentGraphEditor, NavigationState
from graphsync.errors import (
    BackendAPIError,
    GraphSyncError,
    RunStartFailure,
    SaveFailure,
    StopFailure,
)
from graphsync.models.execution import ExecutionStatus, NodeExecutionResult
from graphsync.models.graph import Edge, Graph, Node
from graphsync.models.request_state import RequestKind, RequestPhase, RequestState

__all__ = [
    # Editor session
    "AgentGraphEditor",
    "EditorSettings",
    "NavigationState",
    # Collaborators
    "BackendAPI",
    "EventChannel",
    "InMemoryEventChannel",
    "ListNotifier",
    "Notice",
    "Notifier",
    # Models
    "Edge",
    "ExecutionStatus",
    "Graph",
    "Node",
    "NodeExecutionResult",
    "RequestKind",
    "RequestPhase",
    "RequestState",
    # Errors
    "BackendAPIError",
    "GraphSyncError",
    "RunStartFailure",
    "SaveFailure",
    "StopFailure",
]
