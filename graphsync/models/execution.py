"""Execution telemetry models.

Events are produced by the backend and delivered either live over the
event channel or in bulk through an execution snapshot. They are never
mutated on this side.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ExecutionStatus(str, Enum):
    """Closed status vocabulary shared by node and graph executions."""

    RUNNING = "RUNNING"
    QUEUED = "QUEUED"
    INCOMPLETE = "INCOMPLETE"
    TERMINATED = "TERMINATED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# aggregation order: lowest rank wins when a node has several records
STATUS_RANK: dict[ExecutionStatus, int] = {
    ExecutionStatus.RUNNING: 0,
    ExecutionStatus.QUEUED: 1,
    ExecutionStatus.INCOMPLETE: 2,
    ExecutionStatus.TERMINATED: 3,
    ExecutionStatus.COMPLETED: 4,
    ExecutionStatus.FAILED: 5,
}

# graph-level statuses that end a run
TERMINAL_STATUSES = frozenset(
    {ExecutionStatus.COMPLETED, ExecutionStatus.TERMINATED, ExecutionStatus.FAILED}
)

NODE_EXECUTION_EVENT = "node_execution_event"
GRAPH_EXECUTION_EVENT = "graph_execution_event"


def aggregate_status(statuses: list[ExecutionStatus]) -> ExecutionStatus | None:
    """Least-terminal status wins; ``None`` when there is nothing to aggregate."""
    if not statuses:
        return None
    return min(statuses, key=STATUS_RANK.__getitem__)


class NodeExecutionResult(BaseModel):
    """One per-node execution event (`node_execution_event`)."""

    graph_id: str | None = None
    graph_version: int | None = None
    graph_exec_id: str
    node_exec_id: str
    node_id: str
    block_id: str | None = None
    status: ExecutionStatus
    input_data: dict[str, Any] = Field(default_factory=dict)
    output_data: dict[str, list[Any]] | None = None
    add_time: str | None = None
    queue_time: str | None = None
    start_time: str | None = None
    end_time: str | None = None

    model_config = {"extra": "ignore"}


class GraphExecutionStats(BaseModel):
    error: str | None = None
    cost: float | None = None
    duration: float | None = None
    node_exec_count: int | None = None

    model_config = {"extra": "allow"}


class GraphExecutionEvent(BaseModel):
    """Graph-level status update (`graph_execution_event`)."""

    id: str
    graph_id: str | None = None
    graph_version: int | None = None
    status: ExecutionStatus
    stats: GraphExecutionStats | None = None

    model_config = {"extra": "ignore"}

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def insufficient_balance(self) -> bool:
        """True when the run failed because the user is out of credits."""
        if self.status != ExecutionStatus.FAILED or not self.stats or not self.stats.error:
            return False
        return "insufficient balance" in self.stats.error.lower()


class GraphExecutionInfo(BaseModel):
    """Snapshot of a graph execution, fetched on (re)connect."""

    id: str | None = None
    graph_id: str | None = None
    graph_version: int | None = None
    status: ExecutionStatus
    node_executions: list[NodeExecutionResult] | None = None
    stats: GraphExecutionStats | None = None

    model_config = {"extra": "ignore"}


class ExecutionRecord(BaseModel):
    """A node's view of one execution attempt."""

    exec_id: str
    data: dict[str, Any]
    status: ExecutionStatus

    @classmethod
    def from_event(cls, event: NodeExecutionResult) -> "ExecutionRecord":
        return cls(
            exec_id=event.node_exec_id,
            data={"[Input]": [event.input_data], **(event.output_data or {})},
            status=event.status,
        )
