"""Flow beads: per-edge counts of data handed to the edge's target.

Bead counts are derived state, recomputed from ``Edge.bead_data`` on every
update. They are for display and say nothing authoritative about progress.
"""

from typing import Sequence

from graphsync.models.execution import ExecutionStatus, NodeExecutionResult
from graphsync.models.graph import Edge


def recount(edge: Edge) -> None:
    """Recompute ``bead_up``/``bead_down`` from the tracked executions.

    A static edge keeps one bead that is never consumed, so whenever it
    has tracked anything ``bead_up == bead_down + 1``.
    """
    bead_up = len(edge.bead_data)
    bead_down = sum(
        1 for status in edge.bead_data.values() if status != ExecutionStatus.INCOMPLETE
    )
    if edge.is_static and bead_up > 0:
        bead_up = bead_down + 1
    edge.bead_up = bead_up
    edge.bead_down = bead_down


def track_execution(
    edges: Sequence[Edge],
    local_node_id: str,
    event: NodeExecutionResult,
) -> list[Edge]:
    """Record ``event`` on every edge feeding one of its inputs.

    Returns the edges whose bead data changed.
    """
    touched: list[Edge] = []
    for edge in edges:
        if edge.target != local_node_id or edge.target_handle not in event.input_data:
            continue
        edge.bead_data[event.node_exec_id] = event.status
        touched.append(edge)

    for edge in edges:
        recount(edge)
    return touched
