"""Merge node execution telemetry into the editor graph.

Events may arrive late, twice, or out of order, live or through a
snapshot fetched after a reconnect. Records are keyed by ``node_exec_id``
and a node's status is the least-terminal one over its records, so the
merged result depends only on the latest event per ``node_exec_id``.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, Sequence

import structlog

from graphsync.analysis.beads import track_execution
from graphsync.models.execution import (
    ExecutionRecord,
    NodeExecutionResult,
    aggregate_status,
)
from graphsync.models.graph import Edge, Node

logger = structlog.get_logger(__name__)


class MergeOutcome(str, Enum):
    applied = "applied"
    queued = "queued"  # waiting for local ids to sync with the backend
    ignored = "ignored"  # belongs to another graph execution
    empty_output = "empty_output"
    unknown_node = "unknown_node"


def merge_into_node(node: Node, event: NodeExecutionResult) -> None:
    """Replace ``node``'s record for the event's attempt and re-aggregate."""
    # dict assignment keeps an existing key's position, so replays and
    # snapshot merges leave the record order unchanged
    node.execution_results[event.node_exec_id] = ExecutionRecord.from_event(event)
    node.status = aggregate_status(
        [record.status for record in node.execution_results.values()]
    )
    node.is_output_open = True


class ExecutionMerger:
    """Queues execution events and merges them once ids are synced.

    Args:
        nodes: returns the editor's current nodes
        edges: returns the editor's current edges
        is_synced: whether local backend ids match the saved graph
        pass_data_to_beads: also maintain per-edge bead counts
    """

    def __init__(
        self,
        nodes: Callable[[], Sequence[Node]],
        edges: Callable[[], Sequence[Edge]],
        is_synced: Callable[[], bool],
        pass_data_to_beads: bool = True,
    ) -> None:
        self._nodes = nodes
        self._edges = edges
        self._is_synced = is_synced
        self.pass_data_to_beads = pass_data_to_beads
        self.execution_id: str | None = None
        self._queue: list[NodeExecutionResult] = []

    @property
    def pending(self) -> int:
        return len(self._queue)

    def watch(self, execution_id: str | None) -> None:
        """Only accept events for ``execution_id`` from now on."""
        if execution_id != self.execution_id:
            self._queue.clear()
        self.execution_id = execution_id

    def enqueue(self, events: Iterable[NodeExecutionResult]) -> list[MergeOutcome]:
        """Queue events, then merge everything if ids are synced."""
        outcomes: list[MergeOutcome] = []
        for event in events:
            if self.execution_id is not None and event.graph_exec_id != self.execution_id:
                outcomes.append(MergeOutcome.ignored)
                continue
            self._queue.append(event)
            outcomes.append(MergeOutcome.queued)

        added = outcomes.count(MergeOutcome.queued)
        if self._queue and self._is_synced():
            merged = self.flush()
            # this call's events are the tail of the flushed queue
            it = iter(merged[len(merged) - added:])
            outcomes = [next(it) if o == MergeOutcome.queued else o for o in outcomes]
        return outcomes

    def flush(self) -> list[MergeOutcome]:
        """Merge all queued events. No-op until ids are synced."""
        if not self._is_synced():
            return []
        queue, self._queue = self._queue, []
        return [self._merge(event) for event in queue]

    def _merge(self, event: NodeExecutionResult) -> MergeOutcome:
        nodes = self._nodes()
        node = next((n for n in nodes if n.backend_id == event.node_id), None)
        if node is None:
            logger.error(
                "execution event for unknown node, local graph is out of sync",
                node_id=event.node_id,
                node_exec_id=event.node_exec_id,
                graph_exec_id=event.graph_exec_id,
            )
            return MergeOutcome.unknown_node

        if event.output_data is None:
            logger.warning(
                "execution event has no output data, skipping",
                node_id=event.node_id,
                node_exec_id=event.node_exec_id,
            )
            return MergeOutcome.empty_output

        if self.pass_data_to_beads:
            track_execution(self._edges(), node.id, event)
        merge_into_node(node, event)
        return MergeOutcome.applied
