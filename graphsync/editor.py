"""Editor session: the single owner of the graph and the request lifecycle.

Usage:
    from graphsync import AgentGraphEditor

    editor = AgentGraphEditor.from_settings(channel, flow_id="...")
    await editor.open()
    await editor.request_save_and_run()

Everything runs on one event loop. The only suspension points are backend
calls; the request state refuses new save/run requests while one is in
flight, so at most one save/run/stop sequence is ever active.
"""

from __future__ import annotations

from typing import Any, Callable
from urllib.parse import urlencode

import structlog
from pydantic import BaseModel

from graphsync.adapters.backend_api import BackendAPI
from graphsync.adapters.event_channel import EventChannel, Unsubscribe
from graphsync.adapters.notices import LogNotifier, Notice, Notifier, NoticeVariant
from graphsync.analysis.execution_merger import ExecutionMerger
from graphsync.config import EditorSettings
from graphsync.errors import (
    BackendAPIError,
    GraphSyncError,
    RunStartFailure,
    SaveFailure,
    StopFailure,
)
from graphsync.models.block import Block, GraphMeta
from graphsync.models.execution import (
    GRAPH_EXECUTION_EVENT,
    NODE_EXECUTION_EVENT,
    TERMINAL_STATUSES,
    ExecutionStatus,
    GraphExecutionEvent,
    NodeExecutionResult,
)
from graphsync.models.graph import Edge, Graph, Node, Position
from graphsync.models.request_state import (
    IDLE,
    ErrorReported,
    ExecutionResumed,
    GraphExecutionFinished,
    RequestEvent,
    RequestFailed,
    RequestKind,
    RequestState,
    RunStarted,
    SaveCompleted,
    SaveRequested,
    StopRequested,
    ValidationFailed,
    ValidationPassed,
    transition,
)
from graphsync.sdk.conversion import (
    get_output_type,
    load_from_backend,
    node_from_block,
    refresh_connections,
    to_backend_payload,
)
from graphsync.sdk.reconciler import IdentityReconciler, is_synced
from graphsync.sdk.save_gate import needs_save
from graphsync.sdk.validation import validate_nodes
from graphsync.utils.identifiers import generate_node_id
from graphsync.utils.logging import configure_logging

logger = structlog.get_logger(__name__)

_ERROR_TITLES = {
    RequestKind.SAVE: "Error saving agent",
    RequestKind.RUN: "Error saving&running agent",
    RequestKind.STOP: "Error stopping agent",
}


class NavigationState(BaseModel):
    """Graph id, version and execution id mirrored into the page URL."""

    flow_id: str | None = None
    flow_version: int | None = None
    flow_execution_id: str | None = None

    def to_query(self) -> str:
        params: dict[str, Any] = {}
        if self.flow_id:
            params["flowID"] = self.flow_id
        if self.flow_version is not None:
            params["flowVersion"] = self.flow_version
        if self.flow_execution_id:
            params["flowExecutionID"] = self.flow_execution_id
        return urlencode(params)


class AgentGraphEditor:
    """Keeps an editable agent graph in sync with the backend and its runs."""

    def __init__(
        self,
        api: BackendAPI,
        channel: EventChannel,
        notifier: Notifier | None = None,
        settings: EditorSettings | None = None,
        flow_id: str | None = None,
        flow_version: int | None = None,
        flow_execution_id: str | None = None,
        on_run_finished: Callable[[], None] | None = None,
    ) -> None:
        """
        Args:
            api: backend client
            channel: persistent event channel
            notifier: where user-visible notices go (logged if omitted)
            settings: editor settings (read from the environment if omitted)
            flow_id, flow_version, flow_execution_id: deep-link state to restore
            on_run_finished: called once for every run that reaches a terminal status
        """
        self.api = api
        self.channel = channel
        self.notifier = notifier or LogNotifier()
        self.settings = settings or EditorSettings.from_env()
        self.on_run_finished = on_run_finished

        self.nodes: list[Node] = []
        self.edges: list[Edge] = []
        self.agent_name = ""
        self.agent_description = ""
        self.saved_agent: Graph | None = None
        self.available_blocks: list[Block] = []
        self.available_flows: list[GraphMeta] = []

        self.request_state: RequestState = IDLE
        self.navigation = NavigationState(
            flow_id=flow_id,
            flow_version=flow_version,
            flow_execution_id=flow_execution_id,
        )
        self.run_count = 0
        self.is_scheduling = False

        self._finished_runs: set[str] = set()
        self._starting_run = False
        self._subscriptions: list[Unsubscribe] = []
        self._graph_exec_unsubscribe: Unsubscribe | None = None
        self._merger = ExecutionMerger(
            nodes=lambda: self.nodes,
            edges=lambda: self.edges,
            is_synced=lambda: self.synced,
            pass_data_to_beads=self.settings.pass_data_to_beads,
        )

    @classmethod
    def from_settings(
        cls,
        channel: EventChannel,
        notifier: Notifier | None = None,
        settings: EditorSettings | None = None,
        **kwargs: Any,
    ) -> "AgentGraphEditor":
        """Build an editor with its own backend client and logging set up."""
        settings = settings or EditorSettings.from_env()
        configure_logging(settings.log_level, json=settings.log_json)
        api = BackendAPI(settings.server_url, timeout=settings.timeout)
        return cls(api, channel, notifier=notifier, settings=settings, **kwargs)

    # -- flags read by the UI --------------------------------------------

    @property
    def synced(self) -> bool:
        """Whether local backend ids match the last saved graph."""
        return is_synced(self.nodes, self.saved_agent)

    @property
    def is_saving(self) -> bool:
        return self.request_state.is_saving

    @property
    def is_running(self) -> bool:
        return self.request_state.is_running

    @property
    def is_stopping(self) -> bool:
        return self.request_state.is_stopping

    # -- session ---------------------------------------------------------

    async def open(self) -> None:
        """Load catalogs, subscribe to the channel and restore deep-link state."""
        try:
            self.available_blocks = await self.api.get_blocks()
            self.available_flows = await self.api.list_graphs()
        except BackendAPIError as e:
            logger.error("failed to load block and graph catalogs", error=str(e))

        self._subscriptions.append(
            self.channel.subscribe(NODE_EXECUTION_EVENT, self._on_node_execution)
        )
        self._subscriptions.append(self.channel.on_connect(self.resync))

        if self.navigation.flow_id and self.available_blocks:
            await self.load_graph(self.navigation.flow_id, self.navigation.flow_version)
        if self.navigation.flow_execution_id:
            await self.attach_execution(self.navigation.flow_execution_id)

    def close(self) -> None:
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()
        self._stop_watching_graph_execution()

    # -- graph model -----------------------------------------------------

    async def load_graph(self, graph_id: str, version: int | None = None) -> None:
        try:
            graph = await self.api.get_graph(graph_id, version)
        except BackendAPIError as e:
            logger.error("failed to load graph", graph_id=graph_id, error=str(e))
            return
        logger.debug("loading graph", graph_id=graph.id, version=graph.version)
        self.load(graph)

    def load(self, graph: Graph) -> None:
        """Replace the editor graph with ``graph`` and treat it as saved."""
        self.saved_agent = graph
        self.agent_name = graph.name
        self.agent_description = graph.description
        self.nodes, self.edges = load_from_backend(
            graph, self.available_blocks, previous_nodes=self.nodes
        )
        self._merger.flush()

    def get_output_type(self, node_id: str, handle: str) -> str:
        return get_output_type(self.nodes, node_id, handle)

    def add_node(
        self,
        block_id: str,
        position: Position | None = None,
        hardcoded_values: dict[str, Any] | None = None,
    ) -> Node:
        block = next((b for b in self.available_blocks if b.id == block_id), None)
        if block is None:
            raise KeyError(f"unknown block: {block_id}")
        node = node_from_block(block, generate_node_id(), position, hardcoded_values)
        self.nodes.append(node)
        return node

    def add_edge(
        self,
        source: str,
        source_handle: str,
        target: str,
        target_handle: str,
        is_static: bool = False,
    ) -> Edge:
        node_ids = {node.id for node in self.nodes}
        if source not in node_ids or target not in node_ids:
            raise KeyError(f"edge endpoints must exist: {source} -> {target}")
        edge = Edge.connect(source, source_handle, target, target_handle, is_static)
        if all(e.id != edge.id for e in self.edges):
            self.edges.append(edge)
            refresh_connections(self.nodes, self.edges)
        return edge

    def remove_edge(self, edge_id: str) -> None:
        self.edges = [edge for edge in self.edges if edge.id != edge_id]
        refresh_connections(self.nodes, self.edges)

    def remove_node(self, node_id: str) -> None:
        self.nodes = [node for node in self.nodes if node.id != node_id]
        self._prune_edges()

    def _prune_edges(self) -> None:
        node_ids = {node.id for node in self.nodes}
        self.edges = [
            edge for edge in self.edges
            if edge.source in node_ids and edge.target in node_ids
        ]
        refresh_connections(self.nodes, self.edges)

    # -- request lifecycle ----------------------------------------------

    def _dispatch(self, event: RequestEvent) -> RequestState:
        previous = self.request_state
        self.request_state = transition(previous, event)
        if self.request_state != previous:
            logger.debug(
                "request state changed",
                request_event=type(event).__name__,
                request=self.request_state.request.value,
                state=self.request_state.state.value,
            )
        return self.request_state

    def _notify(
        self,
        title: str,
        description: str | None = None,
        destructive: bool = False,
        duration_ms: int | None = 2000,
    ) -> None:
        self.notifier.notify(Notice(
            title=title,
            description=description,
            variant=NoticeVariant.destructive if destructive else NoticeVariant.default,
            duration_ms=duration_ms,
        ))

    def _fail(self, error: GraphSyncError) -> None:
        """Move to error, issue the one notice for it, then go idle."""
        logger.error(
            "request failed",
            request=self.request_state.request.value,
            error_type=type(error).__name__,
            error=str(error),
        )
        self._dispatch(RequestFailed(str(error)))
        title = _ERROR_TITLES.get(self.request_state.request, "Error")
        self._notify(title, description=str(error) or None, destructive=True)
        self._dispatch(ErrorReported())

    def validate(self) -> str | None:
        """Validate all nodes; errors land on each node for inline display."""
        return validate_nodes(self.nodes)

    async def _save(self) -> Graph:
        """Write the graph unless unchanged, then re-sync local ids."""
        saved = self.saved_agent
        reconciler = IdentityReconciler(self.nodes)
        payload = to_backend_payload(
            self.nodes,
            self.edges,
            name=self.agent_name,
            description=self.agent_description,
            flows=self.available_flows,
            graph_id=saved.id if saved else None,
        )

        if not needs_save(payload, saved):
            return saved

        logger.debug("saving new graph version", graph_id=saved.id if saved else None)
        if saved:
            new_graph = await self.api.update_graph(saved.id, payload)
        else:
            new_graph = await self.api.create_graph(payload)

        self.saved_agent = new_graph
        self.agent_name = new_graph.name or payload.name
        self.navigation = self.navigation.model_copy(
            update={"flow_id": new_graph.id, "flow_version": new_graph.version}
        )
        self.nodes = reconciler.apply(new_graph, self.nodes)
        self._prune_edges()
        for edge in self.edges:
            edge.reset_beads()
        self._merger.flush()
        return new_graph

    async def request_save(self) -> bool:
        """Save the graph. Ignored while another request is in flight."""
        if not self.request_state.is_idle:
            logger.debug("save ignored, request in flight", state=self.request_state.state.value)
            return False
        self._dispatch(SaveRequested(run=False))
        return await self._save_sequence()

    async def request_save_and_run(self) -> bool:
        """Save, validate and start a run. Ignored while a request is in flight."""
        if not self.request_state.is_idle:
            logger.debug("run ignored, request in flight", state=self.request_state.state.value)
            return False
        self._dispatch(SaveRequested(run=True))
        return await self._save_sequence()

    async def _save_sequence(self) -> bool:
        try:
            graph = await self._save()
        except BackendAPIError as e:
            self._fail(SaveFailure(str(e)))
            return False

        # an empty graph has no ids to sync
        if self.nodes and not self.synced:
            self._fail(SaveFailure("node identifiers did not sync with the saved graph"))
            return False

        self._dispatch(SaveCompleted())
        if self.request_state.is_idle:
            return True

        # run requested: the save is kept even if validation fails
        validation_error = self.validate()
        if validation_error:
            self._notify(f"Validation failed: {validation_error}", destructive=True)
            self._dispatch(ValidationFailed(validation_error))
            return False

        self._dispatch(ValidationPassed())
        self._starting_run = True
        try:
            execution_id = await self.api.execute_graph(graph.id, graph.version)
        except BackendAPIError as e:
            self._fail(RunStartFailure(str(e)))
            return False
        finally:
            self._starting_run = False

        self._dispatch(RunStarted(execution_id))
        self.navigation = NavigationState(
            flow_id=graph.id,
            flow_version=graph.version,
            flow_execution_id=execution_id,
        )
        await self.attach_execution(execution_id)
        if self.request_state.is_stopping:
            # stop arrived while the backend was starting this run
            await self._send_stop(execution_id)
        return True

    async def request_stop(self) -> bool:
        """Ask the backend to stop the active run.

        The run only counts as stopped once the event stream reports a
        terminal graph status.
        """
        if not self.request_state.is_running:
            return False

        execution_id = self.request_state.active_execution_id
        self._dispatch(StopRequested())
        if execution_id is None:
            logger.warning(
                "stop requested but execution id is unknown",
                starting_run=self._starting_run,
            )
            if self._starting_run:
                # sent once RunStarted supplies the id
                return True
            self._fail(StopFailure("no active execution to stop"))
            return False
        return await self._send_stop(execution_id)

    async def _send_stop(self, execution_id: str) -> bool:
        graph_id = self.saved_agent.id if self.saved_agent else self.navigation.flow_id
        if graph_id is None:
            self._fail(StopFailure("no graph for the execution to stop"))
            return False

        try:
            await self.api.stop_graph_execution(graph_id, execution_id)
        except BackendAPIError as e:
            self._fail(StopFailure(str(e)))
            return False
        return True

    async def request_schedule(
        self,
        cron: str,
        inputs: dict[str, Any],
        name: str,
    ) -> bool:
        """Save the graph, then schedule recurring runs of the saved version."""
        self.is_scheduling = True
        try:
            graph = await self._save()
            await self.api.create_graph_execution_schedule(
                graph_id=graph.id,
                graph_version=graph.version,
                name=name,
                cron=cron,
                inputs=inputs,
            )
        except BackendAPIError as e:
            logger.error("failed to schedule agent", error=str(e))
            self._notify("Error scheduling agent", description="Please retry", destructive=True)
            return False
        finally:
            self.is_scheduling = False

        self._notify("Agent scheduling successful", duration_ms=None)
        return True

    # -- telemetry -------------------------------------------------------

    async def attach_execution(self, execution_id: str) -> None:
        """Follow a graph execution: subscribe, backfill, watch for completion."""
        self.navigation = self.navigation.model_copy(update={"flow_execution_id": execution_id})
        self._merger.watch(execution_id)
        self._watch_graph_execution(execution_id)
        await self.resync()

    async def resync(self) -> None:
        """Re-subscribe and merge a full snapshot of the active execution.

        Runs on every channel (re)connect; replayed events are harmless
        because records are keyed by ``node_exec_id``.
        """
        graph_id = self.navigation.flow_id
        execution_id = self.navigation.flow_execution_id
        if not graph_id or not execution_id:
            return

        try:
            await self.channel.subscribe_to_graph_execution(execution_id)
            logger.debug("subscribed to execution updates", execution_id=execution_id)
        except Exception as e:
            logger.error(
                "failed to subscribe to execution updates",
                execution_id=execution_id,
                error=str(e),
            )

        try:
            info = await self.api.get_graph_execution_info(graph_id, execution_id)
        except BackendAPIError as e:
            logger.error("failed to fetch execution snapshot", execution_id=execution_id, error=str(e))
            return

        if info.status in (ExecutionStatus.QUEUED, ExecutionStatus.RUNNING):
            self._dispatch(ExecutionResumed(execution_id))
        self._merger.enqueue(info.node_executions or [])

        # the terminal event may have been lost while disconnected
        if info.status in TERMINAL_STATUSES and (
            self.request_state.is_running or self.request_state.is_stopping
        ):
            self._finish_run(execution_id)

    def _on_node_execution(self, data: dict[str, Any]) -> None:
        event = NodeExecutionResult.model_validate(data)
        if event.graph_exec_id != self.navigation.flow_execution_id:
            return
        self._merger.enqueue([event])

    def _watch_graph_execution(self, execution_id: str) -> None:
        self._stop_watching_graph_execution()
        self._graph_exec_unsubscribe = self.channel.subscribe(
            GRAPH_EXECUTION_EVENT, self._on_graph_execution
        )

    def _stop_watching_graph_execution(self) -> None:
        if self._graph_exec_unsubscribe is not None:
            self._graph_exec_unsubscribe()
            self._graph_exec_unsubscribe = None

    def _on_graph_execution(self, data: dict[str, Any]) -> None:
        event = GraphExecutionEvent.model_validate(data)
        if event.id != self.navigation.flow_execution_id:
            return

        if event.insufficient_balance:
            self._notify(
                "Credits low",
                description=(
                    "Agent execution failed due to insufficient credits. "
                    "Go to the Credits page to top up."
                ),
                destructive=True,
                duration_ms=5000,
            )

        if event.is_terminal:
            self._finish_run(event.id)

    def _finish_run(self, execution_id: str) -> None:
        self._stop_watching_graph_execution()
        self._dispatch(GraphExecutionFinished(execution_id))
        if execution_id not in self._finished_runs:
            self._finished_runs.add(execution_id)
            self.run_count += 1
            if self.on_run_finished is not None:
                self.on_run_finished()
