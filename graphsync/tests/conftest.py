"""Shared fixtures: a small block catalog and an in-memory backend."""

import itertools
from typing import Any, Callable

import pytest

from graphsync.adapters.event_channel import InMemoryEventChannel
from graphsync.adapters.notices import ListNotifier
from graphsync.config import EditorSettings
from graphsync.editor import AgentGraphEditor
from graphsync.errors import BackendAPIError
from graphsync.models.block import Block, BlockUIType, GraphMeta, SpecialBlockID
from graphsync.models.execution import (
    ExecutionStatus,
    GraphExecutionInfo,
    NodeExecutionResult,
)
from graphsync.models.graph import BackendLink, BackendNode, Graph, GraphPayload

HTTP_BLOCK = Block(
    id="blk-http",
    name="SendWebRequestBlock",
    input_schema={
        "type": "object",
        "properties": {
            "url": {"type": "string"},
            "method": {"type": "string", "default": "GET"},
            "headers": {"type": "object", "additionalProperties": {"type": "string"}},
        },
        "required": ["url"],
    },
    output_schema={
        "type": "object",
        "properties": {
            "response": {"type": "object"},
            "error": {"type": "string"},
        },
    },
)

TEXT_BLOCK = Block(
    id="blk-text",
    name="FillTextTemplateBlock",
    input_schema={
        "type": "object",
        "properties": {
            "format": {"type": "string"},
            "values": {"type": "object", "additionalProperties": True},
        },
    },
    output_schema={"type": "object", "properties": {"output": {"type": "string"}}},
)

DECISION_BLOCK = Block(
    id=SpecialBlockID.SMART_DECISION.value,
    name="SmartDecisionMakerBlock",
    input_schema={"type": "object", "properties": {"prompt": {"type": "string"}}},
    output_schema={"type": "object", "properties": {"tools": {"type": "object"}}},
)

AGENT_BLOCK = Block(
    id=SpecialBlockID.AGENT.value,
    name="AgentExecutorBlock",
    ui_type=BlockUIType.AGENT,
    input_schema={
        "type": "object",
        "properties": {
            "graph_id": {"type": "string"},
            "graph_version": {"type": "integer"},
            "data": {"type": "object", "additionalProperties": True},
            "input_schema": {"type": "object", "additionalProperties": True},
        },
        "required": ["graph_id"],
    },
    output_schema={"type": "object", "properties": {"result": {"type": "string"}}},
)

BLOCKS = [HTTP_BLOCK, TEXT_BLOCK, DECISION_BLOCK, AGENT_BLOCK]

RESEARCH_FLOW = GraphMeta(id="graph-research", version=3, name="Research Agent!")


def make_event(
    node_id: str,
    node_exec_id: str,
    status: ExecutionStatus | str,
    graph_exec_id: str = "exec-1",
    input_data: dict[str, Any] | None = None,
    output_data: dict[str, list[Any]] | None = None,
) -> NodeExecutionResult:
    return NodeExecutionResult(
        graph_exec_id=graph_exec_id,
        node_exec_id=node_exec_id,
        node_id=node_id,
        status=status,
        input_data=input_data or {},
        output_data={"output": ["ok"]} if output_data is None else output_data,
    )


class FakeBackend:
    """In-memory stand-in for BackendAPI that regenerates ids on every save."""

    def __init__(self, blocks=BLOCKS, flows=(RESEARCH_FLOW,)) -> None:
        self.blocks = list(blocks)
        self.flows = list(flows)
        self.graphs: dict[str, Graph] = {}
        self.executions: dict[str, GraphExecutionInfo] = {}
        self.schedules: list[dict[str, Any]] = []
        self.stopped: list[str] = []
        self.calls: list[str] = []
        self.fail: set[str] = set()
        self.observer: Callable[[], Any] | None = None
        self.observed: list[Any] = []
        self._ids = itertools.count(1)
        self._exec_ids = itertools.count(1)

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if self.observer is not None:
            self.observed.append(self.observer())
        if name in self.fail:
            raise BackendAPIError(f"{name} failed", status_code=500)

    def _persist(self, payload: GraphPayload, graph_id: str, version: int) -> Graph:
        id_map = {node.id: f"node-{next(self._ids)}" for node in payload.nodes}
        graph = Graph(
            id=graph_id,
            version=version,
            name=payload.name,
            description=payload.description,
            nodes=[
                BackendNode(
                    id=id_map[node.id],
                    block_id=node.block_id,
                    input_default=node.input_default,
                    metadata=node.metadata,
                )
                for node in payload.nodes
            ],
            links=[
                BackendLink(
                    id=f"link-{next(self._ids)}",
                    source_id=id_map[link.source_id],
                    sink_id=id_map[link.sink_id],
                    source_name=link.source_name,
                    sink_name=link.sink_name,
                )
                for link in payload.links
            ],
        )
        self.graphs[graph_id] = graph
        return graph.model_copy(deep=True)

    async def get_blocks(self) -> list[Block]:
        self._call("get_blocks")
        return list(self.blocks)

    async def list_graphs(self) -> list[GraphMeta]:
        self._call("list_graphs")
        return list(self.flows)

    async def get_graph(self, graph_id: str, version: int | None = None) -> Graph:
        self._call("get_graph")
        return self.graphs[graph_id].model_copy(deep=True)

    async def create_graph(self, payload: GraphPayload) -> Graph:
        self._call("create_graph")
        return self._persist(payload, f"graph-{next(self._ids)}", 1)

    async def update_graph(self, graph_id: str, payload: GraphPayload) -> Graph:
        self._call("update_graph")
        return self._persist(payload, graph_id, self.graphs[graph_id].version + 1)

    async def execute_graph(self, graph_id: str, version: int, inputs=None) -> str:
        self._call("execute_graph")
        execution_id = f"exec-{next(self._exec_ids)}"
        self.executions[execution_id] = GraphExecutionInfo(
            id=execution_id,
            graph_id=graph_id,
            graph_version=version,
            status=ExecutionStatus.QUEUED,
            node_executions=[],
        )
        return execution_id

    async def stop_graph_execution(self, graph_id: str, execution_id: str) -> None:
        self._call("stop_graph_execution")
        self.stopped.append(execution_id)

    async def get_graph_execution_info(self, graph_id: str, execution_id: str) -> GraphExecutionInfo:
        self._call("get_graph_execution_info")
        return self.executions[execution_id].model_copy(deep=True)

    async def create_graph_execution_schedule(self, **kwargs: Any) -> None:
        self._call("create_graph_execution_schedule")
        self.schedules.append(kwargs)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def channel() -> InMemoryEventChannel:
    return InMemoryEventChannel()


@pytest.fixture
def notifier() -> ListNotifier:
    return ListNotifier()


@pytest.fixture
def make_editor(backend, channel, notifier):
    """Factory for editors wired to the in-memory collaborators."""

    def factory(**kwargs: Any) -> AgentGraphEditor:
        return AgentGraphEditor(
            api=backend,
            channel=channel,
            notifier=notifier,
            settings=EditorSettings(),
            **kwargs,
        )

    return factory
