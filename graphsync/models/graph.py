"""Graph models, both the editor-side view and the persisted backend shape.

The editor view (``Node``/``Edge``) carries visual state that the backend
never sees; the backend view (``Graph``/``BackendNode``/``BackendLink``)
mirrors what the graph store persists.
"""

from typing import Any

from pydantic import BaseModel, Field

from graphsync.models.block import BlockUIType, BlockVariant, block_variant
from graphsync.models.execution import ExecutionRecord, ExecutionStatus
from graphsync.utils.identifiers import format_edge_id


class Position(BaseModel):
    x: float = 0
    y: float = 0


class Connection(BaseModel):
    """An incident edge, as seen from a node."""

    edge_id: str
    source: str
    source_handle: str
    target: str
    target_handle: str


class Node(BaseModel):
    """A block instance placed in the editor."""

    id: str  # local identity, stable for the session
    backend_id: str | None = None
    block_id: str
    block_name: str = ""
    ui_type: BlockUIType = BlockUIType.STANDARD
    title: str = ""
    description: str = ""
    categories: list[dict[str, Any]] = Field(default_factory=list)
    costs: list[dict[str, Any]] = Field(default_factory=list)
    input_schema: dict[str, Any] = Field(default_factory=dict)
    output_schema: dict[str, Any] = Field(default_factory=dict)
    hardcoded_values: dict[str, Any] = Field(default_factory=dict)
    position: Position = Field(default_factory=Position)
    connections: list[Connection] = Field(default_factory=list)
    webhook: dict[str, Any] | None = None

    # visual state
    execution_results: dict[str, ExecutionRecord] = Field(default_factory=dict)
    status: ExecutionStatus | None = None
    errors: dict[str, str] = Field(default_factory=dict)
    is_output_open: bool = False

    @property
    def variant(self) -> BlockVariant:
        return block_variant(self.block_id, self.ui_type)


class Edge(BaseModel):
    """A directed link between two node handles."""

    id: str
    source: str
    source_handle: str = ""
    target: str
    target_handle: str = ""
    is_static: bool = False

    # visual state, derived from bead_data
    bead_up: int = 0
    bead_down: int = 0
    bead_data: dict[str, ExecutionStatus] = Field(default_factory=dict)

    @classmethod
    def connect(
        cls,
        source: str,
        source_handle: str,
        target: str,
        target_handle: str,
        is_static: bool = False,
    ) -> "Edge":
        """Create an edge whose id is derived from its endpoints."""
        return cls(
            id=format_edge_id(source, source_handle, target, target_handle),
            source=source,
            source_handle=source_handle,
            target=target,
            target_handle=target_handle,
            is_static=is_static,
        )

    def reset_beads(self) -> None:
        self.bead_up = 0
        self.bead_down = 0
        self.bead_data.clear()


class NodeMetadata(BaseModel):
    position: Position = Field(default_factory=Position)

    model_config = {"extra": "allow"}


class BackendNode(BaseModel):
    id: str
    block_id: str
    input_default: dict[str, Any] = Field(default_factory=dict)
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)
    webhook: dict[str, Any] | None = None

    model_config = {"extra": "ignore"}


class BackendLink(BaseModel):
    id: str | None = None
    source_id: str
    sink_id: str
    source_name: str
    sink_name: str
    is_static: bool = False

    model_config = {"extra": "ignore"}


class Graph(BaseModel):
    """A graph as persisted by the backend."""

    id: str
    version: int = 1
    is_active: bool = True
    name: str = ""
    description: str = ""
    nodes: list[BackendNode] = Field(default_factory=list)
    links: list[BackendLink] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class NodeRef(BaseModel):
    """Entry of a payload node's ``input_nodes``/``output_nodes``."""

    name: str
    node_id: str


class PayloadNode(BaseModel):
    id: str
    block_id: str
    input_default: dict[str, Any]
    input_nodes: list[NodeRef] = Field(default_factory=list)
    output_nodes: list[NodeRef] = Field(default_factory=list)
    metadata: NodeMetadata


class PayloadLink(BaseModel):
    source_id: str
    sink_id: str
    source_name: str
    sink_name: str


class GraphPayload(BaseModel):
    """Body sent to create or update a graph."""

    id: str | None = None
    name: str
    description: str = ""
    nodes: list[PayloadNode]
    links: list[PayloadLink]
