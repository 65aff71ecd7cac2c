"""Conversion between the editor graph and the backend graph schema.

``load_from_backend`` rebuilds editor nodes/edges from a persisted graph;
``to_backend_payload`` is its inverse. Running one after the other yields
the original graph modulo identifier regeneration.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

import structlog

from graphsync.models.block import Block, BlockVariant, GraphMeta
from graphsync.models.graph import (
    BackendLink,
    Connection,
    Edge,
    Graph,
    GraphPayload,
    Node,
    NodeMetadata,
    NodeRef,
    PayloadLink,
    PayloadNode,
    Position,
)
from graphsync.sdk.tool_names import (
    TOOLS_HANDLE,
    cleanup_source_name,
    tool_source_name,
)
from graphsync.utils.identifiers import default_agent_name
from graphsync.utils.values import remove_empty_strings_and_nulls

logger = structlog.get_logger(__name__)


def get_output_type(nodes: Sequence[Node], node_id: str, handle: str) -> str:
    """JSON type declared for an output handle, or ``"unknown"``."""
    node = next((n for n in nodes if n.id == node_id), None)
    if node is None or not node.output_schema:
        return "unknown"
    output_handle = node.output_schema.get("properties", {}).get(handle) or {}
    return output_handle.get("type", "unknown")


def _nested_input(schema: dict[str, Any], values: dict[str, Any]) -> dict[str, Any]:
    """Keep the values a schema declares, descending into nested object schemas.

    A schema with ``additionalProperties`` accepts every value as-is.
    """
    data: dict[str, Any] = {}

    properties = schema.get("properties")
    if isinstance(properties, dict):
        for key, sub_schema in properties.items():
            if key not in values:
                continue
            value = values[key]
            nested = isinstance(sub_schema, dict) and (
                "properties" in sub_schema or "additionalProperties" in sub_schema
            )
            if nested and isinstance(value, dict):
                data[key] = _nested_input(sub_schema, value)
            else:
                data[key] = value

    if "additionalProperties" in schema:
        data = {**data, **values}

    return data


def prepare_node_input(node: Node) -> dict[str, Any]:
    """Build the ``input_default`` persisted for a node."""
    cleaned = remove_empty_strings_and_nulls(node.hardcoded_values)
    input_data = _nested_input(node.input_schema, cleaned)
    logger.debug(
        "prepared node input",
        node_id=node.id,
        block=node.block_name,
        input=input_data,
    )
    return input_data


def _edge_from_link(link: BackendLink) -> Edge:
    return Edge.connect(
        source=link.source_id,
        source_handle=cleanup_source_name(link.source_name),
        target=link.sink_id,
        target_handle=link.sink_name,
        is_static=link.is_static,
    )


def _connections_for(node_id: str, edges: Iterable[Edge]) -> list[Connection]:
    return [
        Connection(
            edge_id=edge.id,
            source=edge.source,
            source_handle=edge.source_handle,
            target=edge.target,
            target_handle=edge.target_handle,
        )
        for edge in edges
        if node_id in (edge.source, edge.target)
    ]


def refresh_connections(nodes: Sequence[Node], edges: Sequence[Edge]) -> None:
    """Recompute every node's incident-edge list."""
    for node in nodes:
        node.connections = _connections_for(node.id, edges)


def node_from_block(
    block: Block,
    node_id: str,
    position: Position | None = None,
    hardcoded_values: dict[str, Any] | None = None,
) -> Node:
    """Instantiate a node of the given block type."""
    return Node(
        id=node_id,
        backend_id=None,
        block_id=block.id,
        block_name=block.name,
        ui_type=block.ui_type,
        title=f"{block.name} {node_id}",
        description=block.description,
        categories=block.categories,
        costs=block.costs,
        input_schema=block.input_schema,
        output_schema=block.output_schema,
        hardcoded_values=dict(hardcoded_values or {}),
        position=position or Position(),
    )


def load_from_backend(
    graph: Graph,
    blocks: Sequence[Block],
    previous_nodes: Sequence[Node] = (),
) -> tuple[list[Node], list[Edge]]:
    """Rebuild editor nodes and edges from a backend graph.

    Nodes whose block type is not in the catalog are skipped, and so are
    links touching them. UI sub-state (open output panel, execution
    results, status, errors) carries over from ``previous_nodes`` with the
    same id.
    """
    blocks_by_id = {block.id: block for block in blocks}
    previous = {node.id: node for node in previous_nodes}

    nodes: list[Node] = []
    for backend_node in graph.nodes:
        block = blocks_by_id.get(backend_node.block_id)
        if block is None:
            logger.warning(
                "unknown block, skipping node",
                node_id=backend_node.id,
                block_id=backend_node.block_id,
            )
            continue

        node = node_from_block(
            block,
            backend_node.id,
            position=backend_node.metadata.position.model_copy(),
            hardcoded_values=backend_node.input_default,
        )
        node.backend_id = backend_node.id
        node.webhook = backend_node.webhook

        prev = previous.get(node.id)
        if prev is not None:
            node.is_output_open = prev.is_output_open
            node.execution_results = dict(prev.execution_results)
            node.status = prev.status
            node.errors = dict(prev.errors)
        nodes.append(node)

    node_ids = {node.id for node in nodes}
    edges: list[Edge] = []
    for link in graph.links:
        if link.source_id not in node_ids or link.sink_id not in node_ids:
            logger.warning(
                "dropping link with missing endpoint",
                source_id=link.source_id,
                sink_id=link.sink_id,
            )
            continue
        edges.append(_edge_from_link(link))

    refresh_connections(nodes, edges)
    return nodes, edges


def tool_consumer_name(node: Node | None, flows: Sequence[GraphMeta]) -> str:
    """Function name a decision block uses to address a downstream node."""
    if node is None:
        return ""
    variant = node.variant
    if variant == BlockVariant.AGENT:
        graph_id = node.hardcoded_values.get("graph_id")
        flow = next((f for f in flows if f.id == graph_id), None) if graph_id else None
        return flow.name if flow else "agentexecutorblock"
    if variant in (BlockVariant.STANDARD, BlockVariant.DECISION):
        return node.block_name
    raise ValueError(f"unhandled block variant: {variant}")


def _link_source_name(
    edge: Edge,
    nodes_by_id: dict[str, Node],
    flows: Sequence[GraphMeta],
) -> str:
    source_name = edge.source_handle or ""
    source_node = nodes_by_id.get(edge.source)
    if (
        source_node is not None
        and source_node.variant == BlockVariant.DECISION
        and source_name.lower() == TOOLS_HANDLE
    ):
        consumer = tool_consumer_name(nodes_by_id.get(edge.target), flows)
        return tool_source_name(consumer, edge.target_handle or "")
    return source_name


def to_backend_payload(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    name: str = "",
    description: str = "",
    flows: Sequence[GraphMeta] = (),
    graph_id: str | None = None,
) -> GraphPayload:
    """Build the create/update body for the current editor graph."""
    nodes_by_id = {node.id: node for node in nodes}

    payload_nodes = [
        PayloadNode(
            id=node.id,
            block_id=node.block_id,
            input_default=prepare_node_input(node),
            input_nodes=[
                NodeRef(name=edge.target_handle or "", node_id=edge.source)
                for edge in edges
                if edge.target == node.id
            ],
            output_nodes=[
                NodeRef(name=edge.source_handle or "", node_id=edge.target)
                for edge in edges
                if edge.source == node.id
            ],
            metadata=NodeMetadata(position=node.position.model_copy()),
        )
        for node in nodes
    ]

    payload_links = [
        PayloadLink(
            source_id=edge.source,
            sink_id=edge.target,
            source_name=_link_source_name(edge, nodes_by_id, flows),
            sink_name=edge.target_handle or "",
        )
        for edge in edges
    ]

    return GraphPayload(
        id=graph_id,
        name=name or default_agent_name(),
        description=description or "",
        nodes=payload_nodes,
        links=payload_links,
    )
