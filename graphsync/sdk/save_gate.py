"""Skip saves that would not change anything.

Every write makes the backend hand out fresh node ids, which throws away
live telemetry sync. Comparing a normalized view of the payload with the
last saved graph lets a no-op save short-circuit.
"""

from typing import Any

import structlog

from graphsync.models.graph import Graph, GraphPayload

logger = structlog.get_logger(__name__)


def _comparable_payload(payload: GraphPayload) -> dict[str, Any]:
    return {
        "name": payload.name,
        "description": payload.description,
        "nodes": [
            {
                "block_id": node.block_id,
                "input_default": node.input_default,
                "position": node.metadata.position.model_dump(),
            }
            for node in payload.nodes
        ],
        "links": [
            {"source_name": link.source_name, "sink_name": link.sink_name}
            for link in payload.links
        ],
    }


def _comparable_graph(graph: Graph) -> dict[str, Any]:
    return {
        "name": graph.name,
        "description": graph.description,
        "nodes": [
            {
                "block_id": node.block_id,
                "input_default": node.input_default,
                "position": node.metadata.position.model_dump(),
            }
            for node in graph.nodes
        ],
        "links": [
            {"source_name": link.source_name, "sink_name": link.sink_name}
            for link in graph.links
        ],
    }


def needs_save(payload: GraphPayload, saved: Graph | None) -> bool:
    """False when ``payload`` matches ``saved`` ignoring volatile fields."""
    if saved is None:
        return True
    if _comparable_payload(payload) == _comparable_graph(saved):
        logger.info("graph unchanged, skipping save", graph_id=saved.id)
        return False
    return True
