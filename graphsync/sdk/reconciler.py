"""Re-associate local nodes with the identifiers the backend assigns on save.

The backend regenerates every node id on save and returns nothing that
ties a new id to the local node it came from. The correlation key is
therefore ``(block_id, x, y)``: block type plus exact placement. Two nodes
of the same type at the same coordinates are ambiguous; the editor does
not let users stack nodes like that, and an ambiguous key is logged.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from graphsync.models.graph import Graph, Node
from graphsync.utils.values import remove_empty_strings_and_nulls

logger = structlog.get_logger(__name__)

CorrelationKey = tuple[str, float, float]


def correlation_key(block_id: str, x: float, y: float) -> CorrelationKey:
    return (block_id, float(x), float(y))


class IdentityReconciler:
    """Snapshot of local node ids by correlation key, taken before a save."""

    def __init__(self, nodes: Sequence[Node]) -> None:
        self._local_ids: dict[CorrelationKey, str] = {}
        for node in nodes:
            key = correlation_key(node.block_id, node.position.x, node.position.y)
            if key in self._local_ids:
                logger.warning(
                    "ambiguous node placement",
                    block_id=node.block_id,
                    position=(node.position.x, node.position.y),
                    kept=node.id,
                    shadowed=self._local_ids[key],
                )
            self._local_ids[key] = node.id

    def local_id_for(self, block_id: str, x: float, y: float) -> str | None:
        return self._local_ids.get(correlation_key(block_id, x, y))

    def apply(self, saved: Graph, nodes: Sequence[Node]) -> list[Node]:
        """Return the local nodes updated with ``saved``'s identifiers.

        Nodes come back in the saved graph's order. Execution state is
        cleared since it belonged to the previous identifiers; local nodes
        with no backend counterpart are dropped.
        """
        by_id = {node.id: node for node in nodes}
        reconciled: list[Node] = []
        for backend_node in saved.nodes:
            position = backend_node.metadata.position
            local_id = self.local_id_for(backend_node.block_id, position.x, position.y)
            local = by_id.get(local_id) if local_id else None
            if local is None:
                logger.warning(
                    "saved node has no local counterpart",
                    backend_id=backend_node.id,
                    block_id=backend_node.block_id,
                )
                continue

            local.position = position.model_copy()
            local.hardcoded_values = remove_empty_strings_and_nulls(local.hardcoded_values)
            local.backend_id = backend_node.id
            local.webhook = backend_node.webhook
            local.status = None
            local.execution_results = {}
            reconciled.append(local)

        dropped = len(nodes) - len(reconciled)
        if dropped:
            logger.warning("local nodes dropped after save", count=dropped)
        return reconciled


def is_synced(nodes: Sequence[Node], saved: Graph | None) -> bool:
    """True when local backend ids match the last saved graph.

    Saves replace the whole id set at once, so one matching node is
    enough to tell fresh ids from stale ones.
    """
    if saved is None or not nodes:
        return False
    saved_ids = {node.id for node in saved.nodes}
    return any(node.backend_id in saved_ids for node in nodes)
