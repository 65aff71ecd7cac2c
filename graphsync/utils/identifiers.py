"""ID generation and timestamp utilities."""

import uuid
from datetime import datetime, timezone


def generate_node_id() -> str:
    """Generate a local node ID (UUID4) for a freshly placed node."""
    return str(uuid.uuid4())


def format_edge_id(
    source: str,
    source_handle: str | None,
    target: str,
    target_handle: str | None,
) -> str:
    """Deterministic edge ID from its endpoints and handle names.

    The same four inputs always produce the same ID, so an edge rebuilt
    after a reload keeps its identity.
    """
    return f"{source}_{source_handle or ''}_{target}_{target_handle or ''}"


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


def default_agent_name() -> str:
    """Name given to an agent saved without one."""
    return f"New Agent {utc_timestamp()}"
