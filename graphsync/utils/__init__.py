"""Utility functions for graphsync."""

from graphsync.utils.identifiers import (
    default_agent_name,
    format_edge_id,
    generate_node_id,
    utc_timestamp,
)
from graphsync.utils.logging import configure_logging
from graphsync.utils.values import is_blank, remove_empty_strings_and_nulls

__all__ = [
    "configure_logging",
    "default_agent_name",
    "format_edge_id",
    "generate_node_id",
    "is_blank",
    "remove_empty_strings_and_nulls",
    "utc_timestamp",
]
