"""Composite handle names for decision-block "tools" outputs.

A decision block exposes a single logical ``tools`` output. When saved,
each link from it is renamed to ``tools_^_<consumer>_~_<handle>`` so the
backend can route the output to several distinct consumers.
"""

import re

TOOLS_HANDLE = "tools"
TOOL_PREFIX = "tools_^_"
TOOL_SEPARATOR = "_~_"

# must stay byte-for-byte identical to the backend's normalization
_INVALID_TOOL_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def normalize_tool_name(name: str) -> str:
    return _INVALID_TOOL_CHARS.sub("_", name).lower()


def is_tool_source_name(source_name: str) -> bool:
    return source_name.startswith(TOOL_PREFIX)


def cleanup_source_name(source_name: str) -> str:
    """Map a persisted composite name back to the canonical ``tools`` handle."""
    return TOOLS_HANDLE if is_tool_source_name(source_name) else source_name


def tool_source_name(consumer_name: str, target_handle: str) -> str:
    return (
        f"{TOOL_PREFIX}{normalize_tool_name(consumer_name)}"
        f"{TOOL_SEPARATOR}{normalize_tool_name(target_handle)}"
    )
