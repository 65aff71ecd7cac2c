"""Validate node inputs before a run.

Two kinds of issues are collected for every node:

- schema issues, from validating the node's effective input against its
  declared input schema with jsonschema;
- dependency issues, from ``depends_on`` declarations on input fields.

Schema issues on a field fed by an incoming edge are suppressed, since the
edge supplies the value at run time. Issues never block a save, only a run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

import structlog
from jsonschema import Draft7Validator, validators

from graphsync.models.block import BlockVariant
from graphsync.models.graph import Node
from graphsync.utils.values import is_blank

logger = structlog.get_logger(__name__)

REQUIRED_MESSAGE = "This field is required"


class IssueKind(str, Enum):
    schema = "schema"
    dependency = "dependency"


@dataclass
class ValidationIssue:
    """One problem with one field of one node."""

    node_id: str
    path: str  # dotted field path, "" for the input as a whole
    message: str  # shown inline next to the field
    summary: str  # shown in the consolidated notice
    kind: IssueKind


def effective_input(node: Node) -> dict[str, Any]:
    """The values a node's input schema actually describes."""
    variant = node.variant
    if variant == BlockVariant.AGENT:
        return node.hardcoded_values.get("data") or {}
    if variant in (BlockVariant.STANDARD, BlockVariant.DECISION):
        return node.hardcoded_values or {}
    raise ValueError(f"unhandled block variant: {variant}")


def _capitalize(message: str) -> str:
    return message[:1].upper() + message[1:]


def _connected_handles(node: Node) -> set[str]:
    return {
        conn.target_handle
        for conn in node.connections
        if conn.target == node.id and conn.target_handle
    }


def effective_schema(node: Node) -> dict[str, Any]:
    """Schema for ``effective_input``: a sub-agent carries its graph's own."""
    if node.variant == BlockVariant.AGENT:
        return node.hardcoded_values.get("input_schema") or {}
    return node.input_schema or {}


def _schema_issues(node: Node, input_data: dict[str, Any]) -> list[ValidationIssue]:
    schema = effective_schema(node)
    validator_cls = validators.validator_for(schema, default=Draft7Validator)
    validator = validator_cls(schema)
    connected = _connected_handles(node)

    issues: list[ValidationIssue] = []
    for error in validator.iter_errors(input_data):
        path = [str(part) for part in error.absolute_path]

        if error.validator == "required":
            instance = error.instance if isinstance(error.instance, dict) else {}
            for prop in error.validator_value:
                if prop in instance:
                    continue
                field_path = path + [prop]
                if field_path[0] in connected:
                    continue
                issues.append(ValidationIssue(
                    node_id=node.id,
                    path=".".join(field_path),
                    message=REQUIRED_MESSAGE,
                    summary=f"{'.'.join(field_path)} is required",
                    kind=IssueKind.schema,
                ))
            continue

        if path and path[0] in connected:
            continue
        issues.append(ValidationIssue(
            node_id=node.id,
            path=".".join(path),
            message=_capitalize(error.message),
            summary=error.message or "Invalid input",
            kind=IssueKind.schema,
        ))

    # jsonschema reports a missing property once per "required" error and
    # may repeat a path across keywords; keep the first issue per path
    unique: dict[str, ValidationIssue] = {}
    for issue in issues:
        unique.setdefault(issue.path, issue)
    return list(unique.values())


def _dependency_issues(node: Node, input_data: dict[str, Any]) -> list[ValidationIssue]:
    schema = effective_schema(node)
    required = set(schema.get("required") or [])
    issues: list[ValidationIssue] = []

    for key, field_schema in (schema.get("properties") or {}).items():
        if not isinstance(field_schema, dict):
            continue
        dependencies = field_schema.get("depends_on")
        if not dependencies:
            continue

        has_value = input_data.get(key) is not None or (
            field_schema.get("default") is not None
        )
        must_have_value = key in required

        missing = [dep for dep in dependencies if is_blank(input_data.get(dep))]
        if (has_value or must_have_value) and missing:
            issues.append(ValidationIssue(
                node_id=node.id,
                path=key,
                message=f"Requires {', '.join(missing)} to be set",
                summary=f"Field {key} requires {', '.join(missing)} to be set",
                kind=IssueKind.dependency,
            ))

        if not missing and not has_value:
            message = f"{key} is required when {', '.join(dependencies)} are set"
            issues.append(ValidationIssue(
                node_id=node.id,
                path=key,
                message=message,
                summary=message,
                kind=IssueKind.dependency,
            ))

    return issues


def validate_node(node: Node) -> list[ValidationIssue]:
    """Collect every issue for ``node`` and attach them to ``node.errors``."""
    input_data = effective_input(node)
    issues = _schema_issues(node, input_data) + _dependency_issues(node, input_data)

    errors: dict[str, str] = {}
    for issue in issues:
        logger.debug(
            "input validation issue",
            node_id=node.id,
            block=node.block_name,
            path=issue.path,
            kind=issue.kind.value,
            message=issue.message,
        )
        if issue.path:
            # dependency rules run last and win over the generic schema message
            errors[issue.path] = issue.message
    node.errors = errors
    return issues


def validate_nodes(nodes: Sequence[Node]) -> str | None:
    """Validate every node; return the first issue summary, if any.

    All per-field errors stay on the nodes for inline display.
    """
    first: str | None = None
    for node in nodes:
        issues = validate_node(node)
        if issues and first is None:
            first = issues[0].summary
    return first
