"""Block catalog models.

A block is a reusable node type: its input/output schemas plus a UI type
tag that decides how the editor treats nodes built from it.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class BlockUIType(str, Enum):
    """UI type tags the backend attaches to blocks."""

    STANDARD = "Standard"
    INPUT = "Input"
    OUTPUT = "Output"
    NOTE = "Note"
    WEBHOOK = "Webhook"
    WEBHOOK_MANUAL = "Webhook (manual)"
    AGENT = "Agent"


class SpecialBlockID(str, Enum):
    """Block IDs the editor special-cases."""

    AGENT = "e189baac-8c20-45a1-94a7-55177ea42565"
    SMART_DECISION = "3b191d9f-356f-482d-8238-ba04b6d18381"
    OUTPUT = "363ae599-353e-4804-937e-b2ee3cef3da4"


class BlockVariant(str, Enum):
    """Behavioral variants of a block, as far as this package cares."""

    STANDARD = "standard"  # ordinary block
    AGENT = "agent"  # runs another graph; real inputs live under "data"
    DECISION = "decision"  # fans its "tools" output out to named consumers


def block_variant(block_id: str, ui_type: BlockUIType | str | None) -> BlockVariant:
    """Resolve the variant for a block id / ui type pair."""
    if block_id == SpecialBlockID.SMART_DECISION.value:
        return BlockVariant.DECISION
    if ui_type == BlockUIType.AGENT or block_id == SpecialBlockID.AGENT.value:
        return BlockVariant.AGENT
    return BlockVariant.STANDARD


class Block(BaseModel):
    """A block type definition from the catalog."""

    id: str
    name: str
    description: str = ""
    categories: list[dict[str, Any]] = Field(default_factory=list)
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")
    output_schema: dict[str, Any] = Field(default_factory=dict, alias="outputSchema")
    static_output: bool = False
    ui_type: BlockUIType = Field(default=BlockUIType.STANDARD, alias="uiType")
    costs: list[dict[str, Any]] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def variant(self) -> BlockVariant:
        return block_variant(self.id, self.ui_type)


class GraphMeta(BaseModel):
    """Summary of a saved graph, used to name sub-agent nodes."""

    id: str
    version: int = 1
    name: str = ""
    description: str = ""
    is_active: bool = True

    model_config = {"extra": "ignore"}
