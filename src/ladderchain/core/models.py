"""
Pydantic models for interview graphs and extracted chains.

Input models mirror the JSON document published by the interview backend.
Output models are the rendered, display-ready chain groups.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NodeLabel(str, Enum):
    """Known node labels in a laddering interview graph."""
    TOPIC = "TOPIC"
    STIMULUS = "STIMULUS"
    IDEA = "IDEA"
    ATTRIBUTE = "ATTRIBUTE"
    CONSEQUENCE = "CONSEQUENCE"
    VALUE = "VALUE"


class TraceElement(BaseModel):
    """Link between a node and the interaction that produced it."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    node_id: int
    interaction_id: Optional[str] = None


class GraphNode(BaseModel):
    """
    A single answer in the interview graph.

    `label` is kept as a plain string so labels added by newer backends
    pass through untouched. `parents` may reference ids that are not part
    of the graph; `children` is carried along but never trusted.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    label: str
    conclusion: str = ""
    parents: List[int] = Field(default_factory=list)
    children: List[int] = Field(default_factory=list)
    trace: List[TraceElement] = Field(default_factory=list)
    is_value_path_completed: bool = False

    def has_label(self, label: NodeLabel) -> bool:
        return self.label == label.value


class InterviewGraph(BaseModel):
    """
    Full node set of one interview session.

    Example:
        {
            "nodes": [
                {"id": 1, "label": "STIMULUS", "conclusion": "Oat milk",
                 "parents": [0], "children": [2], "is_value_path_completed": true}
            ],
            "active_node_id": 1,
            "root_node_id": 0
        }
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    nodes: List[GraphNode] = Field(default_factory=list)
    active_node_id: Optional[int] = None
    root_node_id: Optional[int] = None


class ACVChainText(BaseModel):
    """One rendered Attribute -> Consequence -> Value chain."""

    attribute: str = ""
    consequence: str = ""
    value: str = ""
    # Conclusions of the whole consequence path (top to leaf). Not part of the
    # exported shape; `consequence` holds the rendered summary.
    consequence_path: List[str] = Field(default_factory=list, exclude=True)


class StimulusGroup(BaseModel):
    """All surviving chains rooted at one stimulus."""

    stimulus: str = ""
    chains: List[ACVChainText] = Field(default_factory=list)


class HistoryMessage(BaseModel):
    """A single chat message as stored by the interview backend."""

    model_config = ConfigDict(extra="ignore")

    role: str
    content: str = ""
    node_ids: List[int] = Field(default_factory=list)


class InterviewHistory(BaseModel):
    """Response body of the backend's interview load endpoint."""

    model_config = ConfigDict(extra="ignore")

    content: List[List[HistoryMessage]] = Field(default_factory=list)
    order: List[str] = Field(default_factory=list)
    finished: List[str] = Field(default_factory=list)
    tree: Optional[InterviewGraph] = None
