"""Builders for interview graphs used across the test suite."""

from typing import Dict, List, Optional

from ladderchain.core.models import InterviewGraph


def node(
    node_id: int,
    label: str,
    conclusion: Optional[str] = None,
    parents: Optional[List[int]] = None,
    completed: bool = True,
) -> Dict:
    """Raw node document as sent by the interview backend."""
    return {
        "id": node_id,
        "label": label,
        "conclusion": conclusion if conclusion is not None else f"{label.lower()} {node_id}",
        "parents": parents or [],
        "children": [],
        "trace": [],
        "is_value_path_completed": completed,
    }


def graph(*nodes: Dict) -> InterviewGraph:
    """Graph document with children filled in from the parent lists."""
    docs = [dict(n, children=[]) for n in nodes]
    by_id = {d["id"]: d for d in docs}
    for d in docs:
        for pid in d["parents"]:
            if pid in by_id:
                by_id[pid]["children"].append(d["id"])
    return InterviewGraph.model_validate({
        "nodes": docs,
        "active_node_id": docs[-1]["id"] if docs else None,
        "root_node_id": docs[0]["id"] if docs else None,
    })


def linear_chain(consequence_completed: bool = True) -> InterviewGraph:
    """Topic(0) -> Stimulus(1) -> Attribute(2) -> Consequence(3) -> Value(4)."""
    return graph(
        node(0, "TOPIC", "Plant-based milk"),
        node(1, "STIMULUS", "Oat milk", [0]),
        node(2, "ATTRIBUTE", "Creamy texture", [1]),
        node(3, "CONSEQUENCE", "Tastes good in coffee", [2], completed=consequence_completed),
        node(4, "VALUE", "Enjoyment", [3]),
    )
