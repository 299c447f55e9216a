"""
LadderChain - Attribute/Consequence/Value chain extraction for laddering interviews.
"""

from ladderchain.core.config import ExtractOptions, LadderChainConfig
from ladderchain.core.models import (
    ACVChainText,
    GraphNode,
    InterviewGraph,
    NodeLabel,
    StimulusGroup,
)
from ladderchain.extraction import extract_stimulus_chains
from ladderchain.main import LadderChain

__version__ = "0.1.0"

__all__ = [
    "ACVChainText",
    "ExtractOptions",
    "GraphNode",
    "InterviewGraph",
    "LadderChain",
    "LadderChainConfig",
    "NodeLabel",
    "StimulusGroup",
    "extract_stimulus_chains",
]
