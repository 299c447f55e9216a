"""
Chain extraction for laddering interview graphs.
"""

from ladderchain.extraction.acv_extractor import (
    CONSEQUENCE_SEPARATOR,
    extract_stimulus_chains,
)

__all__ = [
    "CONSEQUENCE_SEPARATOR",
    "extract_stimulus_chains",
]
