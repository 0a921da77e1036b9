"""
loopflow: anchor-overlap communities of chromatin loops

loopflow tags chromatin loop anchors with promoter / enhancer overlaps,
links loops whose anchors overlap into an undirected graph, extracts the
connected components of that graph ("communities") and summarises each
community for downstream comparison.

Main Components:
- Genomic interval containers and sorted-sweep overlap queries
- Anchor annotation against reference interval sets
- Overlap graph construction and connected components
- Per-community aggregation
- Multiple-testing correction, quantile normalization, group comparisons

Example:
    >>> from loopflow import LoopCommunityAnalysis
    >>> analysis = LoopCommunityAnalysis("config.yaml")
    >>> result = analysis.run_from_files("loops.bedpe", "promoters.bed", "enhancers.bed")
"""

import logging
import sys
from importlib import metadata
from typing import Any, Dict

try:
    __version__ = metadata.version("loopflow")
except metadata.PackageNotFoundError:
    __version__ = "0.1.0-dev"

from . import genomics, network, stats, utils
from .config import Config, load_config
from .core import CommunityAnalysisResult, LoopCommunityAnalysis
from .errors import (InconsistentAnchorPairing, InvalidInterval, LoopflowError,
                     UnknownSequence)
from .utils import setup_logging, validate_environment

__all__ = [
    "__version__",
    "LoopCommunityAnalysis",
    "CommunityAnalysisResult",
    "Config",
    "load_config",
    "setup_logging",
    "validate_environment",
    "LoopflowError",
    "InvalidInterval",
    "UnknownSequence",
    "InconsistentAnchorPairing",
    "genomics",
    "network",
    "stats",
    "utils",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())


def get_info() -> Dict[str, Any]:
    """Get package information."""
    return {
        "name": "loopflow",
        "version": __version__,
        "description": "Anchor-overlap communities of chromatin loops",
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "modules": ["genomics", "network", "stats", "utils"],
    }
