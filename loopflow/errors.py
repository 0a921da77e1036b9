"""
Exceptions raised by loopflow
"""

from typing import Optional


class LoopflowError(Exception):
    """Base class for all loopflow errors"""


class InvalidInterval(LoopflowError, ValueError):
    """A genomic interval is malformed (start > end, missing chromosome, ...)"""

    def __init__(self, reason: str, index: Optional[int] = None):
        self.reason = reason
        self.index = index
        location = f"record {index}: " if index is not None else ""
        super().__init__(f"{location}{reason}")


class UnknownSequence(LoopflowError, KeyError):
    """A chromosome name is not part of the reference sequence list"""

    def __init__(self, chrom: str, index: Optional[int] = None):
        self.chrom = chrom
        self.index = index
        location = f"record {index}: " if index is not None else ""
        super().__init__(f"{location}unknown sequence '{chrom}'")

    def __str__(self) -> str:
        # KeyError quotes its argument otherwise
        return self.args[0]


class InconsistentAnchorPairing(LoopflowError, ValueError):
    """anchor1 / anchor2 sequences cannot be aligned by loop index"""
