"""
Loop containers and table readers

A loop is identified by its position in a LoopSet; ``anchor1[i]`` and
``anchor2[i]`` are the two anchors of loop ``i`` and ``status[i]`` its category.
"""

from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..errors import InconsistentAnchorPairing
from ..utils import get_logger, log_execution_time
from .intervals import Interval, IntervalSet, is_standard_chromosome

logger = get_logger(__name__)

LOOP_COLUMNS = ["chrom1", "start1", "end1", "chrom2", "start2", "end2"]

# alternative column names found in BEDPE-like exports
COLUMN_MAPPING = {
    "chr1": "chrom1",
    "chr2": "chrom2",
    "x1": "start1",
    "x2": "end1",
    "y1": "start2",
    "y2": "end2",
    "chr_x": "chrom1",
    "start_x": "start1",
    "end_x": "end1",
    "chr_y": "chrom2",
    "start_y": "start2",
    "end_y": "end2",
    "anchor1_chr": "chrom1",
    "anchor1_start": "start1",
    "anchor1_end": "end1",
    "anchor2_chr": "chrom2",
    "anchor2_start": "start2",
    "anchor2_end": "end2",
}

# UCSC browser directives that may precede a BED / BEDPE table
PREAMBLE_PREFIXES = ("track", "browser")

BED_COLUMN_MAPPING = {
    "chr": "chrom",
    "seqnames": "chrom",
    "chromStart": "start",
    "chromEnd": "end",
    "txStart": "start",
    "txEnd": "end",
}

GENE_COLUMNS = ["chrom", "start", "end", "name", "score", "strand"]


class LoopSet:
    """
    Parallel anchor1 / anchor2 interval sets plus a status per loop

    Raises:
        InconsistentAnchorPairing: if the three sequences differ in length
    """

    __slots__ = ("_anchor1", "_anchor2", "_status")

    def __init__(
        self,
        anchor1: IntervalSet,
        anchor2: IntervalSet,
        status: Optional[Sequence] = None,
    ):
        if len(anchor1) != len(anchor2):
            raise InconsistentAnchorPairing(
                f"anchor1 has {len(anchor1)} intervals but anchor2 has {len(anchor2)}"
            )

        if status is None:
            status = ["unknown"] * len(anchor1)
        status = np.asarray(list(status), dtype=object)
        if len(status) != len(anchor1):
            raise InconsistentAnchorPairing(
                f"{len(status)} status values for {len(anchor1)} loops"
            )
        status.flags.writeable = False

        self._anchor1 = anchor1
        self._anchor2 = anchor2
        self._status = status

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        status_column: Optional[str] = "status",
        sequences: Optional[Iterable[str]] = None,
    ) -> "LoopSet":
        """Build a LoopSet from a table with ``chrom1 .. end2`` columns"""
        df = df.rename(columns=COLUMN_MAPPING)

        missing_cols = [col for col in LOOP_COLUMNS if col not in df.columns]
        if missing_cols:
            raise ValueError(f"Missing required columns: {missing_cols}")

        if sequences is not None:
            sequences = list(sequences)

        anchor1 = IntervalSet.from_dataframe(df, "chrom1", "start1", "end1", sequences)
        anchor2 = IntervalSet.from_dataframe(df, "chrom2", "start2", "end2", sequences)

        status = None
        if status_column and status_column in df.columns:
            status = df[status_column].astype(str).tolist()
        elif status_column:
            logger.warning(f"No '{status_column}' column; all loops get status 'unknown'")

        return cls(anchor1, anchor2, status)

    @property
    def anchor1(self) -> IntervalSet:
        return self._anchor1

    @property
    def anchor2(self) -> IntervalSet:
        return self._anchor2

    @property
    def status(self) -> np.ndarray:
        return self._status

    def __len__(self) -> int:
        return len(self._anchor1)

    def __iter__(self) -> Iterator[Tuple[Interval, Interval, str]]:
        for index in range(len(self)):
            yield self.loop(index)

    def __repr__(self) -> str:
        return f"LoopSet({len(self)} loops, status={dict(self.status_counts())})"

    def check_index(self, index: int) -> int:
        """Return ``index`` unchanged if it names a loop, raise otherwise"""
        if not 0 <= index < len(self):
            raise InconsistentAnchorPairing(
                f"loop index {index} has no anchors (set holds {len(self)} loops)"
            )
        return index

    def loop(self, index: int) -> Tuple[Interval, Interval, str]:
        self.check_index(index)
        return self._anchor1[index], self._anchor2[index], self._status[index]

    def status_counts(self) -> Counter:
        return Counter(self._status)

    def subset(self, mask_or_indices: Union[np.ndarray, Sequence[int]]) -> "LoopSet":
        """New LoopSet with the selected loops; loop indices are renumbered"""
        selector = np.asarray(mask_or_indices)
        if selector.dtype != bool:
            selector = selector.astype(np.int64)
        return LoopSet(
            self._anchor1.subset(selector),
            self._anchor2.subset(selector),
            self._status[selector],
        )

    def standard_chromosomes_only(self) -> "LoopSet":
        """Keep loops with both anchors on chr1..chr22, chrX or chrY"""
        mask = np.array(
            [
                is_standard_chromosome(c1) and is_standard_chromosome(c2)
                for c1, c2 in zip(self._anchor1.chroms, self._anchor2.chroms)
            ],
            dtype=bool,
        )
        logger.info(f"Keeping {int(mask.sum())}/{len(self)} loops on standard chromosomes")
        return self.subset(mask)

    def to_dataframe(self) -> pd.DataFrame:
        a1 = self._anchor1.to_dataframe()
        a2 = self._anchor2.to_dataframe()
        return pd.DataFrame(
            {
                "loop": np.arange(len(self)),
                "chrom1": a1["chrom"],
                "start1": a1["start"],
                "end1": a1["end"],
                "chrom2": a2["chrom"],
                "start2": a2["start"],
                "end2": a2["end"],
                "status": self._status.astype(str),
            }
        )


def _scan_preamble(path: Path) -> Tuple[int, str]:
    """Number of leading track / browser lines and the first line after them"""
    skip = 0
    with open(path, "r") as f:
        for line in f:
            if line.startswith(PREAMBLE_PREFIXES):
                skip += 1
                continue
            return skip, line
    return skip, ""


def _has_header(first_line: str) -> bool:
    fields = first_line.rstrip("\n").split("\t")
    if len(fields) < 2:
        return True
    try:
        int(float(fields[1]))
    except ValueError:
        return True
    return False


def _read_table(
    path: Path, headerless_columns: Sequence[str], extra_column: Optional[str] = None
) -> pd.DataFrame:
    """
    Read a tab-separated table with or without a header line

    ``#chrom``-style header names lose their leading ``#``. Headerless files
    get ``headerless_columns``, then ``extra_column`` for the next column and
    ``colN`` names for any further ones.
    """
    skip, first_line = _scan_preamble(path)

    if _has_header(first_line):
        df = pd.read_csv(path, sep="\t", skiprows=skip)
        df.columns = [str(col).lstrip("#").strip() for col in df.columns]
        return df

    sample_df = pd.read_csv(path, sep="\t", nrows=1, header=None, skiprows=skip)
    n_cols = len(sample_df.columns)
    cols = list(headerless_columns)[:n_cols]
    if n_cols > len(cols) and extra_column:
        cols.append(extra_column)
    cols.extend(f"col{i}" for i in range(len(cols) + 1, n_cols + 1))
    return pd.read_csv(path, sep="\t", header=None, names=cols, skiprows=skip)


@log_execution_time
def load_loops(
    loops_file: Union[str, Path],
    status_column: Optional[str] = "status",
    zero_based: bool = True,
    sequences: Optional[Iterable[str]] = None,
) -> LoopSet:
    """
    Load loops from a tab-separated BEDPE-like file

    Headerless files are read as ``chrom1 start1 end1 chrom2 start2 end2
    [status ...]``. Header lines may start with ``#`` (Juicer / HiCCUPS
    exports) and leading ``track`` / ``browser`` lines are skipped. With
    ``zero_based`` the BEDPE half-open starts are shifted by one into closed
    1-based coordinates.

    Args:
        loops_file: Path to the loops table
        status_column: Column holding the loop category
        zero_based: Whether starts in the file are 0-based half-open
        sequences: Optional list of allowed chromosome names

    Returns:
        LoopSet with one loop per data row, in file order
    """
    loops_path = Path(loops_file)

    if not loops_path.exists():
        raise FileNotFoundError(f"Loops file not found: {loops_path}")

    loops_df = _read_table(loops_path, LOOP_COLUMNS, status_column or "status")
    loops_df = loops_df.rename(columns=COLUMN_MAPPING)
    if zero_based:
        loops_df = _shift_starts(loops_df, ["start1", "start2"])

    loops = LoopSet.from_dataframe(loops_df, status_column, sequences)
    logger.info(f"Loaded {len(loops)} loops from {loops_path.name}")
    return loops


def load_intervals(
    bed_file: Union[str, Path],
    zero_based: bool = True,
    sequences: Optional[Iterable[str]] = None,
) -> IntervalSet:
    """Load the chrom / start / end columns of a BED file as an IntervalSet"""
    bed_path = Path(bed_file)

    if not bed_path.exists():
        raise FileNotFoundError(f"BED file not found: {bed_path}")

    bed_df = _read_table(bed_path, ["chrom", "start", "end"])
    bed_df = bed_df.rename(columns=BED_COLUMN_MAPPING)

    if zero_based:
        bed_df = _shift_starts(bed_df, ["start"])

    intervals = IntervalSet.from_dataframe(bed_df, sequences=sequences)
    logger.info(f"Loaded {len(intervals)} intervals from {bed_path.name}")
    return intervals


def load_genes(gene_file: Union[str, Path], zero_based: bool = True) -> pd.DataFrame:
    """
    Load a gene table with ``chrom``, ``start``, ``end`` and ``strand`` columns

    Headerless files are read as BED6 (``chrom start end name score strand``).

    Returns:
        DataFrame ready for ``promoters_from_genes``
    """
    gene_path = Path(gene_file)

    if not gene_path.exists():
        raise FileNotFoundError(f"Gene file not found: {gene_path}")

    genes_df = _read_table(gene_path, GENE_COLUMNS)
    genes_df = genes_df.rename(columns=BED_COLUMN_MAPPING)

    if "strand" not in genes_df.columns:
        raise ValueError(f"Gene file {gene_path.name} has no strand column")

    if zero_based:
        genes_df = _shift_starts(genes_df, ["start"])

    logger.info(f"Loaded {len(genes_df)} genes from {gene_path.name}")
    return genes_df


def _shift_starts(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    df = df.copy()
    for col in columns:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce") + 1
    return df


def summarize_loops(loops: LoopSet) -> Dict[str, int]:
    """Basic counts used for logging and validation reports"""
    intra = int(np.sum(loops.anchor1.chroms == loops.anchor2.chroms))
    return {
        "num_loops": len(loops),
        "intra_chromosomal": intra,
        "inter_chromosomal": len(loops) - intra,
        **{f"status_{k}": int(v) for k, v in sorted(loops.status_counts().items())},
    }
