import logging

import numpy as np
import pytest

from loopflow.genomics import IntervalSet, LoopSet


def make_loops(records):
    """Build a LoopSet from ``(chrom1, start1, end1, chrom2, start2, end2, status)`` tuples"""
    return LoopSet(
        IntervalSet.from_tuples([r[0:3] for r in records]),
        IntervalSet.from_tuples([r[3:6] for r in records]),
        [r[6] for r in records],
    )


def random_intervals(rng, n, chroms=("chr1", "chr2"), span=20_000, max_width=800):
    starts = rng.integers(1, span, size=n)
    widths = rng.integers(0, max_width, size=n)
    return IntervalSet(list(rng.choice(chroms, size=n)), starts, starts + widths)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handlers, level and propagation installed by setup_logging"""
    package = logging.getLogger("loopflow")
    handlers = list(package.handlers)
    level, propagate = package.level, package.propagate
    yield
    for handler in package.handlers:
        if handler not in handlers:
            handler.close()
    package.handlers[:] = handlers
    package.setLevel(level)
    package.propagate = propagate


@pytest.fixture
def rng():
    return np.random.default_rng(20201106)


@pytest.fixture
def chain_loops():
    """loop0.a1 ~ loop1.a1, loop1.a2 ~ loop2.a1, nothing else overlaps"""
    return make_loops(
        [
            ("chr1", 100, 200, "chr1", 10_000, 10_100, "gained"),
            ("chr1", 150, 250, "chr1", 5_000, 5_100, "static"),
            ("chr1", 5_050, 5_150, "chr1", 20_000, 20_100, "static"),
        ]
    )


@pytest.fixture
def disjoint_loops():
    return make_loops(
        [
            ("chr1", 100, 200, "chr1", 1_000, 1_100, "gained"),
            ("chr2", 100, 200, "chr2", 1_000, 1_100, "lost"),
        ]
    )


@pytest.fixture
def references():
    return {
        "promoter": IntervalSet.from_tuples([("chr1", 180, 220), ("chr1", 20_050, 20_060)]),
        "enhancer": IntervalSet.from_tuples([("chr1", 5_000, 5_200), ("chr1", 10_000, 10_010)]),
    }


@pytest.fixture
def loops_file(tmp_path):
    path = tmp_path / "loops.bedpe"
    path.write_text(
        "chr1\t99\t200\tchr1\t9999\t10100\tgained\n"
        "chr1\t149\t250\tchr1\t4999\t5100\tstatic\n"
        "chr1\t5049\t5150\tchr1\t19999\t20100\tstatic\n"
        "chr2\t99\t200\tchr2\t999\t1100\tlost\n"
    )
    return path


@pytest.fixture
def promoters_file(tmp_path):
    path = tmp_path / "promoters.bed"
    path.write_text("chr1\t179\t220\tp1\nchr1\t20049\t20060\tp2\n")
    return path


@pytest.fixture
def enhancers_file(tmp_path):
    path = tmp_path / "enhancers.bed"
    path.write_text("chr1\t4999\t5200\te1\nchr1\t9999\t10010\te2\nchr1\t189\t195\te3\n")
    return path


@pytest.fixture
def genes_file(tmp_path):
    """BED6 genes: a + strand TSS at 2180 and a - strand TSS at 20000 (1-based)"""
    path = tmp_path / "genes.bed"
    path.write_text("chr1\t2179\t3000\tg1\t0\t+\nchr1\t15000\t20000\tg2\t0\t-\n")
    return path
