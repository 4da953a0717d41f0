#!/usr/bin/env python3

################################################################################
### Libraries
################################################################################
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple


################################################################################
### Objects
################################################################################
@dataclass(frozen=True)
class SNPRecord:
    """Biallelic SNP as seen by the reducer.
    genotype is the flattened GT string of all samples, compared as-is.
    """
    chrom: str
    pos: int
    af: Optional[float]
    genotype: str

    @property
    def coordinate(self) -> Tuple[str, int]:
        return self.chrom, self.pos


@dataclass(frozen=True)
class KeptWindow:
    """Last two kept records on the current chromosome.
    """
    chrom: Optional[str] = None
    last1: Optional[SNPRecord] = None
    last2: Optional[SNPRecord] = None

    def push(self, record: SNPRecord) -> "KeptWindow":
        if record.chrom != self.chrom:
            return KeptWindow(record.chrom, record, None)
        return KeptWindow(record.chrom, record, self.last1)


class ReduceConfig:
    """Thresholds for a reduction run.

    Parameters
    ----------
    distance : int
        Maximum distance (bp) to the last kept SNP under which allele
        frequencies are compared. Above it the SNP is kept.
    frequency : float
        Minimum allele frequency difference, against the closest of the
        two last kept SNPs, required to keep a SNP within distance.

    A frequency of 0 makes any difference pass, so the distance is forced to 0.
    """
    def __init__(self, distance: int = 0, frequency: float = 0.0):
        if distance < 0:
            raise ValueError(f"distance must be a non-negative integer, got {distance}")
        if not 0.0 <= frequency <= 1.0:
            raise ValueError(f"frequency must be between 0 and 1, got {frequency}")
        self.frequency = frequency
        self.distance = 0 if frequency == 0 else distance

    def __repr__(self):
        return f"ReduceConfig(distance={self.distance}, frequency={self.frequency})"


#*******************************************************************************
# Decision logic
#*******************************************************************************
def af_difference(a: Optional[float], b: Optional[float]) -> Optional[float]:
    """Absolute difference, None if either frequency is missing."""
    if a is None or b is None:
        return None
    return abs(a - b)


def is_kept(window: KeptWindow, record: SNPRecord, config: ReduceConfig) -> bool:
    # Cond 1: new chromosome
    if record.chrom != window.chrom or window.last1 is None:
        return True

    # Cond 2: same genotypes as one of the two last kept SNPs
    for previous in (window.last1, window.last2):
        if previous is not None and record.genotype == previous.genotype:
            return False

    # Cond 3: no distance limit
    if config.distance == 0:
        return True

    # Cond 4: far enough from the last kept SNP
    if record.pos - window.last1.pos > config.distance:
        return True

    # Cond 5: frequency differs enough from the most similar kept SNP
    diffs = [
        d for d in (
            af_difference(window.last1.af, record.af),
            af_difference(window.last2.af if window.last2 else None, record.af),
        )
        if d is not None
    ]
    if not diffs:
        return False
    return min(diffs) > config.frequency


def step(window: KeptWindow, record: SNPRecord, config: ReduceConfig) -> Tuple[bool, KeptWindow]:
    """Evaluate one record against the window.
    Returns the decision and the window to use for the next record.
    """
    if is_kept(window, record, config):
        return True, window.push(record)
    return False, window


def reduce_snps(records: Iterable[SNPRecord], config: ReduceConfig) -> Iterator[SNPRecord]:
    """Yield the kept records, in input order.
    Input is expected sorted by chromosome then position.
    """
    window = KeptWindow()
    for record in records:
        kept, window = step(window, record, config)
        if kept:
            yield record


def reduce_coordinates(records: Iterable[SNPRecord], config: ReduceConfig) -> Iterator[Tuple[str, int]]:
    """Same as reduce_snps, yielding (chrom, pos) of kept records."""
    for record in reduce_snps(records, config):
        yield record.coordinate
