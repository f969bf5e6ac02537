"""
Fragment Length Statistics

The support count queries a window of mean + 3 standard deviations of the
fragment length around each breakpoint. The statistics are estimated from
concordant pairs in the cDNA pair BAM and written as a two line file read
back by breakpoints.read_fragment_stats.
"""

import logging
from typing import Dict, Iterable, Optional

import numpy as np
import pysam

from .breakpoints import FRAGMENT_MEAN_KEY, FRAGMENT_STDDEV_KEY
from .errors import MalformedStatsError

logger = logging.getLogger(__name__)

FRAGMENT_COUNT_KEY = "fraglength_count"


def is_usable_pair(read) -> bool:
    """First mate of a proper, primary pair with a template length."""
    return (
        read.is_paired
        and read.is_proper_pair
        and read.is_read1
        and not read.is_secondary
        and not read.is_supplementary
        and read.template_length != 0
    )


def estimate_fragment_stats(reads: Iterable, max_pairs: Optional[int] = None) -> Dict[str, float]:
    """
    Estimate fragment length mean and standard deviation.

    Args:
        reads: pysam aligned reads (or objects with the same flag attributes)
        max_pairs: Stop after this many usable pairs

    Returns:
        Dictionary with fraglength_mean, fraglength_stddev, fraglength_count

    Raises:
        MalformedStatsError: If no usable pair is found
    """
    lengths = []
    for read in reads:
        if not is_usable_pair(read):
            continue
        lengths.append(abs(read.template_length))
        if max_pairs is not None and len(lengths) >= max_pairs:
            break

    if not lengths:
        raise MalformedStatsError("No properly paired reads to estimate fragment length")

    values = np.asarray(lengths, dtype=float)
    stats = {
        FRAGMENT_MEAN_KEY: float(np.mean(values)),
        FRAGMENT_STDDEV_KEY: float(np.std(values)),
        FRAGMENT_COUNT_KEY: len(lengths),
    }
    logger.info(
        f"Fragment length from {len(lengths)} pairs: "
        f"mean {stats[FRAGMENT_MEAN_KEY]:.1f}, stddev {stats[FRAGMENT_STDDEV_KEY]:.1f}"
    )
    return stats


def estimate_bam_fragment_stats(bam_path: str, max_pairs: Optional[int] = None) -> Dict[str, float]:
    """Estimate fragment length statistics from every read of a BAM file."""
    with pysam.AlignmentFile(bam_path, 'rb') as bam:
        return estimate_fragment_stats(bam.fetch(until_eof=True), max_pairs=max_pairs)


def write_fragment_stats(stats: Dict[str, float], path: str) -> None:
    """
    Write statistics as a header line of names and a line of values.

    Examples:
        write_fragment_stats({"fraglength_mean": 250.0, "fraglength_stddev": 20.0},
                             "concordant.read.stats")
    """
    keys = list(stats)
    with open(path, 'w') as f:
        f.write('\t'.join(keys) + '\n')
        f.write('\t'.join(str(stats[k]) for k in keys) + '\n')
