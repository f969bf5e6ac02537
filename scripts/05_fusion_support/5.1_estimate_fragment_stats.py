#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Fragment Length Statistics
==========================

Purpose:
    Estimate the fragment length distribution of concordant pairs in the
    cDNA pair BAM. The breakpoint support step reads the result to size its
    query window (mean + 3 standard deviations).

Required Environment:
    - pysam, numpy

Input:
    - {OUTPUT_DIR}/cdna.pair.bam

Output:
    - {OUTPUT_DIR}/concordant.read.stats (header line, value line)

Adjustable Parameters:
    --max-pairs: Stop after this many usable pairs (default: all)

Usage:
    python 5.1_estimate_fragment_stats.py --bam outdir/cdna.pair.bam --out outdir/concordant.read.stats
"""

import argparse
import logging
import os
import sys

# Add scripts directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fusionpipe.errors import FusionPipeError
from fusionpipe.fragment_stats import estimate_bam_fragment_stats, write_fragment_stats

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Estimate fragment length statistics")
    parser.add_argument("--bam", required=True, help="cDNA pair BAM")
    parser.add_argument("--out", required=True, help="Statistics output file")
    parser.add_argument("--max-pairs", type=int, default=None, help="Maximum pairs to sample")
    args = parser.parse_args(argv)

    logger.info(f"Estimating fragment length from {args.bam}")
    try:
        stats = estimate_bam_fragment_stats(args.bam, max_pairs=args.max_pairs)
    except (FusionPipeError, OSError) as e:
        logger.error(f"Error: {e}")
        return 1

    write_fragment_stats(stats, args.out)
    logger.info(f"Statistics saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
