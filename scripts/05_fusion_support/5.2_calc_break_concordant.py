#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Breakpoint Concordant Pair Support
==================================

Purpose:
    Count the concordant read pairs that span each candidate fusion
    breakpoint once the breakpoint is moved from gene pseudo-transcript
    coordinates onto every annotated transcript of the gene.

Required Environment:
    - pysam (BAM random access)
    - samtools (optional, used when tools.samtools_bin is configured)

Input:
    - Configuration YAML (reference.cdna_gene_regions, reference.cdna_regions,
      reference.gene_tran_list, parameters.splice_bias)
    - {OUTPUT_DIR}/cdna.pair.bam - Concordant pairs aligned to transcripts
    - {OUTPUT_DIR}/concordant.read.stats - Fragment length statistics
    - Breakpoints TSV: cluster_id, reference, strand, position

Output:
    - cluster_id, gene, count rows (stdout, or --out)
    - {OUTPUT_DIR}/break_concordant.log

Usage:
    python 5.2_calc_break_concordant.py -c config.yaml -o outdir -b breaks.tsv
    python 5.2_calc_break_concordant.py -c config.yaml -o outdir -b breaks.tsv --out break.concordant.tsv
"""

import argparse
import logging
import os
import sys

import yaml

# Add scripts directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fusionpipe.errors import FusionPipeError
from fusionpipe.pipeline import run
from utils.config_parser import load_config, validate_config

LOG_NAME = "break_concordant.log"

logger = logging.getLogger(__name__)


def setup_logging(output_directory, verbose=False):
    handlers = [logging.StreamHandler()]
    if os.path.isdir(output_directory):
        handlers.append(logging.FileHandler(os.path.join(output_directory, LOG_NAME)))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Count concordant read pairs spanning fusion breakpoints"
    )
    parser.add_argument("-c", "--config", required=True, help="Configuration filename")
    parser.add_argument("-o", "--output", required=True, help="Output directory")
    parser.add_argument("-b", "--breaks", required=True, help="Breaks filename")
    parser.add_argument("--out", help="Write support rows here instead of stdout")
    parser.add_argument(
        "--stats", help="Fragment statistics file (default: OUTPUT/concordant.read.stats)"
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.output, args.verbose)

    logger.info("=" * 60)
    logger.info("Breakpoint Concordant Pair Support")
    logger.info(f"Config: {args.config}")
    logger.info(f"Output dir: {args.output}")
    logger.info(f"Breaks: {args.breaks}")
    logger.info("=" * 60)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, yaml.YAMLError) as e:
        logger.error(f"Cannot load configuration: {e}")
        return 1

    is_valid, errors = validate_config(config)
    if not is_valid:
        for error in errors:
            logger.error(error)
        return 1

    try:
        table = run(config, args.output, args.breaks, output=args.out, stats_filename=args.stats)
    except (FusionPipeError, FileNotFoundError) as e:
        logger.error(f"Error: {e}")
        return 1

    logger.info(f"Complete: {len(table.clusters())} clusters, {len(table)} cluster/gene rows")
    return 0


if __name__ == "__main__":
    sys.exit(main())
