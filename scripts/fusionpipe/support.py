"""
Breakpoint Support Counting

For each candidate breakpoint the gene-level (pseudo-transcript) position is
moved to the genome, then into every annotated transcript of the gene. Read
pairs aligned to the transcript near that position are counted when their
mates bracket it:

    plus mate start < breakpoint < minus mate end

Algorithm per breakpoint:
    1. gene = gene identifier in the breakpoint reference
    2. genomic = gene cDNA position -> genome, shifted by the splice bias
       ('+': map(pos - bias) + bias, '-': map(pos + bias) - bias)
    3. for each transcript of the gene:
         local  = genome -> transcript cDNA position
         window = [max(1, local - max_fragment), local + max_fragment]
         count read names whose '+' and '-' segments bracket local
    4. table[cluster][gene] = sum over transcripts

A later breakpoint of the same cluster and gene replaces the earlier count;
the sum only runs over the transcripts of one breakpoint.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Sequence, TextIO, Tuple

import pandas as pd

from .alignments import AlignmentSegment
from .breakpoints import Breakpoint, extract_gene_id
from .coordinates import genomic_position, transcript_position
from .errors import AlignmentConsistencyError, InvalidStrandError, MissingRegionError
from .regions import ExonModel

logger = logging.getLogger(__name__)

# transcript, window start, window end -> segments
AlignmentQuery = Callable[[str, int, int], Sequence[AlignmentSegment]]

SUPPORT_COLUMNS = ["cluster_id", "gene", "count"]


@dataclass(frozen=True)
class RegionTables:
    """Immutable region tables shared by every breakpoint of a run."""
    gene_regions: Mapping[str, ExonModel]
    transcript_regions: Mapping[str, ExonModel]
    gene_transcripts: Mapping[str, Sequence[str]]

    def gene_region(self, gene: str) -> ExonModel:
        try:
            return self.gene_regions[gene]
        except KeyError:
            raise MissingRegionError(f"No gene region for {gene}") from None

    def transcript_region(self, transcript: str) -> ExonModel:
        try:
            return self.transcript_regions[transcript]
        except KeyError:
            raise MissingRegionError(f"No transcript region for {transcript}") from None

    def transcripts(self, gene: str) -> Sequence[str]:
        return self.gene_transcripts.get(gene, ())


class SupportTable:
    """
    Spanning pair counts keyed by cluster then gene.

    Clusters and genes iterate in the order they were first set; setting an
    existing key replaces its count without moving it.
    """

    def __init__(self):
        self._counts: Dict[str, Dict[str, int]] = {}

    def set(self, cluster_id: str, gene: str, count: int) -> None:
        self._counts.setdefault(cluster_id, {})[gene] = count

    def get(self, cluster_id: str, gene: str, default=None):
        return self._counts.get(cluster_id, {}).get(gene, default)

    def clusters(self) -> List[str]:
        return list(self._counts)

    def rows(self) -> Iterator[Tuple[str, str, int]]:
        for cluster_id, genes in self._counts.items():
            for gene, count in genes.items():
                yield cluster_id, gene, count

    def write(self, handle: TextIO) -> int:
        """Write tab-separated cluster_id, gene, count rows; returns row count."""
        df = self.to_dataframe()
        df.to_csv(handle, sep='\t', header=False, index=False)
        return len(df)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.rows()), columns=SUPPORT_COLUMNS)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        cluster_id, gene = key
        return gene in self._counts.get(cluster_id, {})

    def __len__(self) -> int:
        return sum(len(genes) for genes in self._counts.values())

    def __repr__(self):
        return f"SupportTable({len(self._counts)} clusters, {len(self)} entries)"


def breakpoint_genomic_position(breakpoint: Breakpoint, gene_model: ExonModel, splice_bias: int) -> int:
    """
    Genomic position of a breakpoint given in gene cDNA coordinates.

    The lookup is made splice_bias bases inside the gene (away from the
    splice boundary), and the same offset is restored in genomic space.

    Raises:
        InvalidStrandError: If the breakpoint strand is not '+' or '-'
    """
    if breakpoint.strand == "+":
        return genomic_position(breakpoint.position - splice_bias, gene_model) + splice_bias
    elif breakpoint.strand == "-":
        return genomic_position(breakpoint.position + splice_bias, gene_model) - splice_bias
    raise InvalidStrandError(
        f"Cluster {breakpoint.cluster_id}: invalid strand {breakpoint.strand!r} "
        f"for reference {breakpoint.reference}"
    )


def query_window(local: int, max_fragment_length: int) -> Tuple[int, int]:
    """
    Window of one maximum fragment length on either side of a position.

    Examples:
        >>> query_window(500, 300)
        (200, 800)
        >>> query_window(100, 300)
        (1, 400)
    """
    return max(1, local - max_fragment_length), local + max_fragment_length


def pair_segments(
    segments: Iterable[AlignmentSegment],
    transcript: str
) -> Dict[str, Dict[str, AlignmentSegment]]:
    """
    Group segments by read name, keeping the last segment seen per strand.

    Returns:
        Dictionary of read name to {strand: segment}

    Raises:
        AlignmentConsistencyError: If a segment is aligned to another transcript
    """
    by_read: Dict[str, Dict[str, AlignmentSegment]] = {}
    for segment in segments:
        if segment.transcript_name != transcript:
            raise AlignmentConsistencyError(
                f"Retrieved alignments to {segment.transcript_name} when "
                f"alignments to {transcript} were requested"
            )
        by_read.setdefault(segment.read_name, {})[segment.strand] = segment
    return by_read


def is_spanning(plus: AlignmentSegment, minus: AlignmentSegment, local: int) -> bool:
    """True if the pair strictly brackets the position."""
    return plus.genomic_start < local and minus.genomic_end > local


def count_spanning_pairs(by_read: Mapping[str, Mapping[str, AlignmentSegment]], local: int) -> int:
    count = 0
    for strands in by_read.values():
        plus = strands.get("+")
        minus = strands.get("-")
        if plus is None or minus is None:
            continue
        if is_spanning(plus, minus, local):
            count += 1
    return count


def count_breakpoint_support(
    breakpoint: Breakpoint,
    tables: RegionTables,
    alignment_query: AlignmentQuery,
    max_fragment_length: int,
    splice_bias: int
) -> Tuple[str, int]:
    """
    Count spanning pairs for one breakpoint over all transcripts of its gene.

    Returns:
        Tuple of (gene identifier, spanning pair count)
    """
    gene = extract_gene_id(breakpoint.reference)
    try:
        gene_model = tables.gene_region(gene)
        transcript_models = [(t, tables.transcript_region(t)) for t in tables.transcripts(gene)]
    except MissingRegionError as e:
        raise MissingRegionError(f"Cluster {breakpoint.cluster_id}: {e}") from e

    genomic = breakpoint_genomic_position(breakpoint, gene_model, splice_bias)

    total = 0
    for transcript, transcript_model in transcript_models:
        local = transcript_position(genomic, transcript_model)
        window_start, window_end = query_window(local, max_fragment_length)

        by_read = pair_segments(alignment_query(transcript, window_start, window_end), transcript)
        spanning = count_spanning_pairs(by_read, local)
        logger.debug(
            f"Cluster {breakpoint.cluster_id} {transcript}:{local} "
            f"window {window_start}-{window_end}: {spanning} of {len(by_read)} reads spanning"
        )
        total += spanning

    return gene, total


def compute_support(
    breakpoints: Iterable[Breakpoint],
    gene_regions: Mapping[str, ExonModel],
    transcript_regions: Mapping[str, ExonModel],
    gene_transcript_index: Mapping[str, Sequence[str]],
    alignment_query: AlignmentQuery,
    max_fragment_length: int,
    splice_bias: int
) -> SupportTable:
    """
    Count spanning read pairs for every breakpoint.

    Args:
        breakpoints: Breakpoints in input order
        gene_regions: Gene pseudo-transcript exon models
        transcript_regions: Transcript exon models
        gene_transcript_index: Gene identifier to transcript identifiers
        alignment_query: Callable (transcript, start, end) -> segments
        max_fragment_length: Half width of the query window
        splice_bias: Offset applied around the gene -> genome conversion

    Returns:
        SupportTable of cluster -> gene -> count (last breakpoint wins)
    """
    tables = RegionTables(gene_regions, transcript_regions, gene_transcript_index)
    table = SupportTable()

    for breakpoint in breakpoints:
        gene, total = count_breakpoint_support(
            breakpoint, tables, alignment_query, max_fragment_length, splice_bias
        )
        table.set(breakpoint.cluster_id, gene, total)

    logger.info(f"Computed support for {len(table)} cluster/gene pairs")
    return table
