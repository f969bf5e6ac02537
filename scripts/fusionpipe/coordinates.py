"""
Coordinate Conversion between Genome and cDNA Space

Fusion breakpoints are reported in a gene's pseudo-transcript (cDNA)
coordinates, while read support is counted in each real transcript's cDNA
coordinates. Both are reached through the genome. This module provides the
two conversions:

- cDNA -> genome: genomic_position
- genome -> cDNA: transcript_position

cDNA space is formed by concatenating the exons in stored order, so
position 1 is the first base of the first stored exon. On the minus strand
position 1 is instead the last base of the last stored exon, which is
handled by reflecting the position (L - p + 1, L = combined exon length).

Positions outside the exons:
    genomic_position extrapolates linearly past either end of the model, so
    any integer maps to a genomic coordinate.

    transcript_position snaps an intronic or upstream genomic position
    forward to the first base of the next exon, and a position beyond the
    last exon to the last base of the model.

The two are inverse only for positions inside exons:

    transcript_position(genomic_position(p, m), m) == p    for 1 <= p <= L
"""

from .regions import ExonModel


def genomic_position(position: int, model: ExonModel) -> int:
    """
    Convert a cDNA position to a genomic position.

    Args:
        position: Position in the model's concatenated exon space (1-based,
            may fall outside 1..L)
        model: Exon model of the gene or transcript

    Returns:
        Genomic position (1-based)

    Examples:
        >>> from fusionpipe.regions import ExonModel
        >>> genomic_position(50, ExonModel("+", ((1000, 1199),)))
        1049
        >>> genomic_position(10, ExonModel("-", ((1000, 1099), (2000, 2099))))
        2090
    """
    exons = model.exons

    if model.strand == "-":
        position = model.total_length - position + 1

    if position < 1:
        return exons[0].start + position - 1

    offset = 0
    for exon in exons:
        if position <= offset + exon.length:
            return position - offset - 1 + exon.start
        offset += exon.length

    return position - offset + exons[-1].end


def transcript_position(genomic_pos: int, model: ExonModel) -> int:
    """
    Convert a genomic position to a cDNA position.

    An intronic position maps to the first base of the following exon, and
    a position past the last exon maps to the last base of the model.

    Args:
        genomic_pos: Genomic position (1-based)
        model: Exon model of the gene or transcript

    Returns:
        Position in the model's concatenated exon space, within 1..L

    Examples:
        >>> from fusionpipe.regions import ExonModel
        >>> model = ExonModel("+", ((1000, 1099), (2000, 2099)))
        >>> transcript_position(1049, model)
        50
        >>> transcript_position(1500, model)  # intron snaps to next exon
        101
    """
    total = model.total_length
    result = total

    offset = 0
    for exon in model.exons:
        if genomic_pos <= exon.end:
            if genomic_pos < exon.start:
                result = offset + 1
            else:
                result = offset + genomic_pos - exon.start + 1
            break
        offset += exon.length

    if model.strand == "-":
        result = total - result + 1

    return result
