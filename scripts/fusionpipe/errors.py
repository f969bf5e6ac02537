"""
Exception Types for the Fusion Support Pipeline

Every condition listed here is fatal: the library raises, never recovers,
and the stage scripts report the message and stop. There is no partial
result mode, so a failure on one breakpoint aborts the whole run.
"""


class FusionPipeError(Exception):
    """Base class for all pipeline errors."""
    pass


class MalformedReferenceError(FusionPipeError):
    """
    raised when a breakpoint reference does not contain a gene identifier
    """
    pass


class InvalidStrandError(FusionPipeError):
    """
    raised when a strand field is anything other than '+' or '-'
    """
    pass


class AlignmentConsistencyError(FusionPipeError):
    """
    raised when an alignment query returns reads aligned to a transcript
    other than the one requested
    """
    pass


class MissingRegionError(FusionPipeError):
    """
    raised when a gene or transcript has no exon model in the region tables
    """
    pass


class MalformedStatsError(FusionPipeError):
    """
    raised when the fragment length statistics are not two equal-length rows
    or lack a required value
    """
    pass


class MalformedRecordError(FusionPipeError):
    """
    raised when a line of a region, index or breakpoint table cannot be parsed
    """
    pass


class AlignmentQueryError(FusionPipeError):
    """
    raised when the alignment file cannot answer a window query, e.g. the
    transcript is not a reference of the BAM
    """
    pass
