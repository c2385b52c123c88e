"""
Fatal pipeline errors.

Every failure in the distance pipeline is unrecoverable: a partially written
N x N result is not a meaningful partial answer, so nothing here is retried.
"""


class DistanceError(Exception):
    """Base class for fatal pipeline failures."""


class InputReadError(DistanceError):
    """The input table is unreadable or does not have the expected shape."""


class OutputWriteError(DistanceError):
    """The output file could not be created or written."""


class ComputationError(DistanceError):
    """A worker failed while computing distances."""
