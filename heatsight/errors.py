"""
Error taxonomy for the sighting engine.

Every error here is recoverable: it is raised at the store or
value-object seam, caught at the operation boundary, logged, and the
surrounding operation aborts without touching the rendered data.
"""

from __future__ import annotations


class HeatsightError(Exception):
    """Base class for all engine errors."""


class NetworkFailure(HeatsightError):
    """The store could not be reached or rejected the query / insert."""


class InvalidBounds(HeatsightError, ValueError):
    """A viewport rectangle is malformed (non-finite or inverted edges)."""


class InvalidSubmission(HeatsightError, ValueError):
    """A submitted coordinate pair is outside the valid lon/lat ranges."""
