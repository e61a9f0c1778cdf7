# wingfoil/errors

"""
wingfoil.errors

Central exception hierarchy for wingfoil.

Rationale:
  - The analysis engine raises specific, meaningful errors and never logs.
  - Callers can catch WingfoilError (broad) or specific subclasses (narrow).
"""


class WingfoilError(RuntimeError):
    """Base class for all wingfoil runtime errors."""


# ---- Configuration errors ----------------------

class ConfigError(WingfoilError):
    """Config file or threshold values are malformed or violate invariants."""


# ---- Analysis errors ---------------------------

class AnalysisError(WingfoilError):
    """Errors raised by the trajectory analysis engine."""

class InsufficientDataError(AnalysisError):
    """Fewer than two track points were supplied."""

class MalformedPointError(AnalysisError):
    """A track point record lacks lat/lon or carries a non-numeric field."""

class MalformedTimestampError(AnalysisError):
    """A track point timestamp could not be parsed as an absolute instant."""

class DegenerateTimeError(AnalysisError):
    """Total track duration is zero or negative."""


# ---- Track format errors -----------------------

class TrackFormatError(WingfoilError):
    """Errors reading a raw track file into track points."""

class InvalidGpxError(TrackFormatError):
    """GPX file could not be parsed or did not contain expected data structures."""


# ---- Geocoding errors --------------------------

class GeocodeError(WingfoilError):
    """Reverse geocoding of a coordinate failed."""
